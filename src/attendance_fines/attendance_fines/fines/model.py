from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_OFFICER_FINE, DEFAULT_STUDENT_FINE
from ..core.enums import FineStatus

SYSTEM_ISSUER = "system"


@dataclass(frozen=True)
class IssuedBy:
    uid: str
    username: str
    role: str

    @classmethod
    def system(cls) -> "IssuedBy":
        return cls(uid=SYSTEM_ISSUER, username="System", role=SYSTEM_ISSUER)

    @property
    def is_system(self) -> bool:
        return self.uid == SYSTEM_ISSUER


@dataclass(frozen=True)
class Fine:
    """Monetary record for one (user, event).

    At most one Fine exists per (user_id, event_id). Status goes
    unpaid -> paid exactly once.
    """

    fine_id: int
    org_id: int
    user_id: int
    event_id: int
    amount: Decimal
    status: FineStatus
    created_at: datetime
    issued_by: IssuedBy
    paid_at: Optional[datetime] = None
    paid_by: Optional[IssuedBy] = None
    description: Optional[str] = None
    user_full_name: Optional[str] = None
    event_title: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == FineStatus.PAID


@dataclass(frozen=True)
class NewFine:
    """Values for a fine that has not been stored yet."""

    org_id: int
    user_id: int
    event_id: int
    amount: Decimal
    created_at: datetime
    issued_by: IssuedBy
    description: Optional[str] = None
    user_full_name: Optional[str] = None
    event_title: Optional[str] = None


@dataclass(frozen=True)
class FineSettings:
    student_fine: Decimal = DEFAULT_STUDENT_FINE
    officer_fine: Decimal = DEFAULT_OFFICER_FINE

    def amount_for_role(self, role: Optional[str]) -> Decimal:
        if role and role != "student":
            return self.officer_fine
        return self.student_fine
