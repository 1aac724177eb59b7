from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Fine, FineSettings, IssuedBy, NewFine


class FineRepository(Protocol):
    def get_by_id(self, *, org_id: int, fine_id: int) -> Optional[Fine]:
        raise NotImplementedError

    def find_for_user_and_event(self, *, org_id: int, user_id: int, event_id: int) -> Sequence[Fine]:
        raise NotImplementedError

    def create(self, fine: NewFine) -> Optional[int]:
        """Insert a fine and return its id.

        Stores with a uniqueness guarantee on (org, user, event) return None
        when the insert was ignored as a duplicate.
        """

        raise NotImplementedError

    def mark_paid(self, *, org_id: int, fine_id: int, paid_at: datetime, paid_by: IssuedBy) -> bool:
        """unpaid -> paid. Returns False if the fine is missing or already paid."""

        raise NotImplementedError

    def list_for_user(self, *, org_id: int, user_id: int, limit: int) -> Sequence[Fine]:
        raise NotImplementedError

    def unpaid_total_for_user(self, *, org_id: int, user_id: int) -> Decimal:
        """Sum of every unpaid fine of the member (no row limit)."""

        raise NotImplementedError

    def list_for_org(self, org_id: int) -> Sequence[Fine]:
        raise NotImplementedError


class FineSettingsRepository(Protocol):
    def get(self, org_id: int) -> Optional[FineSettings]:
        raise NotImplementedError

    def save(self, org_id: int, settings: FineSettings) -> None:
        raise NotImplementedError
