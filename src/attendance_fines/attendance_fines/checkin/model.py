from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CheckInOutcome
from ..events.model import Event


@dataclass(frozen=True)
class CheckInResult:
    outcome: CheckInOutcome
    event: Event
    user_id: int
    checked_in_at: Optional[datetime] = None

    @property
    def already_attended(self) -> bool:
        return self.outcome == CheckInOutcome.ALREADY_ATTENDED
