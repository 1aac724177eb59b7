from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import TOKEN_KIND


@dataclass(frozen=True)
class AttendanceToken:
    """Non-secret descriptor of one event in one organization.

    It is rendered as a QR code and authorizes nothing by itself.
    """

    event_id: str
    org_id: str
    event_title: str = ""
    event_timeframe: str = ""
    event_due_date: Optional[date] = None
    kind: str = TOKEN_KIND

    def to_payload(self) -> dict:
        return {
            "kind": self.kind,
            "eventId": self.event_id,
            "orgId": self.org_id,
            "eventTitle": self.event_title,
            "eventTimeframe": self.event_timeframe,
            "eventDueDate": self.event_due_date.isoformat() if self.event_due_date else None,
        }
