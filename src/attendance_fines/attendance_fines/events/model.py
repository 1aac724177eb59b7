from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..timewindow.model import TimeWindow
from ..timewindow.parser import parse_window


@dataclass(frozen=True)
class Event:
    """Domain entity: an organization event members check in to.

    ``attendees`` only grows until the event ends; ``fines_processed`` flips
    from False to True once, after absentee fines were assessed.
    """

    event_id: int
    org_id: int
    title: str
    due_date: date
    timeframe: str
    description: Optional[str] = None
    attendees: frozenset[int] = field(default_factory=frozenset)
    attendance_timestamps: Mapping[int, datetime] = field(default_factory=dict)
    fines_processed: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def window(self) -> TimeWindow:
        return parse_window(self.due_date, self.timeframe)

    def has_attended(self, user_id: int) -> bool:
        return int(user_id) in self.attendees


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for the admin attendance view."""

    user_id: int
    full_name: str
    role: str
    checked_in_at: Optional[datetime]
