from __future__ import annotations

from datetime import datetime, timedelta

from ..core.constants import QR_RELEASE_LEAD_MINUTES
from ..core.enums import QRDisplayState
from ..events.model import Event
from ..timewindow.model import TimeWindow
from .model import AttendanceToken


class TokenService:
    """Issues attendance tokens and gates their display by wall-clock time.

    Nothing is stored: every answer is recomputed from (start, end, now).
    """

    def __init__(self, *, release_lead_minutes: int = QR_RELEASE_LEAD_MINUTES):
        self._lead = timedelta(minutes=int(release_lead_minutes))

    def issue_token(self, event: Event, org_id: int) -> AttendanceToken:
        return AttendanceToken(
            event_id=str(event.event_id),
            org_id=str(org_id),
            event_title=event.title,
            event_timeframe=event.timeframe,
            event_due_date=event.due_date,
        )

    def release_at(self, window: TimeWindow) -> datetime:
        return window.start - self._lead

    def is_released(self, window: TimeWindow, now: datetime) -> bool:
        if not window.is_usable:
            return False
        return now >= self.release_at(window)

    def is_expired(self, window: TimeWindow, now: datetime) -> bool:
        return now > window.end

    def display_state(self, window: TimeWindow, now: datetime) -> QRDisplayState:
        if self.is_expired(window, now):
            return QRDisplayState.CLOSED
        if self.is_released(window, now):
            return QRDisplayState.ACTIVE
        return QRDisplayState.PENDING

    def countdown(self, window: TimeWindow, now: datetime) -> timedelta:
        """Time left until release while PENDING; zero otherwise."""
        if not window.is_usable or self.display_state(window, now) != QRDisplayState.PENDING:
            return timedelta(0)
        return self.release_at(window) - now
