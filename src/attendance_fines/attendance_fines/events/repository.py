from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import Event


class EventRepository(Protocol):
    """Store-access interface for events.

    Only equality lookups are required from the backing store; window logic is
    applied by the services after loading.
    """

    def get_by_id(self, *, org_id: int, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def list_for_org(self, org_id: int) -> Sequence[Event]:
        raise NotImplementedError

    def list_unprocessed(self) -> Sequence[Event]:
        """All events whose fines_processed flag is still False."""

        raise NotImplementedError

    def create_event(
        self,
        *,
        org_id: int,
        title: str,
        description: Optional[str],
        due_date: date,
        timeframe: str,
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def add_attendee(self, *, org_id: int, event_id: int, user_id: int, checked_in_at: datetime) -> bool:
        """Atomic set-union add of one attendee.

        Returns False when the user was already an attendee (no-op, the first
        timestamp is kept).
        """

        raise NotImplementedError

    def mark_fines_processed(self, *, org_id: int, event_id: int) -> bool:
        raise NotImplementedError
