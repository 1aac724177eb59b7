"""Absentee fine reconciliation.

Once an event's window has closed, every roster member who did not check in
gets exactly one fine for that event, then the event is flagged as processed.

There is no transaction around "read roster + write N fines + set flag": the
per-(user, event) existence check is what prevents duplicates, and the flag is
only written at the end. A run that fails half-way leaves the flag False and
the next run resumes, skipping members who were already fined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..events.model import Event
from ..events.repository import EventRepository
from ..members.repository import MemberRepository
from .locks import ReconcileLocks, event_lock_key
from .model import FineSettings, IssuedBy, NewFine
from .repository import FineRepository, FineSettingsRepository

logger = logging.getLogger(__name__)

SKIP_ALREADY_PROCESSED = "already_processed"
SKIP_WINDOW_OPEN = "window_open"
SKIP_LOCKED = "locked"
SKIP_NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ReconcileReport:
    event_id: int
    ran: bool
    skipped_reason: Optional[str] = None
    fined_user_ids: tuple[int, ...] = ()
    already_fined_user_ids: tuple[int, ...] = ()
    attended_count: int = 0

    @property
    def fines_created(self) -> int:
        return len(self.fined_user_ids)


class AbsenteeReconciler:
    def __init__(
        self,
        events: EventRepository,
        members: MemberRepository,
        fines: FineRepository,
        fine_settings: FineSettingsRepository,
        *,
        locks: Optional[ReconcileLocks] = None,
        default_settings: Optional[FineSettings] = None,
    ):
        self._events = events
        self._members = members
        self._fines = fines
        self._fine_settings = fine_settings
        self._locks = locks
        self._default_settings = default_settings or FineSettings()

    def settings_for(self, org_id: int) -> FineSettings:
        return self._fine_settings.get(org_id) or self._default_settings

    def reconcile(self, event: Event, *, now: datetime | None = None, settings: Optional[FineSettings] = None) -> ReconcileReport:
        now = now or now_local()

        if event.fines_processed:
            return ReconcileReport(event_id=event.event_id, ran=False, skipped_reason=SKIP_ALREADY_PROCESSED)
        if not now > event.window().end:
            return ReconcileReport(event_id=event.event_id, ran=False, skipped_reason=SKIP_WINDOW_OPEN)

        settings = settings or self.settings_for(event.org_id)
        roster = self._members.list_roster(event.org_id)
        attended = event.attendees

        fined: list[int] = []
        already: list[int] = []
        for member in roster:
            if member.user_id in attended:
                continue

            existing = self._fines.find_for_user_and_event(
                org_id=event.org_id, user_id=member.user_id, event_id=event.event_id
            )
            if existing:
                already.append(member.user_id)
                continue

            fine_id = self._fines.create(
                NewFine(
                    org_id=event.org_id,
                    user_id=member.user_id,
                    event_id=event.event_id,
                    amount=settings.amount_for_role(member.role),
                    created_at=now,
                    issued_by=IssuedBy.system(),
                    description=f"Fine for missing {event.title or 'an event'}",
                    user_full_name=member.full_name,
                    event_title=event.title,
                )
            )
            if fine_id is None:
                # Lost a race against another reconciler; the store kept theirs.
                already.append(member.user_id)
                continue
            fined.append(member.user_id)

        self._events.mark_fines_processed(org_id=event.org_id, event_id=event.event_id)

        logger.info(
            "reconciled event=%s org=%s roster=%d attended=%d fined=%d already_fined=%d",
            event.event_id,
            event.org_id,
            len(roster),
            len(attended),
            len(fined),
            len(already),
        )
        return ReconcileReport(
            event_id=event.event_id,
            ran=True,
            fined_user_ids=tuple(fined),
            already_fined_user_ids=tuple(already),
            attended_count=len(attended),
        )

    def reconcile_event(self, *, org_id: int, event_id: int, now: datetime | None = None) -> ReconcileReport:
        """Reload the event and reconcile it while holding its lock (if configured)."""
        if self._locks is None:
            return self._reload_and_reconcile(org_id=org_id, event_id=event_id, now=now)

        with self._locks.hold(event_lock_key(org_id, event_id)) as acquired:
            if not acquired:
                return ReconcileReport(event_id=event_id, ran=False, skipped_reason=SKIP_LOCKED)
            return self._reload_and_reconcile(org_id=org_id, event_id=event_id, now=now)

    def _reload_and_reconcile(self, *, org_id: int, event_id: int, now: datetime | None) -> ReconcileReport:
        event = self._events.get_by_id(org_id=org_id, event_id=event_id)
        if event is None:
            return ReconcileReport(event_id=event_id, ran=False, skipped_reason=SKIP_NOT_FOUND)
        return self.reconcile(event, now=now)

    def reconcile_due(self, *, now: datetime | None = None) -> list[ReconcileReport]:
        """Reconcile every unprocessed event whose window has closed.

        A failing event is logged and left for the next pass.
        """
        now = now or now_local()
        reports: list[ReconcileReport] = []
        for event in self._events.list_unprocessed():
            if not now > event.window().end:
                continue
            try:
                reports.append(self.reconcile_event(org_id=event.org_id, event_id=event.event_id, now=now))
            except Exception:
                logger.exception("reconciliation failed event=%s org=%s", event.event_id, event.org_id)
        return reports
