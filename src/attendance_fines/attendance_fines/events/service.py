from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import QRDisplayState
from ..core.exceptions import AuthorizationError, NotFoundError
from ..fines.reconciler import AbsenteeReconciler, ReconcileReport
from ..members.repository import MemberRepository
from ..members.service import SessionUser
from ..timewindow.model import TimeWindow
from ..timewindow.parser import parse_window_strict
from ..tokens.codec import encode_token
from ..tokens.service import TokenService
from .model import AttendanceRow, Event
from .repository import EventRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QRView:
    event: Event
    window: TimeWindow
    state: QRDisplayState
    payload: Optional[str]
    seconds_until_release: int
    reconcile_report: Optional[ReconcileReport] = None


@dataclass(frozen=True)
class AttendanceSummary:
    event: Event
    attended: list[AttendanceRow]
    absent: list[AttendanceRow]


class EventService:
    def __init__(
        self,
        events: EventRepository,
        members: MemberRepository,
        tokens: TokenService,
        reconciler: Optional[AbsenteeReconciler] = None,
    ):
        self._events = events
        self._members = members
        self._tokens = tokens
        self._reconciler = reconciler

    def create_event(
        self,
        *,
        current_user: SessionUser,
        title: str,
        due_date: date,
        timeframe: str,
        description: Optional[str] = None,
    ) -> int:
        if current_user is None or not current_user.is_admin:
            raise AuthorizationError("Admin role required")

        title = require_non_empty(title, "Title")
        timeframe = require_non_empty(timeframe, "Timeframe")
        parse_window_strict(due_date, timeframe)

        return self._events.create_event(
            org_id=current_user.org_id,
            title=title,
            description=(description or "").strip() or None,
            due_date=due_date,
            timeframe=timeframe,
            created_by=current_user.user_id,
        )

    def list_events(self, org_id: int) -> Sequence[Event]:
        return self._events.list_for_org(org_id)

    def get_event(self, *, org_id: int, event_id: int) -> Event:
        event = self._events.get_by_id(org_id=org_id, event_id=int(event_id))
        if event is None:
            raise NotFoundError("Event not found")
        return event

    def qr_view(self, *, org_id: int, event_id: int, now: datetime | None = None) -> QRView:
        """State of the event QR screen at ``now``.

        The payload is only handed out while ACTIVE. Viewing a CLOSED event
        whose fines were not processed yet triggers reconciliation; a failure
        there is logged and retried on the next view.
        """

        now = now or now_local()
        event = self.get_event(org_id=org_id, event_id=event_id)
        window = event.window()
        state = self._tokens.display_state(window, now)

        payload = None
        if state == QRDisplayState.ACTIVE:
            payload = encode_token(self._tokens.issue_token(event, org_id))

        report = None
        if state == QRDisplayState.CLOSED and not event.fines_processed and self._reconciler is not None:
            try:
                report = self._reconciler.reconcile_event(org_id=org_id, event_id=event.event_id, now=now)
                if report.ran:
                    event = self.get_event(org_id=org_id, event_id=event.event_id)
            except Exception:
                logger.exception("auto-fine failed event=%s org=%s", event.event_id, org_id)

        return QRView(
            event=event,
            window=window,
            state=state,
            payload=payload,
            seconds_until_release=int(self._tokens.countdown(window, now).total_seconds()),
            reconcile_report=report,
        )

    def attendance_summary(self, *, org_id: int, event_id: int) -> AttendanceSummary:
        event = self.get_event(org_id=org_id, event_id=event_id)

        attended: list[AttendanceRow] = []
        absent: list[AttendanceRow] = []
        for m in self._members.list_roster(org_id):
            if event.has_attended(m.user_id):
                attended.append(
                    AttendanceRow(
                        user_id=m.user_id,
                        full_name=m.full_name,
                        role=m.role,
                        checked_in_at=event.attendance_timestamps.get(m.user_id),
                    )
                )
            else:
                absent.append(AttendanceRow(user_id=m.user_id, full_name=m.full_name, role=m.role, checked_in_at=None))

        attended.sort(key=lambda r: r.checked_in_at or datetime.min)
        return AttendanceSummary(event=event, attended=attended, absent=absent)
