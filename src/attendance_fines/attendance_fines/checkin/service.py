from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import CheckInErrorCode, CheckInOutcome
from ..core.exceptions import CheckInError
from ..events.repository import EventRepository
from ..members.service import SessionUser
from ..tokens.codec import decode_token
from ..tokens.model import AttendanceToken
from .model import CheckInResult

logger = logging.getLogger(__name__)


class CheckInService:
    """Validates a scanned attendance token and records one attendance entry.

    Checks run in a fixed order and fail fast. The only mutation is a single
    set-union add on the event, so repeating a check-in never duplicates it.
    """

    def __init__(self, events: EventRepository):
        self._events = events

    def check_in(
        self,
        raw_payload: str | bytes | AttendanceToken,
        scanning_user: Optional[SessionUser],
        *,
        current_org_id: Optional[int],
        now: datetime | None = None,
    ) -> CheckInResult:
        now = now or now_local()

        token = raw_payload if isinstance(raw_payload, AttendanceToken) else decode_token(raw_payload)

        if scanning_user is None:
            raise CheckInError(CheckInErrorCode.NOT_AUTHENTICATED, "User not authenticated")

        if current_org_id is None or token.org_id != str(current_org_id):
            raise CheckInError(CheckInErrorCode.WRONG_ORGANIZATION, "QR code is not for this organization")

        event = None
        if token.event_id.isdigit():
            event = self._events.get_by_id(org_id=int(current_org_id), event_id=int(token.event_id))
        if event is None:
            raise CheckInError(CheckInErrorCode.EVENT_NOT_FOUND, "Event not found or has been removed")

        if now > event.window().end:
            raise CheckInError(CheckInErrorCode.EVENT_ENDED, "This event has already ended")

        user_id = int(scanning_user.user_id)
        if event.has_attended(user_id):
            return CheckInResult(outcome=CheckInOutcome.ALREADY_ATTENDED, event=event, user_id=user_id)

        added = self._events.add_attendee(
            org_id=event.org_id,
            event_id=event.event_id,
            user_id=user_id,
            checked_in_at=now,
        )
        if not added:
            # A concurrent scan by the same user got there first.
            return CheckInResult(outcome=CheckInOutcome.ALREADY_ATTENDED, event=event, user_id=user_id)

        logger.info("check-in recorded event=%s user=%s at=%s", event.event_id, user_id, now.isoformat())
        return CheckInResult(
            outcome=CheckInOutcome.CHECKED_IN,
            event=event,
            user_id=user_id,
            checked_in_at=now,
        )
