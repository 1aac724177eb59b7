from __future__ import annotations

import json
from datetime import datetime

import pytest

from src.attendance_fines.attendance_fines.checkin.service import CheckInService
from src.attendance_fines.attendance_fines.core.enums import CheckInErrorCode, CheckInOutcome, Role
from src.attendance_fines.attendance_fines.core.exceptions import CheckInError
from src.attendance_fines.attendance_fines.members.service import SessionUser

STUDENT = SessionUser(user_id=2, org_id=1, full_name="Ben Student", role=Role.STUDENT)


def _payload(event_id="10", org_id="1") -> str:
    return json.dumps({"kind": "event_attendance", "eventId": event_id, "orgId": org_id})


@pytest.fixture
def service(events, event_factory):
    events.add(event_factory(10))
    return CheckInService(events)


def test_check_in_records_attendance(service, events, fixed_now):
    result = service.check_in(_payload(), STUDENT, current_org_id=1, now=fixed_now)

    assert result.outcome == CheckInOutcome.CHECKED_IN
    assert result.checked_in_at == fixed_now
    event = events.get_by_id(org_id=1, event_id=10)
    assert event.attendees == frozenset({2})
    assert event.attendance_timestamps[2] == fixed_now


def test_check_in_is_idempotent(service, events, fixed_now):
    before = len(events.get_by_id(org_id=1, event_id=10).attendees)

    first = service.check_in(_payload(), STUDENT, current_org_id=1, now=fixed_now)
    second = service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 13, 0))
    third = service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 14, 0))

    event = events.get_by_id(org_id=1, event_id=10)
    assert first.outcome == CheckInOutcome.CHECKED_IN
    assert second.outcome == CheckInOutcome.ALREADY_ATTENDED
    assert second.already_attended
    assert third.outcome == CheckInOutcome.ALREADY_ATTENDED
    assert len(event.attendees) == before + 1
    assert event.attendance_timestamps[2] == fixed_now


def test_concurrent_duplicate_reports_already_attended(events, event_factory, fixed_now):
    class RacingEvents:
        """The attendee row appears between the read and the add."""

        def get_by_id(self, **kwargs):
            return events.get_by_id(**kwargs)

        def add_attendee(self, **kwargs):
            events.add_attendee(**kwargs)
            return events.add_attendee(**kwargs)

    events.add(event_factory(10))
    result = CheckInService(RacingEvents()).check_in(_payload(), STUDENT, current_org_id=1, now=fixed_now)

    assert result.outcome == CheckInOutcome.ALREADY_ATTENDED
    assert events.get_by_id(org_id=1, event_id=10).attendees == frozenset({2})


def test_check_in_allowed_before_release_time(service, events):
    result = service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 6, 0))

    assert result.outcome == CheckInOutcome.CHECKED_IN


def test_check_in_at_exact_end_is_accepted(service):
    result = service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 17, 0))

    assert result.outcome == CheckInOutcome.CHECKED_IN


@pytest.mark.parametrize(
    "raw, user, org_id, expected",
    [
        ("not json", None, None, CheckInErrorCode.MALFORMED_TOKEN),
        (_payload(), None, None, CheckInErrorCode.NOT_AUTHENTICATED),
        (_payload(org_id="2"), STUDENT, 1, CheckInErrorCode.WRONG_ORGANIZATION),
        (_payload(), STUDENT, None, CheckInErrorCode.WRONG_ORGANIZATION),
        (_payload(event_id="999"), STUDENT, 1, CheckInErrorCode.EVENT_NOT_FOUND),
        (_payload(event_id="abc"), STUDENT, 1, CheckInErrorCode.EVENT_NOT_FOUND),
    ],
)
def test_rejections_in_validation_order(service, events, fixed_now, raw, user, org_id, expected):
    with pytest.raises(CheckInError) as exc:
        service.check_in(raw, user, current_org_id=org_id, now=fixed_now)

    assert exc.value.code == expected
    assert events.get_by_id(org_id=1, event_id=10).attendees == frozenset()


def test_ended_event_is_rejected(service, events):
    with pytest.raises(CheckInError) as exc:
        service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 17, 1))

    assert exc.value.code == CheckInErrorCode.EVENT_ENDED
    assert events.get_by_id(org_id=1, event_id=10).attendees == frozenset()


def test_ended_check_runs_before_already_attended(service, fixed_now):
    service.check_in(_payload(), STUDENT, current_org_id=1, now=fixed_now)

    with pytest.raises(CheckInError) as exc:
        service.check_in(_payload(), STUDENT, current_org_id=1, now=datetime(2024, 5, 2, 9, 0))

    assert exc.value.code == CheckInErrorCode.EVENT_ENDED


def test_event_with_fallback_window_is_already_ended(events, event_factory):
    events.add(event_factory(11, timeframe="TBA"))
    service = CheckInService(events)

    with pytest.raises(CheckInError) as exc:
        service.check_in(_payload(event_id="11"), STUDENT, current_org_id=1, now=datetime(2024, 5, 1, 8, 0))

    assert exc.value.code == CheckInErrorCode.EVENT_ENDED
