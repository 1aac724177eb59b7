from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from src.attendance_fines.attendance_fines.core.enums import FineStatus
from src.attendance_fines.attendance_fines.fines.locks import InProcessLocks, event_lock_key
from src.attendance_fines.attendance_fines.fines.reconciler import (
    SKIP_ALREADY_PROCESSED,
    SKIP_LOCKED,
    SKIP_NOT_FOUND,
    SKIP_WINDOW_OPEN,
    AbsenteeReconciler,
)


@pytest.fixture
def reconciler(events, members, fines, fine_settings):
    return AbsenteeReconciler(events, members, fines, fine_settings, locks=InProcessLocks())


def _attended(event, *user_ids):
    stamps = {u: datetime(2024, 5, 1, 9, 5) for u in user_ids}
    return replace(event, attendees=frozenset(user_ids), attendance_timestamps=stamps)


def test_absentees_are_fined_once_and_event_marked(reconciler, events, fines, event_factory, after_event):
    # Roster is 2, 3, 4 (officer), 5; admin 1, inactive 6 and other-org 7 are excluded.
    events.add(_attended(event_factory(10), 2, 4))

    report = reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=after_event)

    assert report.ran
    assert sorted(report.fined_user_ids) == [3, 5]
    assert report.attended_count == 2
    assert sorted(f.user_id for f in fines.fines.values()) == [3, 5]
    assert events.get_by_id(org_id=1, event_id=10).fines_processed


def test_fine_fields(reconciler, events, fines, event_factory, after_event):
    events.add(_attended(event_factory(10), 2, 3, 5))

    reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=after_event)

    (fine,) = fines.fines.values()
    assert fine.user_id == 4
    assert fine.amount == Decimal("100")
    assert fine.status == FineStatus.UNPAID
    assert fine.description == "Fine for missing General Assembly"
    assert fine.issued_by.is_system
    assert fine.issued_by.username == "System"
    assert fine.created_at == after_event
    assert fine.event_title == "General Assembly"
    assert fine.user_full_name == "Dan Officer"


def test_amounts_follow_org_settings(events, members, fines, fine_settings, custom_settings, event_factory, after_event):
    fine_settings.save(1, custom_settings)
    events.add(event_factory(10))

    AbsenteeReconciler(events, members, fines, fine_settings).reconcile(
        events.get_by_id(org_id=1, event_id=10), now=after_event
    )

    amounts = {f.user_id: f.amount for f in fines.fines.values()}
    assert amounts == {2: Decimal("25"), 3: Decimal("25"), 4: Decimal("75"), 5: Decimal("25")}


def test_second_run_creates_nothing(reconciler, events, fines, event_factory, after_event):
    events.add(_attended(event_factory(10), 2))
    reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=after_event)
    count = len(fines.fines)

    again = reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=after_event)

    assert not again.ran
    assert again.skipped_reason == SKIP_ALREADY_PROCESSED
    assert len(fines.fines) == count


def test_stale_event_copy_does_not_duplicate_fines(reconciler, events, fines, event_factory, after_event):
    stale = events.add(_attended(event_factory(10), 2))
    reconciler.reconcile(stale, now=after_event)

    # A second reconciler working from a copy loaded before the flag was set.
    report = reconciler.reconcile(stale, now=after_event)

    assert report.ran
    assert report.fined_user_ids == ()
    assert sorted(report.already_fined_user_ids) == [3, 4, 5]
    assert len(fines.fines) == 3


def test_abcd_scenario(reconciler, events, fines, event_factory, after_event):
    # A attends; B and C are absent students; D is an absent officer.
    a, b, c, d = 2, 3, 5, 4
    events.add(_attended(event_factory(10), a))

    reconciler.reconcile_event(org_id=1, event_id=10, now=after_event)
    reconciler.reconcile_event(org_id=1, event_id=10, now=after_event)

    amounts = {f.user_id: f.amount for f in fines.fines.values() if f.event_id == 10}
    assert amounts == {b: Decimal("50"), c: Decimal("50"), d: Decimal("100")}
    assert a not in amounts
    assert len(fines.fines) == 3
    assert events.get_by_id(org_id=1, event_id=10).fines_processed


def test_paid_fine_still_blocks_a_new_one(reconciler, events, fines, event_factory, after_event):
    stale = events.add(_attended(event_factory(10), 2, 4, 5))
    reconciler.reconcile(stale, now=after_event)
    (fine,) = fines.fines.values()
    fines.fines[fine.fine_id] = replace(fine, status=FineStatus.PAID)

    reconciler.reconcile(stale, now=after_event)

    assert len(fines.fines) == 1


def test_open_window_is_skipped(reconciler, events, fines, event_factory, fixed_now):
    events.add(event_factory(10))

    report = reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=fixed_now)

    assert report.skipped_reason == SKIP_WINDOW_OPEN
    assert fines.fines == {}
    assert not events.get_by_id(org_id=1, event_id=10).fines_processed


def test_exact_end_is_still_open(reconciler, events, event_factory):
    events.add(event_factory(10))

    report = reconciler.reconcile(events.get_by_id(org_id=1, event_id=10), now=datetime(2024, 5, 1, 17, 0))

    assert report.skipped_reason == SKIP_WINDOW_OPEN


def test_partial_failure_resumes_on_next_run(events, members, fines, fine_settings, event_factory, after_event):
    class FlakyFines:
        def __init__(self, inner, fail_for_user):
            self._inner = inner
            self._fail_for_user = fail_for_user

        def find_for_user_and_event(self, **kwargs):
            return self._inner.find_for_user_and_event(**kwargs)

        def create(self, fine):
            if fine.user_id == self._fail_for_user:
                self._fail_for_user = None
                raise ConnectionError("store unavailable")
            return self._inner.create(fine)

    events.add(event_factory(10))
    reconciler = AbsenteeReconciler(events, members, FlakyFines(fines, fail_for_user=4), fine_settings)

    with pytest.raises(ConnectionError):
        reconciler.reconcile_event(org_id=1, event_id=10, now=after_event)

    assert not events.get_by_id(org_id=1, event_id=10).fines_processed
    assert sorted(f.user_id for f in fines.fines.values()) == [2, 3]

    report = reconciler.reconcile_event(org_id=1, event_id=10, now=after_event)

    assert sorted(report.fined_user_ids) == [4, 5]
    assert sorted(report.already_fined_user_ids) == [2, 3]
    assert sorted(f.user_id for f in fines.fines.values()) == [2, 3, 4, 5]
    assert events.get_by_id(org_id=1, event_id=10).fines_processed


def test_lock_held_elsewhere_skips(events, members, fines, fine_settings, event_factory, after_event):
    locks = InProcessLocks()
    reconciler = AbsenteeReconciler(events, members, fines, fine_settings, locks=locks)
    events.add(event_factory(10))

    with locks.hold(event_lock_key(1, 10)) as acquired:
        assert acquired
        report = reconciler.reconcile_event(org_id=1, event_id=10, now=after_event)

    assert report.skipped_reason == SKIP_LOCKED
    assert fines.fines == {}

    assert reconciler.reconcile_event(org_id=1, event_id=10, now=after_event).ran


def test_in_process_locks_forget_released_keys():
    locks = InProcessLocks()

    with locks.hold("a") as first:
        with locks.hold("a") as second:
            assert first and not second
            assert len(locks) == 1
        assert len(locks) == 1

    assert len(locks) == 0
    for event_id in range(50):
        with locks.hold(event_lock_key(1, event_id)):
            pass
    assert len(locks) == 0


def test_missing_event(reconciler, after_event):
    report = reconciler.reconcile_event(org_id=1, event_id=404, now=after_event)

    assert report.skipped_reason == SKIP_NOT_FOUND


def test_reconcile_due_only_touches_ended_unprocessed_events(reconciler, events, fines, event_factory):
    now = datetime(2024, 5, 1, 20, 0)
    events.add(event_factory(10))
    events.add(event_factory(11, timeframe="21:00 - 22:30"))
    events.add(event_factory(12, fines_processed=True))

    reports = reconciler.reconcile_due(now=now)

    assert [r.event_id for r in reports] == [10]
    assert {f.event_id for f in fines.fines.values()} == {10}
    assert not events.get_by_id(org_id=1, event_id=11).fines_processed


def test_reconcile_due_keeps_going_after_a_failure(events, members, fines, fine_settings, event_factory, after_event):
    class BrokenForEvent10:
        def __init__(self, inner):
            self._inner = inner

        def find_for_user_and_event(self, **kwargs):
            if kwargs["event_id"] == 10:
                raise RuntimeError("boom")
            return self._inner.find_for_user_and_event(**kwargs)

        def create(self, fine):
            return self._inner.create(fine)

    events.add(event_factory(10))
    events.add(event_factory(11))
    reconciler = AbsenteeReconciler(events, members, BrokenForEvent10(fines), fine_settings)

    reports = reconciler.reconcile_due(now=after_event)

    assert [r.event_id for r in reports] == [11]
    assert not events.get_by_id(org_id=1, event_id=10).fines_processed
    assert events.get_by_id(org_id=1, event_id=11).fines_processed
