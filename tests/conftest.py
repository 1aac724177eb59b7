from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.attendance_fines.attendance_fines.activities.model import Activity
from src.attendance_fines.attendance_fines.core.enums import FineStatus
from src.attendance_fines.attendance_fines.events.model import Event
from src.attendance_fines.attendance_fines.fines.model import Fine, FineSettings, NewFine
from src.attendance_fines.attendance_fines.members.model import Member

ORG_ID = 1
EVENT_DAY = date(2024, 5, 1)


class InMemoryEvents:
    def __init__(self):
        self._events: dict[tuple[int, int], Event] = {}
        self._next_id = 1

    def add(self, event: Event) -> Event:
        self._events[(event.org_id, event.event_id)] = event
        self._next_id = max(self._next_id, event.event_id + 1)
        return event

    def get_by_id(self, *, org_id, event_id):
        return self._events.get((int(org_id), int(event_id)))

    def list_for_org(self, org_id):
        return [e for (o, _), e in sorted(self._events.items()) if o == int(org_id)]

    def list_unprocessed(self):
        return [e for _, e in sorted(self._events.items()) if not e.fines_processed]

    def create_event(self, *, org_id, title, description, due_date, timeframe, created_by):
        event_id = self._next_id
        self.add(
            Event(
                event_id=event_id,
                org_id=int(org_id),
                title=title,
                description=description,
                due_date=due_date,
                timeframe=timeframe,
                created_by=created_by,
            )
        )
        return event_id

    def add_attendee(self, *, org_id, event_id, user_id, checked_in_at):
        event = self._events.get((int(org_id), int(event_id)))
        if event is None or int(user_id) in event.attendees:
            return False
        stamps = dict(event.attendance_timestamps)
        stamps[int(user_id)] = checked_in_at
        self._events[(event.org_id, event.event_id)] = replace(
            event, attendees=event.attendees | {int(user_id)}, attendance_timestamps=stamps
        )
        return True

    def mark_fines_processed(self, *, org_id, event_id):
        event = self._events.get((int(org_id), int(event_id)))
        if event is None:
            return False
        self._events[(event.org_id, event.event_id)] = replace(event, fines_processed=True)
        return True


class InMemoryMembers:
    def __init__(self, members: list[Member]):
        self.members = list(members)

    def get_by_id(self, *, org_id, user_id):
        for m in self.members:
            if m.org_id == int(org_id) and m.user_id == int(user_id):
                return m
        return None

    def get_by_username(self, username):
        for m in self.members:
            if m.username == username:
                return m
        return None

    def list_roster(self, org_id):
        return [m for m in self.members if m.org_id == int(org_id) and m.is_active and not m.is_admin]


class InMemoryFines:
    """Mirrors the MySQL unique key on (org_id, user_id, event_id)."""

    def __init__(self):
        self.fines: dict[int, Fine] = {}
        self._next_id = 1

    def get_by_id(self, *, org_id, fine_id):
        fine = self.fines.get(int(fine_id))
        return fine if fine and fine.org_id == int(org_id) else None

    def find_for_user_and_event(self, *, org_id, user_id, event_id):
        return [
            f
            for f in self.fines.values()
            if (f.org_id, f.user_id, f.event_id) == (int(org_id), int(user_id), int(event_id))
        ]

    def create(self, fine: NewFine) -> Optional[int]:
        if self.find_for_user_and_event(org_id=fine.org_id, user_id=fine.user_id, event_id=fine.event_id):
            return None
        fine_id = self._next_id
        self._next_id += 1
        self.fines[fine_id] = Fine(
            fine_id=fine_id,
            org_id=fine.org_id,
            user_id=fine.user_id,
            event_id=fine.event_id,
            amount=fine.amount,
            status=FineStatus.UNPAID,
            created_at=fine.created_at,
            issued_by=fine.issued_by,
            description=fine.description,
            user_full_name=fine.user_full_name,
            event_title=fine.event_title,
        )
        return fine_id

    def mark_paid(self, *, org_id, fine_id, paid_at, paid_by):
        fine = self.get_by_id(org_id=org_id, fine_id=fine_id)
        if fine is None or fine.is_paid:
            return False
        self.fines[fine.fine_id] = replace(fine, status=FineStatus.PAID, paid_at=paid_at, paid_by=paid_by)
        return True

    def list_for_user(self, *, org_id, user_id, limit):
        items = [f for f in self.fines.values() if f.org_id == int(org_id) and f.user_id == int(user_id)]
        items.sort(key=lambda f: (f.created_at, f.fine_id), reverse=True)
        return items[: int(limit)]

    def unpaid_total_for_user(self, *, org_id, user_id):
        return sum(
            (f.amount for f in self.fines.values() if f.org_id == int(org_id) and f.user_id == int(user_id) and not f.is_paid),
            Decimal("0"),
        )

    def list_for_org(self, org_id):
        return [f for f in self.fines.values() if f.org_id == int(org_id)]


class InMemoryFineSettings:
    def __init__(self, settings: Optional[dict[int, FineSettings]] = None):
        self.settings = dict(settings or {})

    def get(self, org_id):
        return self.settings.get(int(org_id))

    def save(self, org_id, settings):
        self.settings[int(org_id)] = settings


class InMemoryActivities:
    def __init__(self):
        self.items: list[Activity] = []

    def record(self, *, org_id, activity_type, description, occurred_at, actor_id=None, details=None):
        activity_id = len(self.items) + 1
        self.items.append(
            Activity(
                activity_id=activity_id,
                org_id=int(org_id),
                activity_type=activity_type,
                description=description,
                occurred_at=occurred_at,
                actor_id=actor_id,
                details=dict(details or {}),
            )
        )
        return activity_id

    def list_recent(self, org_id, limit):
        return [a for a in reversed(self.items) if a.org_id == int(org_id)][: int(limit)]


def make_event(event_id=10, *, timeframe="9:00 AM - 5:00 PM", due_date=EVENT_DAY, **kwargs) -> Event:
    kwargs.setdefault("org_id", ORG_ID)
    kwargs.setdefault("title", "General Assembly")
    return Event(event_id=event_id, due_date=due_date, timeframe=timeframe, **kwargs)


@pytest.fixture
def fixed_now() -> datetime:
    """Midday of the sample event (inside its 09:00-17:00 window)."""
    return datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def after_event() -> datetime:
    return datetime(2024, 5, 1, 17, 30, 0)


@pytest.fixture
def members() -> InMemoryMembers:
    """Admin 1, students 2/3/5, officer 4, inactive student 6."""
    return InMemoryMembers(
        [
            Member(
                user_id=1,
                org_id=ORG_ID,
                full_name="Ada Admin",
                role="admin",
                username="admin",
                password_hash=generate_password_hash("admin123"),
            ),
            Member(
                user_id=2,
                org_id=ORG_ID,
                full_name="Ben Student",
                role="student",
                username="ben",
                password_hash=generate_password_hash("student123"),
            ),
            Member(user_id=3, org_id=ORG_ID, full_name="Cara Student", role="student", username="cara"),
            Member(
                user_id=4,
                org_id=ORG_ID,
                full_name="Dan Officer",
                role="officer",
                username="dan",
                password_hash=generate_password_hash("officer123"),
            ),
            Member(user_id=5, org_id=ORG_ID, full_name="Eve Student", role="", username="eve"),
            Member(user_id=6, org_id=ORG_ID, full_name="Old Student", role="student", is_active=False),
            Member(user_id=7, org_id=2, full_name="Other Org", role="student", username="other"),
        ]
    )


@pytest.fixture
def events() -> InMemoryEvents:
    return InMemoryEvents()


@pytest.fixture
def fines() -> InMemoryFines:
    return InMemoryFines()


@pytest.fixture
def fine_settings() -> InMemoryFineSettings:
    return InMemoryFineSettings()


@pytest.fixture
def activities() -> InMemoryActivities:
    return InMemoryActivities()


@pytest.fixture
def custom_settings() -> FineSettings:
    return FineSettings(student_fine=Decimal("25"), officer_fine=Decimal("75"))


@pytest.fixture
def event_factory():
    return make_event
