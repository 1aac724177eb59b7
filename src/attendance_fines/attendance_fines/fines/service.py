from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..activities.model import Activity
from ..activities.repository import ActivityRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_positive_amount
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ActivityType, FineStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..events.repository import EventRepository
from ..members.model import Member
from ..members.repository import MemberRepository
from ..members.service import SessionUser
from .model import Fine, FineSettings, IssuedBy, NewFine
from .repository import FineRepository, FineSettingsRepository


@dataclass(frozen=True)
class BulkAssignResult:
    created: list[int] = field(default_factory=list)
    skipped_unknown_users: list[int] = field(default_factory=list)
    skipped_already_fined: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class MemberFineSummary:
    user_id: int
    full_name: str
    role: str
    unpaid_total: Decimal
    unpaid_count: int


def _require_admin(current_user: SessionUser) -> None:
    if current_user is None or not current_user.is_admin:
        raise AuthorizationError("Admin role required")


def _issuer(current_user: SessionUser) -> IssuedBy:
    return IssuedBy(uid=str(current_user.user_id), username=current_user.full_name, role=current_user.role.value)


def _unpaid(fines: Iterable[Fine]) -> list[Fine]:
    return [f for f in fines if f.status == FineStatus.UNPAID]


class FineService:
    """Admin-side fine ledger actions (settings, manual fines, payments)."""

    def __init__(
        self,
        fines: FineRepository,
        fine_settings: FineSettingsRepository,
        members: MemberRepository,
        events: EventRepository,
        activities: Optional[ActivityRepository] = None,
        *,
        default_settings: Optional[FineSettings] = None,
    ):
        self._fines = fines
        self._fine_settings = fine_settings
        self._members = members
        self._events = events
        self._activities = activities
        self._default_settings = default_settings or FineSettings()

    def get_settings(self, org_id: int) -> FineSettings:
        return self._fine_settings.get(org_id) or self._default_settings

    def save_settings(self, *, current_user: SessionUser, student_fine, officer_fine) -> FineSettings:
        _require_admin(current_user)
        settings = FineSettings(
            student_fine=require_positive_amount(student_fine, "Student fine"),
            officer_fine=require_positive_amount(officer_fine, "Officer fine"),
        )
        self._fine_settings.save(current_user.org_id, settings)
        return settings

    def bulk_assign(
        self,
        *,
        current_user: SessionUser,
        event_id: int,
        user_ids: Sequence[int],
        student_amount=None,
        officer_amount=None,
        now: datetime | None = None,
    ) -> BulkAssignResult:
        """Fine the selected members for an event with admin-entered amounts.

        Members already fined for the event are skipped so the
        one-fine-per-(user, event) rule holds for manual fines too.
        """

        _require_admin(current_user)
        now = now or now_local()
        org_id = current_user.org_id

        if not user_ids:
            raise ValidationError("Select at least one member")

        event = self._events.get_by_id(org_id=org_id, event_id=int(event_id))
        if event is None:
            raise NotFoundError("Selected event not found")

        result = BulkAssignResult()
        planned: list[tuple[Member, Decimal]] = []
        for user_id in dict.fromkeys(int(u) for u in user_ids):
            member = self._members.get_by_id(org_id=org_id, user_id=user_id)
            if member is None:
                result.skipped_unknown_users.append(user_id)
                continue
            if member.is_student:
                amount = require_positive_amount(student_amount, "Student fine")
            else:
                amount = require_positive_amount(officer_amount, "Officer fine")
            planned.append((member, amount))

        issuer = _issuer(current_user)
        for member, amount in planned:
            if self._fines.find_for_user_and_event(org_id=org_id, user_id=member.user_id, event_id=event.event_id):
                result.skipped_already_fined.append(member.user_id)
                continue

            fine_id = self._fines.create(
                NewFine(
                    org_id=org_id,
                    user_id=member.user_id,
                    event_id=event.event_id,
                    amount=amount,
                    created_at=now,
                    issued_by=issuer,
                    description=f"Fine for {event.title or 'an event'}",
                    user_full_name=member.full_name,
                    event_title=event.title,
                )
            )
            if fine_id is None:
                result.skipped_already_fined.append(member.user_id)
                continue

            result.created.append(fine_id)
            self._record(
                org_id=org_id,
                activity_type=ActivityType.FINE_ADDED,
                description="New fine assigned",
                occurred_at=now,
                actor_id=current_user.user_id,
                details={
                    "fineId": fine_id,
                    "amount": str(amount),
                    "userId": member.user_id,
                    "studentName": member.full_name,
                    "eventId": event.event_id,
                    "eventTitle": event.title,
                    "status": FineStatus.UNPAID.value,
                },
            )
        return result

    def mark_paid(self, *, current_user: SessionUser, fine_id: int, now: datetime | None = None) -> Fine:
        _require_admin(current_user)
        now = now or now_local()
        org_id = current_user.org_id

        fine = self._fines.get_by_id(org_id=org_id, fine_id=int(fine_id))
        if fine is None:
            raise NotFoundError("Fine not found")
        if fine.is_paid:
            raise ValidationError("Fine is already paid")

        if not self._fines.mark_paid(org_id=org_id, fine_id=fine.fine_id, paid_at=now, paid_by=_issuer(current_user)):
            raise ValidationError("Fine is already paid")

        self._record(
            org_id=org_id,
            activity_type=ActivityType.FINE_PAID,
            description="Fine payment received",
            occurred_at=now,
            actor_id=current_user.user_id,
            details={
                "fineId": fine.fine_id,
                "amount": str(fine.amount),
                "userId": fine.user_id,
                "studentName": fine.user_full_name,
                "eventId": fine.event_id,
                "eventTitle": fine.event_title,
                "status": FineStatus.PAID.value,
            },
        )
        return self._fines.get_by_id(org_id=org_id, fine_id=fine.fine_id) or fine

    def history(self, *, org_id: int, user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[Fine]:
        return self._fines.list_for_user(org_id=org_id, user_id=int(user_id), limit=int(limit))

    def unpaid_total(self, *, org_id: int, user_id: int) -> Decimal:
        return self._fines.unpaid_total_for_user(org_id=org_id, user_id=int(user_id))

    def org_summary(self, org_id: int) -> list[MemberFineSummary]:
        by_user: dict[int, list[Fine]] = {}
        for fine in _unpaid(self._fines.list_for_org(org_id)):
            by_user.setdefault(fine.user_id, []).append(fine)

        out = []
        for member in self._members.list_roster(org_id):
            unpaid = by_user.get(member.user_id, [])
            out.append(
                MemberFineSummary(
                    user_id=member.user_id,
                    full_name=member.full_name,
                    role=member.role,
                    unpaid_total=sum((f.amount for f in unpaid), Decimal("0")),
                    unpaid_count=len(unpaid),
                )
            )
        out.sort(key=lambda s: s.unpaid_total, reverse=True)
        return out

    def recent_activity(self, org_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[Activity]:
        if self._activities is None:
            return []
        return self._activities.list_recent(org_id, int(limit))

    def _record(self, **kwargs) -> None:
        if self._activities is not None:
            self._activities.record(**kwargs)
