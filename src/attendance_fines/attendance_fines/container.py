from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .activities.mysql_activity_repository import MySQLActivityRepository
from .activities.repository import ActivityRepository
from .checkin.service import CheckInService
from .core.constants import DEFAULT_RECONCILE_INTERVAL_SECONDS, QR_RELEASE_LEAD_MINUTES
from .database.connection import DatabaseConnection, DBConfig
from .events.mysql_event_repository import MySQLEventRepository
from .events.repository import EventRepository
from .events.service import EventService
from .fines.locks import InProcessLocks, ReconcileLocks
from .fines.model import FineSettings
from .fines.mysql_fine_repository import MySQLFineRepository, MySQLFineSettingsRepository
from .fines.mysql_locks import MySQLNamedLocks
from .fines.reconciler import AbsenteeReconciler
from .fines.repository import FineRepository, FineSettingsRepository
from .fines.service import FineService
from .fines.worker import ReconcileWorker
from .members.mysql_member_repository import MySQLMemberRepository
from .members.repository import MemberRepository
from .members.service import AuthService
from .tokens.service import TokenService


@dataclass(frozen=True)
class Container:
    events_repo: EventRepository
    members_repo: MemberRepository
    fines_repo: FineRepository
    fine_settings_repo: FineSettingsRepository
    activities_repo: Optional[ActivityRepository]

    token_service: TokenService
    auth_service: AuthService
    checkin_service: CheckInService
    event_service: EventService
    fine_service: FineService
    reconciler: AbsenteeReconciler
    worker: ReconcileWorker


def assemble(
    *,
    events_repo: EventRepository,
    members_repo: MemberRepository,
    fines_repo: FineRepository,
    fine_settings_repo: FineSettingsRepository,
    activities_repo: Optional[ActivityRepository] = None,
    locks: Optional[ReconcileLocks] = None,
    default_settings: Optional[FineSettings] = None,
    release_lead_minutes: int = QR_RELEASE_LEAD_MINUTES,
    reconcile_interval_seconds: float = DEFAULT_RECONCILE_INTERVAL_SECONDS,
) -> Container:
    """Wire services on top of any set of repositories (MySQL or in-memory)."""

    token_service = TokenService(release_lead_minutes=release_lead_minutes)
    reconciler = AbsenteeReconciler(
        events_repo,
        members_repo,
        fines_repo,
        fine_settings_repo,
        locks=locks if locks is not None else InProcessLocks(),
        default_settings=default_settings,
    )

    return Container(
        events_repo=events_repo,
        members_repo=members_repo,
        fines_repo=fines_repo,
        fine_settings_repo=fine_settings_repo,
        activities_repo=activities_repo,
        token_service=token_service,
        auth_service=AuthService(members_repo),
        checkin_service=CheckInService(events_repo),
        event_service=EventService(events_repo, members_repo, token_service, reconciler),
        fine_service=FineService(
            fines_repo,
            fine_settings_repo,
            members_repo,
            events_repo,
            activities_repo,
            default_settings=default_settings,
        ),
        reconciler=reconciler,
        worker=ReconcileWorker(reconciler, interval_seconds=reconcile_interval_seconds),
    )


def build_container(
    *,
    db_config: dict,
    default_settings: Optional[FineSettings] = None,
    release_lead_minutes: int = QR_RELEASE_LEAD_MINUTES,
    reconcile_interval_seconds: float = DEFAULT_RECONCILE_INTERVAL_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return assemble(
        events_repo=MySQLEventRepository(conn),
        members_repo=MySQLMemberRepository(conn),
        fines_repo=MySQLFineRepository(conn),
        fine_settings_repo=MySQLFineSettingsRepository(conn),
        activities_repo=MySQLActivityRepository(conn),
        locks=MySQLNamedLocks(conn),
        default_settings=default_settings,
        release_lead_minutes=release_lead_minutes,
        reconcile_interval_seconds=reconcile_interval_seconds,
    )
