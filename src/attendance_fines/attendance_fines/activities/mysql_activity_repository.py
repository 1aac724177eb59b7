from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ActivityType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import Activity
from .repository import ActivityRepository


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        org_id: int,
        activity_type: ActivityType,
        description: str,
        occurred_at: datetime,
        actor_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activities(org_id, activity_type, description, actor_id, details, occurred_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (org_id, activity_type.value, description, actor_id, dump_json(details), occurred_at),
            )
            return int(cur.lastrowid)

    def list_recent(self, org_id: int, limit: int) -> Sequence[Activity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT activity_id, org_id, activity_type, description, actor_id, details, occurred_at
                FROM activities
                WHERE org_id=%s
                ORDER BY occurred_at DESC, activity_id DESC
                LIMIT %s
                """,
                (org_id, int(limit)),
            )
            return [
                Activity(
                    activity_id=int(r["activity_id"]),
                    org_id=int(r["org_id"]),
                    activity_type=ActivityType(r["activity_type"]),
                    description=r["description"],
                    occurred_at=r["occurred_at"],
                    actor_id=r.get("actor_id"),
                    details=load_json(r.get("details")),
                )
                for r in fetchall(cur)
            ]
