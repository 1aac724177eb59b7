from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Member
from .repository import MemberRepository


def _to_member(row: dict) -> Member:
    return Member(
        user_id=int(row["user_id"]),
        org_id=int(row["org_id"]),
        full_name=row["full_name"],
        role=row.get("role") or Role.STUDENT.value,
        username=row.get("username"),
        password_hash=row.get("password_hash"),
        student_id=row.get("student_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, org_id: int, user_id: int) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, org_id, full_name, username, password_hash, role, student_id, is_active
                FROM members
                WHERE org_id=%s AND user_id=%s
                """,
                (org_id, user_id),
            )
            row = fetchone(cur)
            return _to_member(row) if row else None

    def get_by_username(self, username: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, org_id, full_name, username, password_hash, role, student_id, is_active
                FROM members
                WHERE username=%s
                """,
                (username,),
            )
            row = fetchone(cur)
            return _to_member(row) if row else None

    def list_roster(self, org_id: int) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, org_id, full_name, username, role, student_id, is_active
                FROM members
                WHERE org_id=%s AND is_active=1 AND role<>%s
                ORDER BY full_name ASC, user_id ASC
                """,
                (org_id, Role.ADMIN.value),
            )
            return [_to_member(r) for r in fetchall(cur)]
