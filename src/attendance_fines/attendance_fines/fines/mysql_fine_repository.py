from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import FineStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Fine, FineSettings, IssuedBy, NewFine
from .repository import FineRepository, FineSettingsRepository

_FINE_COLUMNS = """
    fine_id, org_id, user_id, event_id, amount, status, description,
    user_full_name, event_title,
    issued_by_uid, issued_by_username, issued_by_role, created_at,
    paid_at, paid_by_uid, paid_by_username, paid_by_role
"""


def _to_fine(r: dict) -> Fine:
    paid_by = None
    if r.get("paid_by_uid"):
        paid_by = IssuedBy(
            uid=str(r["paid_by_uid"]),
            username=r.get("paid_by_username") or "",
            role=r.get("paid_by_role") or "",
        )
    return Fine(
        fine_id=int(r["fine_id"]),
        org_id=int(r["org_id"]),
        user_id=int(r["user_id"]),
        event_id=int(r["event_id"]),
        amount=to_decimal(r["amount"]),
        status=FineStatus(r["status"]),
        created_at=r["created_at"],
        issued_by=IssuedBy(
            uid=str(r["issued_by_uid"]),
            username=r["issued_by_username"],
            role=r["issued_by_role"],
        ),
        paid_at=r.get("paid_at"),
        paid_by=paid_by,
        description=r.get("description"),
        user_full_name=r.get("user_full_name"),
        event_title=r.get("event_title"),
    )


class MySQLFineRepository(FineRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, org_id: int, fine_id: int) -> Optional[Fine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_FINE_COLUMNS} FROM fines WHERE org_id=%s AND fine_id=%s", (org_id, fine_id))
            row = fetchone(cur)
            return _to_fine(row) if row else None

    def find_for_user_and_event(self, *, org_id: int, user_id: int, event_id: int) -> Sequence[Fine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_FINE_COLUMNS}
                FROM fines
                WHERE org_id=%s AND user_id=%s AND event_id=%s
                """,
                (org_id, user_id, event_id),
            )
            return [_to_fine(r) for r in fetchall(cur)]

    def create(self, fine: NewFine) -> Optional[int]:
        # uq_fines_user_event makes a concurrent duplicate a no-op.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO fines(
                    org_id, user_id, event_id, amount, status, description,
                    user_full_name, event_title,
                    issued_by_uid, issued_by_username, issued_by_role, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    fine.org_id,
                    fine.user_id,
                    fine.event_id,
                    fine.amount,
                    FineStatus.UNPAID.value,
                    fine.description,
                    fine.user_full_name,
                    fine.event_title,
                    fine.issued_by.uid,
                    fine.issued_by.username,
                    fine.issued_by.role,
                    fine.created_at,
                ),
            )
            if cur.rowcount <= 0:
                return None
            return int(cur.lastrowid)

    def mark_paid(self, *, org_id: int, fine_id: int, paid_at: datetime, paid_by: IssuedBy) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE fines
                SET status=%s, paid_at=%s, paid_by_uid=%s, paid_by_username=%s, paid_by_role=%s
                WHERE org_id=%s AND fine_id=%s AND status=%s
                """,
                (
                    FineStatus.PAID.value,
                    paid_at,
                    paid_by.uid,
                    paid_by.username,
                    paid_by.role,
                    org_id,
                    fine_id,
                    FineStatus.UNPAID.value,
                ),
            )
            return cur.rowcount > 0

    def list_for_user(self, *, org_id: int, user_id: int, limit: int) -> Sequence[Fine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_FINE_COLUMNS}
                FROM fines
                WHERE org_id=%s AND user_id=%s
                ORDER BY created_at DESC, fine_id DESC
                LIMIT %s
                """,
                (org_id, user_id, int(limit)),
            )
            return [_to_fine(r) for r in fetchall(cur)]

    def unpaid_total_for_user(self, *, org_id: int, user_id: int) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT SUM(amount) AS total
                FROM fines
                WHERE org_id=%s AND user_id=%s AND status=%s
                """,
                (org_id, user_id, FineStatus.UNPAID.value),
            )
            row = fetchone(cur)
            return to_decimal(row["total"] if row else None)

    def list_for_org(self, org_id: int) -> Sequence[Fine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_FINE_COLUMNS} FROM fines WHERE org_id=%s ORDER BY created_at DESC, fine_id DESC",
                (org_id,),
            )
            return [_to_fine(r) for r in fetchall(cur)]


class MySQLFineSettingsRepository(FineSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, org_id: int) -> Optional[FineSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_fine, officer_fine FROM fine_settings WHERE org_id=%s", (org_id,))
            row = fetchone(cur)
            if not row:
                return None
            return FineSettings(
                student_fine=to_decimal(row["student_fine"]),
                officer_fine=to_decimal(row["officer_fine"]),
            )

    def save(self, org_id: int, settings: FineSettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fine_settings(org_id, student_fine, officer_fine)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE student_fine=VALUES(student_fine), officer_fine=VALUES(officer_fine)
                """,
                (org_id, settings.student_fine, settings.officer_fine),
            )
