from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Event
from .repository import EventRepository

_EVENT_COLUMNS = """
    event_id, org_id, title, description, due_date, timeframe,
    fines_processed, created_by, created_at
"""


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _attendance_for(self, cur, event_ids: Sequence[int]) -> dict[int, dict[int, datetime]]:
        out: dict[int, dict[int, datetime]] = {int(e): {} for e in event_ids}
        if not event_ids:
            return out

        placeholders = ",".join(["%s"] * len(event_ids))
        cur.execute(
            f"""
            SELECT event_id, user_id, checked_in_at
            FROM event_attendance
            WHERE event_id IN ({placeholders})
            """,
            tuple(int(e) for e in event_ids),
        )
        for r in fetchall(cur):
            out[int(r["event_id"])][int(r["user_id"])] = r["checked_in_at"]
        return out

    def _to_events(self, cur, rows: list[dict]) -> list[Event]:
        attendance = self._attendance_for(cur, [int(r["event_id"]) for r in rows])
        events: list[Event] = []
        for r in rows:
            stamps = attendance.get(int(r["event_id"]), {})
            events.append(
                Event(
                    event_id=int(r["event_id"]),
                    org_id=int(r["org_id"]),
                    title=r["title"],
                    description=r.get("description"),
                    due_date=r["due_date"],
                    timeframe=r["timeframe"],
                    attendees=frozenset(stamps),
                    attendance_timestamps=stamps,
                    fines_processed=bool(r.get("fines_processed")),
                    created_by=r.get("created_by"),
                    created_at=r.get("created_at"),
                )
            )
        return events

    def get_by_id(self, *, org_id: int, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE org_id=%s AND event_id=%s",
                (org_id, event_id),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._to_events(cur, [row])[0]

    def list_for_org(self, org_id: int) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE org_id=%s
                ORDER BY due_date DESC, event_id DESC
                """,
                (org_id,),
            )
            return self._to_events(cur, fetchall(cur))

    def list_unprocessed(self) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE fines_processed=0
                ORDER BY due_date ASC, event_id ASC
                """
            )
            return self._to_events(cur, fetchall(cur))

    def create_event(
        self,
        *,
        org_id: int,
        title: str,
        description: Optional[str],
        due_date: date,
        timeframe: str,
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(org_id, title, description, due_date, timeframe, fines_processed, created_by)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                """,
                (org_id, title, description, due_date, timeframe, created_by),
            )
            return int(cur.lastrowid)

    def add_attendee(self, *, org_id: int, event_id: int, user_id: int, checked_in_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO event_attendance(event_id, user_id, checked_in_at)
                SELECT e.event_id, %s, %s
                FROM events e
                WHERE e.event_id=%s AND e.org_id=%s
                """,
                (user_id, checked_in_at, event_id, org_id),
            )
            return cur.rowcount > 0

    def mark_fines_processed(self, *, org_id: int, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE events SET fines_processed=1 WHERE org_id=%s AND event_id=%s",
                (org_id, event_id),
            )
            return cur.rowcount > 0
