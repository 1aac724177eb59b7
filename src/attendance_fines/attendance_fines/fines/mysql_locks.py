from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from ..database.connection import DatabaseConnection


class MySQLNamedLocks:
    """Per-event lock shared by every process talking to the same database.

    Uses GET_LOCK/RELEASE_LOCK, which belong to the session, so one
    connection is held open for the whole critical section.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, timeout_seconds: int = 0):
        self._conn_factory = conn_factory
        self._timeout = int(timeout_seconds)

    def _name(self, key: str) -> str:
        # MySQL caps lock names at 64 characters.
        return f"{self._conn_factory.database}:{key}"[:64]

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        name = self._name(key)
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._timeout))
                row = cur.fetchone()
                acquired = bool(row and row[0] == 1)
                try:
                    yield acquired
                finally:
                    if acquired:
                        cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                        cur.fetchone()
            finally:
                cur.close()
        finally:
            conn.close()
