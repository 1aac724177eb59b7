from __future__ import annotations

import logging
import re
from decimal import Decimal
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_ORG_ID = 1

# (full_name, username, password, role, student_id)
DEMO_MEMBERS = (
    ("Admin Demo", "admin", "admin123", "admin", None),
    ("Officer Demo", "officer", "officer123", "officer", None),
    ("Student Demo", "student", "student123", "student", "2024-0001"),
)


def _connection(db_config: dict) -> DatabaseConnection:
    return DatabaseConnection(DBConfig.from_mapping(db_config))


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql_file(db_config: dict, path: str | Path) -> int:
    sql = _strip_line_comments(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8")))
    conn = _connection(db_config).connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    factory = _connection(db_config)
    conn = factory.connect(database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    n = _exec_sql_file(db_config, schema_path)
    logger.info("schema applied (%d statements) from %s", n, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    n = _exec_sql_file(db_config, seed_path)
    logger.info("seed applied (%d statements) from %s", n, seed_path)


def ensure_demo_members(
    db_config: dict,
    *,
    org_id: int = DEMO_ORG_ID,
    student_fine: Decimal | None = None,
    officer_fine: Decimal | None = None,
) -> None:
    """Upsert the demo logins and the org's fine settings row."""

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor(dictionary=True)

        for full_name, username, password, role, student_id in DEMO_MEMBERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM members WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE members
                    SET org_id=%s, full_name=%s, password_hash=%s, role=%s, student_id=%s, is_active=1
                    WHERE username=%s
                    """,
                    (org_id, full_name, password_hash, role, student_id, username),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO members (org_id, full_name, username, password_hash, role, student_id)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (org_id, full_name, username, password_hash, role, student_id),
                )

        if student_fine is not None and officer_fine is not None:
            cur.execute(
                """
                INSERT IGNORE INTO fine_settings (org_id, student_fine, officer_fine)
                VALUES (%s, %s, %s)
                """,
                (org_id, student_fine, officer_fine),
            )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
