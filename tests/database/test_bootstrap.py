from __future__ import annotations

from pathlib import Path

from src.attendance_fines.attendance_fines.database.bootstrap import (
    _iter_sql_statements,
    _strip_create_db_and_use,
    _strip_line_comments,
)

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splitter_keeps_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES ('a;b'); INSERT INTO t VALUES (\"c;d\");\nSELECT 1"

    assert list(_iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_splitter_handles_escaped_quotes():
    sql = r"INSERT INTO t VALUES ('it\'s; fine'); SELECT 2;"

    assert list(_iter_sql_statements(sql)) == [r"INSERT INTO t VALUES ('it\'s; fine')", "SELECT 2"]


def test_schema_file_is_database_agnostic():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8")))
    statements = list(_iter_sql_statements(sql))

    assert not any(s.upper().startswith(("CREATE DATABASE", "USE ")) for s in statements)
    tables = {s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE IF NOT EXISTS")}
    assert {"members", "events", "event_attendance", "fines", "fine_settings", "activities"} <= tables


def test_fines_table_has_one_row_per_user_and_event():
    sql = SCHEMA.read_text(encoding="utf-8")

    assert "UNIQUE KEY uq_fines_user_event (org_id, user_id, event_id)" in sql
    assert "PRIMARY KEY (event_id, user_id)" in sql
