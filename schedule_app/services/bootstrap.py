"""Bootstrap helper to ensure the schedule tables exist for first-time runs."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

BASE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS schedules (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        icon TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS appointments (
        id TEXT PRIMARY KEY,
        schedule_id TEXT NOT NULL,
        name TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        FOREIGN KEY(schedule_id) REFERENCES schedules(id) ON DELETE CASCADE,
        CHECK(start_time < end_time)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_appointments_schedule_start
    ON appointments(schedule_id, start_time)
    """,
    """
    CREATE TABLE IF NOT EXISTS view_preferences (
        visitor_id TEXT NOT NULL,
        schedule_id TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT (datetime('now')),
        PRIMARY KEY(visitor_id, schedule_id, key),
        FOREIGN KEY(schedule_id) REFERENCES schedules(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_view_preferences_updated
    ON view_preferences(updated_at)
    """,
)


def _execute_statements(conn: sqlite3.Connection, statements: Iterable[str]) -> None:
    for stmt in statements:
        conn.execute(stmt)


def ensure_base_tables(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        _execute_statements(conn, BASE_TABLES)
        conn.commit()
    finally:
        conn.close()
