"""Per-schedule display preferences for the current visitor.

The session cookie only carries an opaque visitor token. The preferences
themselves (view config, appointment colors) live in ``view_preferences``,
so the cookie stays the same size however many schedules or appointments a
visitor looks at. Rows go away with their schedule (``ON DELETE CASCADE``)
and ``prune_stale`` drops visitors that have not been back for a while.
"""

from __future__ import annotations

import json
import secrets
import sqlite3
from typing import Any, Callable, Protocol

from flask import session
from sqlalchemy.exc import DBAPIError

from schedule_app.extensions import db
from schedule_app.services.errors import StoreError

VISITOR_KEY = "visitor"


class PreferenceStore(Protocol):
    def get_preference(self, schedule_id: str, key: str, default: Any = None) -> Any: ...

    def set_preference(self, schedule_id: str, key: str, value: Any) -> None: ...

    def clear(self, schedule_id: str) -> None: ...


def visitor_token(create: bool = True) -> str | None:
    token = session.get(VISITOR_KEY)
    if not token and create:
        token = secrets.token_urlsafe(16)
        session[VISITOR_KEY] = token
        session.permanent = True
    return token


class SessionPreferences:
    """Preferences of the visitor behind the current request; needs a request context."""

    def __init__(self, connect: Callable[[], sqlite3.Connection] | None = None) -> None:
        self._connect = connect or db.connect

    def _run(self, op: str, sql: str, params: tuple, *, fetch: bool = False):
        try:
            conn = self._connect()
        except (sqlite3.Error, DBAPIError) as exc:
            raise StoreError(f"{op}_failed: {exc}") from exc
        try:
            cursor = conn.execute(sql, params)
            if fetch:
                return cursor.fetchone()
            conn.commit()
            return None
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"{op}_failed: {exc}") from exc
        finally:
            conn.close()

    def get_preference(self, schedule_id: str, key: str, default: Any = None) -> Any:
        token = visitor_token(create=False)
        if not token:
            return default
        row = self._run(
            "fetch_preference",
            "SELECT value FROM view_preferences WHERE visitor_id = ? AND schedule_id = ? AND key = ?",
            (token, schedule_id, key),
            fetch=True,
        )
        if row is None:
            return default
        return json.loads(row["value"])

    def set_preference(self, schedule_id: str, key: str, value: Any) -> None:
        self._run(
            "save_preference",
            """
            INSERT INTO view_preferences(visitor_id, schedule_id, key, value, updated_at)
            VALUES (?, ?, ?, ?, datetime('now'))
            ON CONFLICT(visitor_id, schedule_id, key)
            DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (visitor_token(), schedule_id, key, json.dumps(value, separators=(",", ":"))),
        )

    def clear(self, schedule_id: str) -> None:
        token = visitor_token(create=False)
        if not token:
            return
        self._run(
            "clear_preferences",
            "DELETE FROM view_preferences WHERE visitor_id = ? AND schedule_id = ?",
            (token, schedule_id),
        )


def prune_stale(days: int, connect: Callable[[], sqlite3.Connection] | None = None) -> int:
    """Delete preferences not written in the last ``days`` days; returns the number of rows removed."""

    conn = (connect or db.connect)()
    try:
        cursor = conn.execute(
            "DELETE FROM view_preferences WHERE updated_at < datetime('now', ?)",
            (f"-{int(days)} days",),
        )
        conn.commit()
        return cursor.rowcount
    except sqlite3.Error as exc:
        conn.rollback()
        raise StoreError(f"prune_preferences_failed: {exc}") from exc
    finally:
        conn.close()
