"""SQLite-backed store for schedules and their appointments."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Callable

from sqlalchemy.exc import DBAPIError

from schedule_app.extensions import db
from schedule_app.models import Appointment, Schedule
from schedule_app.services.errors import ScheduleNotFound, StoreError
from schedule_app.services.timeslots import format_clock, parse_clock


def _row_to_schedule(row: sqlite3.Row) -> Schedule:
    return Schedule(
        id=row["id"],
        title=row["title"],
        icon=row["icon"] or "",
        created_at=row["created_at"] or "",
    )


def _row_to_appointment(row: sqlite3.Row) -> Appointment:
    return Appointment(
        id=row["id"],
        schedule_id=row["schedule_id"],
        name=row["name"],
        start=parse_clock(row["start_time"]),
        end=parse_clock(row["end_time"], allow_end_of_day=True),
    )


class ScheduleStore:
    """Create/read/delete calls keyed by schedule identifier.

    Every call opens its own connection; sqlite failures surface as
    ``StoreError``.
    """

    def __init__(self, connect: Callable[[], sqlite3.Connection] | None = None) -> None:
        self._connect = connect or db.connect

    def _conn(self) -> sqlite3.Connection:
        try:
            return self._connect()
        except (sqlite3.Error, DBAPIError) as exc:
            raise StoreError(f"connection_failed: {exc}") from exc

    def fetch_schedule(self, schedule_id: str) -> Schedule:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT id, title, icon, created_at FROM schedules WHERE id = ?",
                (schedule_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"fetch_schedule_failed: {exc}") from exc
        finally:
            conn.close()
        if not row:
            raise ScheduleNotFound(schedule_id)
        return _row_to_schedule(row)

    def schedule_exists(self, schedule_id: str) -> bool:
        conn = self._conn()
        try:
            row = conn.execute("SELECT 1 FROM schedules WHERE id = ?", (schedule_id,)).fetchone()
            return row is not None
        except sqlite3.Error as exc:
            raise StoreError(f"fetch_schedule_failed: {exc}") from exc
        finally:
            conn.close()

    def list_schedules(self) -> list[Schedule]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id, title, icon, created_at FROM schedules ORDER BY created_at, id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list_schedules_failed: {exc}") from exc
        finally:
            conn.close()
        return [_row_to_schedule(row) for row in rows]

    def create_schedule(self, schedule_id: str, title: str, icon: str) -> Schedule:
        conn = self._conn()
        try:
            conn.execute(
                "INSERT INTO schedules(id, title, icon, created_at) VALUES (?, ?, ?, datetime('now'))",
                (schedule_id, title, icon),
            )
            conn.commit()
            row = conn.execute(
                "SELECT id, title, icon, created_at FROM schedules WHERE id = ?",
                (schedule_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"create_schedule_failed: {exc}") from exc
        finally:
            conn.close()
        return _row_to_schedule(row)

    def fetch_appointments(self, schedule_id: str) -> list[Appointment]:
        conn = self._conn()
        try:
            rows = conn.execute(
                """
                SELECT id, schedule_id, name, start_time, end_time
                FROM appointments
                WHERE schedule_id = ?
                ORDER BY start_time ASC, id ASC
                """,
                (schedule_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"fetch_appointments_failed: {exc}") from exc
        finally:
            conn.close()
        return [_row_to_appointment(row) for row in rows]

    def create_appointment(self, schedule_id: str, name: str, start: int, end: int) -> Appointment:
        appt_id = str(uuid.uuid4())
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO appointments(id, schedule_id, name, start_time, end_time, created_at)
                VALUES (?, ?, ?, ?, ?, datetime('now'))
                """,
                (appt_id, schedule_id, name, format_clock(start), format_clock(end)),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"create_appointment_failed: {exc}") from exc
        finally:
            conn.close()
        return Appointment(id=appt_id, schedule_id=schedule_id, name=name, start=start, end=end)

    def delete_all_appointments(self, schedule_id: str) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM appointments WHERE schedule_id = ?", (schedule_id,))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"delete_appointments_failed: {exc}") from exc
        finally:
            conn.close()

    def delete_schedule(self, schedule_id: str) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM schedules WHERE id = ?", (schedule_id,))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"delete_schedule_failed: {exc}") from exc
        finally:
            conn.close()
