"""Scheduling exceptions and lightweight error logging for in-app diagnostics."""

from __future__ import annotations

from datetime import datetime, UTC
from pathlib import Path
import traceback
from typing import Any

from flask import current_app


class ScheduleError(Exception):
    """Base exception for schedule operations."""


class ScheduleNotFound(ScheduleError):
    """Raised when a schedule identifier has no matching record."""


class BookingValidationError(ScheduleError):
    """Raised when a booking fails local checks; ``code`` is a message key."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class BookingConflict(BookingValidationError):
    """Raised when a requested slot overlaps an existing booking."""

    def __init__(self, conflicting: Any) -> None:
        super().__init__("booking_conflict")
        self.conflicting = conflicting


class StoreError(ScheduleError):
    """Raised when a call to the persistent store fails."""


class ViewStateError(ScheduleError):
    """Raised when the view is asked for data before it is ready."""


def record_exception(context: str, exc: BaseException) -> None:
    """Append exception details to data/logs/app_errors.log for offline inspection."""

    try:
        root = Path(current_app.config["DATA_ROOT"]) / "logs"
        root.mkdir(parents=True, exist_ok=True)
        log_path = root / "app_errors.log"
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{datetime.now(UTC).isoformat(timespec='seconds')}] {context}\n")
            handle.write("".join(traceback.format_exception(exc)))
            handle.write("\n")
    except Exception:
        # Never let logging failures break the request cycle.
        pass
