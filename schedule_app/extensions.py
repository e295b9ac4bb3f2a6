"""Application extensions: the schedule database, CSRF protection and booking rate limits."""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf import CSRFProtect
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

# Applied to every pooled connection: concurrent readers while a booking
# writes, a bounded wait on the write lock, and cascading schedule deletes.
SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
    "PRAGMA foreign_keys=ON",
)


def _apply_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


class ScheduleDatabase:
    """Pooled access to the schedule database.

    The store and the preference table talk sqlite3 through ``connect()``;
    maintenance code (CLI reports, migrations) uses SQLAlchemy Core through
    ``begin()``. Both draw from the same engine, so every connection carries
    the same PRAGMAs.
    """

    def __init__(self) -> None:
        self._engine: Engine | None = None

    def init_app(self, app: Flask) -> None:
        if self._engine is not None:
            # Each app (tests build one per case) points at its own file.
            self._engine.dispose()
        self._engine = create_engine(
            app.config["SQLALCHEMY_DATABASE_URI"],
            **app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}),
        )
        event.listen(self._engine, "connect", _apply_pragmas)
        app.extensions["schedule_db"] = self

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("schedule database used before init_app()")
        return self._engine

    def connect(self) -> sqlite3.Connection:
        """Checkout a pooled sqlite3 connection with ``sqlite3.Row`` rows; ``close()`` returns it."""
        pooled = self.engine.raw_connection()
        pooled.driver_connection.row_factory = sqlite3.Row
        return pooled  # type: ignore[return-value]

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Core connection inside a transaction, committed on success and rolled back on error."""
        with self.engine.begin() as conn:
            yield conn


db = ScheduleDatabase()
csrf = CSRFProtect()
limiter = Limiter(get_remote_address, storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"))


def init_extensions(app: Flask) -> None:
    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
