"""Shared schedule package exposing the Flask application factory."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from datetime import timedelta

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError

from .blueprints import register_blueprints
from .extensions import init_extensions
from .services.auto_migrate import auto_upgrade
from .services.bootstrap import ensure_base_tables
from .services.ui import register_ui
from .cli import register_cli

APP_HOST = "127.0.0.1"
APP_PORT = 8080


def _data_root(base_dir: Path, override: Path | None = None) -> Path:
    root = override if override else base_dir / "data"
    root.mkdir(parents=True, exist_ok=True)
    (root / "logs").mkdir(parents=True, exist_ok=True)
    return root


def _resource_root() -> Path:
    """Root folder for bundled resources (templates/static)."""
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return Path(getattr(sys, "_MEIPASS"))
    return Path(__file__).resolve().parent.parent


def _int_list(raw: str, fallback: list[int]) -> list[int]:
    values = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            values.append(int(part))
    return values or fallback


def create_app() -> Flask:
    resource_root = _resource_root()
    db_override = os.getenv("SCHEDULE_DB_PATH")
    override_root = Path(db_override).parent if db_override else None
    data_root = _data_root(resource_root, override_root)
    db_path = Path(db_override) if db_override else data_root / "app.db"

    app = Flask(
        __name__,
        template_folder=str(resource_root / "templates"),
        static_folder=str(resource_root / "static"),
    )

    secret_key = os.getenv("SCHEDULE_SECRET_KEY")
    if not secret_key:
        secret_key = os.urandom(32)

    app.config.update(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_NAME="schedule_session",
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(days=30),
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}",
        SQLALCHEMY_ENGINE_OPTIONS={"connect_args": {"check_same_thread": False}},
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        DATA_ROOT=str(data_root),
        SCHEDULE_DB=str(db_path),
        APP_TITLE=os.getenv("SCHEDULE_APP_TITLE", "Appointment Scheduler"),
        DEFAULT_WINDOW_START=os.getenv("SCHEDULE_WINDOW_START", "09:00"),
        DEFAULT_WINDOW_END=os.getenv("SCHEDULE_WINDOW_END", "17:00"),
        DEFAULT_GRANULARITY=int(os.getenv("SCHEDULE_GRANULARITY", "15")),
        BOOKING_DURATIONS=_int_list(os.getenv("SCHEDULE_BOOKING_DURATIONS", ""), [15, 20, 30, 45, 60]),
        BOOKING_RATE_LIMIT=os.getenv("SCHEDULE_BOOKING_RATE_LIMIT", "60 per minute"),
    )

    register_ui(app)
    init_extensions(app)
    register_blueprints(app)
    auto_upgrade(app)
    ensure_base_tables(Path(app.config["SCHEDULE_DB"]))
    register_cli(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning("CSRF validation failed: %s", e.description)
        return jsonify({"success": False, "errors": [f"CSRF validation failed: {e.description}"]}), 400

    return app


__all__ = ["create_app", "APP_HOST", "APP_PORT"]
