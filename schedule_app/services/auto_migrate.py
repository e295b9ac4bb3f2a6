"""Run Alembic migrations for the schedule database when the app starts."""

from __future__ import annotations

import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from flask import Flask

REPO_ROOT = Path(__file__).resolve().parents[2]


def alembic_config(database_uri: str) -> Config | None:
    alembic_ini = REPO_ROOT / "alembic.ini"
    migrations_dir = REPO_ROOT / "migrations"
    if not alembic_ini.exists() or not migrations_dir.exists():
        return None
    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(migrations_dir))
    cfg.set_main_option("sqlalchemy.url", database_uri)
    cfg.attributes["configure_logger"] = False
    return cfg


def auto_upgrade(app: Flask) -> None:
    """Run `alembic upgrade head` unless SCHEDULE_AUTO_MIGRATE is switched off."""

    if os.getenv("SCHEDULE_AUTO_MIGRATE", "1") != "1":
        return

    cfg = alembic_config(app.config["SQLALCHEMY_DATABASE_URI"])
    if cfg is None:
        app.logger.debug("Alembic files not found, relying on bootstrap tables")
        return

    try:
        command.upgrade(cfg, "head")
    except Exception as exc:  # pragma: no cover - bootstrap still creates the tables
        app.logger.warning("Auto migration skipped: %s", exc)
