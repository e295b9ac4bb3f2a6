"""Flask CLI commands for migrations and schedule maintenance."""

from __future__ import annotations

import click
from alembic import command
from flask import current_app
from flask.cli import AppGroup, with_appcontext
from sqlalchemy import text

from schedule_app.extensions import db
from schedule_app.models import ViewConfig
from schedule_app.services.auto_migrate import alembic_config
from schedule_app.services.errors import ScheduleError
from schedule_app.services.layout import build_rows
from schedule_app.services.preferences import prune_stale
from schedule_app.services.slugs import generate_schedule_id
from schedule_app.services.store import ScheduleStore


def register_cli(app) -> None:
    db_group = AppGroup("db")

    @db_group.command("upgrade")
    @with_appcontext
    def upgrade() -> None:
        cfg = alembic_config(current_app.config["SQLALCHEMY_DATABASE_URI"])
        if cfg is None:
            raise click.ClickException("alembic.ini or migrations/ not found")
        command.upgrade(cfg, "head")

    app.cli.add_command(db_group)

    schedule_group = AppGroup("schedule", help="Create, inspect and purge schedules.")

    @schedule_group.command("create")
    @click.option("--title", required=True)
    @click.option("--icon", default="📅", show_default=True)
    @with_appcontext
    def create(title: str, icon: str) -> None:
        store = ScheduleStore()
        try:
            schedule_id = generate_schedule_id(store.schedule_exists)
            store.create_schedule(schedule_id, title.strip(), icon.strip())
        except ScheduleError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(schedule_id)

    @schedule_group.command("list")
    @with_appcontext
    def list_schedules() -> None:
        with db.begin() as conn:
            rows = conn.execute(
                text(
                    """
                    SELECT s.id, s.icon, s.title, COUNT(a.id) AS bookings
                    FROM schedules s
                    LEFT JOIN appointments a ON a.schedule_id = s.id
                    GROUP BY s.id
                    ORDER BY s.created_at, s.id
                    """
                )
            ).fetchall()
        if not rows:
            click.echo("No schedules.")
            return
        for row in rows:
            click.echo(f"{row.id}\t{row.icon} {row.title}\t{row.bookings} booking(s)")

    @schedule_group.command("show")
    @click.argument("schedule_id")
    @click.option("--start", default=None, help="Window start (HH:MM)")
    @click.option("--end", default=None, help="Window end (HH:MM)")
    @click.option("--granularity", default=None, type=int)
    @with_appcontext
    def show(schedule_id: str, start: str | None, end: str | None, granularity: int | None) -> None:
        store = ScheduleStore()
        try:
            schedule = store.fetch_schedule(schedule_id)
            appointments = store.fetch_appointments(schedule_id)
            config = ViewConfig.parse(
                start or current_app.config["DEFAULT_WINDOW_START"],
                end or current_app.config["DEFAULT_WINDOW_END"],
                granularity or current_app.config["DEFAULT_GRANULARITY"],
            )
        except (ScheduleError, ValueError) as exc:
            raise click.ClickException(str(exc)) from exc

        click.echo(f"{schedule.icon} {schedule.title} ({schedule.id})")
        for row in build_rows(config, appointments):
            names = ", ".join(
                f"{block.appointment.name} {block.appointment.time_label}" if block.is_head else "|"
                for block in row.blocks
            )
            click.echo(f"{row.label}  {names}")

    @schedule_group.command("purge")
    @click.argument("schedule_id")
    @click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation")
    @with_appcontext
    def purge(schedule_id: str, yes: bool) -> None:
        store = ScheduleStore()
        try:
            store.fetch_schedule(schedule_id)
        except ScheduleError as exc:
            raise click.ClickException(f"schedule not found: {exc}") from exc
        if not yes:
            click.confirm(f"Delete schedule {schedule_id} and all its appointments?", abort=True)
        try:
            store.delete_all_appointments(schedule_id)
        except ScheduleError as exc:
            raise click.ClickException(str(exc)) from exc
        try:
            store.delete_schedule(schedule_id)
        except ScheduleError as exc:
            raise click.ClickException(f"appointments deleted but schedule record kept: {exc}") from exc
        click.echo(f"Deleted {schedule_id}")

    @schedule_group.command("prune-prefs")
    @click.option("--days", default=30, show_default=True, type=click.IntRange(min=1))
    @with_appcontext
    def prune_prefs(days: int) -> None:
        """Forget view preferences of visitors idle for DAYS."""
        try:
            removed = prune_stale(days)
        except ScheduleError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Removed {removed} preference row(s)")

    app.cli.add_command(schedule_group)
