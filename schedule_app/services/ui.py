"""UI helper utilities shared across blueprints."""

from __future__ import annotations

from typing import Any

from flask import current_app, render_template
from flask_wtf.csrf import generate_csrf

from .i18n import T
from .timeslots import format_clock


def render_page(template_name: str, **ctx: Any):
    show_back = ctx.pop("show_back", False)
    return render_template(
        template_name,
        show_back=show_back,
        app_title=current_app.config.get("APP_TITLE", "Appointment Scheduler"),
        **ctx,
    )


def register_ui(app) -> None:
    """Attach UI helpers to the Flask app instance."""
    app.jinja_env.globals.setdefault("csrf_token", generate_csrf)
    app.jinja_env.globals.setdefault("t", T)
    app.jinja_env.filters.setdefault("clock", format_clock)
