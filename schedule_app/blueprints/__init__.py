"""Blueprint registration."""

from __future__ import annotations

from flask import Flask


def register_blueprints(app: Flask) -> None:
    from .api.routes import bp as api_bp
    from .schedules.routes import bp as schedules_bp

    app.register_blueprint(schedules_bp)
    app.register_blueprint(api_bp)
