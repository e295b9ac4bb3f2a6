"""JSON endpoints mirroring the schedule pages."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from schedule_app.extensions import limiter
from schedule_app.blueprints.schedules.routes import open_view
from schedule_app.services.errors import (
    BookingConflict,
    BookingValidationError,
    StoreError,
    record_exception,
)
from schedule_app.services.view_state import ScheduleViewState, ViewStatus

bp = Blueprint("api", __name__, url_prefix="/api")
log = logging.getLogger(__name__)


def _unavailable(state: ScheduleViewState):
    if state.status is ViewStatus.NOT_FOUND:
        return jsonify({"error": "schedule_not_found"}), 404
    return jsonify({"error": "store_error", "detail": state.error}), 503


def _snapshot(state: ScheduleViewState) -> dict:
    rows = state.rows()
    return {
        "schedule": state.schedule.to_dict() if state.schedule else None,
        "config": state.config.to_preference(),
        "slots": [row.label for row in rows],
        "rows": [row.to_dict() for row in rows],
        "appointments": [appt.to_dict() for appt in state.appointments],
        "colors": state.colors,
    }


@bp.route("/schedules/<schedule_id>", methods=["GET"], endpoint="schedule")
def get_schedule(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if not state.ready:
            return _unavailable(state)
        return jsonify(_snapshot(state))
    except Exception as exc:
        record_exception("api.schedule", exc)
        return jsonify({"error": "server_error"}), 500


@bp.route("/schedules/<schedule_id>/appointments", methods=["POST"], endpoint="book")
@limiter.limit(lambda: current_app.config["BOOKING_RATE_LIMIT"])
def book(schedule_id: str):
    try:
        payload = request.get_json(silent=True) or {}
        state = open_view(schedule_id)
        if not state.ready:
            return _unavailable(state)
        try:
            created = state.submit_booking(
                payload.get("name"),
                payload.get("start_time"),
                payload.get("duration"),
            )
        except BookingConflict as exc:
            return jsonify({"error": exc.code, "conflicts_with": exc.conflicting.to_dict()}), 409
        except BookingValidationError as exc:
            return jsonify({"error": exc.code}), 400
        except StoreError as exc:
            log.warning("API booking on %s failed: %s", schedule_id, exc)
            return jsonify({"error": "store_error"}), 503
        body = _snapshot(state)
        body["appointment"] = created.to_dict()
        return jsonify(body), 201
    except Exception as exc:
        record_exception("api.book", exc)
        return jsonify({"error": "server_error"}), 500


@bp.route("/schedules/<schedule_id>/appointments", methods=["DELETE"], endpoint="delete_all")
def delete_all(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if state.status is ViewStatus.NOT_FOUND:
            return _unavailable(state)
        try:
            state.delete_all()
        except StoreError as exc:
            log.warning("API delete-all on %s failed: %s", schedule_id, exc)
            return jsonify({"error": "store_error"}), 503
        return jsonify({"ok": True, "appointments": []})
    except Exception as exc:
        record_exception("api.delete_all", exc)
        return jsonify({"error": "server_error"}), 500


@bp.route("/schedules/<schedule_id>", methods=["DELETE"], endpoint="delete")
def delete_schedule(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if state.status is ViewStatus.NOT_FOUND:
            return _unavailable(state)
        try:
            result = state.delete_schedule()
        except StoreError as exc:
            log.warning("API delete of %s failed: %s", schedule_id, exc)
            return jsonify({"error": "store_error"}), 503
        if not result.ok:
            return jsonify({"status": result.status.value, "error": result.error}), 500
        return jsonify({"status": result.status.value})
    except Exception as exc:
        record_exception("api.delete", exc)
        return jsonify({"error": "server_error"}), 500
