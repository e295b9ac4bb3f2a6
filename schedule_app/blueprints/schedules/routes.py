from __future__ import annotations

import logging

from flask import Blueprint, current_app, flash, redirect, request, url_for

from schedule_app.extensions import limiter
from schedule_app.forms.schedules import ScheduleForm, ViewConfigForm
from schedule_app.models import ViewConfig
from schedule_app.services.errors import (
    BookingConflict,
    BookingValidationError,
    ScheduleError,
    StoreError,
    record_exception,
)
from schedule_app.services.i18n import T
from schedule_app.services.preferences import SessionPreferences
from schedule_app.services.slugs import generate_schedule_id
from schedule_app.services.store import ScheduleStore
from schedule_app.services.timeslots import format_clock
from schedule_app.services.ui import render_page
from schedule_app.services.view_state import ScheduleViewState, ViewStatus

bp = Blueprint("schedules", __name__)
log = logging.getLogger(__name__)


def default_config() -> ViewConfig:
    return ViewConfig.parse(
        current_app.config["DEFAULT_WINDOW_START"],
        current_app.config["DEFAULT_WINDOW_END"],
        current_app.config["DEFAULT_GRANULARITY"],
    )


def request_config() -> ViewConfig:
    """Config from the ``start``/``end``/``granularity`` query parameters, defaults otherwise."""
    defaults = default_config()
    try:
        return ViewConfig.parse(
            request.args.get("start"),
            request.args.get("end"),
            request.args.get("granularity"),
            fallback=defaults,
        )
    except ValueError as exc:
        log.debug("Ignoring view query parameters %s: %s", dict(request.args), exc)
        return defaults


def open_view(schedule_id: str) -> ScheduleViewState:
    state = ScheduleViewState(
        schedule_id,
        ScheduleStore(),
        SessionPreferences(),
        initial=request_config(),
    )
    state.load()
    return state


def booking_durations() -> list[int]:
    return list(current_app.config["BOOKING_DURATIONS"])


def _render_unavailable(state: ScheduleViewState):
    if state.status is ViewStatus.NOT_FOUND:
        return render_page("schedules/not_found.html", schedule_id=state.schedule_id), 404
    return render_page("schedules/unavailable.html", schedule_id=state.schedule_id, error=state.error), 503


def _render_schedule(state: ScheduleViewState, *, defaults: dict | None = None, status: int = 200):
    config = state.config
    config_form = ViewConfigForm(
        formdata=None,
        data={
            "window_start": config.window_start_label,
            "window_end": config.window_end_label,
            "granularity": str(config.granularity),
        },
    )
    durations = booking_durations()
    return (
        render_page(
            "schedules/view.html",
            schedule=state.schedule,
            config=config,
            rows=state.rows(),
            start_options=[format_clock(slot) for slot in state.start_options(min(durations))],
            durations=durations,
            defaults=defaults or {"duration": str(30 if 30 in durations else durations[0])},
            config_form=config_form,
            share_url=url_for(
                "schedules.view",
                schedule_id=state.schedule_id,
                start=config.window_start_label,
                end=config.window_end_label,
                _external=True,
            ),
            show_back=True,
        ),
        status,
    )


@bp.route("/", methods=["GET"], endpoint="index")
def index():
    return render_page("schedules/home.html", form=ScheduleForm())


@bp.route("/schedules", methods=["POST"], endpoint="create")
def create_schedule():
    form = ScheduleForm()
    try:
        if not form.validate_on_submit():
            for errors in form.errors.values():
                for error in errors:
                    flash(T(error), "err")
            return render_page("schedules/home.html", form=form), 400
        store = ScheduleStore()
        try:
            schedule_id = generate_schedule_id(store.schedule_exists)
            store.create_schedule(schedule_id, form.title.data.strip(), (form.icon.data or "").strip())
        except StoreError as exc:
            log.warning("Creating schedule failed: %s", exc)
            flash(T("store_error"), "err")
            return render_page("schedules/home.html", form=form), 503
        except ScheduleError as exc:
            flash(T(str(exc)), "err")
            return render_page("schedules/home.html", form=form), 503
        log.info("Created schedule %s", schedule_id)
        flash(T("schedule_created"), "ok")
        return redirect(
            url_for(
                "schedules.view",
                schedule_id=schedule_id,
                start=form.window_start.data,
                end=form.window_end.data,
            )
        )
    except Exception as exc:
        record_exception("schedules.create", exc)
        raise


@bp.route("/schedule/<schedule_id>", methods=["GET"], endpoint="view")
def view_schedule(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if not state.ready:
            return _render_unavailable(state)
        return _render_schedule(state)
    except Exception as exc:
        record_exception("schedules.view", exc)
        raise


@bp.route("/schedule/<schedule_id>/appointments", methods=["POST"], endpoint="book")
@limiter.limit(lambda: current_app.config["BOOKING_RATE_LIMIT"])
def book(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if not state.ready:
            return _render_unavailable(state)
        form_defaults = request.form.to_dict()
        form_defaults.pop("csrf_token", None)
        try:
            state.submit_booking(
                request.form.get("name"),
                request.form.get("start_time"),
                request.form.get("duration"),
            )
        except BookingConflict as exc:
            flash(f"{T(exc.code)} ({exc.conflicting.name}, {exc.conflicting.time_label})", "err")
            return _render_schedule(state, defaults=form_defaults, status=409)
        except BookingValidationError as exc:
            flash(T(exc.code), "err")
            return _render_schedule(state, defaults=form_defaults, status=400)
        except StoreError as exc:
            log.warning("Booking on %s failed: %s", schedule_id, exc)
            flash(T("store_error"), "err")
            return _render_schedule(state, defaults=form_defaults, status=503)
        flash(T("booking_created"), "ok")
        return redirect(url_for("schedules.view", schedule_id=schedule_id))
    except Exception as exc:
        record_exception("schedules.book", exc)
        raise


@bp.route("/schedule/<schedule_id>/config", methods=["POST"], endpoint="config")
def update_config(schedule_id: str):
    try:
        form = ViewConfigForm()
        if not form.validate_on_submit():
            for errors in form.errors.values():
                for error in errors:
                    flash(T(error if error == "window_invalid" else "config_invalid"), "err")
            return redirect(url_for("schedules.view", schedule_id=schedule_id))
        state = open_view(schedule_id)
        if not state.ready:
            return _render_unavailable(state)
        try:
            state.update_config(form.window_start.data, form.window_end.data, form.granularity.data)
        except ValueError:
            flash(T("config_invalid"), "err")
        except StoreError as exc:
            log.warning("Saving view config for %s failed: %s", schedule_id, exc)
            flash(T("store_error"), "err")
        else:
            flash(T("config_saved"), "ok")
        return redirect(url_for("schedules.view", schedule_id=schedule_id))
    except Exception as exc:
        record_exception("schedules.config", exc)
        raise


@bp.route("/schedule/<schedule_id>/appointments/delete-all", methods=["POST"], endpoint="delete_all")
def delete_all(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if state.status is ViewStatus.NOT_FOUND:
            return _render_unavailable(state)
        try:
            state.delete_all()
        except StoreError as exc:
            log.warning("Deleting appointments on %s failed: %s", schedule_id, exc)
            flash(T("appointments_delete_failed"), "err")
        else:
            flash(T("appointments_deleted"), "ok")
        return redirect(url_for("schedules.view", schedule_id=schedule_id))
    except Exception as exc:
        record_exception("schedules.delete_all", exc)
        raise


@bp.route("/schedule/<schedule_id>/delete", methods=["POST"], endpoint="delete")
def delete_schedule(schedule_id: str):
    try:
        state = open_view(schedule_id)
        if state.status is ViewStatus.NOT_FOUND:
            return _render_unavailable(state)
        try:
            result = state.delete_schedule()
        except StoreError as exc:
            log.warning("Deleting schedule %s failed: %s", schedule_id, exc)
            flash(T("store_error"), "err")
            return redirect(url_for("schedules.view", schedule_id=schedule_id))
        if result.ok:
            flash(T("schedule_deleted"), "ok")
        else:
            flash(T("schedule_partially_deleted"), "err")
        return redirect(url_for("schedules.index"))
    except Exception as exc:
        record_exception("schedules.delete", exc)
        raise
