"""State of one open schedule view: loading, booking, bulk deletion."""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Any

from schedule_app.models import Appointment, Schedule, ViewConfig
from schedule_app.services.colors import ColorAssigner
from schedule_app.services.errors import (
    BookingConflict,
    BookingValidationError,
    ScheduleNotFound,
    StoreError,
    ViewStateError,
)
from schedule_app.services.layout import SlotRow, build_rows, sort_appointments
from schedule_app.services.overlap import Span, find_conflicts
from schedule_app.services.preferences import PreferenceStore
from schedule_app.services.store import ScheduleStore
from schedule_app.services.timeslots import MINUTES_PER_DAY, format_clock, parse_clock, start_options

log = logging.getLogger(__name__)

CONFIG_KEY = "config"
COLORS_KEY = "colors"


class ViewStatus(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    NOT_FOUND = "not_found"
    ERROR = "error"


class DeletionStatus(str, enum.Enum):
    DELETED = "deleted"
    PARTIALLY_DELETED = "partially_deleted"


@dataclass(frozen=True)
class DeletionResult:
    status: DeletionStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DeletionStatus.DELETED


def _whole_minutes(value: Any) -> int | None:
    """Integral minute count from form or JSON input, ``None`` when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class ScheduleViewState:
    """Owns the cached schedule, its appointments, the view config and the color map.

    ``initial`` is the config built from the request (query string or app
    defaults); a preference saved for this schedule takes precedence over it.
    Mutations are applied locally only after the store confirms them.
    """

    def __init__(
        self,
        schedule_id: str,
        store: ScheduleStore,
        preferences: PreferenceStore,
        *,
        initial: ViewConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.schedule_id = schedule_id
        self.store = store
        self.preferences = preferences
        self.status = ViewStatus.LOADING
        self.schedule: Schedule | None = None
        self.appointments: list[Appointment] = []
        self.error: str | None = None
        self.config = self._initial_config(initial or ViewConfig())
        self._colors = ColorAssigner(self._stored_colors(), rng=rng)

    def _read_preference(self, key: str) -> Any:
        try:
            return self.preferences.get_preference(self.schedule_id, key)
        except StoreError as exc:
            log.warning("Reading %s preference for %s failed: %s", key, self.schedule_id, exc)
            return None

    def _initial_config(self, initial: ViewConfig) -> ViewConfig:
        stored = self._read_preference(CONFIG_KEY)
        if not stored:
            return initial
        try:
            return ViewConfig.from_preference(stored, fallback=initial)
        except (TypeError, ValueError) as exc:
            log.debug("Ignoring stored view config for %s: %s", self.schedule_id, exc)
            return initial

    def _stored_colors(self) -> dict[str, str]:
        stored = self._read_preference(COLORS_KEY) or {}
        if not isinstance(stored, dict):
            return {}
        return {str(k): str(v) for k, v in stored.items()}

    def _persist_colors(self) -> None:
        try:
            self.preferences.set_preference(self.schedule_id, COLORS_KEY, self._colors.colors)
        except StoreError as exc:
            log.warning("Saving colors for %s failed: %s", self.schedule_id, exc)

    def _require_ready(self) -> None:
        if self.status is not ViewStatus.READY:
            raise ViewStateError(f"view_not_ready:{self.status.value}")

    # -- loading ---------------------------------------------------------

    def load(self) -> ViewStatus:
        try:
            schedule = self.store.fetch_schedule(self.schedule_id)
            appointments = self.store.fetch_appointments(self.schedule_id)
        except ScheduleNotFound:
            self.status = ViewStatus.NOT_FOUND
            return self.status
        except StoreError as exc:
            log.warning("Loading schedule %s failed: %s", self.schedule_id, exc)
            self.error = str(exc)
            self.status = ViewStatus.ERROR
            return self.status

        self.schedule = schedule
        self._apply_appointments(appointments)
        self.status = ViewStatus.READY
        return self.status

    def _apply_appointments(self, appointments: list[Appointment]) -> None:
        self.appointments = sort_appointments(appointments)
        before = self._colors.colors
        ids = [appt.id for appt in self.appointments]
        # Drop colors of appointments deleted elsewhere (e.g. another visitor's bulk delete).
        self._colors.retain(ids)
        self._colors.assign_all(ids)
        if self._colors.colors != before:
            self._persist_colors()

    @property
    def ready(self) -> bool:
        return self.status is ViewStatus.READY

    @property
    def colors(self) -> dict[str, str]:
        return self._colors.colors

    # -- derived grid ----------------------------------------------------

    def slots(self) -> tuple[int, ...]:
        self._require_ready()
        return self.config.slots()

    def rows(self) -> list[SlotRow]:
        self._require_ready()
        return build_rows(self.config, self.appointments, self._colors.colors)

    def start_options(self, duration: int = 0) -> list[int]:
        self._require_ready()
        return start_options(self.config.window_start, self.config.window_end, self.config.granularity, duration)

    def update_config(
        self,
        window_start: Any = None,
        window_end: Any = None,
        granularity: Any = None,
    ) -> ViewConfig:
        """Replace the view config and remember it for this schedule.

        Raises ``ValueError`` for unparsable bounds or an unsupported granularity.
        """

        self.config = ViewConfig.parse(window_start, window_end, granularity, fallback=self.config)
        self.preferences.set_preference(self.schedule_id, CONFIG_KEY, self.config.to_preference())
        return self.config

    # -- mutations -------------------------------------------------------

    def submit_booking(self, name: str | None, start_time: Any, duration: Any) -> Appointment:
        """Validate a booking against the loaded appointments and send it to the store.

        The check runs against the in-memory list only; the store performs no
        overlap check of its own.
        """

        self._require_ready()
        name = (name or "").strip()
        if not name:
            raise BookingValidationError("name_required")
        if start_time in (None, ""):
            raise BookingValidationError("slot_required")
        try:
            start = parse_clock(start_time)
        except ValueError as exc:
            raise BookingValidationError("slot_invalid") from exc
        minutes = _whole_minutes(duration)
        if minutes is None or minutes <= 0:
            raise BookingValidationError("duration_invalid")
        end = start + minutes
        if end > MINUTES_PER_DAY:
            raise BookingValidationError("ends_after_midnight")

        candidate = Span(start, end)
        blocking = find_conflicts(candidate, self.appointments)
        if blocking:
            log.info(
                "Booking %s-%s on %s rejected, overlaps %s",
                format_clock(start), format_clock(end), self.schedule_id, blocking[0].id,
            )
            raise BookingConflict(blocking[0])

        created = self.store.create_appointment(self.schedule_id, name, start, end)
        log.info("Booked %s on %s (%s)", created.id, self.schedule_id, created.time_label)
        try:
            self._apply_appointments(self.store.fetch_appointments(self.schedule_id))
        except StoreError as exc:
            log.warning("Re-fetch after booking on %s failed: %s", self.schedule_id, exc)
            self._apply_appointments([*self.appointments, created])
        return created

    def delete_all(self) -> None:
        self.store.delete_all_appointments(self.schedule_id)
        self.appointments = []
        self._colors.clear()
        self._persist_colors()
        log.info("Deleted all appointments on %s", self.schedule_id)

    def delete_schedule(self) -> DeletionResult:
        """Delete the appointments, then the schedule record.

        A failure of the first step raises ``StoreError`` with nothing
        deleted. A failure of the second step is reported as
        ``PARTIALLY_DELETED``; the appointments stay deleted.
        """

        self.delete_all()
        try:
            self.store.delete_schedule(self.schedule_id)
        except StoreError as exc:
            log.error("Schedule %s partially deleted: %s", self.schedule_id, exc)
            return DeletionResult(DeletionStatus.PARTIALLY_DELETED, str(exc))
        try:
            self.preferences.clear(self.schedule_id)
        except StoreError as exc:
            log.warning("Clearing preferences for %s failed: %s", self.schedule_id, exc)
        self.schedule = None
        self.status = ViewStatus.NOT_FOUND
        log.info("Deleted schedule %s", self.schedule_id)
        return DeletionResult(DeletionStatus.DELETED)
