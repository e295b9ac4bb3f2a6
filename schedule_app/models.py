"""Value types shared by the store, the scheduling services and the views."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping

from schedule_app.services.timeslots import (
    GRANULARITY_CHOICES,
    format_clock,
    generate_slots,
    parse_clock,
)


@dataclass(frozen=True)
class Schedule:
    id: str
    title: str
    icon: str
    created_at: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Appointment:
    """A booking inside one schedule, ``[start, end)`` in minutes since midnight."""

    id: str
    schedule_id: str
    name: str
    start: int
    end: int

    @property
    def start_label(self) -> str:
        return format_clock(self.start)

    @property
    def end_label(self) -> str:
        return format_clock(self.end)

    @property
    def time_label(self) -> str:
        return f"{self.start_label} - {self.end_label}"

    @property
    def duration(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "schedule_id": self.schedule_id,
            "name": self.name,
            "start_time": self.start_label,
            "end_time": self.end_label,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class ViewConfig:
    """Display window and slot size for one schedule view."""

    window_start: int = 9 * 60
    window_end: int = 17 * 60
    granularity: int = 15

    def __post_init__(self) -> None:
        if self.granularity not in GRANULARITY_CHOICES:
            raise ValueError(f"granularity must be one of {GRANULARITY_CHOICES}, got {self.granularity!r}")

    @classmethod
    def parse(
        cls,
        window_start: Any = None,
        window_end: Any = None,
        granularity: Any = None,
        *,
        fallback: "ViewConfig | None" = None,
    ) -> "ViewConfig":
        """Build a config from raw (query string or stored) values.

        Missing values come from ``fallback``; malformed ones raise ``ValueError``.
        """

        base = fallback or cls()
        start = base.window_start if window_start in (None, "") else parse_clock(window_start)
        end = base.window_end if window_end in (None, "") else parse_clock(window_end, allow_end_of_day=True)
        gran = base.granularity if granularity in (None, "") else int(granularity)
        return cls(window_start=start, window_end=end, granularity=gran)

    @classmethod
    def from_preference(cls, data: Mapping[str, Any], *, fallback: "ViewConfig | None" = None) -> "ViewConfig":
        return cls.parse(
            data.get("window_start"),
            data.get("window_end"),
            data.get("granularity"),
            fallback=fallback,
        )

    def with_changes(self, **changes: Any) -> "ViewConfig":
        return replace(self, **changes)

    def slots(self) -> tuple[int, ...]:
        return generate_slots(self.window_start, self.window_end, self.granularity)

    @property
    def window_start_label(self) -> str:
        return format_clock(self.window_start)

    @property
    def window_end_label(self) -> str:
        return format_clock(self.window_end)

    def to_preference(self) -> dict[str, Any]:
        return {
            "window_start": self.window_start_label,
            "window_end": self.window_end_label,
            "granularity": self.granularity,
        }
