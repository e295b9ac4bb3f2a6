"""Clock parsing and slot grid generation for the single virtual day."""

from __future__ import annotations

from datetime import datetime, time

MINUTES_PER_DAY = 24 * 60
GRANULARITY_CHOICES = (5, 10, 15, 20, 30, 60)


def parse_clock(value: str | time | datetime | int, *, allow_end_of_day: bool = False) -> int:
    """Return minutes since midnight for an ``HH:MM`` style value.

    Accepts ``HH:MM``, ``HH:MM:SS``, ISO datetimes (the date part is ignored),
    ``datetime.time``/``datetime`` objects, and plain minute counts.
    ``24:00`` is only accepted when ``allow_end_of_day`` is set.
    """

    if isinstance(value, bool):
        raise ValueError(f"invalid clock value: {value!r}")
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, datetime):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        text = value.strip()
        if "T" in text:
            text = text.split("T", 1)[1]
        elif " " in text:
            text = text.split(" ", 1)[1]
        parts = text.split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts[:2]):
            raise ValueError(f"invalid clock value: {value!r}")
        hour, minute = int(parts[0]), int(parts[1])
        if minute > 59:
            raise ValueError(f"invalid clock value: {value!r}")
        minutes = hour * 60 + minute
    else:
        raise ValueError(f"invalid clock value: {value!r}")

    upper = MINUTES_PER_DAY if allow_end_of_day else MINUTES_PER_DAY - 1
    if minutes < 0 or minutes > upper:
        raise ValueError(f"clock value out of range: {value!r}")
    return minutes


def format_clock(minutes: int) -> str:
    hour, minute = divmod(minutes, 60)
    return f"{hour:02d}:{minute:02d}"


def generate_slots(window_start: int, window_end: int, granularity: int) -> tuple[int, ...]:
    """Slot starts from ``window_start`` every ``granularity`` minutes, strictly before ``window_end``.

    An empty or inverted window yields no slots. The final slot is a full
    bucket even if it runs past ``window_end``.
    """

    if isinstance(granularity, bool) or not isinstance(granularity, int) or granularity <= 0:
        raise ValueError(f"granularity must be a positive integer, got {granularity!r}")
    if window_start >= window_end:
        return ()
    return tuple(range(window_start, window_end, granularity))


def slot_labels(window_start: int, window_end: int, granularity: int) -> list[str]:
    return [format_clock(slot) for slot in generate_slots(window_start, window_end, granularity)]


def time_options(step: int = 30) -> list[str]:
    """Selectable window bounds for the schedule form (``00:00`` .. ``23:30``)."""

    return [format_clock(minute) for minute in range(0, MINUTES_PER_DAY, step)]


def start_options(window_start: int, window_end: int, granularity: int, duration: int = 0) -> list[int]:
    """Slot starts a booking of ``duration`` minutes can begin at without passing midnight."""

    return [
        slot
        for slot in generate_slots(window_start, window_end, granularity)
        if slot + duration <= MINUTES_PER_DAY
    ]
