"""Half-open interval conflict checks for bookings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, TypeVar


class Interval(Protocol):
    start: int
    end: int


@dataclass(frozen=True)
class Span:
    """A ``[start, end)`` range in minutes since midnight."""

    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


T = TypeVar("T", bound=Interval)


def overlaps(a: Interval, b: Interval) -> bool:
    # Touching endpoints (a.end == b.start) do not overlap.
    return a.start < b.end and b.start < a.end


def find_conflicts(candidate: Interval, existing: Iterable[T]) -> list[T]:
    """Return every interval in ``existing`` that overlaps ``candidate``.

    The candidate is assumed to satisfy ``start < end``; callers reject
    empty or inverted ranges before asking.
    """

    return [item for item in existing if overlaps(candidate, item)]


def conflicts(candidate: Interval, existing: Iterable[Interval]) -> bool:
    return any(overlaps(candidate, item) for item in existing)
