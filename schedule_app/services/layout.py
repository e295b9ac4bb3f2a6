"""Place appointments inside the rows of the slot grid."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from schedule_app.models import Appointment, ViewConfig
from schedule_app.services.colors import text_color_for
from schedule_app.services.timeslots import format_clock

FALLBACK_COLOR = "#6b7280"


@dataclass(frozen=True)
class Placement:
    """Vertical position of a block inside one slot row, as fractions of the row."""

    offset: float
    extent: float

    @property
    def top_percent(self) -> float:
        return round(self.offset * 100, 4)

    @property
    def height_percent(self) -> float:
        return round(self.extent * 100, 4)


@dataclass(frozen=True)
class SlotBlock:
    appointment: Appointment
    placement: Placement
    color: str
    text_color: str
    is_head: bool

    def to_dict(self) -> dict:
        return {
            "appointment_id": self.appointment.id,
            "name": self.appointment.name,
            "time_label": self.appointment.time_label,
            "offset": self.placement.offset,
            "extent": self.placement.extent,
            "color": self.color,
            "text_color": self.text_color,
            "is_head": self.is_head,
        }


@dataclass
class SlotRow:
    start: int
    granularity: int
    blocks: list[SlotBlock] = field(default_factory=list)

    @property
    def label(self) -> str:
        return format_clock(self.start)

    @property
    def occupied(self) -> bool:
        return bool(self.blocks)

    def to_dict(self) -> dict:
        return {"slot": self.label, "blocks": [block.to_dict() for block in self.blocks]}


def occupies_slot(appointment: Appointment, slot_start: int, granularity: int) -> bool:
    return appointment.start < slot_start + granularity and slot_start < appointment.end


def layout_within_slot(appointment: Appointment, slot_start: int, granularity: int) -> Placement:
    """Offset and height of ``appointment`` inside the slot ``[slot_start, slot_start + granularity)``.

    Only meaningful when the appointment occupies the slot.
    """

    slot_end = slot_start + granularity
    offset = min(max(appointment.start - slot_start, 0), granularity)
    covered = min(appointment.end, slot_end) - max(appointment.start, slot_start)
    return Placement(offset=offset / granularity, extent=covered / granularity)


def sort_appointments(appointments: Iterable[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda appt: (appt.start, appt.id))


def build_rows(
    config: ViewConfig,
    appointments: Sequence[Appointment],
    colors: Mapping[str, str] | None = None,
) -> list[SlotRow]:
    """One row per slot, each listing the blocks of the appointments it shows.

    Overlapping appointments (possible after concurrent bookings) simply
    produce several blocks in the same row.
    """

    colors = colors or {}
    ordered = sort_appointments(appointments)
    seen: set[str] = set()
    rows: list[SlotRow] = []
    for slot in config.slots():
        row = SlotRow(start=slot, granularity=config.granularity)
        for appt in ordered:
            if not occupies_slot(appt, slot, config.granularity):
                continue
            color = colors.get(appt.id, FALLBACK_COLOR)
            row.blocks.append(
                SlotBlock(
                    appointment=appt,
                    placement=layout_within_slot(appt, slot, config.granularity),
                    color=color,
                    text_color=text_color_for(color),
                    is_head=appt.id not in seen,
                )
            )
            seen.add(appt.id)
        rows.append(row)
    return rows
