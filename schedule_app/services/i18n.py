"""User-facing message lookup."""

from __future__ import annotations

MESSAGES: dict[str, str] = {
    "name_required": "Please enter your name.",
    "slot_required": "Please select a start time.",
    "slot_invalid": "That start time is not valid.",
    "duration_invalid": "Please choose a duration.",
    "ends_after_midnight": "Appointments must end by midnight.",
    "booking_conflict": "This time slot overlaps with an existing appointment.",
    "booking_created": "Appointment scheduled successfully!",
    "appointments_deleted": "All appointments have been deleted successfully!",
    "appointments_delete_failed": "Failed to delete appointments. Please try again.",
    "schedule_deleted": "The schedule has been deleted.",
    "schedule_partially_deleted": "Appointments were deleted but the schedule itself could not be removed. Please try again.",
    "schedule_created": "Schedule created. Share this page to let others book.",
    "schedule_not_found": "This schedule does not exist.",
    "schedule_id_exhausted": "Could not allocate a schedule link. Please try again.",
    "store_error": "Could not reach the schedule store. Please try again.",
    "config_invalid": "That time window or granularity is not valid.",
    "config_saved": "View settings saved.",
    "title_required": "Please enter a schedule name.",
    "window_invalid": "The end time must be after the start time.",
}


def T(key: str) -> str:
    return MESSAGES.get(key, key)
