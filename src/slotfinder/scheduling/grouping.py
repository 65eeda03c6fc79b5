"""Grouping helpers for presenting generated slots by calendar date."""

from slotfinder.domain.models import AvailableSlot


def group_slots_by_date(slots: list[AvailableSlot]) -> dict[str, list[AvailableSlot]]:
    """Partition slots by the calendar date of their start.

    Keys are "YYYY-MM-DD" strings in first-seen order; slots keep their
    relative order within a date.
    """
    grouped: dict[str, list[AvailableSlot]] = {}
    for slot in slots:
        grouped.setdefault(slot.date_key, []).append(slot)
    return grouped


def get_available_dates(slots: list[AvailableSlot]) -> list[str]:
    """Distinct dates that have at least one slot, ascending."""
    return sorted(group_slots_by_date(slots))
