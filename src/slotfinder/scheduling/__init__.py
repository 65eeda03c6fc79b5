"""Slot generation engine."""

from slotfinder.scheduling.day_ranges import DayRangeResolver
from slotfinder.scheduling.grouping import get_available_dates, group_slots_by_date
from slotfinder.scheduling.service import AvailabilityService
from slotfinder.scheduling.slot_generator import SlotGenerator, generate_available_slots

__all__ = [
    # Generation
    "SlotGenerator",
    "generate_available_slots",
    "DayRangeResolver",
    # Grouping
    "group_slots_by_date",
    "get_available_dates",
    # Service
    "AvailabilityService",
]
