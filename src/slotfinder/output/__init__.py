"""Output generation for slots (JSON, debug text, PDF)."""

from slotfinder.output.debug_generator import DebugGenerator
from slotfinder.output.pdf_generator import PDFGenerator
from slotfinder.output.serialization import (
    grouped_slots_to_dict,
    load_appointment_type,
    load_bookings,
    load_schedule_config,
    slot_to_dict,
    slots_to_json,
)

__all__ = [
    "DebugGenerator",
    "PDFGenerator",
    "grouped_slots_to_dict",
    "load_appointment_type",
    "load_bookings",
    "load_schedule_config",
    "slot_to_dict",
    "slots_to_json",
]
