"""JSON serialization of slots and loading of persisted records.

Slots are rendered in the wire shape consumed by booking front-ends:
``{"start": ISO-8601, "end": ISO-8601, "available": int, "total": int}``
with timestamps converted to UTC and suffixed with ``Z``. Schedule
configurations, bookings and appointment types are read from JSON files
in their persisted camelCase shape.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from slotfinder.domain.models import (
    AppointmentType,
    AvailableSlot,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
)


def format_timestamp(ts: datetime) -> str:
    """Render a naive local timestamp as UTC ISO-8601 with millisecond precision."""
    utc = ts.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def slot_to_dict(slot: AvailableSlot) -> dict[str, Any]:
    """Wire representation of one slot."""
    return {
        "start": format_timestamp(slot.start),
        "end": format_timestamp(slot.end),
        "available": slot.available,
        "total": slot.total,
    }


def slots_to_json(slots: list[AvailableSlot], indent: Union[int, None] = None) -> str:
    """Serialize slots as a JSON array, keeping their order."""
    return json.dumps([slot_to_dict(s) for s in slots], indent=indent)


def grouped_slots_to_dict(
    grouped: dict[str, list[AvailableSlot]],
) -> dict[str, list[dict[str, Any]]]:
    """Wire representation of slots grouped by date."""
    return {key: [slot_to_dict(s) for s in slots] for key, slots in grouped.items()}


def _read_json(path: Union[str, Path]) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"{path}: invalid JSON ({exc})") from exc


def load_schedule_config(path: Union[str, Path]) -> ScheduleConfig:
    """Load a schedule configuration from a JSON object file."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"{path}: expected a JSON object")
    return ScheduleConfig.from_dict(data)


def load_bookings(path: Union[str, Path]) -> list[ExistingBooking]:
    """Load existing bookings from a JSON array file."""
    data = _read_json(path)
    if not isinstance(data, list):
        raise InvalidArgumentError(f"{path}: expected a JSON array")
    return [ExistingBooking.from_dict(item) for item in data]


def load_appointment_type(path: Union[str, Path]) -> AppointmentType:
    """Load an appointment type from a JSON object file."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"{path}: expected a JSON object")
    return AppointmentType.from_dict(data)
