"""Domain models for the availability-slot engine.

This module contains the data structures the engine works with: the
schedule configuration a business persists (weekly hours, date overrides,
buffer and notice policies), the existing bookings it reads, and the
available slots it produces.

All timestamps are naive and expressed in the host's local calendar.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Optional, Union


class InvalidArgumentError(ValueError):
    """Raised when the engine is called with input that breaks its contract.

    Covers non-positive durations, unparsable "HH:MM" strings and malformed
    persisted records.
    """


_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def start_of_day(ts: datetime) -> datetime:
    """Midnight of the calendar day of ``ts``."""
    return datetime.combine(ts.date(), time())


def sunday_based_weekday(day: date) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Values carrying an offset (including a trailing ``Z``) are converted to
    the host's local time and stripped of tzinfo.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            raise InvalidArgumentError(f"Invalid timestamp: {value!r}") from None
    else:
        raise InvalidArgumentError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse_calendar_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return parse_timestamp(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return parse_timestamp(value).date()
    raise InvalidArgumentError(f"Invalid date: {value!r}")


def _require(data: dict[str, Any], key: str, record: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise InvalidArgumentError(f"{record} is missing '{key}'") from None


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{what} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class TimeOfDay:
    """A wall-clock time ("HH:MM", 24h) with no seconds and no timezone.

    Attributes:
        hour: Hour of day, 0-24 (24 only as "24:00", the end of the day).
        minute: Minute of the hour, 0-59.
    """

    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.minute <= 59:
            raise InvalidArgumentError(f"Invalid minute in time of day: {self.minute}")
        if not 0 <= self.hour <= 24 or (self.hour == 24 and self.minute != 0):
            raise InvalidArgumentError(
                f"Invalid time of day: {self.hour:02d}:{self.minute:02d}"
            )

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse an "HH:MM" string.

        Raises:
            InvalidArgumentError: If the string is not a valid time of day.
        """
        if not isinstance(value, str):
            raise InvalidArgumentError(f"Invalid time of day: {value!r}")
        match = _TIME_PATTERN.match(value.strip())
        if match is None:
            raise InvalidArgumentError(f"Invalid time of day: {value!r}")
        return cls(hour=int(match.group(1)), minute=int(match.group(2)))

    @classmethod
    def coerce(cls, value: Union["TimeOfDay", str, time]) -> "TimeOfDay":
        """Accept a TimeOfDay, an "HH:MM" string or a ``datetime.time``."""
        if isinstance(value, TimeOfDay):
            return value
        if isinstance(value, time):
            return cls(hour=value.hour, minute=value.minute)
        return cls.parse(value)

    @property
    def minutes(self) -> int:
        """Minutes from midnight."""
        return self.hour * 60 + self.minute

    def on(self, day: Union[date, datetime]) -> datetime:
        """Timestamp of this time of day on the given calendar day."""
        if isinstance(day, datetime):
            day = day.date()
        return datetime.combine(day, time()) + timedelta(minutes=self.minutes)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass
class TimeRange:
    """Open hours within a single day.

    A slot belongs to the range only if it (and its trailing buffer) ends
    no later than ``end``.

    Attributes:
        start: Opening time.
        end: Closing time.
    """

    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        self.start = TimeOfDay.coerce(self.start)
        self.end = TimeOfDay.coerce(self.end)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeRange":
        return cls(
            start=_require(data, "startTime", "Time slot"),
            end=_require(data, "endTime", "Time slot"),
        )

    def __repr__(self) -> str:
        return f"TimeRange({self.start}-{self.end})"


@dataclass
class WeeklyHours:
    """Recurring open hours for one weekday.

    Attributes:
        day_of_week: 0=Sunday..6=Saturday.
        is_enabled: If False, the weekday is closed.
        time_slots: Disjoint ranges for the day (e.g. morning and afternoon).
    """

    day_of_week: int
    is_enabled: bool = True
    time_slots: list[TimeRange] = field(default_factory=list)

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise InvalidArgumentError(
                f"day_of_week must be between 0 (Sunday) and 6 (Saturday), got {self.day_of_week}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeeklyHours":
        return cls(
            day_of_week=_as_int(_require(data, "dayOfWeek", "Weekly hours"), "dayOfWeek"),
            is_enabled=bool(data.get("isEnabled", True)),
            time_slots=[TimeRange.from_dict(ts) for ts in data.get("timeSlots") or []],
        )


@dataclass
class DateOverride:
    """Per-date exception that replaces the weekly hours of that date.

    Attributes:
        date: Calendar date the override applies to.
        is_available: If False, the date is closed.
        start_time: Opening time when available.
        end_time: Closing time when available.
    """

    date: date
    is_available: bool
    start_time: Optional[TimeOfDay] = None
    end_time: Optional[TimeOfDay] = None

    def __post_init__(self):
        self.date = _parse_calendar_date(self.date)
        if self.start_time is not None:
            self.start_time = TimeOfDay.coerce(self.start_time)
        if self.end_time is not None:
            self.end_time = TimeOfDay.coerce(self.end_time)

    @classmethod
    def closed(cls, day: date) -> "DateOverride":
        """Create an override that closes the given date."""
        return cls(date=day, is_available=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DateOverride":
        return cls(
            date=_require(data, "date", "Date override"),
            is_available=bool(_require(data, "isAvailable", "Date override")),
            start_time=data.get("startTime") or None,
            end_time=data.get("endTime") or None,
        )

    def time_ranges(self) -> list[TimeRange]:
        """Ranges this override yields for its date.

        A closed date yields nothing. An open date yields exactly one range,
        and only when both times are present.
        """
        if not self.is_available:
            return []
        if self.start_time is None or self.end_time is None:
            return []
        return [TimeRange(self.start_time, self.end_time)]


@dataclass
class ScheduleConfig:
    """Full schedule configuration for one business.

    Attributes:
        slot_duration: Step in minutes between candidate slot starts.
        buffer_before: Minutes reserved before each slot (not used by generation).
        buffer_after: Minutes that must remain in the range after a slot ends.
        min_notice: Minutes from now before which no slot may start.
        max_advance: Days from today beyond which no slot may start.
        max_capacity: Concurrent bookings allowed per slot.
        weekly_hours: Recurring hours, one entry per weekday.
        date_overrides: Per-date exceptions.
    """

    slot_duration: int = 30
    buffer_before: int = 0
    buffer_after: int = 0
    min_notice: int = 60
    max_advance: int = 30
    max_capacity: int = 1
    weekly_hours: list[WeeklyHours] = field(default_factory=list)
    date_overrides: list[DateOverride] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleConfig":
        """Build a config from the persisted camelCase shape.

        Missing scalar settings fall back to the defaults above.
        """
        defaults = cls()

        def number(key: str, default: int) -> int:
            value = data.get(key)
            if value is None:
                return default
            return _as_int(value, f"Schedule '{key}'")

        return cls(
            slot_duration=number("slotDuration", defaults.slot_duration),
            buffer_before=number("bufferBefore", defaults.buffer_before),
            buffer_after=number("bufferAfter", defaults.buffer_after),
            min_notice=number("minNotice", defaults.min_notice),
            max_advance=number("maxAdvance", defaults.max_advance),
            max_capacity=number("maxCapacity", defaults.max_capacity),
            weekly_hours=[WeeklyHours.from_dict(wh) for wh in data.get("weeklyHours") or []],
            date_overrides=[DateOverride.from_dict(o) for o in data.get("dateOverrides") or []],
        )


class BookingStatus(Enum):
    """Lifecycle status of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


@dataclass
class ExistingBooking:
    """A booking already held against the schedule (read-only input).

    Timestamps carrying an offset are converted to naive local time.

    Attributes:
        start_time: When the booking starts.
        end_time: When the booking ends.
        status: Booking status; only CANCELLED frees capacity.
    """

    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.CONFIRMED

    def __post_init__(self):
        self.start_time = parse_timestamp(self.start_time)
        self.end_time = parse_timestamp(self.end_time)
        # Status strings match exactly: "cancelled" is not CANCELLED
        if not isinstance(self.status, BookingStatus):
            try:
                self.status = BookingStatus(self.status)
            except ValueError:
                raise InvalidArgumentError(f"Unknown booking status: {self.status!r}") from None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExistingBooking":
        return cls(
            start_time=_require(data, "startTime", "Booking"),
            end_time=_require(data, "endTime", "Booking"),
            status=_require(data, "status", "Booking"),
        )


@dataclass(frozen=True)
class AvailableSlot:
    """A bookable window produced by the generator.

    Attributes:
        start: Slot start.
        end: Slot end (start + requested duration).
        available: Remaining capacity, always positive.
        total: Capacity of the slot when it was generated.
    """

    start: datetime
    end: datetime
    available: int
    total: int

    @property
    def date_key(self) -> str:
        """Calendar date of the slot start as "YYYY-MM-DD"."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; see ``slotfinder.output.serialization``."""
        from slotfinder.output.serialization import slot_to_dict

        return slot_to_dict(self)

    def __repr__(self) -> str:
        return (
            f"AvailableSlot({self.start.strftime('%Y-%m-%d %H:%M')}-"
            f"{self.end.strftime('%H:%M')}, {self.available}/{self.total})"
        )


@dataclass
class AppointmentType:
    """The kind of appointment a slot query is made for.

    Attributes:
        id: Identifier of the appointment type.
        name: Display name.
        duration: Default appointment length in minutes.
        min_duration: Shortest custom length a guest may request.
        max_duration: Longest custom length a guest may request.
        max_capacity: Capacity override for this type (None or 0 = use schedule's).
    """

    id: str
    name: str
    duration: int
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    max_capacity: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppointmentType":
        return cls(
            id=str(_require(data, "id", "Appointment type")),
            name=str(data.get("name", "")),
            duration=_as_int(_require(data, "duration", "Appointment type"), "duration"),
            min_duration=data.get("minDuration"),
            max_duration=data.get("maxDuration"),
            max_capacity=data.get("maxCapacity"),
        )
