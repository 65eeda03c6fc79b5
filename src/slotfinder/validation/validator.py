"""Validation module for verifying generated slots.

This module checks a list of available slots against the rules they were
generated under. It is used to audit slot lists produced elsewhere (or
cached) before they are shown to guests, and by the test-suite to assert
generator properties.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from slotfinder.domain.models import (
    AvailableSlot,
    ExistingBooking,
    ScheduleConfig,
    parse_timestamp,
    start_of_day,
)
from slotfinder.domain.policies import (
    BookingWindow,
    DefaultFitPolicy,
    DefaultOccupancyPolicy,
    FitPolicy,
    OccupancyPolicy,
)
from slotfinder.scheduling.day_ranges import DayRangeResolver


class ValidationErrorType(Enum):
    """Types of validation errors."""

    WRONG_DURATION = "wrong_duration"
    OUTSIDE_RANGE = "outside_range"
    OFF_GRID = "off_grid"
    OUTSIDE_WINDOW = "outside_window"
    BEFORE_MIN_NOTICE = "before_min_notice"
    BEYOND_MAX_ADVANCE = "beyond_max_advance"
    NO_CAPACITY = "no_capacity"
    TOTAL_MISMATCH = "total_mismatch"
    AVAILABILITY_MISMATCH = "availability_mismatch"
    OUT_OF_ORDER = "out_of_order"
    DUPLICATE_SLOT = "duplicate_slot"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    slot: Optional[AvailableSlot] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]", self.message]
        if self.slot is not None:
            parts.append(f"(slot {self.slot.start.strftime('%Y-%m-%d %H:%M')})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a slot list."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of_type(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]


class SlotValidator:
    """Validates slot lists against a schedule configuration.

    Example:
        >>> validator = SlotValidator()
        >>> result = validator.validate(slots, config, duration=30, now=now)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(
        self,
        occupancy_policy: Optional[OccupancyPolicy] = None,
        fit_policy: Optional[FitPolicy] = None,
        range_resolver: Optional[DayRangeResolver] = None,
    ):
        self.occupancy_policy = occupancy_policy or DefaultOccupancyPolicy()
        self.fit_policy = fit_policy or DefaultFitPolicy()
        self.range_resolver = range_resolver or DayRangeResolver()

    def validate(
        self,
        slots: list[AvailableSlot],
        config: ScheduleConfig,
        duration: int,
        now: datetime,
        bookings: Optional[Iterable[ExistingBooking]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ValidationResult:
        """Validate a complete slot list.

        Args:
            slots: Slots to validate, in the order they were produced.
            config: Configuration the slots were generated with.
            duration: Appointment length the slots were generated for.
            now: Instant the slots were generated at.
            bookings: If given, check ``available`` against these bookings.
            start_date: Caller window lower bound used at generation.
            end_date: Caller window upper bound used at generation.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        now = parse_timestamp(now)
        if start_date is not None:
            start_date = parse_timestamp(start_date)
        if end_date is not None:
            end_date = parse_timestamp(end_date)

        window = BookingWindow.from_config(config, now)
        range_start, range_end = window.clamp(start_date, end_date)
        booking_list = list(bookings) if bookings is not None else None

        previous: Optional[AvailableSlot] = None
        for slot in slots:
            self._validate_duration(slot, duration, result)
            self._validate_capacity(slot, config, booking_list, result)
            self._validate_window(slot, window, range_start, range_end, result)
            self._validate_range(slot, config, result)

            if previous is not None:
                if slot.start == previous.start:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.DUPLICATE_SLOT,
                            message="Slot start appears more than once",
                            slot=slot,
                        )
                    )
                elif slot.start < previous.start:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.OUT_OF_ORDER,
                            message=f"Slot starts before the previous slot ({previous.start})",
                            slot=slot,
                        )
                    )
            previous = slot

        if not slots:
            result.add_warning("No slots to validate")

        return result

    def _validate_duration(
        self,
        slot: AvailableSlot,
        duration: int,
        result: ValidationResult,
    ) -> None:
        if slot.end - slot.start != timedelta(minutes=duration):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.WRONG_DURATION,
                    message=f"Slot lasts {slot.duration_minutes} minutes, expected {duration}",
                    slot=slot,
                )
            )

    def _validate_capacity(
        self,
        slot: AvailableSlot,
        config: ScheduleConfig,
        bookings: Optional[list[ExistingBooking]],
        result: ValidationResult,
    ) -> None:
        if slot.available <= 0:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NO_CAPACITY,
                    message=f"Slot offered with {slot.available} places left",
                    slot=slot,
                )
            )
        if slot.total != config.max_capacity:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.TOTAL_MISMATCH,
                    message=f"Slot total {slot.total} differs from capacity {config.max_capacity}",
                    slot=slot,
                )
            )
        if bookings is not None:
            booked = self.occupancy_policy.count_overlapping(bookings, slot.start, slot.end)
            expected = config.max_capacity - booked
            if slot.available != expected:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.AVAILABILITY_MISMATCH,
                        message=f"Slot reports {slot.available} places left, bookings leave {expected}",
                        slot=slot,
                        details={"booked": booked},
                    )
                )

    def _validate_window(
        self,
        slot: AvailableSlot,
        window: BookingWindow,
        range_start: datetime,
        range_end: datetime,
        result: ValidationResult,
    ) -> None:
        if slot.start < window.min_booking_time:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.BEFORE_MIN_NOTICE,
                    message=f"Slot starts before the minimum notice ({window.min_booking_time})",
                    slot=slot,
                )
            )
        if slot.start >= window.max_booking_date:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.BEYOND_MAX_ADVANCE,
                    message=f"Slot starts after the advance horizon ({window.max_booking_date})",
                    slot=slot,
                )
            )

        # The window is searched a whole day at a time
        day = start_of_day(slot.start)
        if day < start_of_day(range_start) or day >= range_end:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_WINDOW,
                    message=f"Slot day falls outside the search window {range_start} - {range_end}",
                    slot=slot,
                )
            )

    def _validate_range(
        self,
        slot: AvailableSlot,
        config: ScheduleConfig,
        result: ValidationResult,
    ) -> None:
        day = start_of_day(slot.start)
        step = timedelta(minutes=config.slot_duration)

        containing = []
        for time_range in self.range_resolver.ranges_for(day, config):
            opens = time_range.start.on(day)
            closes = time_range.end.on(day)
            if opens <= slot.start and self.fit_policy.fits(slot.end, closes, config):
                containing.append(opens)

        if not containing:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_RANGE,
                    message="Slot (with trailing buffer) does not fit any open range of its day",
                    slot=slot,
                )
            )
            return

        if step > timedelta(0) and not any((slot.start - opens) % step == timedelta(0) for opens in containing):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OFF_GRID,
                    message=f"Slot does not start on the {config.slot_duration}-minute grid of its range",
                    slot=slot,
                )
            )
