"""High-level availability service.

This module provides the AvailabilityService class that turns a slot
query for an appointment type (optional target date, optional custom
duration) into a generator call, resolving the effective capacity and
duration the same way for every caller.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from slotfinder.domain.models import (
    AppointmentType,
    AvailableSlot,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
    parse_timestamp,
)
from slotfinder.scheduling.grouping import get_available_dates, group_slots_by_date
from slotfinder.scheduling.slot_generator import SlotGenerator
from slotfinder.settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Answers slot queries for appointment types.

    Example:
        >>> service = AvailabilityService()
        >>> slots = service.find_slots(
        ...     config, consultation, bookings, target_date=date(2025, 1, 7)
        ... )
    """

    def __init__(
        self,
        generator: Optional[SlotGenerator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """Initialize the service.

        Args:
            generator: Slot generator to use (default policies if omitted).
            settings: Engine settings (defaults to ``get_settings()``).
        """
        self.generator = generator or SlotGenerator()
        self.settings = settings or get_settings()

    def resolve_capacity(
        self,
        appointment_type: AppointmentType,
        config: ScheduleConfig,
    ) -> int:
        """Capacity of the type if set, else the schedule's, else the default."""
        return (
            appointment_type.max_capacity
            or config.max_capacity
            or self.settings.default_max_capacity
        )

    def effective_config(
        self,
        config: ScheduleConfig,
        appointment_type: AppointmentType,
    ) -> ScheduleConfig:
        """Copy of ``config`` with the capacity resolved for the type."""
        return replace(config, max_capacity=self.resolve_capacity(appointment_type, config))

    def resolve_duration(
        self,
        appointment_type: AppointmentType,
        duration: Optional[int] = None,
    ) -> int:
        """Effective appointment length in minutes.

        Args:
            appointment_type: The type being booked.
            duration: Optional custom length requested by the guest.

        Raises:
            InvalidArgumentError: If the custom length is too short or
                outside the type's allowed bounds.
        """
        if duration is None:
            return appointment_type.duration

        if duration < self.settings.min_custom_duration:
            raise InvalidArgumentError(
                f"duration must be at least {self.settings.min_custom_duration} minutes, got {duration}"
            )
        if appointment_type.min_duration is not None and duration < appointment_type.min_duration:
            raise InvalidArgumentError(
                f"duration {duration} is shorter than the minimum of "
                f"{appointment_type.min_duration} for '{appointment_type.name}'"
            )
        if appointment_type.max_duration is not None and duration > appointment_type.max_duration:
            raise InvalidArgumentError(
                f"duration {duration} is longer than the maximum of "
                f"{appointment_type.max_duration} for '{appointment_type.name}'"
            )
        return duration

    def window_for_date(self, target_date: date) -> tuple[datetime, datetime]:
        """Search window covering one calendar day: [midnight, next midnight)."""
        start = datetime.combine(target_date, time())
        return start, start + timedelta(days=1)

    def find_slots(
        self,
        config: ScheduleConfig,
        appointment_type: AppointmentType,
        bookings: Iterable[ExistingBooking],
        target_date: Optional[date] = None,
        duration: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[AvailableSlot]:
        """Find available slots for an appointment type.

        Args:
            config: Schedule configuration of the business.
            appointment_type: The type being booked.
            bookings: Existing bookings of the business.
            target_date: Restrict the search to this single day.
            duration: Optional custom length overriding the type's duration.
            now: Evaluation instant (defaults to the current local time).

        Returns:
            Available slots in chronological order.
        """
        effective_duration = self.resolve_duration(appointment_type, duration)
        effective_config = self.effective_config(config, appointment_type)

        start_date = end_date = None
        if target_date is not None:
            start_date, end_date = self.window_for_date(target_date)

        logger.debug(
            "Slot query for type %s: duration=%d capacity=%d date=%s",
            appointment_type.id,
            effective_duration,
            effective_config.max_capacity,
            target_date,
        )

        return self.generator.generate(
            effective_config,
            bookings,
            effective_duration,
            start_date=start_date,
            end_date=end_date,
            now=now,
        )

    def find_slots_by_date(
        self,
        config: ScheduleConfig,
        appointment_type: AppointmentType,
        bookings: Iterable[ExistingBooking],
        duration: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> dict[str, list[AvailableSlot]]:
        """Find available slots over the whole bookable horizon, grouped by date."""
        slots = self.find_slots(config, appointment_type, bookings, duration=duration, now=now)
        return group_slots_by_date(slots)

    def available_dates(
        self,
        config: ScheduleConfig,
        appointment_type: AppointmentType,
        bookings: Iterable[ExistingBooking],
        duration: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[str]:
        """Dates with at least one available slot, ascending."""
        slots = self.find_slots(config, appointment_type, bookings, duration=duration, now=now)
        return get_available_dates(slots)

    def find_slot(
        self,
        config: ScheduleConfig,
        appointment_type: AppointmentType,
        bookings: Iterable[ExistingBooking],
        start: datetime,
        duration: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[AvailableSlot]:
        """Get the slot starting exactly at ``start`` if it is still offered.

        Used to re-check a requested start right before a booking is made.

        Returns:
            The matching slot, or None if that start is not available.
        """
        start = parse_timestamp(start)
        slots = self.find_slots(
            config,
            appointment_type,
            bookings,
            target_date=start.date(),
            duration=duration,
            now=now,
        )
        for slot in slots:
            if slot.start == start:
                return slot
        return None

    def summarize(self, slots: list[AvailableSlot]) -> dict:
        """Calculate summary statistics for a slot list."""
        dates = get_available_dates(slots)
        return {
            "total_slots": len(slots),
            "total_dates": len(dates),
            "dates": dates,
            "total_available": sum(s.available for s in slots),
            "first_slot": slots[0].start if slots else None,
            "last_slot": slots[-1].start if slots else None,
        }
