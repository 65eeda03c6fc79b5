"""Slot generator for computing bookable time windows.

This module walks the searchable days one at a time, cuts each day's
open-hours ranges into candidate slots on a ``slot_duration`` grid, and
keeps the candidates that respect minimum notice, fit their range
(including the trailing buffer) and still have capacity left.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from slotfinder.domain.models import (
    AvailableSlot,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
    TimeRange,
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

logger = logging.getLogger(__name__)


class SlotGenerator:
    """Generates available slots from a schedule configuration.

    The generator holds no state between calls; every call recomputes
    from its arguments, so one instance can be shared freely.

    Example:
        >>> generator = SlotGenerator()
        >>> slots = generator.generate(config, bookings, duration=30)
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

    def generate(
        self,
        config: ScheduleConfig,
        existing_bookings: Iterable[ExistingBooking],
        duration: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> list[AvailableSlot]:
        """Generate all available slots in the search window.

        Args:
            config: Schedule configuration.
            existing_bookings: Bookings held against the schedule, any order.
            duration: Length of the appointment in minutes.
            start_date: Optional lower bound of the search window.
            end_date: Optional upper bound of the search window.
            now: Evaluation instant (defaults to the current local time).

        Returns:
            Available slots in chronological order.

        Raises:
            InvalidArgumentError: If ``duration`` or ``config.slot_duration``
                is not positive.
        """
        if duration <= 0:
            raise InvalidArgumentError(f"duration must be positive, got {duration}")
        if config.slot_duration <= 0:
            raise InvalidArgumentError(
                f"slot_duration must be positive, got {config.slot_duration}"
            )

        now = parse_timestamp(now or datetime.now())
        if start_date is not None:
            start_date = parse_timestamp(start_date)
        if end_date is not None:
            end_date = parse_timestamp(end_date)

        window = BookingWindow.from_config(config, now)
        range_start, range_end = window.clamp(start_date, end_date)
        min_booking_time = window.min_booking_time
        bookings = list(existing_bookings)

        logger.debug(
            "Generating %d-minute slots from %s to %s (%d bookings)",
            duration,
            range_start,
            range_end,
            len(bookings),
        )

        slots: list[AvailableSlot] = []
        current_date = start_of_day(range_start)

        while current_date < range_end:
            ranges = self.range_resolver.ranges_for(current_date, config)
            if ranges:
                logger.debug("%s: %d open ranges", current_date.date(), len(ranges))
            for time_range in ranges:
                slots.extend(
                    self._slots_in_range(
                        current_date,
                        time_range,
                        config,
                        bookings,
                        duration,
                        min_booking_time,
                    )
                )
            current_date += timedelta(days=1)

        logger.debug("Generated %d available slots", len(slots))
        return slots

    def _slots_in_range(
        self,
        day: datetime,
        time_range: TimeRange,
        config: ScheduleConfig,
        bookings: list[ExistingBooking],
        duration: int,
        min_booking_time: datetime,
    ) -> list[AvailableSlot]:
        """Cut one open-hours range into available slots."""
        step = timedelta(minutes=config.slot_duration)
        length = timedelta(minutes=duration)

        slots = []
        slot_start = time_range.start.on(day)
        range_end = time_range.end.on(day)

        while True:
            slot_end = slot_start + length

            if not self.fit_policy.fits(slot_end, range_end, config):
                break

            # Too soon, but a later slot in the same range may qualify
            if slot_start < min_booking_time:
                slot_start += step
                continue

            booked = self.occupancy_policy.count_overlapping(bookings, slot_start, slot_end)
            available = config.max_capacity - booked

            if available > 0:
                slots.append(
                    AvailableSlot(
                        start=slot_start,
                        end=slot_end,
                        available=available,
                        total=config.max_capacity,
                    )
                )

            slot_start += step

        return slots


def generate_available_slots(
    config: ScheduleConfig,
    existing_bookings: Iterable[ExistingBooking],
    duration: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> list[AvailableSlot]:
    """Generate available slots with the default policies.

    See ``SlotGenerator.generate`` for arguments.
    """
    return SlotGenerator().generate(
        config,
        existing_bookings,
        duration,
        start_date=start_date,
        end_date=end_date,
        now=now,
    )
