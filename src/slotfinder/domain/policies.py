"""Policy definitions for slot generation rules.

This module contains the rules the generator applies to each candidate
slot: which bookings take up capacity, whether a slot fits the range it
was cut from, and how "now" bounds the bookable window. Policies are kept
separate from the generation loop to allow independent testing and easy
modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from slotfinder.domain.models import (
    BookingStatus,
    ExistingBooking,
    ScheduleConfig,
    start_of_day,
)


class OccupancyPolicy(ABC):
    """Abstract base class for capacity accounting."""

    @abstractmethod
    def occupies_capacity(self, booking: ExistingBooking) -> bool:
        """Check if a booking takes up a place in the slots it overlaps."""
        pass

    def count_overlapping(
        self,
        bookings: Iterable[ExistingBooking],
        slot_start: datetime,
        slot_end: datetime,
    ) -> int:
        """Count occupying bookings that overlap ``[slot_start, slot_end)``.

        Args:
            bookings: Bookings to check, in any order.
            slot_start: Start of the candidate slot.
            slot_end: End of the candidate slot (exclusive).

        Returns:
            Number of overlapping bookings that occupy capacity.
        """
        return sum(
            1
            for booking in bookings
            if self.occupies_capacity(booking)
            and booking.start_time < slot_end
            and booking.end_time > slot_start
        )


class FitPolicy(ABC):
    """Abstract base class for deciding whether a slot fits its range."""

    @abstractmethod
    def fits(
        self,
        slot_end: datetime,
        range_end: datetime,
        config: ScheduleConfig,
    ) -> bool:
        """Check if a slot ending at ``slot_end`` still fits before ``range_end``.

        Args:
            slot_end: End of the candidate slot.
            range_end: End of the open-hours range on that day.
            config: Schedule configuration with buffer settings.

        Returns:
            True if the slot can be offered.
        """
        pass


@dataclass
class DefaultOccupancyPolicy(OccupancyPolicy):
    """Default capacity accounting.

    Every booking occupies capacity except those whose status is in
    ``released_statuses`` (CANCELLED only). PENDING counts the same as
    CONFIRMED.
    """

    released_statuses: frozenset[BookingStatus] = frozenset({BookingStatus.CANCELLED})

    def occupies_capacity(self, booking: ExistingBooking) -> bool:
        return booking.status not in self.released_statuses


@dataclass
class DefaultFitPolicy(FitPolicy):
    """Default range fit rule.

    A slot fits when its end plus ``buffer_after`` is no later than the
    range end. ``buffer_before`` is accepted by the configuration but does
    not take part in the check.
    """

    def fits(
        self,
        slot_end: datetime,
        range_end: datetime,
        config: ScheduleConfig,
    ) -> bool:
        return slot_end + timedelta(minutes=config.buffer_after) <= range_end


@dataclass(frozen=True)
class BookingWindow:
    """Bounds on when a slot may start, relative to ``now``.

    Attributes:
        now: The instant the query is evaluated at.
        min_notice: Minutes of lead time required before a slot start.
        max_advance: Days from today beyond which no slot may start.
    """

    now: datetime
    min_notice: int
    max_advance: int

    @classmethod
    def from_config(cls, config: ScheduleConfig, now: datetime) -> "BookingWindow":
        return cls(now=now, min_notice=config.min_notice, max_advance=config.max_advance)

    @property
    def min_booking_time(self) -> datetime:
        """Earliest instant a slot may start."""
        return self.now + timedelta(minutes=self.min_notice)

    @property
    def max_booking_date(self) -> datetime:
        """Midnight after which no day is searched."""
        return start_of_day(self.now) + timedelta(days=self.max_advance)

    def clamp(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[datetime, datetime]:
        """Narrow a caller window to the notice and advance bounds.

        A caller window can only narrow the bounds, never widen them.

        Returns:
            Tuple of (range_start, range_end).
        """
        range_start = self.min_booking_time
        if start_date is not None and start_date > range_start:
            range_start = start_date

        range_end = self.max_booking_date
        if end_date is not None and end_date < range_end:
            range_end = end_date

        return range_start, range_end
