"""Resolution of the open-hours ranges for a calendar day.

A date override, when one exists for the date, fully replaces the weekly
hours of that date. Otherwise the enabled weekly hours of the weekday
apply. Duplicate entries for the same date or weekday are resolved by
taking the first one in configuration order.
"""

import logging
from datetime import date, datetime
from typing import Optional, Union

from slotfinder.domain.models import (
    DateOverride,
    ScheduleConfig,
    TimeRange,
    WeeklyHours,
    sunday_based_weekday,
)

logger = logging.getLogger(__name__)


class DayRangeResolver:
    """Determines which time ranges are open on a given day."""

    def ranges_for(
        self,
        day: Union[date, datetime],
        config: ScheduleConfig,
    ) -> list[TimeRange]:
        """Get the open-hours ranges for a calendar day.

        Args:
            day: The calendar day (a timestamp is reduced to its date).
            config: Schedule configuration with weekly hours and overrides.

        Returns:
            Ranges in configuration order. Empty list = closed day.
        """
        if isinstance(day, datetime):
            day = day.date()

        override = self.find_override(day, config.date_overrides)
        if override is not None:
            return override.time_ranges()

        weekly = self.find_weekly_hours(sunday_based_weekday(day), config.weekly_hours)
        if weekly is None or not weekly.is_enabled:
            return []
        return list(weekly.time_slots)

    def find_override(
        self,
        day: date,
        overrides: list[DateOverride],
    ) -> Optional[DateOverride]:
        """Get the first override pinned to ``day``, if any."""
        for override in overrides:
            if override.date == day:
                return override
        return None

    def find_weekly_hours(
        self,
        day_of_week: int,
        weekly_hours: list[WeeklyHours],
    ) -> Optional[WeeklyHours]:
        """Get the first weekly hours entry for a weekday (0=Sunday)."""
        matches = [wh for wh in weekly_hours if wh.day_of_week == day_of_week]
        if len(matches) > 1:
            logger.debug(
                "%d weekly hours entries for day %d, using the first",
                len(matches),
                day_of_week,
            )
        return matches[0] if matches else None
