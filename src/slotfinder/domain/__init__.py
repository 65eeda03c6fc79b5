"""Domain models and business rules for slot generation."""

from slotfinder.domain.models import (
    AppointmentType,
    AvailableSlot,
    BookingStatus,
    DateOverride,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
    TimeOfDay,
    TimeRange,
    WeeklyHours,
)
from slotfinder.domain.policies import (
    BookingWindow,
    DefaultFitPolicy,
    DefaultOccupancyPolicy,
    FitPolicy,
    OccupancyPolicy,
)

__all__ = [
    # Models
    "AppointmentType",
    "AvailableSlot",
    "BookingStatus",
    "DateOverride",
    "ExistingBooking",
    "InvalidArgumentError",
    "ScheduleConfig",
    "TimeOfDay",
    "TimeRange",
    "WeeklyHours",
    # Policies
    "BookingWindow",
    "DefaultFitPolicy",
    "DefaultOccupancyPolicy",
    "FitPolicy",
    "OccupancyPolicy",
]
