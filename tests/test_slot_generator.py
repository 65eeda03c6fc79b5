"""Tests for slot generation."""

from datetime import date, datetime, timezone

import pytest

from slotfinder.domain.models import (
    BookingStatus,
    DateOverride,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
    TimeRange,
    WeeklyHours,
)
from slotfinder.domain.policies import DefaultOccupancyPolicy
from slotfinder.scheduling.slot_generator import SlotGenerator, generate_available_slots
from slotfinder.validation.validator import SlotValidator

# Monday morning, one hour before the office opens
NOW = datetime(2025, 1, 6, 8, 0)


def _weekday_config(**overrides) -> ScheduleConfig:
    """Monday to Friday 09:00-17:00 on a 30-minute grid."""
    settings = {
        "slot_duration": 30,
        "max_advance": 1,
        "weekly_hours": [
            WeeklyHours(day_of_week=day, is_enabled=True, time_slots=[TimeRange("09:00", "17:00")])
            for day in range(1, 6)
        ],
    }
    settings.update(overrides)
    return ScheduleConfig(**settings)


def _at(hour: int, minute: int = 0, day: int = 6) -> datetime:
    return datetime(2025, 1, day, hour, minute)


class TestBasicGeneration:
    """Tests for slot generation without bookings."""

    @pytest.fixture
    def generator(self):
        """Create a generator with default policies."""
        return SlotGenerator()

    def test_full_day_of_half_hour_slots(self, generator):
        """A 09:00-17:00 day yields 16 half-hour slots."""
        slots = generator.generate(_weekday_config(), [], 30, now=NOW)

        assert len(slots) == 16
        assert slots[0].start == _at(9)
        assert slots[-1].start == _at(16, 30)
        assert slots[-1].end == _at(17)

    def test_slots_have_full_capacity(self, generator):
        """Without bookings every slot has all places left."""
        slots = generator.generate(_weekday_config(), [], 30, now=NOW)

        assert all(s.available == 1 and s.total == 1 for s in slots)

    def test_slot_end_is_start_plus_duration(self, generator):
        """Every slot lasts exactly the requested duration."""
        slots = generator.generate(_weekday_config(), [], 30, now=NOW)

        assert all(s.duration_minutes == 30 for s in slots)

    def test_empty_weekly_hours_yields_nothing(self, generator):
        """No weekly hours and no overrides means no slots."""
        config = _weekday_config(weekly_hours=[], max_advance=7)

        assert generator.generate(config, [], 30, now=NOW) == []

    def test_disabled_weekday_yields_nothing(self, generator):
        """A disabled weekday is closed even if it lists ranges."""
        config = _weekday_config(
            weekly_hours=[
                WeeklyHours(day_of_week=1, is_enabled=False, time_slots=[TimeRange("09:00", "17:00")])
            ]
        )

        assert generator.generate(config, [], 30, now=NOW) == []

    def test_weekend_is_closed(self, generator):
        """Saturday and Sunday have no weekly hours in the config."""
        slots = generator.generate(_weekday_config(max_advance=7), [], 30, now=NOW)

        weekdays = {s.start.weekday() for s in slots}
        assert weekdays == {0, 1, 2, 3, 4}

    def test_week_of_slots_is_chronological(self, generator):
        """Slots over several days come back in strictly increasing order."""
        slots = generator.generate(_weekday_config(max_advance=7), [], 30, now=NOW)

        assert len(slots) == 5 * 16
        starts = [s.start for s in slots]
        assert starts == sorted(starts)
        assert len(set(starts)) == len(starts)

    def test_sunday_is_day_zero(self, generator):
        """dayOfWeek 0 applies to Sundays."""
        config = _weekday_config(
            weekly_hours=[WeeklyHours(day_of_week=0, time_slots=[TimeRange("10:00", "11:00")])]
        )
        sunday_morning = datetime(2025, 1, 5, 8, 0)

        slots = generator.generate(config, [], 30, now=sunday_morning)

        assert [s.start for s in slots] == [datetime(2025, 1, 5, 10), datetime(2025, 1, 5, 10, 30)]

    def test_multiple_ranges_per_day(self, generator):
        """A lunch gap splits the day into two ranges, emitted in order."""
        config = _weekday_config(
            weekly_hours=[
                WeeklyHours(
                    day_of_week=1,
                    time_slots=[TimeRange("09:00", "10:00"), TimeRange("13:00", "14:00")],
                )
            ]
        )

        slots = generator.generate(config, [], 30, now=NOW)

        assert [s.start for s in slots] == [_at(9), _at(9, 30), _at(13), _at(13, 30)]

    def test_range_ending_at_midnight(self, generator):
        """An "24:00" end closes the range at the next midnight."""
        config = _weekday_config(
            weekly_hours=[WeeklyHours(day_of_week=1, time_slots=[TimeRange("23:00", "24:00")])]
        )

        slots = generator.generate(config, [], 30, now=NOW)

        assert [s.start for s in slots] == [_at(23), _at(23, 30)]
        assert slots[-1].end == datetime(2025, 1, 7, 0, 0)

    def test_long_duration_on_short_grid(self, generator):
        """45-minute slots on a 15-minute grid overlap each other."""
        config = _weekday_config(slot_duration=15)

        slots = generator.generate(config, [], 45, now=NOW)

        assert len(slots) == 30
        assert slots[1].start == _at(9, 15)
        assert slots[0].end > slots[1].start
        assert slots[-1].start == _at(16, 15)

    def test_duration_longer_than_range(self, generator):
        """A slot that cannot fit anywhere yields nothing for that range."""
        config = _weekday_config(
            weekly_hours=[WeeklyHours(day_of_week=1, time_slots=[TimeRange("09:00", "09:20")])]
        )

        assert generator.generate(config, [], 30, now=NOW) == []

    def test_duplicate_weekday_entries_first_wins(self, generator):
        """Only the first entry for a weekday is used."""
        config = _weekday_config(
            weekly_hours=[
                WeeklyHours(day_of_week=1, time_slots=[TimeRange("09:00", "10:00")]),
                WeeklyHours(day_of_week=1, time_slots=[TimeRange("14:00", "15:00")]),
            ]
        )

        slots = generator.generate(config, [], 30, now=NOW)

        assert [s.start for s in slots] == [_at(9), _at(9, 30)]

    def test_module_function_matches_generator(self, generator):
        """generate_available_slots uses the default policies."""
        config = _weekday_config(max_advance=3)

        assert generate_available_slots(config, [], 30, now=NOW) == generator.generate(
            config, [], 30, now=NOW
        )


class TestInvalidArguments:
    """Tests for rejected inputs."""

    def test_zero_duration_rejected(self):
        with pytest.raises(InvalidArgumentError):
            SlotGenerator().generate(_weekday_config(), [], 0, now=NOW)

    def test_negative_duration_rejected(self):
        with pytest.raises(InvalidArgumentError):
            SlotGenerator().generate(_weekday_config(), [], -30, now=NOW)

    def test_zero_slot_duration_rejected(self):
        """A zero grid step would never advance."""
        with pytest.raises(InvalidArgumentError):
            SlotGenerator().generate(_weekday_config(slot_duration=0), [], 30, now=NOW)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            SlotGenerator().generate(_weekday_config(), [], 0, now=NOW)


class TestBookings:
    """Tests for capacity accounting against existing bookings."""

    @pytest.fixture
    def generator(self):
        return SlotGenerator()

    def test_confirmed_booking_removes_slot(self, generator):
        """A confirmed booking fills the only place of its slot."""
        bookings = [ExistingBooking(_at(10), _at(10, 30), BookingStatus.CONFIRMED)]

        slots = generator.generate(_weekday_config(), bookings, 30, now=NOW)

        assert len(slots) == 15
        assert _at(10) not in [s.start for s in slots]

    def test_cancelled_booking_keeps_slot(self, generator):
        """Cancelled bookings never take up capacity."""
        bookings = [ExistingBooking(_at(10), _at(10, 30), BookingStatus.CANCELLED)]

        slots = generator.generate(_weekday_config(), bookings, 30, now=NOW)

        assert len(slots) == 16
        assert _at(10) in [s.start for s in slots]

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.PENDING, BookingStatus.COMPLETED, BookingStatus.NO_SHOW],
    )
    def test_non_cancelled_statuses_occupy(self, generator, status):
        """Every status other than CANCELLED counts against capacity."""
        bookings = [ExistingBooking(_at(10), _at(10, 30), status)]

        slots = generator.generate(_weekday_config(), bookings, 30, now=NOW)

        assert _at(10) not in [s.start for s in slots]

    def test_partial_capacity(self, generator):
        """One booking on a three-place slot leaves two places."""
        bookings = [ExistingBooking(_at(10), _at(10, 30))]

        slots = generator.generate(_weekday_config(max_capacity=3), bookings, 30, now=NOW)
        ten = next(s for s in slots if s.start == _at(10))

        assert ten.available == 2
        assert ten.total == 3
        assert all(s.available == 3 for s in slots if s.start != _at(10))

    def test_touching_bookings_do_not_overlap(self, generator):
        """Intervals are half-open: sharing an endpoint is not an overlap."""
        bookings = [ExistingBooking(_at(9, 30), _at(10))]

        slots = generator.generate(_weekday_config(), bookings, 30, now=NOW)
        starts = [s.start for s in slots]

        assert _at(9) in starts
        assert _at(10) in starts
        assert _at(9, 30) not in starts

    def test_long_slot_blocked_by_partial_overlap(self, generator):
        """An hour-long slot is blocked by any booking inside it."""
        bookings = [ExistingBooking(_at(10), _at(10, 30))]

        slots = generator.generate(_weekday_config(), bookings, 60, now=NOW)
        starts = [s.start for s in slots]

        assert _at(9) in starts
        assert _at(9, 30) not in starts
        assert _at(10) not in starts
        assert _at(10, 30) in starts

    def test_utc_aware_booking_blocks_local_slot(self, generator):
        """Bookings stored in UTC are compared in local time."""
        bookings = [
            ExistingBooking(
                _at(10).astimezone(timezone.utc),
                _at(10, 30).astimezone(timezone.utc),
                BookingStatus.CONFIRMED,
            )
        ]

        slots = generate_available_slots(_weekday_config(), bookings, 30, now=NOW)

        assert len(slots) == 15
        assert _at(10) not in [s.start for s in slots]

    def test_utc_aware_cancelled_booking_keeps_slot(self, generator):
        bookings = [
            ExistingBooking(
                _at(10).astimezone(timezone.utc),
                _at(10, 30).astimezone(timezone.utc),
                BookingStatus.CANCELLED,
            )
        ]

        slots = generator.generate(_weekday_config(), bookings, 30, now=NOW)

        assert len(slots) == 16

    def test_booking_order_does_not_matter(self, generator):
        bookings = [
            ExistingBooking(_at(14), _at(14, 30)),
            ExistingBooking(_at(10), _at(10, 30)),
        ]

        forward = generator.generate(_weekday_config(), bookings, 30, now=NOW)
        backward = generator.generate(_weekday_config(), list(reversed(bookings)), 30, now=NOW)

        assert forward == backward

    def test_cancelled_never_reduces_availability(self, generator):
        """Adding cancelled bookings anywhere leaves the output unchanged."""
        config = _weekday_config(max_capacity=2, max_advance=3)
        base = [ExistingBooking(_at(11), _at(12))]
        cancelled = [
            ExistingBooking(_at(hour), _at(hour, 30), BookingStatus.CANCELLED)
            for hour in range(9, 17)
        ]

        without = generator.generate(config, base, 30, now=NOW)
        with_cancelled = generator.generate(config, base + cancelled, 30, now=NOW)

        assert without == with_cancelled

    def test_zero_capacity_yields_nothing(self, generator):
        """A slot is only offered while at least one place is left."""
        assert generator.generate(_weekday_config(max_capacity=0), [], 30, now=NOW) == []

    def test_overbooked_slot_is_hidden(self, generator):
        """More overlapping bookings than places never yields negative availability."""
        bookings = [ExistingBooking(_at(10), _at(10, 30)) for _ in range(3)]

        slots = generator.generate(_weekday_config(max_capacity=2), bookings, 30, now=NOW)

        assert _at(10) not in [s.start for s in slots]
        assert all(s.available > 0 for s in slots)

    def test_custom_occupancy_policy(self):
        """A policy that also releases NO_SHOW frees those places."""
        policy = DefaultOccupancyPolicy(
            released_statuses=frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})
        )
        bookings = [ExistingBooking(_at(10), _at(10, 30), BookingStatus.NO_SHOW)]

        slots = SlotGenerator(occupancy_policy=policy).generate(
            _weekday_config(), bookings, 30, now=NOW
        )

        assert _at(10) in [s.start for s in slots]


class TestBuffers:
    """Tests for buffer handling."""

    def test_buffer_after_must_fit_in_range(self):
        """A trailing buffer cuts the last slot of a range."""
        config = _weekday_config(
            buffer_after=10,
            weekly_hours=[WeeklyHours(day_of_week=1, time_slots=[TimeRange("09:00", "10:00")])],
        )

        slots = SlotGenerator().generate(config, [], 30, now=NOW)

        assert len(slots) == 1
        assert slots[0].start == _at(9)

    def test_buffer_after_exactly_fits(self):
        """Slot end plus buffer may equal the range end."""
        config = _weekday_config(
            buffer_after=30,
            weekly_hours=[WeeklyHours(day_of_week=1, time_slots=[TimeRange("09:00", "10:00")])],
        )

        slots = SlotGenerator().generate(config, [], 30, now=NOW)

        assert [s.start for s in slots] == [_at(9)]

    def test_buffer_before_is_ignored(self):
        """buffer_before does not change generation."""
        plain = SlotGenerator().generate(_weekday_config(), [], 30, now=NOW)
        buffered = SlotGenerator().generate(_weekday_config(buffer_before=15), [], 30, now=NOW)

        assert plain == buffered


class TestBookingWindow:
    """Tests for minimum notice, maximum advance and caller windows."""

    @pytest.fixture
    def generator(self):
        return SlotGenerator()

    def test_min_notice_skips_early_slots(self, generator):
        """Two hours of notice at 08:00 means nothing before 10:00."""
        slots = generator.generate(_weekday_config(min_notice=120), [], 30, now=NOW)

        assert slots[0].start == _at(10)
        assert all(s.start >= _at(10) for s in slots)

    def test_grid_stays_anchored_to_range_start(self, generator):
        """Notice ending mid-step moves to the next grid point, not off-grid."""
        slots = generator.generate(_weekday_config(), [], 30, now=_at(8, 10))

        assert slots[0].start == _at(9, 30)

    def test_now_inside_open_hours(self, generator):
        """Slots already past (plus notice) are not offered."""
        slots = generator.generate(_weekday_config(), [], 30, now=_at(12, 0))

        assert slots[0].start == _at(13)
        assert len(slots) == 8

    def test_max_advance_limits_days(self, generator):
        """max_advance=1 searches today only."""
        slots = generator.generate(_weekday_config(max_advance=1), [], 30, now=NOW)

        assert {s.date_key for s in slots} == {"2025-01-06"}

    def test_max_advance_counts_from_midnight(self, generator):
        """The horizon is whole days from today, not from now."""
        late_evening = datetime(2025, 1, 6, 23, 0)

        slots = generator.generate(_weekday_config(max_advance=2), [], 30, now=late_evening)

        assert {s.date_key for s in slots} == {"2025-01-07"}

    def test_caller_window_narrows(self, generator):
        """A caller window inside the horizon restricts the days searched."""
        slots = generator.generate(
            _weekday_config(max_advance=7),
            [],
            30,
            start_date=datetime(2025, 1, 8),
            end_date=datetime(2025, 1, 9),
            now=NOW,
        )

        assert len(slots) == 16
        assert {s.date_key for s in slots} == {"2025-01-08"}

    def test_aware_window_and_now(self, generator):
        """Offset-carrying bounds and now are read as local time."""
        slots = generator.generate(
            _weekday_config(max_advance=7),
            [],
            30,
            start_date=datetime(2025, 1, 8).astimezone(timezone.utc),
            end_date=datetime(2025, 1, 9).astimezone(timezone.utc),
            now=NOW.astimezone(timezone.utc),
        )

        assert len(slots) == 16
        assert {s.date_key for s in slots} == {"2025-01-08"}

    def test_caller_window_cannot_widen(self, generator):
        """Bounds outside notice and advance are ignored."""
        slots = generator.generate(
            _weekday_config(max_advance=1),
            [],
            30,
            start_date=datetime(2025, 1, 1),
            end_date=datetime(2025, 2, 1),
            now=NOW,
        )

        assert len(slots) == 16
        assert slots[0].start == _at(9)

    def test_empty_caller_window(self, generator):
        """A window ending before it starts yields nothing."""
        slots = generator.generate(
            _weekday_config(max_advance=7),
            [],
            30,
            start_date=datetime(2025, 1, 9),
            end_date=datetime(2025, 1, 8),
            now=NOW,
        )

        assert slots == []

    def test_zero_max_advance_yields_nothing(self, generator):
        assert generator.generate(_weekday_config(max_advance=0), [], 30, now=NOW) == []


class TestDateOverrides:
    """Tests for per-date overrides."""

    @pytest.fixture
    def generator(self):
        return SlotGenerator()

    def test_closed_override_removes_day(self, generator):
        """Closing Tuesday leaves the rest of the week untouched."""
        config = _weekday_config(
            max_advance=7,
            date_overrides=[DateOverride.closed(date(2025, 1, 7))],
        )

        slots = generator.generate(config, [], 30, now=NOW)
        dates = {s.date_key for s in slots}

        assert "2025-01-07" not in dates
        assert "2025-01-08" in dates

    def test_open_override_replaces_hours(self, generator):
        """An open override swaps the weekday hours for its own range."""
        config = _weekday_config(
            max_advance=7,
            date_overrides=[DateOverride(date(2025, 1, 7), True, "10:00", "12:00")],
        )

        slots = [s for s in generator.generate(config, [], 30, now=NOW) if s.date_key == "2025-01-07"]

        assert len(slots) == 4
        assert slots[0].start == _at(10, day=7)
        assert slots[-1].end == _at(12, day=7)

    def test_override_opens_closed_weekday(self, generator):
        """An override on a Saturday opens it."""
        config = _weekday_config(
            max_advance=7,
            date_overrides=[DateOverride(date(2025, 1, 11), True, "10:00", "11:00")],
        )

        slots = [s for s in generator.generate(config, [], 30, now=NOW) if s.date_key == "2025-01-11"]

        assert len(slots) == 2

    def test_open_override_without_times_is_closed(self, generator):
        """An available override missing its end time yields no ranges."""
        config = _weekday_config(
            max_advance=7,
            date_overrides=[DateOverride(date(2025, 1, 7), True, "10:00", None)],
        )

        slots = generator.generate(config, [], 30, now=NOW)

        assert "2025-01-07" not in {s.date_key for s in slots}

    def test_first_override_for_date_wins(self, generator):
        config = _weekday_config(
            max_advance=7,
            date_overrides=[
                DateOverride.closed(date(2025, 1, 7)),
                DateOverride(date(2025, 1, 7), True, "10:00", "12:00"),
            ],
        )

        slots = generator.generate(config, [], 30, now=NOW)

        assert "2025-01-07" not in {s.date_key for s in slots}


class TestGeneratedSlotsValidate:
    """Generated output should pass the validator."""

    @pytest.mark.parametrize(
        "overrides,duration",
        [
            ({}, 30),
            ({"max_advance": 7, "max_capacity": 2}, 30),
            ({"max_advance": 7, "slot_duration": 15}, 45),
            ({"max_advance": 7, "buffer_after": 10, "min_notice": 90}, 60),
        ],
    )
    def test_generated_slots_are_valid(self, overrides, duration):
        config = _weekday_config(**overrides)
        bookings = [
            ExistingBooking(_at(10), _at(10, 30)),
            ExistingBooking(_at(11, day=7), _at(12, day=7), BookingStatus.PENDING),
            ExistingBooking(_at(14, day=8), _at(15, day=8), BookingStatus.CANCELLED),
        ]

        slots = SlotGenerator().generate(config, bookings, duration, now=NOW)
        result = SlotValidator().validate(slots, config, duration, NOW, bookings)

        assert slots
        assert result.is_valid, [str(e) for e in result.errors]
