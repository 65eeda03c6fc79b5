"""Command-line interface for the slotfinder availability engine."""

import argparse
import json
import logging
import sys
from datetime import date, datetime, time, timedelta
from typing import Optional

from slotfinder.domain.models import (
    AppointmentType,
    DateOverride,
    ExistingBooking,
    InvalidArgumentError,
    ScheduleConfig,
    TimeRange,
    WeeklyHours,
    parse_timestamp,
)
from slotfinder.output.debug_generator import DebugGenerator
from slotfinder.output.pdf_generator import PDFGenerator
from slotfinder.output.serialization import (
    load_appointment_type,
    load_bookings,
    load_schedule_config,
    slots_to_json,
)
from slotfinder.scheduling.grouping import group_slots_by_date
from slotfinder.scheduling.service import AvailabilityService
from slotfinder.settings import configure_logging
from slotfinder.validation.validator import SlotValidator

logger = logging.getLogger(__name__)


def create_sample_config(
    today: Optional[date] = None,
    max_advance: int = 7,
) -> ScheduleConfig:
    """Create a sample schedule for demos.

    Monday to Friday 09:00-17:00 with a lunch gap on Wednesday, Saturday
    mornings, and the day after tomorrow closed by an override.
    """
    today = today or date.today()
    weekly_hours = [
        WeeklyHours(day_of_week=0, is_enabled=False),
        WeeklyHours(day_of_week=6, is_enabled=True, time_slots=[TimeRange("10:00", "13:00")]),
    ]
    for day in range(1, 6):
        if day == 3:
            ranges = [TimeRange("09:00", "12:00"), TimeRange("13:00", "17:00")]
        else:
            ranges = [TimeRange("09:00", "17:00")]
        weekly_hours.append(WeeklyHours(day_of_week=day, is_enabled=True, time_slots=ranges))

    return ScheduleConfig(
        slot_duration=30,
        buffer_after=0,
        min_notice=60,
        max_advance=max_advance,
        max_capacity=2,
        weekly_hours=weekly_hours,
        date_overrides=[DateOverride.closed(today + timedelta(days=2))],
    )


def create_sample_bookings(today: Optional[date] = None) -> list[ExistingBooking]:
    """Create sample bookings for demos: a few on tomorrow's morning."""
    today = today or date.today()
    tomorrow = today + timedelta(days=1)

    def at(hour: int, minute: int) -> datetime:
        return datetime.combine(tomorrow, time(hour, minute))

    return [
        ExistingBooking(at(10, 0), at(10, 30), "CONFIRMED"),
        ExistingBooking(at(10, 0), at(10, 30), "PENDING"),
        ExistingBooking(at(11, 0), at(11, 30), "CONFIRMED"),
        ExistingBooking(at(14, 0), at(14, 30), "CANCELLED"),
    ]


def run_demo(days: int = 7, output_path: Optional[str] = None) -> None:
    """Run a demo slot generation on the sample schedule."""
    print(f"Generating demo availability for the next {days} days...")

    config = create_sample_config(max_advance=days)
    bookings = create_sample_bookings()
    appointment_type = AppointmentType(id="demo", name="Consultation", duration=30)

    service = AvailabilityService()
    now = datetime.now()
    slots = service.find_slots(config, appointment_type, bookings, now=now)
    stats = service.summarize(slots)

    result = SlotValidator().validate(slots, config, appointment_type.duration, now, bookings)

    print(f"\n  Slots: {stats['total_slots']} on {stats['total_dates']} dates")
    print(f"  Places left: {stats['total_available']}")
    for date_key, day_slots in group_slots_by_date(slots).items():
        print(f"  {date_key}: {len(day_slots)} slots")

    _print_validation(result)

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(slots, output_path, title=appointment_type.name)
        print("  PDF created successfully!")


def run_slots(args: argparse.Namespace) -> int:
    """Compute slots for a schedule file and print or export them."""
    config = load_schedule_config(args.schedule)
    bookings = load_bookings(args.bookings) if args.bookings else []

    if args.type:
        appointment_type = load_appointment_type(args.type)
        duration = args.duration
    elif args.duration is not None:
        appointment_type = AppointmentType(id="cli", name="", duration=args.duration)
        duration = None
    else:
        raise InvalidArgumentError("either --duration or --type is required")

    target_date = date.fromisoformat(args.date) if args.date else None
    now = parse_timestamp(args.now) if args.now else datetime.now()

    service = AvailabilityService()
    slots = service.find_slots(
        config,
        appointment_type,
        bookings,
        target_date=target_date,
        duration=duration,
        now=now,
    )
    logger.info("Found %d slots", len(slots))

    if args.format == "json":
        print(slots_to_json(slots, indent=2))
    elif args.format == "dates":
        print(json.dumps(service.summarize(slots)["dates"]))
    else:
        for date_key, day_slots in group_slots_by_date(slots).items():
            print(date_key)
            for slot in day_slots:
                print(
                    f"  {slot.start.strftime('%H:%M')}-{slot.end.strftime('%H:%M')}"
                    f"  {slot.available}/{slot.total}"
                )
        if not slots:
            print("No available slots.")

    if args.validate:
        effective_duration = service.resolve_duration(appointment_type, duration)
        effective_config = service.effective_config(config, appointment_type)
        start_date = end_date = None
        if target_date is not None:
            start_date, end_date = service.window_for_date(target_date)
        result = SlotValidator().validate(
            slots,
            effective_config,
            effective_duration,
            now,
            bookings,
            start_date=start_date,
            end_date=end_date,
        )
        _print_validation(result, stream=sys.stderr)
        if not result.is_valid:
            return 1

    if args.debug:
        DebugGenerator().generate(slots, args.debug, config)
        logger.info("Debug output written to %s", args.debug)

    if args.output:
        PDFGenerator().generate(slots, args.output, title=appointment_type.name or None)
        logger.info("PDF written to %s", args.output)

    return 0


def _print_validation(result, stream=None) -> None:
    stream = stream or sys.stdout
    if result.is_valid:
        print("\n  Validation: PASSED", file=stream)
    else:
        print(f"\n  Validation: FAILED ({len(result.errors)} errors)", file=stream)
        for error in result.errors[:5]:
            print(f"    - {error}", file=stream)
        if len(result.errors) > 5:
            print(f"    ... and {len(result.errors) - 5} more errors", file=stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="slotfinder - Availability Slot Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                    Run demo on a sample schedule
  %(prog)s demo --days 14 --output slots.pdf       Two weeks, with PDF sheet

  %(prog)s slots --schedule s.json --duration 30   Slots for 30-minute appointments
  %(prog)s slots --schedule s.json --type t.json --bookings b.json --date 2025-01-07
  %(prog)s slots --schedule s.json --duration 45 --format json
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run demo slot generation")
    demo_parser.add_argument(
        "--days", "-d",
        type=int,
        default=7,
        help="Booking horizon in days (default: 7)",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    slots_parser = subparsers.add_parser("slots", help="Compute available slots for a schedule")
    slots_parser.add_argument(
        "--schedule", "-s",
        required=True,
        help="Schedule configuration JSON file",
    )
    slots_parser.add_argument(
        "--bookings", "-b",
        help="Existing bookings JSON file",
    )
    slots_parser.add_argument(
        "--type", "-t",
        help="Appointment type JSON file",
    )
    slots_parser.add_argument(
        "--duration", "-D",
        type=int,
        help="Appointment length in minutes (overrides the type's duration)",
    )
    slots_parser.add_argument(
        "--date",
        help="Only search this date (YYYY-MM-DD)",
    )
    slots_parser.add_argument(
        "--now",
        help="Evaluate as of this ISO timestamp instead of the current time",
    )
    slots_parser.add_argument(
        "--format", "-f",
        default="text",
        choices=["text", "json", "dates"],
        help="Output format (default: text)",
    )
    slots_parser.add_argument(
        "--output", "-o",
        help="Output PDF file path",
    )
    slots_parser.add_argument(
        "--debug",
        help="Write a debug text report to this path",
    )
    slots_parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the generated slots and report problems on stderr",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    if args.command == "demo":
        run_demo(args.days, args.output)
        return 0
    elif args.command == "slots":
        try:
            return run_slots(args)
        except (InvalidArgumentError, OSError, ValueError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
