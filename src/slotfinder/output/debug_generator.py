"""Debug text output for slot analysis.

This module creates text-based debug output to analyze:
- Which slots are offered on each date
- Remaining capacity per slot
- How evenly availability is spread over the horizon
"""

from collections import defaultdict
from pathlib import Path
from typing import Optional, Union

from slotfinder.domain.models import AvailableSlot, ScheduleConfig
from slotfinder.scheduling.grouping import group_slots_by_date


class DebugGenerator:
    """Generates debug text output for slot analysis.

    Creates human-readable text files showing:
    - Per-date slot listings with remaining capacity
    - Slots-per-date histogram
    - Start time distribution across the horizon
    """

    def generate(
        self,
        slots: list[AvailableSlot],
        output_path: Union[str, Path],
        config: Optional[ScheduleConfig] = None,
    ) -> str:
        """Generate debug text output and save to file.

        Args:
            slots: Generated slots to analyze.
            output_path: Path to save the text file.
            config: Configuration the slots came from (adds a settings header).

        Returns:
            The generated text content.
        """
        content = self._generate_content(slots, config)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(
        self,
        slots: list[AvailableSlot],
        config: Optional[ScheduleConfig] = None,
    ) -> str:
        """Generate debug text output and return as string."""
        return self._generate_content(slots, config)

    def _generate_content(
        self,
        slots: list[AvailableSlot],
        config: Optional[ScheduleConfig],
    ) -> str:
        """Generate the full debug content."""
        lines = []
        grouped = group_slots_by_date(slots)

        # Header
        lines.append("=" * 80)
        lines.append("AVAILABLE SLOTS DEBUG OUTPUT")
        lines.append("=" * 80)
        lines.append("")

        lines.append(f"Total Slots: {len(slots)}")
        lines.append(f"Dates With Slots: {len(grouped)}")
        if slots:
            lines.append(f"First Slot: {slots[0].start.strftime('%Y-%m-%d %H:%M')}")
            lines.append(f"Last Slot: {slots[-1].start.strftime('%Y-%m-%d %H:%M')}")
        if config is not None:
            lines.append(
                f"Step: {config.slot_duration} min, Buffer After: {config.buffer_after} min, "
                f"Notice: {config.min_notice} min, Advance: {config.max_advance} days, "
                f"Capacity: {config.max_capacity}"
            )
        lines.append("")

        # Per-date listing
        lines.append("-" * 80)
        lines.append("SLOTS BY DATE")
        lines.append("-" * 80)

        for date_key, day_slots in grouped.items():
            day_name = day_slots[0].start.strftime("%a")
            lines.append(f"\n{date_key} ({day_name}): {len(day_slots)} slots")
            for slot in day_slots:
                lines.append(
                    f"  {slot.start.strftime('%H:%M')}-{slot.end.strftime('%H:%M')}  "
                    f"{slot.available}/{slot.total} left"
                )

        lines.append("")

        # Slots per date histogram
        lines.append("-" * 80)
        lines.append("SLOTS PER DATE HISTOGRAM")
        lines.append("-" * 80)

        for date_key, day_slots in grouped.items():
            lines.append(f"{date_key}: {'#' * len(day_slots)} ({len(day_slots)})")

        lines.append("")

        # Start time distribution across all dates
        lines.append("-" * 80)
        lines.append("START TIME DISTRIBUTION")
        lines.append("-" * 80)

        by_time = defaultdict(int)
        for slot in slots:
            by_time[slot.start.strftime("%H:%M")] += 1

        for time_str in sorted(by_time):
            count = by_time[time_str]
            lines.append(f"{time_str}: {'#' * count} ({count})")

        lines.append("")
        lines.append("=" * 80)
        lines.append("END OF DEBUG OUTPUT")
        lines.append("=" * 80)

        return "\n".join(lines)
