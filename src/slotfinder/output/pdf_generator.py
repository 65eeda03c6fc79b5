"""PDF generation for availability output.

This module creates printable availability sheets showing:
- One timeline row per date with every offered slot
- Slot cells shaded by remaining capacity
- A legend and page numbering
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from slotfinder.domain.models import AvailableSlot
from slotfinder.scheduling.grouping import group_slots_by_date

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "open": (0.4, 0.7, 0.4),  # Green, all places left
    "partial": (0.9, 0.7, 0.3),  # Orange, some places taken
    "last": (0.85, 0.45, 0.45),  # Red, one place left of several
    "background": (0.95, 0.95, 0.95),  # Light gray
}


def slot_color(slot: AvailableSlot) -> tuple[float, float, float]:
    """Pick the fill color for a slot from its remaining capacity."""
    if slot.available >= slot.total:
        return COLORS["open"]
    if slot.available == 1:
        return COLORS["last"]
    return COLORS["partial"]


def assign_lanes(day_slots: list[AvailableSlot]) -> list[int]:
    """Stack overlapping slots into lanes, first free lane wins.

    Slots overlap whenever the appointment is longer than the step
    between starts (e.g. 45-minute slots on a 15-minute grid).

    Returns:
        Lane index for each slot, in input order.
    """
    lane_ends = []
    indices = []
    for slot in day_slots:
        for lane_index, lane_end in enumerate(lane_ends):
            if lane_end <= slot.start:
                lane_ends[lane_index] = slot.end
                break
        else:
            lane_index = len(lane_ends)
            lane_ends.append(slot.end)
        indices.append(lane_index)
    return indices


class PDFGenerator:
    """Generates printable PDF availability sheets.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(slots, "availability.pdf", title="Consultation")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        slots: list[AvailableSlot],
        output_path: Union[str, Path],
        title: Optional[str] = None,
    ) -> None:
        """Generate PDF availability sheet and save to file.

        Args:
            slots: Generated slots to render.
            output_path: Path to save the PDF.
            title: Optional title (e.g. the appointment type name).
        """
        canvas = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw_pages(c, slots, title)
        c.save()

    def generate_to_buffer(
        self,
        slots: list[AvailableSlot],
        title: Optional[str] = None,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        canvas = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw_pages(c, slots, title)
        c.save()
        buffer.seek(0)
        return buffer

    def _canvas_module(self):
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _hour_bounds(self, slots: list[AvailableSlot]) -> tuple[int, int]:
        """Whole-hour span covering every slot (defaults to 9-17)."""
        if not slots:
            return 9, 17
        first = min(s.start.hour for s in slots)
        last = 0
        for slot in slots:
            end_hour = slot.end.hour + (1 if slot.end.minute else 0)
            if slot.end.date() > slot.start.date():
                end_hour = 24
            last = max(last, end_hour)
        return first, max(last, first + 1)

    def _draw_pages(
        self,
        c,
        slots: list[AvailableSlot],
        title: Optional[str],
    ) -> None:
        """Draw timeline pages, one row per date."""
        grouped = group_slots_by_date(slots)
        date_keys = sorted(grouped)
        first_hour, last_hour = self._hour_bounds(slots)

        row_height = 28
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height))

        timeline_left = self.margin + 90  # Space for dates
        timeline_right = self.page_width - self.margin - 20
        timeline_width = timeline_right - timeline_left

        total_pages = max(1, (len(date_keys) + rows_per_page - 1) // rows_per_page)

        for page_index in range(total_pages):
            page_dates = date_keys[page_index * rows_per_page : (page_index + 1) * rows_per_page]

            self._draw_header(c, slots, len(date_keys), title)
            self._draw_time_axis(
                c,
                first_hour,
                last_hour,
                timeline_left,
                self.page_height - self.margin - header_height - 20,
                timeline_width,
            )

            y = self.page_height - self.margin - header_height - 30
            if not page_dates:
                c.setFont("Helvetica", 11)
                c.drawString(self.margin, y - row_height, "No available slots.")

            for date_key in page_dates:
                y -= row_height
                self._draw_date_row(
                    c,
                    grouped[date_key],
                    first_hour,
                    last_hour,
                    timeline_left,
                    timeline_width,
                    y,
                    row_height - 6,
                )

            self._draw_legend(c, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_index + 1} of {total_pages}",
            )

            c.showPage()

    def _draw_header(
        self,
        c,
        slots: list[AvailableSlot],
        date_count: int,
        title: Optional[str],
    ) -> None:
        """Draw page header with title and horizon."""
        c.setFont("Helvetica-Bold", 16)
        heading = "Available Slots"
        if title:
            heading = f"{heading} - {title}"
        c.drawString(self.margin, self.page_height - self.margin - 20, heading)

        c.setFont("Helvetica", 10)
        if slots:
            span = (
                f"{slots[0].start.strftime('%A, %B %d, %Y')} to "
                f"{slots[-1].start.strftime('%A, %B %d, %Y')}"
            )
        else:
            span = "No dates"
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"{span}  |  {len(slots)} slots on {date_count} dates",
        )

    def _draw_time_axis(
        self,
        c,
        first_hour: int,
        last_hour: int,
        x: float,
        y: float,
        width: float,
    ) -> None:
        """Draw time axis with hour markers."""
        hours = last_hour - first_hour
        hour_width = width / hours

        c.setFont("Helvetica", 8)
        c.setStrokeColorRGB(0.7, 0.7, 0.7)

        for i in range(hours + 1):
            hour_x = x + i * hour_width
            c.line(hour_x, y, hour_x, y - 5)
            c.drawCentredString(hour_x, y + 5, f"{(first_hour + i) % 24:02d}:00")

    def _draw_date_row(
        self,
        c,
        day_slots: list[AvailableSlot],
        first_hour: int,
        last_hour: int,
        timeline_x: float,
        timeline_width: float,
        y: float,
        height: float,
    ) -> None:
        """Draw a single date's row of slots."""
        span_minutes = (last_hour - first_hour) * 60
        minute_width = timeline_width / span_minutes
        day = day_slots[0].start

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(self.margin, y + height / 2, day.strftime("%a %b %d"))
        c.setFont("Helvetica", 7)
        c.drawString(self.margin, y + height / 2 - 9, f"{len(day_slots)} slots")

        c.setFillColorRGB(*COLORS["background"])
        c.rect(timeline_x, y, timeline_width, height, fill=1, stroke=0)

        lane_indices = assign_lanes(day_slots)
        lane_height = height / (max(lane_indices, default=0) + 1)

        c.setStrokeColorRGB(0.3, 0.3, 0.3)
        c.setLineWidth(0.5)
        for slot, lane_index in zip(day_slots, lane_indices):
            start_offset = (slot.start.hour - first_hour) * 60 + slot.start.minute
            bx = timeline_x + start_offset * minute_width
            bw = slot.duration_minutes * minute_width
            by = y + height - (lane_index + 1) * lane_height

            c.setFillColorRGB(*slot_color(slot))
            c.rect(bx, by, bw, lane_height, fill=1, stroke=1)

            if slot.total > 1 and bw > 14:
                c.setFillColorRGB(0, 0, 0)
                c.setFont("Helvetica", 6)
                c.drawCentredString(bx + bw / 2, by + lane_height / 2 - 2, str(slot.available))

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        items = [
            ("open", "All places free"),
            ("partial", "Partly booked"),
            ("last", "Last place"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45

        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 90
