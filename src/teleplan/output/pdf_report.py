"""PDF generation for telework schedules.

This module creates printable PDF reports showing:
- A day-by-day grid colored by resolved mode
- Conflict markers for each day
- A summary page with period statistics
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from teleplan.domain.models import (
    ConflictSeverity,
    TeleworkDayResolution,
    TeleworkMode,
    TeleworkStats,
    TeleworkWeekView,
)
from teleplan.output.text_report import Schedule, days_of

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    TeleworkMode.REMOTE: (0.4, 0.7, 0.4),  # Green
    TeleworkMode.OFFICE: (0.4, 0.4, 0.8),  # Blue
    "weekend": (0.92, 0.92, 0.92),  # Light gray
    ConflictSeverity.ERROR: (0.85, 0.2, 0.2),  # Red
    ConflictSeverity.WARNING: (0.9, 0.6, 0.2),  # Orange
    ConflictSeverity.INFO: (0.6, 0.6, 0.6),  # Gray
}


def _require_reportlab():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFReportGenerator:
    """Generates printable telework schedule PDFs.

    Example:
        >>> generator = PDFReportGenerator()
        >>> generator.generate(week_view, "week.pdf", stats=stats)
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
        schedule: Schedule,
        output_path: Union[str, Path],
        stats: Optional[TeleworkStats] = None,
        title: Optional[str] = None,
    ) -> None:
        """Generate a PDF report and save it to a file.

        Args:
            schedule: Week view or list of day resolutions.
            output_path: Path to save the PDF.
            stats: Statistics for the summary page; omitted if None.
            title: Page title; derived from the dates if omitted.
        """
        canvas, pagesize = _require_reportlab()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, schedule, stats, title)
        c.save()

    def generate_to_buffer(
        self,
        schedule: Schedule,
        stats: Optional[TeleworkStats] = None,
        title: Optional[str] = None,
    ) -> BytesIO:
        """Generate a PDF report and return it as a bytes buffer."""
        canvas, pagesize = _require_reportlab()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, schedule, stats, title)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(
        self,
        c,
        schedule: Schedule,
        stats: Optional[TeleworkStats],
        title: Optional[str],
    ) -> None:
        days = days_of(schedule)
        if title is None:
            title = self._default_title(schedule, days)
        self._draw_day_pages(c, days, title)
        if stats is not None:
            self._draw_summary_page(c, stats, title)

    def _default_title(self, schedule: Schedule, days: list[TeleworkDayResolution]) -> str:
        if isinstance(schedule, TeleworkWeekView):
            return (
                f"Telework Week - {schedule.user_id} - "
                f"{schedule.week_start.strftime('%B %d, %Y')}"
            )
        if days:
            return (
                f"Telework Schedule - {days[0].user_id} - "
                f"{days[0].date.isoformat()} to {days[-1].date.isoformat()}"
            )
        return "Telework Schedule"

    def _draw_day_pages(self, c, days: list[TeleworkDayResolution], title: str) -> None:
        """Draw one row per day, paginated."""
        row_height = 22
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height))
        total_pages = max(1, (len(days) + rows_per_page - 1) // rows_per_page)

        for page_num in range(total_pages):
            page_days = days[page_num * rows_per_page : (page_num + 1) * rows_per_page]

            c.setFont("Helvetica-Bold", 16)
            c.drawString(self.margin, self.page_height - self.margin - 20, title)
            c.setFont("Helvetica", 10)
            c.drawString(
                self.margin,
                self.page_height - self.margin - 35,
                f"Days: {len(days)}  Remote: {sum(1 for d in days if d.is_remote)}",
            )

            y = self.page_height - self.margin - header_height
            for day in page_days:
                y -= row_height
                self._draw_day_row(c, day, y, row_height - 4)

            self._draw_legend(c, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_day_row(self, c, day: TeleworkDayResolution, y: float, height: float) -> None:
        x = self.margin
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(x, y + 4, day.date.strftime("%a %d %b"))

        color = COLORS["weekend"] if day.is_weekend else COLORS[day.resolved_mode]
        c.setFillColorRGB(*color)
        c.rect(x + 80, y, 90, height, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(x + 85, y + 4, day.resolved_mode.value)

        c.drawString(x + 180, y + 4, f"{day.source.value} ({day.confidence})")

        marker_x = x + 300
        for conflict in day.conflicts:
            c.setFillColorRGB(*COLORS[conflict.severity])
            c.circle(marker_x, y + height / 2, 4, fill=1, stroke=0)
            marker_x += 12

        c.setFillColorRGB(0, 0, 0)
        if day.conflicts:
            c.drawString(marker_x + 4, y + 4, day.conflicts[0].message[:70])

    def _draw_legend(self, c, x: float, y: float) -> None:
        c.setFont("Helvetica", 8)
        entries = [
            (COLORS[TeleworkMode.REMOTE], "Remote"),
            (COLORS[TeleworkMode.OFFICE], "Office"),
            (COLORS["weekend"], "Weekend"),
            (COLORS[ConflictSeverity.ERROR], "Error"),
            (COLORS[ConflictSeverity.WARNING], "Warning"),
        ]
        for color, label in entries:
            c.setFillColorRGB(*color)
            c.rect(x, y, 10, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(x + 14, y + 2, label)
            x += 80

    def _draw_summary_page(self, c, stats: TeleworkStats, title: str) -> None:
        """Draw a summary page with period statistics."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, f"Summary - {title}")

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        c.setFont("Helvetica", 10)
        lines = [
            f"Period: {stats.period_start.isoformat()} to {stats.period_end.isoformat()}",
            f"Working days: {stats.total_work_days}",
            f"Remote days: {stats.remote_days} ({stats.remote_percentage}%)",
            f"Office days: {stats.office_days}",
            f"Average remote days per week: {stats.average_remote_days_per_week:.1f}",
            f"Within limits: {'yes' if stats.within_limits else 'no'}",
            f"Remote days over threshold: {stats.exceed_days}",
        ]
        for line in lines:
            c.drawString(self.margin + 20, y, line)
            y -= 15

        y -= 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Remote Days by Weekday")
        y -= 10
        self._draw_weekday_chart(c, stats, self.margin, y - 120, 400, 110)

        c.showPage()

    def _draw_weekday_chart(
        self,
        c,
        stats: TeleworkStats,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        weekdays = list(stats.by_weekday.items())
        if not weekdays:
            return
        max_count = max(counts["remote"] + counts["office"] for _, counts in weekdays) or 1
        bar_width = width / len(weekdays)

        c.setStrokeColorRGB(0, 0, 0)
        c.line(x, y, x + width, y)

        c.setFont("Helvetica", 8)
        for i, (weekday, counts) in enumerate(weekdays):
            bar_x = x + i * bar_width + 4
            remote_height = height * counts["remote"] / max_count
            office_height = height * counts["office"] / max_count

            c.setFillColorRGB(*COLORS[TeleworkMode.REMOTE])
            c.rect(bar_x, y, bar_width - 8, remote_height, fill=1, stroke=0)
            c.setFillColorRGB(*COLORS[TeleworkMode.OFFICE])
            c.rect(bar_x, y + remote_height, bar_width - 8, office_height, fill=1, stroke=0)

            c.setFillColorRGB(0, 0, 0)
            c.drawCentredString(bar_x + (bar_width - 8) / 2, y - 10, weekday[:3])
