"""Plain-text telework schedule reports.

This module renders a week view or a resolved period as text:
- One line per day with mode, source and confidence
- Conflicts and warnings under the day they belong to
- An optional statistics block
"""

from pathlib import Path
from typing import Optional, Union

from teleplan.domain.models import (
    TeleworkDayResolution,
    TeleworkStats,
    TeleworkWeekView,
)

Schedule = Union[TeleworkWeekView, list[TeleworkDayResolution]]

MODE_MARKS = {"remote": "[R]", "office": "[O]"}


def days_of(schedule: Schedule) -> list[TeleworkDayResolution]:
    if isinstance(schedule, TeleworkWeekView):
        return schedule.days
    return list(schedule)


class TextReportGenerator:
    """Generates human-readable schedule reports.

    Example:
        >>> generator = TextReportGenerator()
        >>> print(generator.generate_to_string(week_view, stats))
    """

    def __init__(self, show_warnings: bool = True):
        self.show_warnings = show_warnings

    def generate(
        self,
        schedule: Schedule,
        output_path: Union[str, Path],
        stats: Optional[TeleworkStats] = None,
        title: Optional[str] = None,
    ) -> str:
        """Generate a report and save it to a file.

        Args:
            schedule: Week view or list of day resolutions.
            output_path: Path to save the text file.
            stats: Optional statistics appended after the days.
            title: Report title; derived from the dates if omitted.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(schedule, stats, title)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        schedule: Schedule,
        stats: Optional[TeleworkStats] = None,
        title: Optional[str] = None,
    ) -> str:
        """Generate a report and return it as a string."""
        days = days_of(schedule)
        lines = []

        lines.append("=" * 72)
        lines.append(title or self._default_title(schedule, days))
        lines.append("=" * 72)
        lines.append("")

        if not days:
            lines.append("No days to report.")
        else:
            lines.append(f"{'Date':<12} {'Day':<10} {'Mode':<10} {'Source':<14} {'Conf':>4}")
            lines.append("-" * 72)
            for day in days:
                lines.extend(self._day_lines(day))

        if isinstance(schedule, TeleworkWeekView):
            weekly = schedule.weekly_stats
            lines.append("")
            lines.append(
                f"Week: {weekly.remote_days} remote, {weekly.office_days} office, "
                f"{weekly.conflicts} conflict(s), {weekly.pending_approvals} pending"
            )

        if stats is not None:
            lines.append("")
            lines.extend(self._stats_lines(stats))

        lines.append("")
        return "\n".join(lines)

    def _default_title(self, schedule: Schedule, days: list[TeleworkDayResolution]) -> str:
        if isinstance(schedule, TeleworkWeekView):
            return (
                f"TELEWORK WEEK - {schedule.user_id} - "
                f"{schedule.week_start.isoformat()} to {schedule.week_end.isoformat()}"
            )
        if days:
            return (
                f"TELEWORK PERIOD - {days[0].user_id} - "
                f"{days[0].date.isoformat()} to {days[-1].date.isoformat()}"
            )
        return "TELEWORK PERIOD"

    def _day_lines(self, day: TeleworkDayResolution) -> list[str]:
        mode = f"{MODE_MARKS[day.resolved_mode.value]} {day.resolved_mode.value}"
        day_name = day.date.strftime("%A")
        if day.is_weekend:
            day_name += "*"
        lines = [
            f"{day.date.isoformat():<12} {day_name:<10} {mode:<10} "
            f"{day.source.value:<14} {day.confidence:>4}"
        ]
        for conflict in day.conflicts:
            lines.append(f"{'':<12} ! {conflict}")
        if self.show_warnings:
            for warning in day.warnings:
                lines.append(f"{'':<12} ~ {warning}")
        return lines

    def _stats_lines(self, stats: TeleworkStats) -> list[str]:
        lines = []
        lines.append("-" * 72)
        lines.append(
            f"STATISTICS {stats.period_start.isoformat()} to {stats.period_end.isoformat()}"
        )
        lines.append("-" * 72)
        lines.append(f"Working days:        {stats.total_work_days}")
        lines.append(f"Remote days:         {stats.remote_days} ({stats.remote_percentage}%)")
        lines.append(f"Office days:         {stats.office_days}")
        lines.append(f"Remote days / week:  {stats.average_remote_days_per_week:.1f}")
        lines.append(f"Within limits:       {'yes' if stats.within_limits else 'no'}")
        lines.append(f"Days over threshold: {stats.exceed_days}")

        lines.append("")
        lines.append("By source:")
        for source, count in stats.by_source.items():
            if count:
                bar = "#" * count
                lines.append(f"  {source.value:<14} {bar} ({count})")

        lines.append("")
        lines.append("By weekday:")
        for weekday, counts in stats.by_weekday.items():
            if counts["remote"] or counts["office"]:
                lines.append(
                    f"  {weekday:<10} remote {counts['remote']:>3}  office {counts['office']:>3}"
                )
        return lines
