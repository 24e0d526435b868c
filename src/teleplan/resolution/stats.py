"""Statistics over a resolved period of working days."""

from datetime import date
from typing import Optional

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import (
    ConflictSeverity,
    ResolutionSource,
    TeleworkDayResolution,
    TeleworkStats,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy


def round_half_up(value: float) -> int:
    """Round a non-negative number, halves going up."""
    return int(value + 0.5)


class StatisticsAggregator:
    """Reduces day resolutions into remote-work metrics.

    The aggregator does not load or resolve anything; it is handed the
    output of a period resolution.
    """

    def __init__(self, policy: Optional[TeleworkPolicy] = None):
        self.policy = policy or DefaultTeleworkPolicy()

    def aggregate(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        resolutions: list[TeleworkDayResolution],
    ) -> TeleworkStats:
        """Compute statistics for a user's resolved period.

        Args:
            user_id: User the period belongs to.
            start_date: First day of the period.
            end_date: Last day of the period.
            resolutions: Resolved days, normally weekends excluded.

        Returns:
            TeleworkStats where remote_days + office_days == total_work_days.
        """
        total = len(resolutions)
        remote = sum(1 for r in resolutions if r.is_remote)
        office = total - remote

        by_source = {source: 0 for source in ResolutionSource}
        by_weekday = {day.value: {"remote": 0, "office": 0} for day in Weekday}
        violations = []
        for resolution in resolutions:
            by_source[resolution.source] += 1
            by_weekday[Weekday.from_date(resolution.date).value][resolution.resolved_mode.value] += 1
            violations.extend(resolution.conflicts)

        return TeleworkStats(
            user_id=user_id,
            period_start=start_date,
            period_end=end_date,
            total_work_days=total,
            remote_days=remote,
            office_days=office,
            remote_percentage=round_half_up(100 * remote / total) if total else 0,
            average_remote_days_per_week=remote / (total / 5) if total else 0.0,
            by_source=by_source,
            by_weekday=by_weekday,
            within_limits=not any(c.severity == ConflictSeverity.ERROR for c in violations),
            exceed_days=max(0, remote - self.policy.period_remote_day_threshold()),
            violations=violations,
        )
