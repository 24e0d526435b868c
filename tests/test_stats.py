"""Tests for the statistics aggregator."""

from datetime import date, timedelta

import pytest

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import (
    ConflictSeverity,
    ConflictType,
    ResolutionSource,
    TeleworkConflict,
    TeleworkDayResolution,
    TeleworkMode,
    WeekdayPattern,
)
from teleplan.domain.policies import DefaultTeleworkPolicy
from teleplan.resolution.resolver import TeleworkResolver
from teleplan.resolution.stats import StatisticsAggregator, round_half_up

MONDAY = date(2024, 1, 15)


def make_days(modes, source=ResolutionSource.PATTERN, start=MONDAY, conflicts=()):
    """Build consecutive resolutions with the given modes."""
    return [
        TeleworkDayResolution(
            user_id="U001",
            date=start + timedelta(days=i),
            resolved_mode=mode,
            source=source,
            confidence=80,
            conflicts=list(conflicts),
        )
        for i, mode in enumerate(modes)
    ]


R = TeleworkMode.REMOTE
O = TeleworkMode.OFFICE


@pytest.fixture
def aggregator():
    return StatisticsAggregator()


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, 0), (12.5, 13), (33.33, 33), (66.67, 67), (49.5, 50), (100.0, 100)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestAggregate:
    """Tests for StatisticsAggregator.aggregate."""

    def test_counts_are_conserved(self, aggregator):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, O, O, R, O]))

        assert stats.total_work_days == 5
        assert stats.remote_days == 2
        assert stats.office_days == 3
        assert stats.remote_days + stats.office_days == stats.total_work_days

    @pytest.mark.parametrize(
        "modes,expected",
        [
            ([R, O, O], 33),
            ([R, R, O], 67),
            ([R] + [O] * 7, 13),
            ([R, R, R, R], 100),
        ],
    )
    def test_remote_percentage(self, aggregator, modes, expected):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days(modes))
        assert stats.remote_percentage == expected

    def test_empty_period(self, aggregator):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, [])

        assert stats.total_work_days == 0
        assert stats.remote_percentage == 0
        assert stats.average_remote_days_per_week == 0.0
        assert stats.within_limits is True

    def test_average_per_five_days(self, aggregator):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, R, O, O, O] * 2))
        assert stats.average_remote_days_per_week == pytest.approx(2.0)

    def test_by_source(self, aggregator):
        days = make_days([R, O]) + make_days(
            [O], source=ResolutionSource.TEAM_RULE, start=MONDAY + timedelta(days=2)
        )
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, days)

        assert stats.by_source[ResolutionSource.PATTERN] == 2
        assert stats.by_source[ResolutionSource.TEAM_RULE] == 1
        assert stats.by_source[ResolutionSource.ADMIN_IMPOSED] == 0
        assert sum(stats.by_source.values()) == stats.total_work_days

    def test_by_weekday(self, aggregator):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, O, R]))

        assert stats.by_weekday["monday"] == {"remote": 1, "office": 0}
        assert stats.by_weekday["tuesday"] == {"remote": 0, "office": 1}
        assert stats.by_weekday["wednesday"] == {"remote": 1, "office": 0}
        assert stats.by_weekday["friday"] == {"remote": 0, "office": 0}

    def test_error_conflict_breaks_limits(self, aggregator):
        error = TeleworkConflict(
            ConflictType.CONSTRAINT_VIOLATION, ConflictSeverity.ERROR, "missing", "system"
        )
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([O, O], conflicts=[error]))

        assert stats.within_limits is False
        assert len(stats.violations) == 2

    def test_non_error_conflicts_keep_limits(self, aggregator):
        info = TeleworkConflict(
            ConflictType.APPROVAL_REQUIRED, ConflictSeverity.INFO, "pending", "x"
        )
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R], conflicts=[info]))

        assert stats.within_limits is True
        assert stats.violations == [info]

    def test_exceed_days(self):
        aggregator = StatisticsAggregator(DefaultTeleworkPolicy(remote_day_threshold=1))
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, R, R, O]))
        assert stats.exceed_days == 2

    def test_exceed_days_never_negative(self, aggregator):
        stats = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, O]))
        assert stats.exceed_days == 0

    def test_to_dict_sections(self, aggregator):
        data = aggregator.aggregate("U001", MONDAY, MONDAY, make_days([R, O])).to_dict()

        assert set(data) == {"user_id", "period", "summary", "breakdown", "compliance"}
        assert data["summary"]["remote_percentage"] == 50
        assert data["breakdown"]["by_source"]["pattern"] == 2


class TestCalculateStats:
    """Tests for TeleworkResolver.calculate_stats over a store."""

    @pytest.mark.asyncio
    async def test_two_weeks_of_wednesdays(self, store, make_profile):
        store.add_profile(make_profile(pattern={Weekday.WEDNESDAY: WeekdayPattern.REMOTE}))
        resolver = TeleworkResolver(store, store, store)

        stats = await resolver.calculate_stats("U001", MONDAY, date(2024, 1, 28))

        assert stats.total_work_days == 10
        assert stats.remote_days == 2
        assert stats.office_days == 8
        assert stats.remote_percentage == 20
        assert stats.average_remote_days_per_week == pytest.approx(1.0)
        assert stats.by_weekday["wednesday"] == {"remote": 2, "office": 0}
        assert stats.by_weekday["saturday"] == {"remote": 0, "office": 0}
        assert stats.by_source[ResolutionSource.PATTERN] == 2
        assert stats.by_source[ResolutionSource.DEFAULT] == 8
        assert stats.within_limits is True

    @pytest.mark.asyncio
    async def test_weekends_excluded_even_if_policy_includes_them(self, store, make_profile):
        store.add_profile(make_profile())
        resolver = TeleworkResolver(
            store, store, store, DefaultTeleworkPolicy(include_weekends=True)
        )

        stats = await resolver.calculate_stats("U001", MONDAY, date(2024, 1, 21))
        assert stats.total_work_days == 5

    @pytest.mark.asyncio
    async def test_missing_profile_is_out_of_limits(self, store):
        resolver = TeleworkResolver(store, store, store)

        stats = await resolver.calculate_stats("U404", MONDAY, date(2024, 1, 19))

        assert stats.total_work_days == 5
        assert stats.office_days == 5
        assert stats.within_limits is False
        assert len(stats.violations) == 5
