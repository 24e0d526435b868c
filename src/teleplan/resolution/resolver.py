"""Day, week and period resolution over the external stores.

This module provides the TeleworkResolver class, which loads a user's
profile, overrides and team rules, then runs the pure resolution
hierarchy and conflict detector for each requested day.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Optional

from teleplan.domain.calendar import Weekday, date_range, week_start
from teleplan.domain.models import (
    AppliedRules,
    ApprovalStatus,
    PatternChangePreview,
    ResolutionSource,
    TeamTeleworkRule,
    TeleworkDayResolution,
    TeleworkMode,
    TeleworkOverride,
    TeleworkStats,
    TeleworkWeekView,
    UserTeleworkProfile,
    WeekdayPattern,
    WeeklyStats,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy
from teleplan.exceptions import ProfileNotFoundError, StoreError
from teleplan.resolution.conflicts import ConflictDetector, profile_missing_conflict
from teleplan.resolution.hierarchy import (
    BASELINE_TIERS,
    applicable_team_rules,
    apply_resolution_hierarchy,
    overrides_on,
)
from teleplan.resolution.stats import StatisticsAggregator
from teleplan.stores.base import OverrideStore, ProfileStore, TeamRuleStore

logger = logging.getLogger(__name__)

MISSING_PROFILE_WARNING = "No telework profile: office assumed"


class TeleworkResolver:
    """Resolves the effective work mode for users over days and periods.

    Every call reloads its inputs; resolutions are views and are never
    stored or cached.

    Example:
        >>> store = InMemoryTeleworkStore()
        >>> resolver = TeleworkResolver(store, store, store)
        >>> day = await resolver.resolve_day("u1", date(2024, 1, 17))
        >>> day.resolved_mode, day.source, day.confidence
        (<TeleworkMode.REMOTE: 'remote'>, <ResolutionSource.PATTERN: 'pattern'>, 80)
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        override_store: OverrideStore,
        team_rule_store: TeamRuleStore,
        policy: Optional[TeleworkPolicy] = None,
    ):
        """Initialize the resolver.

        Args:
            profile_store: Source of user profiles.
            override_store: Source of date-specific overrides.
            team_rule_store: Source of team rules.
            policy: Confidence scores and thresholds.
        """
        self.profile_store = profile_store
        self.override_store = override_store
        self.team_rule_store = team_rule_store
        self.policy = policy or DefaultTeleworkPolicy()
        self.detector = ConflictDetector(self.policy)
        self.aggregator = StatisticsAggregator(self.policy)

    async def load_inputs(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> tuple[Optional[UserTeleworkProfile], list[TeleworkOverride], list[TeamTeleworkRule]]:
        """Fetch the profile, overrides and team rules for a date range.

        The three reads are independent and run concurrently.

        Raises:
            StoreError: If any store read fails.
        """
        try:
            profile, overrides, team_rules = await asyncio.gather(
                self.profile_store.get_profile(user_id),
                self.override_store.get_overrides(user_id, start_date, end_date),
                self.team_rule_store.get_team_rules_for_user(user_id),
            )
        except StoreError:
            logger.error(
                "Failed to load telework data for %s (%s to %s)",
                user_id,
                start_date,
                end_date,
                exc_info=True,
            )
            raise
        return profile, list(overrides), list(team_rules)

    def resolve_loaded_day(
        self,
        user_id: str,
        d: date,
        profile: Optional[UserTeleworkProfile],
        overrides: list[TeleworkOverride],
        team_rules: list[TeamTeleworkRule],
    ) -> TeleworkDayResolution:
        """Resolve one day from already-loaded inputs.

        A missing profile does not raise: the day resolves to office with
        confidence 0 and an error conflict, so calendars still render.
        """
        is_weekend = self.policy.is_weekend(d)

        if profile is None:
            logger.warning("No telework profile for %s, resolving %s to office", user_id, d)
            return TeleworkDayResolution(
                user_id=user_id,
                date=d,
                resolved_mode=TeleworkMode.OFFICE,
                source=ResolutionSource.DEFAULT,
                confidence=0,
                conflicts=[profile_missing_conflict(user_id)],
                warnings=[MISSING_PROFILE_WARNING],
                is_weekend=is_weekend,
            )

        outcome = apply_resolution_hierarchy(d, profile, overrides, team_rules, self.policy)
        conflicts = self.detector.detect(d, profile, overrides, team_rules, outcome)
        warnings = self.detector.generate_warnings(d, profile, outcome, conflicts)

        applied_override = outcome.override
        if applied_override is None:
            live = [
                o for o in overrides_on(overrides, d)
                if o.approval_status != ApprovalStatus.REJECTED
            ]
            applied_override = live[0] if live else None

        return TeleworkDayResolution(
            user_id=user_id,
            date=d,
            resolved_mode=outcome.mode,
            source=outcome.source,
            confidence=outcome.confidence,
            applied_rules=AppliedRules(
                profile=profile,
                override=applied_override,
                team_rules=applicable_team_rules(team_rules, user_id, d),
            ),
            conflicts=conflicts,
            warnings=warnings,
            is_weekend=is_weekend,
        )

    async def resolve_day(self, user_id: str, d: date) -> TeleworkDayResolution:
        """Resolve the effective mode for one user on one day."""
        profile, overrides, team_rules = await self.load_inputs(user_id, d, d)
        return self.resolve_loaded_day(user_id, d, profile, overrides, team_rules)

    async def resolve_week(self, user_id: str, start: date) -> TeleworkWeekView:
        """Resolve the Monday-to-Sunday week containing ``start``.

        Weekend days are resolved and flagged, not skipped.
        """
        monday = week_start(start)
        sunday = monday + timedelta(days=6)
        profile, overrides, team_rules = await self.load_inputs(user_id, monday, sunday)

        days = [
            self.resolve_loaded_day(user_id, d, profile, overrides, team_rules)
            for d in date_range(monday, sunday)
        ]
        return TeleworkWeekView(
            user_id=user_id,
            week_start=monday,
            week_end=sunday,
            days=days,
            weekly_stats=WeeklyStats.calculate(days),
        )

    async def resolve_period(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        include_weekends: Optional[bool] = None,
    ) -> list[TeleworkDayResolution]:
        """Resolve every day in [start_date, end_date].

        Args:
            user_id: User to resolve.
            start_date: First day (inclusive).
            end_date: Last day (inclusive).
            include_weekends: Keep weekend days. Defaults to the policy,
                which excludes them.

        Raises:
            ValueError: If end_date is before start_date.
        """
        if end_date < start_date:
            raise ValueError(f"Period end {end_date} is before its start {start_date}")
        profile, overrides, team_rules = await self.load_inputs(user_id, start_date, end_date)
        return self._resolve_range(
            user_id, start_date, end_date, profile, overrides, team_rules, include_weekends
        )

    def _resolve_range(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        profile: Optional[UserTeleworkProfile],
        overrides: list[TeleworkOverride],
        team_rules: list[TeamTeleworkRule],
        include_weekends: Optional[bool],
    ) -> list[TeleworkDayResolution]:
        if include_weekends is None:
            include_weekends = self.policy.include_weekends_in_period()
        return [
            self.resolve_loaded_day(user_id, d, profile, overrides, team_rules)
            for d in date_range(start_date, end_date)
            if include_weekends or not self.policy.is_weekend(d)
        ]

    async def calculate_stats(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> TeleworkStats:
        """Resolve a period of working days and reduce it to statistics."""
        resolutions = await self.resolve_period(
            user_id, start_date, end_date, include_weekends=False
        )
        return self.aggregator.aggregate(user_id, start_date, end_date, resolutions)

    async def preview_pattern_change(
        self,
        user_id: str,
        new_pattern: dict[Weekday, WeekdayPattern],
        start_date: date,
        end_date: date,
    ) -> PatternChangePreview:
        """Compare the current period with a baseline built from another pattern.

        The projection only uses the weekly pattern and the default mode.
        Overrides and team rules are deliberately left out: it shows what
        the user's baseline would be, not what would actually happen.
        Nothing is written.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            ValueError: If the new pattern misses a weekday.
        """
        profile, overrides, team_rules = await self.load_inputs(user_id, start_date, end_date)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        hypothetical = profile.with_pattern(new_pattern)

        current = self._resolve_range(
            user_id, start_date, end_date, profile, overrides, team_rules, None
        )
        preview = []
        for day in current:
            outcome = apply_resolution_hierarchy(
                day.date, hypothetical, policy=self.policy, tiers=BASELINE_TIERS
            )
            preview.append(
                TeleworkDayResolution(
                    user_id=user_id,
                    date=day.date,
                    resolved_mode=outcome.mode,
                    source=outcome.source,
                    confidence=outcome.confidence,
                    applied_rules=AppliedRules(profile=hypothetical),
                    warnings=self.detector.generate_warnings(day.date, hypothetical, outcome, []),
                    is_weekend=day.is_weekend,
                )
            )

        changes = sum(
            1 for before, after in zip(current, preview)
            if before.resolved_mode != after.resolved_mode
        )
        return PatternChangePreview(current=current, preview=preview, changes=changes)
