"""Validation of override requests before they are persisted.

Validation is advisory: error conflicts make a request invalid, but the
caller decides whether to block the write. The only hard stop is a user
without a profile.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from teleplan.domain.calendar import week_bounds
from teleplan.domain.models import (
    ConflictSeverity,
    ConflictType,
    OverrideSource,
    TeamTeleworkRule,
    TeleworkConflict,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy
from teleplan.resolution.conflicts import WEEKLY_LIMIT_SOURCE
from teleplan.resolution.hierarchy import applicable_team_rules, select_override

PROFILE_NOT_FOUND = "profile not found"
CONSECUTIVE_LIMIT_SOURCE = "consecutive_limit"


@dataclass
class ValidationResult:
    """Result of validating an override request.

    Attributes:
        is_valid: False when any error conflict is present.
        can_proceed: False only when the request cannot be evaluated at all.
        reason: Why the request could not be evaluated.
        conflicts: Conflicts found, errors and warnings alike.
        requires_approval: True when a manager must approve the override.
    """

    is_valid: bool = True
    can_proceed: bool = True
    reason: Optional[str] = None
    conflicts: list[TeleworkConflict] = field(default_factory=list)
    requires_approval: bool = False

    @classmethod
    def profile_not_found(cls) -> "ValidationResult":
        return cls(is_valid=False, can_proceed=False, reason=PROFILE_NOT_FOUND)

    def add_conflict(self, conflict: TeleworkConflict) -> None:
        """Add a conflict; error conflicts mark the request invalid."""
        self.conflicts.append(conflict)
        if conflict.severity == ConflictSeverity.ERROR:
            self.is_valid = False

    @property
    def errors(self) -> list[TeleworkConflict]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.ERROR]

    @property
    def warnings(self) -> list[TeleworkConflict]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.WARNING]

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "can_proceed": self.can_proceed,
            "reason": self.reason,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "requires_approval": self.requires_approval,
        }


def approved_remote_dates(overrides: list[TeleworkOverride], exclude: date) -> set[date]:
    """Days whose governing approved override is remote, minus ``exclude``.

    An admin-imposed override governs its day; otherwise the
    highest-priority user request does. Each day counts once.
    """
    days = set()
    for day in {o.date for o in overrides if o.date != exclude}:
        governing = select_override(overrides, day, OverrideSource.ADMIN_IMPOSED) or (
            select_override(overrides, day, OverrideSource.USER_REQUEST)
        )
        if governing is not None and governing.mode == TeleworkMode.REMOTE:
            days.add(day)
    return days


class OverrideRequestValidator:
    """Checks a requested override against the user's limits and team rules.

    The validator works on loaded data only. Callers fetch the profile,
    the overrides covering ``lookup_window`` and the user's team rules.

    Example:
        >>> validator = OverrideRequestValidator()
        >>> start, end = validator.lookup_window(day, profile)
        >>> result = validator.validate(
        ...     "u1", day, TeleworkMode.REMOTE, profile, overrides, team_rules
        ... )
        >>> result.is_valid
        False
    """

    def __init__(self, policy: Optional[TeleworkPolicy] = None):
        self.policy = policy or DefaultTeleworkPolicy()

    def lookup_window(self, d: date, profile: UserTeleworkProfile) -> tuple[date, date]:
        """Date range of overrides needed to validate a request on ``d``.

        Covers the request's week and enough days on either side to see a
        run of remote days longer than the consecutive limit.
        """
        monday, sunday = week_bounds(d)
        span = timedelta(days=2 * profile.constraints.max_consecutive_remote_days + 7)
        return min(monday, d - span), max(sunday, d + span)

    def validate(
        self,
        user_id: str,
        d: date,
        requested_mode: TeleworkMode,
        profile: Optional[UserTeleworkProfile],
        overrides: Iterable[TeleworkOverride],
        team_rules: Iterable[TeamTeleworkRule],
    ) -> ValidationResult:
        """Validate a request for ``requested_mode`` on ``d``.

        Args:
            user_id: Requesting user.
            d: Requested day.
            requested_mode: Requested mode.
            profile: The user's profile, or None if missing.
            overrides: The user's existing overrides around ``d``.
            team_rules: Team rules scoped to the user.

        Returns:
            ValidationResult. A missing profile gives is_valid=False and
            can_proceed=False; otherwise can_proceed is always True.
        """
        if profile is None:
            return ValidationResult.profile_not_found()

        overrides = list(overrides)
        result = ValidationResult()

        if requested_mode == TeleworkMode.REMOTE:
            self._check_weekly_limit(d, profile, overrides, result)
            if self.policy.checks_consecutive_days():
                self._check_consecutive_limit(d, profile, overrides, result)

        for rule in applicable_team_rules(team_rules, user_id, d):
            if rule.required_mode != requested_mode:
                result.add_conflict(
                    TeleworkConflict(
                        conflict_type=ConflictType.TEAM_RULE_CONFLICT,
                        severity=ConflictSeverity.WARNING,
                        message=(
                            f"Team rule \"{rule.name}\" requires "
                            f"{rule.required_mode.value} on {d.isoformat()}"
                        ),
                        source=rule.id,
                        resolution_suggestions=[
                            "Follow the team rule",
                            "Ask your manager for an exemption",
                        ],
                    )
                )

        has_team_conflict = any(
            c.conflict_type == ConflictType.TEAM_RULE_CONFLICT for c in result.conflicts
        )
        result.requires_approval = (
            profile.constraints.requires_approval
            or has_team_conflict
            or not result.is_valid
        )
        return result

    def _check_weekly_limit(
        self,
        d: date,
        profile: UserTeleworkProfile,
        overrides: list[TeleworkOverride],
        result: ValidationResult,
    ) -> None:
        monday, sunday = week_bounds(d)
        # A re-request for the same day must not count itself
        approved_this_week = sum(
            1 for day in approved_remote_dates(overrides, d) if monday <= day <= sunday
        )
        limit = profile.constraints.max_remote_days_per_week
        if approved_this_week >= limit:
            result.add_conflict(
                TeleworkConflict(
                    conflict_type=ConflictType.CONSTRAINT_VIOLATION,
                    severity=ConflictSeverity.ERROR,
                    message=(
                        f"Weekly limit of {limit} remote days reached "
                        f"({approved_this_week} already approved this week)"
                    ),
                    source=WEEKLY_LIMIT_SOURCE,
                    resolution_suggestions=[
                        "Pick another day",
                        "Request a manager exception",
                    ],
                )
            )

    def _check_consecutive_limit(
        self,
        d: date,
        profile: UserTeleworkProfile,
        overrides: list[TeleworkOverride],
        result: ValidationResult,
    ) -> None:
        remote_days = approved_remote_dates(overrides, d)
        limit = profile.constraints.max_consecutive_remote_days

        run = 1 + self._count_run(d, remote_days, -1, limit) + self._count_run(
            d, remote_days, 1, limit
        )
        if run > limit:
            result.add_conflict(
                TeleworkConflict(
                    conflict_type=ConflictType.CONSTRAINT_VIOLATION,
                    severity=ConflictSeverity.WARNING,
                    message=(
                        f"Request makes {run} consecutive remote working days "
                        f"(limit {limit})"
                    ),
                    source=CONSECUTIVE_LIMIT_SOURCE,
                    resolution_suggestions=["Spread remote days across the week"],
                )
            )

    def _count_run(self, d: date, remote_days: set[date], step: int, limit: int) -> int:
        """Count remote working days next to ``d`` in one direction.

        Weekend days are skipped over. Counting stops once the run is
        already past the limit.
        """
        count = 0
        for offset in range(1, 7 * (limit + 2)):
            current = d + timedelta(days=step * offset)
            if self.policy.is_weekend(current):
                continue
            if current not in remote_days or count > limit:
                break
            count += 1
        return count
