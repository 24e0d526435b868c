"""Conflict and warning detection for a resolved day.

The detector looks at the raw inputs of a day, not only at the tier that
won, so it can report disagreements that did not decide the outcome (for
example a user request that a team rule overrode).
"""

from datetime import date
from typing import Iterable, Optional

from teleplan.domain.models import (
    ApprovalStatus,
    ConflictSeverity,
    ConflictType,
    OverrideSource,
    ResolutionSource,
    TeamTeleworkRule,
    TeleworkConflict,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy
from teleplan.resolution.hierarchy import (
    TierOutcome,
    applicable_team_rules,
    apply_resolution_hierarchy,
    overrides_on,
)

WEEKLY_LIMIT_SOURCE = "weekly_limit"
SYSTEM_SOURCE = "system"


def profile_missing_conflict(user_id: str) -> TeleworkConflict:
    """Error conflict reported when a user has no telework profile."""
    return TeleworkConflict(
        conflict_type=ConflictType.CONSTRAINT_VIOLATION,
        severity=ConflictSeverity.ERROR,
        message=f"Telework profile not found for user {user_id}",
        source=SYSTEM_SOURCE,
        resolution_suggestions=["Create a telework profile for this user"],
    )


def user_request_on(
    overrides: Iterable[TeleworkOverride],
    d: date,
) -> Optional[TeleworkOverride]:
    """The live (pending or approved) user request on ``d``, if any."""
    for override in overrides_on(overrides, d):
        if override.source != OverrideSource.USER_REQUEST:
            continue
        if override.approval_status == ApprovalStatus.REJECTED:
            continue
        return override
    return None


class ConflictDetector:
    """Detects conflicts and warnings for one user on one day.

    Example:
        >>> detector = ConflictDetector()
        >>> conflicts = detector.detect(day, profile, overrides, team_rules)
        >>> warnings = detector.generate_warnings(day, profile, outcome, conflicts)
    """

    def __init__(self, policy: Optional[TeleworkPolicy] = None):
        self.policy = policy or DefaultTeleworkPolicy()

    def detect(
        self,
        d: date,
        profile: UserTeleworkProfile,
        overrides: Iterable[TeleworkOverride],
        team_rules: Iterable[TeamTeleworkRule],
        outcome: Optional[TierOutcome] = None,
    ) -> list[TeleworkConflict]:
        """Detect conflicts between the rule sources for a day.

        Args:
            d: Target day.
            profile: The user's profile.
            overrides: The user's overrides.
            team_rules: Team rules scoped to the user.
            outcome: Winning tier, if the caller already resolved the day.

        Returns:
            Conflicts in a stable order: team rule, constraint, approval.
        """
        overrides = list(overrides)
        team_rules = list(team_rules)
        if outcome is None:
            outcome = apply_resolution_hierarchy(d, profile, overrides, team_rules, self.policy)

        conflicts = []
        user_request = user_request_on(overrides, d)
        rules = applicable_team_rules(team_rules, profile.user_id, d)

        if user_request is not None and rules:
            rule = rules[0]
            if user_request.mode != rule.required_mode:
                conflicts.append(
                    TeleworkConflict(
                        conflict_type=ConflictType.TEAM_RULE_CONFLICT,
                        severity=(
                            ConflictSeverity.WARNING
                            if user_request.is_pending
                            else ConflictSeverity.INFO
                        ),
                        message=(
                            f"User request ({user_request.mode.value}) conflicts with "
                            f"team rule \"{rule.name}\" ({rule.required_mode.value})"
                        ),
                        source=rule.id,
                        resolution_suggestions=[
                            "The team rule takes priority",
                            "Ask your manager for an exemption",
                        ],
                    )
                )

        if outcome.source == ResolutionSource.OVERRIDE and outcome.mode == TeleworkMode.REMOTE:
            conflicts.append(
                TeleworkConflict(
                    conflict_type=ConflictType.CONSTRAINT_VIOLATION,
                    severity=ConflictSeverity.INFO,
                    message="Check the weekly remote-day limit",
                    source=WEEKLY_LIMIT_SOURCE,
                    resolution_suggestions=["Review the week's schedule"],
                )
            )

        if user_request is not None and user_request.is_pending:
            conflicts.append(
                TeleworkConflict(
                    conflict_type=ConflictType.APPROVAL_REQUIRED,
                    severity=ConflictSeverity.INFO,
                    message="Request awaiting approval",
                    source=user_request.id,
                    resolution_suggestions=["Contact your manager"],
                )
            )

        return conflicts

    def generate_warnings(
        self,
        d: date,
        profile: UserTeleworkProfile,
        outcome: TierOutcome,
        conflicts: list[TeleworkConflict],
    ) -> list[str]:
        """Derive soft warnings from a resolution result."""
        warnings = []

        if outcome.confidence < self.policy.uncertain_below():
            warnings.append("Resolution uncertain: verify the applicable rules")

        if self.policy.is_weekend(d) and outcome.mode == TeleworkMode.REMOTE:
            warnings.append("Weekend remote work detected")

        if (
            outcome.source == ResolutionSource.DEFAULT
            and profile.default_mode == TeleworkMode.REMOTE
        ):
            warnings.append("Default remote mode: verify applicability")

        if conflicts:
            warnings.append(f"{len(conflicts)} conflict(s) detected")

        return warnings
