"""Resolution hierarchy for a single day.

The effective mode for a day comes from the first tier that matches, in
this order:

1. Approved admin-imposed override
2. Highest-priority team rule binding the user on that day
3. Approved user-requested override
4. Weekly pattern entry (unless it is ``default``)
5. Profile default mode

Each tier is a plain function taking the loaded inputs and returning a
``TierOutcome`` or None. Nothing here touches a store.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from teleplan.domain.models import (
    ApprovalStatus,
    OverrideSource,
    ResolutionSource,
    TeamTeleworkRule,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy


@dataclass(frozen=True)
class TierOutcome:
    """The winning tier for a day.

    Attributes:
        mode: Resolved mode.
        source: Tier that produced it.
        confidence: Policy score for that tier.
        override: Winning override, for the override tiers.
        team_rule: Winning team rule, for the team rule tier.
    """

    mode: TeleworkMode
    source: ResolutionSource
    confidence: int
    override: Optional[TeleworkOverride] = None
    team_rule: Optional[TeamTeleworkRule] = None


def overrides_on(overrides: Iterable[TeleworkOverride], d: date) -> list[TeleworkOverride]:
    """Overrides dated on ``d``, highest priority first (ties by id)."""
    return sorted(
        (o for o in overrides if o.date == d),
        key=lambda o: (-o.priority, o.id),
    )


def select_override(
    overrides: Iterable[TeleworkOverride],
    d: date,
    source: OverrideSource,
    status: Optional[ApprovalStatus] = ApprovalStatus.APPROVED,
) -> Optional[TeleworkOverride]:
    """Pick the highest-priority override on ``d`` from one source.

    Args:
        overrides: Candidate overrides (any dates).
        d: Target day.
        source: Override source to match.
        status: Approval status to match, or None for any status.
    """
    for override in overrides_on(overrides, d):
        if override.source != source:
            continue
        if status is not None and override.approval_status != status:
            continue
        return override
    return None


def applicable_team_rules(
    team_rules: Iterable[TeamTeleworkRule],
    user_id: str,
    d: date,
) -> list[TeamTeleworkRule]:
    """Team rules binding ``user_id`` on ``d``, highest priority first (ties by id)."""
    return sorted(
        (rule for rule in team_rules if rule.applies_to(user_id, d)),
        key=lambda rule: (-rule.priority, rule.id),
    )


TierCheck = Callable[
    [date, UserTeleworkProfile, list[TeleworkOverride], list[TeamTeleworkRule], TeleworkPolicy],
    Optional[TierOutcome],
]


def _admin_override_tier(d, profile, overrides, team_rules, policy) -> Optional[TierOutcome]:
    override = select_override(overrides, d, OverrideSource.ADMIN_IMPOSED)
    if override is None:
        return None
    return TierOutcome(
        mode=override.mode,
        source=ResolutionSource.ADMIN_IMPOSED,
        confidence=policy.confidence_for(ResolutionSource.ADMIN_IMPOSED),
        override=override,
    )


def _team_rule_tier(d, profile, overrides, team_rules, policy) -> Optional[TierOutcome]:
    rules = applicable_team_rules(team_rules, profile.user_id, d)
    if not rules:
        return None
    rule = rules[0]
    return TierOutcome(
        mode=rule.required_mode,
        source=ResolutionSource.TEAM_RULE,
        confidence=policy.confidence_for(ResolutionSource.TEAM_RULE),
        team_rule=rule,
    )


def _user_override_tier(d, profile, overrides, team_rules, policy) -> Optional[TierOutcome]:
    override = select_override(overrides, d, OverrideSource.USER_REQUEST)
    if override is None:
        return None
    return TierOutcome(
        mode=override.mode,
        source=ResolutionSource.OVERRIDE,
        confidence=policy.confidence_for(ResolutionSource.OVERRIDE),
        override=override,
    )


def _pattern_tier(d, profile, overrides, team_rules, policy) -> Optional[TierOutcome]:
    mode = profile.pattern_for(d).to_mode()
    if mode is None:
        return None
    return TierOutcome(
        mode=mode,
        source=ResolutionSource.PATTERN,
        confidence=policy.confidence_for(ResolutionSource.PATTERN),
    )


def _default_tier(d, profile, overrides, team_rules, policy) -> Optional[TierOutcome]:
    return TierOutcome(
        mode=profile.default_mode,
        source=ResolutionSource.DEFAULT,
        confidence=policy.confidence_for(ResolutionSource.DEFAULT),
    )


RESOLUTION_TIERS: tuple[TierCheck, ...] = (
    _admin_override_tier,
    _team_rule_tier,
    _user_override_tier,
    _pattern_tier,
    _default_tier,
)

# Pattern changes are previewed against the profile alone
BASELINE_TIERS: tuple[TierCheck, ...] = (
    _pattern_tier,
    _default_tier,
)


def apply_resolution_hierarchy(
    d: date,
    profile: UserTeleworkProfile,
    overrides: Iterable[TeleworkOverride] = (),
    team_rules: Iterable[TeamTeleworkRule] = (),
    policy: Optional[TeleworkPolicy] = None,
    tiers: tuple[TierCheck, ...] = RESOLUTION_TIERS,
) -> TierOutcome:
    """Resolve the mode for one day; the first matching tier wins.

    Args:
        d: Target day.
        profile: The user's loaded profile.
        overrides: The user's overrides (other dates are ignored).
        team_rules: Team rules scoped to the user (inactive, non-matching
            and exempting rules are ignored).
        policy: Confidence scores; defaults to ``DefaultTeleworkPolicy``.
        tiers: Tier chain to evaluate. It must end with the default tier.

    Returns:
        The winning TierOutcome.
    """
    policy = policy or DefaultTeleworkPolicy()
    overrides = list(overrides)
    team_rules = list(team_rules)
    return next(
        outcome
        for outcome in (tier(d, profile, overrides, team_rules, policy) for tier in tiers)
        if outcome is not None
    )
