"""Override request workflow and profile lifecycle.

This module provides the TeleworkService class: the write path of the
engine. It validates override requests before persisting them, moves
overrides through approval, and manages profiles and team rules.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Optional

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import (
    ApprovalStatus,
    OverrideSource,
    TeamTeleworkRule,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
    WeekdayPattern,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy
from teleplan.exceptions import (
    OverrideNotFoundError,
    OverrideRejectedError,
    ProfileNotFoundError,
    StoreError,
    TeamRuleNotFoundError,
)
from teleplan.resolution.resolver import TeleworkResolver
from teleplan.stores.base import OverrideStore, ProfileStore, TeamRuleStore
from teleplan.validation.validator import OverrideRequestValidator, ValidationResult

logger = logging.getLogger(__name__)

# Profile fields a partial update may touch
UPDATABLE_PROFILE_FIELDS = frozenset(
    {"display_name", "default_mode", "weekly_pattern", "constraints", "is_active"}
)


@contextmanager
def _logged_store_errors(action: str, subject: str):
    """Log a store failure with its traceback and re-raise it."""
    try:
        yield
    except StoreError:
        logger.error("Store failure while %s %s", action, subject, exc_info=True)
        raise


@dataclass
class OverrideRequestResult:
    """Outcome of an override request.

    Attributes:
        override: The persisted override.
        validation: Validation result the request was persisted with.
    """

    override: TeleworkOverride
    validation: ValidationResult

    @property
    def needs_approval(self) -> bool:
        return self.override.is_pending

    def to_dict(self) -> dict:
        return {
            "override": self.override.to_dict(),
            "validation": self.validation.to_dict(),
        }


class TeleworkService:
    """Write-side operations on profiles, overrides and team rules.

    Validation is advisory. A request that fails validation is still
    stored (pending, so a manager sees the conflict) unless ``strict`` is
    set. Approval does not re-run validation.

    Example:
        >>> store = InMemoryTeleworkStore()
        >>> service = TeleworkService(store, store, store)
        >>> await service.create_default_profile("u1", "Ada", created_by="admin")
        >>> result = await service.request_override(
        ...     "u1", date(2024, 1, 17), TeleworkMode.REMOTE, created_by="u1"
        ... )
        >>> result.override.approval_status
        <ApprovalStatus.APPROVED: 'approved'>
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        override_store: OverrideStore,
        team_rule_store: TeamRuleStore,
        policy: Optional[TeleworkPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the service.

        Args:
            profile_store: Profile persistence.
            override_store: Override persistence.
            team_rule_store: Team rule persistence.
            policy: Policy shared with the validator and resolver.
            clock: Returns the current time; defaults to ``datetime.now``.
        """
        self.profile_store = profile_store
        self.override_store = override_store
        self.team_rule_store = team_rule_store
        self.policy = policy or DefaultTeleworkPolicy()
        self.clock = clock or datetime.now
        self.validator = OverrideRequestValidator(self.policy)
        self.resolver = TeleworkResolver(
            profile_store, override_store, team_rule_store, self.policy
        )

    # Override requests

    async def validate_override_request(
        self,
        user_id: str,
        d: date,
        requested_mode: TeleworkMode,
    ) -> ValidationResult:
        """Check a prospective override without persisting anything."""
        with _logged_store_errors("validating a request for", user_id):
            profile = await self.profile_store.get_profile(user_id)
            if profile is None:
                return ValidationResult.profile_not_found()

            start, end = self.validator.lookup_window(d, profile)
            overrides, team_rules = await asyncio.gather(
                self.override_store.get_overrides(user_id, start, end),
                self.team_rule_store.get_team_rules_for_user(user_id),
            )
        return self.validator.validate(user_id, d, requested_mode, profile, overrides, team_rules)

    async def request_override(
        self,
        user_id: str,
        d: date,
        mode: TeleworkMode,
        created_by: str,
        reason: Optional[str] = None,
        source: OverrideSource = OverrideSource.USER_REQUEST,
        priority: int = 1,
        expires_at: Optional[datetime] = None,
        strict: bool = False,
    ) -> OverrideRequestResult:
        """Validate and persist an override for (user, day).

        A second request for the same user and day replaces the first.
        User requests are stored pending when approval is required and
        approved otherwise; admin-imposed overrides are stored approved.

        Args:
            user_id: User the override is for.
            d: Day of the override.
            mode: Requested mode.
            created_by: Who is making the request.
            reason: Optional justification.
            source: User request or admin-imposed.
            priority: Priority among overrides on the same day.
            expires_at: When the override may be cleaned up.
            strict: Raise instead of persisting an invalid request.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            OverrideRejectedError: If ``strict`` and validation failed.
        """
        validation = await self.validate_override_request(user_id, d, mode)
        if not validation.can_proceed:
            raise ProfileNotFoundError(user_id)
        if strict and not validation.is_valid:
            raise OverrideRejectedError(
                f"Override request for {user_id} on {d.isoformat()} is invalid",
                validation=validation,
            )

        now = self.clock()
        override = TeleworkOverride(
            id=TeleworkOverride.make_id(user_id, d, source),
            user_id=user_id,
            date=d,
            mode=mode,
            source=source,
            priority=priority,
            reason=reason,
            created_at=now,
            created_by=created_by,
            expires_at=expires_at,
            updated_at=now,
            updated_by=created_by,
        )
        if source == OverrideSource.ADMIN_IMPOSED or not validation.requires_approval:
            override.approval_status = ApprovalStatus.APPROVED
            override.approved_at = now
            override.approved_by = created_by

        with _logged_store_errors("saving override", override.id):
            await self.override_store.save_override(override)
        logger.info(
            "Stored %s override %s (%s, %s)",
            source.value,
            override.id,
            mode.value,
            override.approval_status.value,
        )
        if not validation.is_valid:
            logger.warning(
                "Override %s stored with %d error conflict(s)",
                override.id,
                len(validation.errors),
            )
        return OverrideRequestResult(override=override, validation=validation)

    async def _get_override(self, override_id: str) -> TeleworkOverride:
        with _logged_store_errors("loading override", override_id):
            override = await self.override_store.get_override(override_id)
        if override is None:
            raise OverrideNotFoundError(override_id)
        return override

    async def approve_override(
        self,
        override_id: str,
        approved_by: str,
        note: Optional[str] = None,
    ) -> TeleworkOverride:
        """Approve a pending override.

        Raises:
            OverrideNotFoundError: If the override does not exist.
            InvalidTransitionError: If it is not pending.
        """
        override = await self._get_override(override_id)
        override.approve(approved_by, self.clock(), note)
        with _logged_store_errors("saving override", override_id):
            await self.override_store.save_override(override)
        logger.info("Override %s approved by %s", override_id, approved_by)
        return override

    async def reject_override(
        self,
        override_id: str,
        rejected_by: str,
        reason: str,
    ) -> TeleworkOverride:
        """Reject a pending override with a reason.

        Raises:
            OverrideNotFoundError: If the override does not exist.
            InvalidTransitionError: If it is not pending.
            ValueError: If the reason is blank.
        """
        override = await self._get_override(override_id)
        override.reject(rejected_by, self.clock(), reason)
        with _logged_store_errors("saving override", override_id):
            await self.override_store.save_override(override)
        logger.info("Override %s rejected by %s", override_id, rejected_by)
        return override

    async def delete_override(self, override_id: str) -> None:
        with _logged_store_errors("deleting override", override_id):
            deleted = await self.override_store.delete_override(override_id)
        if not deleted:
            raise OverrideNotFoundError(override_id)
        logger.info("Override %s deleted", override_id)

    async def get_pending_overrides(self) -> list[TeleworkOverride]:
        """Overrides awaiting a decision, newest first."""
        with _logged_store_errors("listing", "pending overrides"):
            return await self.override_store.get_pending_overrides()

    async def cleanup_expired_overrides(self, now: Optional[datetime] = None) -> int:
        """Delete overrides past their expiry; return how many were removed."""
        with _logged_store_errors("removing", "expired overrides"):
            removed = await self.override_store.delete_expired_overrides(now or self.clock())
        if removed:
            logger.info("Removed %d expired override(s)", removed)
        return removed

    # Profiles

    async def create_default_profile(
        self,
        user_id: str,
        display_name: str,
        created_by: str,
    ) -> UserTeleworkProfile:
        """Create and store a default profile, replacing any existing one."""
        profile = UserTeleworkProfile.create_default(
            user_id, display_name, created_by, created_at=self.clock()
        )
        with _logged_store_errors("saving profile", user_id):
            await self.profile_store.save_profile(profile)
        logger.info("Created default telework profile for %s", user_id)
        return profile

    async def get_or_create_profile(
        self,
        user_id: str,
        display_name: str = "",
        created_by: str = "system",
    ) -> UserTeleworkProfile:
        """Get a user's profile, creating the default one on first access."""
        with _logged_store_errors("loading profile", user_id):
            profile = await self.profile_store.get_profile(user_id)
        if profile is not None:
            return profile
        return await self.create_default_profile(user_id, display_name or user_id, created_by)

    async def update_profile(
        self,
        user_id: str,
        updates: dict,
        updated_by: str,
    ) -> UserTeleworkProfile:
        """Apply a partial update to a profile.

        ``constraints`` may be a ProfileConstraints or a dict of the
        constraint fields to change. ``default_mode`` and the
        ``weekly_pattern`` keys and entries may be enum members or their
        string values.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            ValueError: For unknown fields, unknown enum values or an
                invalid merged profile.
        """
        with _logged_store_errors("loading profile", user_id):
            profile = await self.profile_store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        unknown = set(updates) - UPDATABLE_PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")

        changes = dict(updates)
        # Plain values, as decoded from JSON, are accepted alongside enums
        if "default_mode" in changes:
            changes["default_mode"] = TeleworkMode(changes["default_mode"])
        if isinstance(changes.get("constraints"), dict):
            changes["constraints"] = replace(profile.constraints, **changes["constraints"])
        if "weekly_pattern" in changes:
            pattern = {
                Weekday(day): WeekdayPattern(entry)
                for day, entry in changes["weekly_pattern"].items()
            }
            changes["weekly_pattern"] = {**profile.weekly_pattern, **pattern}

        updated = replace(profile, **changes, updated_at=self.clock(), updated_by=updated_by)
        with _logged_store_errors("saving profile", user_id):
            await self.profile_store.save_profile(updated)
        logger.info("Updated telework profile for %s (%s)", user_id, ", ".join(sorted(changes)))
        return updated

    async def deactivate_profile(self, user_id: str, updated_by: str) -> UserTeleworkProfile:
        """Deactivate a profile. Profiles are never deleted."""
        return await self.update_profile(user_id, {"is_active": False}, updated_by)

    async def get_simple_schedule(self, user_id: str) -> dict[Weekday, bool]:
        """Weekly pattern as remote flags; False everywhere without a profile."""
        with _logged_store_errors("loading profile", user_id):
            profile = await self.profile_store.get_profile(user_id)
        if profile is None:
            return {day: False for day in Weekday}
        return {
            day: pattern == WeekdayPattern.REMOTE
            for day, pattern in profile.weekly_pattern.items()
        }

    async def update_simple_schedule(
        self,
        user_id: str,
        remote_days: dict[Weekday, bool],
        updated_by: str,
    ) -> UserTeleworkProfile:
        """Set weekly pattern entries from remote flags, creating the profile if needed."""
        await self.get_or_create_profile(user_id, created_by=updated_by)
        pattern = {
            day: WeekdayPattern.REMOTE if remote else WeekdayPattern.OFFICE
            for day, remote in remote_days.items()
        }
        return await self.update_profile(user_id, {"weekly_pattern": pattern}, updated_by)

    async def is_user_remote_on(self, user_id: str, d: date) -> bool:
        resolution = await self.resolver.resolve_day(user_id, d)
        return resolution.is_remote

    # Team rules

    async def create_team_rule(self, rule: TeamTeleworkRule, created_by: str) -> TeamTeleworkRule:
        """Store a new team rule."""
        now = self.clock()
        rule = replace(rule, created_at=now, created_by=created_by, updated_at=now, updated_by=created_by)
        with _logged_store_errors("saving team rule", rule.id):
            await self.team_rule_store.save_team_rule(rule)
        logger.info("Created team rule %s (%s)", rule.id, rule.name)
        return rule

    async def set_team_rule_active(
        self,
        rule_id: str,
        is_active: bool,
        updated_by: str,
    ) -> TeamTeleworkRule:
        """Enable or soft-disable a team rule.

        Raises:
            TeamRuleNotFoundError: If the rule does not exist.
        """
        with _logged_store_errors("loading team rule", rule_id):
            rule = await self.team_rule_store.get_team_rule(rule_id)
        if rule is None:
            raise TeamRuleNotFoundError(rule_id)
        rule = replace(rule, is_active=is_active, updated_at=self.clock(), updated_by=updated_by)
        with _logged_store_errors("saving team rule", rule_id):
            await self.team_rule_store.save_team_rule(rule)
        logger.info("Team rule %s %s", rule_id, "enabled" if is_active else "disabled")
        return rule
