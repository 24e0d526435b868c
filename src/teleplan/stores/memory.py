"""In-memory document store.

Entities are kept as plain dicts, the way a key-value document store holds
them, and rebuilt on every read so callers never share mutable state with
the store. Used by the CLI demo and the test suite.
"""

from datetime import date, datetime
from typing import Optional

from teleplan.domain.models import (
    TeamTeleworkRule,
    TeleworkOverride,
    UserTeleworkProfile,
)
from teleplan.stores.base import OverrideStore, ProfileStore, TeamRuleStore


class InMemoryTeleworkStore(ProfileStore, OverrideStore, TeamRuleStore):
    """Implements all three store contracts over dicts of documents.

    The ``add_*`` helpers are synchronous so fixtures and demos can seed
    data without an event loop.

    Example:
        >>> store = InMemoryTeleworkStore()
        >>> store.add_profile(UserTeleworkProfile(user_id="u1"))
        >>> profile = await store.get_profile("u1")
    """

    def __init__(self):
        self._profiles: dict[str, dict] = {}
        self._overrides: dict[str, dict] = {}
        self._team_rules: dict[str, dict] = {}

    # Seeding helpers

    def add_profile(self, profile: UserTeleworkProfile) -> None:
        self._profiles[profile.user_id] = profile.to_dict()

    def add_override(self, override: TeleworkOverride) -> None:
        self._overrides[override.id] = override.to_dict()

    def add_team_rule(self, rule: TeamTeleworkRule) -> None:
        self._team_rules[rule.id] = rule.to_dict()

    # ProfileStore

    async def get_profile(self, user_id: str) -> Optional[UserTeleworkProfile]:
        document = self._profiles.get(user_id)
        return UserTeleworkProfile.from_dict(document) if document else None

    async def save_profile(self, profile: UserTeleworkProfile) -> None:
        self.add_profile(profile)

    # OverrideStore

    async def get_override(self, override_id: str) -> Optional[TeleworkOverride]:
        document = self._overrides.get(override_id)
        return TeleworkOverride.from_dict(document) if document else None

    async def get_overrides(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[TeleworkOverride]:
        overrides = [
            TeleworkOverride.from_dict(document)
            for document in self._overrides.values()
            if document["user_id"] == user_id
        ]
        return sorted(
            (o for o in overrides if start_date <= o.date <= end_date),
            key=lambda o: (o.date, o.id),
        )

    async def save_override(self, override: TeleworkOverride) -> str:
        self.add_override(override)
        return override.id

    async def delete_override(self, override_id: str) -> bool:
        return self._overrides.pop(override_id, None) is not None

    async def get_pending_overrides(self) -> list[TeleworkOverride]:
        pending = [
            TeleworkOverride.from_dict(document)
            for document in self._overrides.values()
            if document["approval_status"] == "pending"
        ]
        # Undated requests sort last
        return sorted(
            pending,
            key=lambda o: (o.created_at is not None, o.created_at or datetime.min),
            reverse=True,
        )

    async def delete_expired_overrides(self, now: datetime) -> int:
        expired = [
            override_id
            for override_id, document in self._overrides.items()
            if TeleworkOverride.from_dict(document).is_expired(now)
        ]
        for override_id in expired:
            del self._overrides[override_id]
        return len(expired)

    # TeamRuleStore

    async def get_team_rule(self, rule_id: str) -> Optional[TeamTeleworkRule]:
        document = self._team_rules.get(rule_id)
        return TeamTeleworkRule.from_dict(document) if document else None

    async def get_team_rules_for_user(self, user_id: str) -> list[TeamTeleworkRule]:
        return [
            TeamTeleworkRule.from_dict(document)
            for document in self._team_rules.values()
            if user_id in document["affected_user_ids"]
        ]

    async def save_team_rule(self, rule: TeamTeleworkRule) -> str:
        self.add_team_rule(rule)
        return rule.id
