"""Store contracts consumed by the telework engine.

The engine never talks to a database directly. It awaits these accessors,
which any document or relational backend can implement. Implementations
raise ``StoreError`` for access failures; the engine lets it propagate.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from teleplan.domain.models import (
    TeamTeleworkRule,
    TeleworkOverride,
    UserTeleworkProfile,
)


class ProfileStore(ABC):
    """Reads and writes user telework profiles."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserTeleworkProfile]:
        """Get a user's profile, or None if the user has none."""
        pass

    @abstractmethod
    async def save_profile(self, profile: UserTeleworkProfile) -> None:
        """Create or replace a profile."""
        pass


class OverrideStore(ABC):
    """Reads and writes date-specific overrides."""

    @abstractmethod
    async def get_override(self, override_id: str) -> Optional[TeleworkOverride]:
        """Get one override by id, or None."""
        pass

    @abstractmethod
    async def get_overrides(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[TeleworkOverride]:
        """Get a user's overrides dated within [start_date, end_date], by date."""
        pass

    @abstractmethod
    async def save_override(self, override: TeleworkOverride) -> str:
        """Create or replace an override and return its id."""
        pass

    @abstractmethod
    async def delete_override(self, override_id: str) -> bool:
        """Delete an override. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def get_pending_overrides(self) -> list[TeleworkOverride]:
        """Get every pending override, newest first."""
        pass

    @abstractmethod
    async def delete_expired_overrides(self, now: datetime) -> int:
        """Delete overrides whose expiry is at or before ``now``; return the count."""
        pass


class TeamRuleStore(ABC):
    """Reads and writes team telework rules."""

    @abstractmethod
    async def get_team_rule(self, rule_id: str) -> Optional[TeamTeleworkRule]:
        """Get one rule by id, or None."""
        pass

    @abstractmethod
    async def get_team_rules_for_user(self, user_id: str) -> list[TeamTeleworkRule]:
        """Get rules whose scope includes ``user_id``, exemptions attached."""
        pass

    @abstractmethod
    async def save_team_rule(self, rule: TeamTeleworkRule) -> str:
        """Create or replace a rule and return its id."""
        pass
