"""Store contracts and the in-memory store."""

from teleplan.stores.base import OverrideStore, ProfileStore, TeamRuleStore
from teleplan.stores.memory import InMemoryTeleworkStore

__all__ = [
    "InMemoryTeleworkStore",
    "OverrideStore",
    "ProfileStore",
    "TeamRuleStore",
]
