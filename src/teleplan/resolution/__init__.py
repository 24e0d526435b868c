"""Day-mode resolution, conflict detection and statistics."""

from teleplan.resolution.conflicts import ConflictDetector, profile_missing_conflict
from teleplan.resolution.hierarchy import (
    BASELINE_TIERS,
    RESOLUTION_TIERS,
    TierOutcome,
    applicable_team_rules,
    apply_resolution_hierarchy,
    select_override,
)
from teleplan.resolution.resolver import TeleworkResolver
from teleplan.resolution.stats import StatisticsAggregator

__all__ = [
    "BASELINE_TIERS",
    "ConflictDetector",
    "RESOLUTION_TIERS",
    "StatisticsAggregator",
    "TeleworkResolver",
    "TierOutcome",
    "applicable_team_rules",
    "apply_resolution_hierarchy",
    "profile_missing_conflict",
    "select_override",
]
