"""Policy definitions for telework resolution.

Policies hold the tunable numbers of the engine: tier confidence scores,
what counts as a weekend, and the thresholds used by warnings and
statistics. They are kept separate from the engine so each can be tested
and swapped independently.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import ResolutionSource


class TeleworkPolicy(ABC):
    """Abstract base class for telework policies."""

    @abstractmethod
    def confidence_for(self, source: ResolutionSource) -> int:
        """Confidence score reported for a hierarchy tier."""
        pass

    @abstractmethod
    def uncertain_below(self) -> int:
        """Confidence under which a resolution is flagged as uncertain."""
        pass

    @abstractmethod
    def is_weekend(self, d: date) -> bool:
        """Check if a date is a weekend day."""
        pass

    @abstractmethod
    def period_remote_day_threshold(self) -> int:
        """Remote days allowed in a statistics period before counting excess."""
        pass

    @abstractmethod
    def include_weekends_in_period(self) -> bool:
        """Whether period resolution keeps weekend days."""
        pass

    @abstractmethod
    def checks_consecutive_days(self) -> bool:
        """Whether override requests are checked against the consecutive-day limit."""
        pass


def _default_confidence() -> dict[ResolutionSource, int]:
    return {
        ResolutionSource.ADMIN_IMPOSED: 100,
        ResolutionSource.TEAM_RULE: 90,
        ResolutionSource.OVERRIDE: 85,
        ResolutionSource.PATTERN: 80,
        ResolutionSource.DEFAULT: 70,
    }


@dataclass
class DefaultTeleworkPolicy(TeleworkPolicy):
    """Default telework policy.

    Confidence by tier:
    - Admin-imposed override: 100
    - Team rule: 90
    - Approved user override: 85
    - Weekly pattern: 80
    - Default mode: 70

    Resolutions under 80 are flagged as uncertain, weekends are Saturday
    and Sunday, and a statistics period may hold 10 remote days before
    the excess is reported.
    """

    confidence: dict[ResolutionSource, int] = field(default_factory=_default_confidence)
    uncertain_threshold: int = 80
    weekend_days: frozenset[Weekday] = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})
    remote_day_threshold: int = 10
    include_weekends: bool = False
    check_consecutive: bool = True

    def confidence_for(self, source: ResolutionSource) -> int:
        return self.confidence[source]

    def uncertain_below(self) -> int:
        return self.uncertain_threshold

    def is_weekend(self, d: date) -> bool:
        return Weekday.from_date(d) in self.weekend_days

    def period_remote_day_threshold(self) -> int:
        return self.remote_day_threshold

    def include_weekends_in_period(self) -> bool:
        return self.include_weekends

    def checks_consecutive_days(self) -> bool:
        return self.check_consecutive
