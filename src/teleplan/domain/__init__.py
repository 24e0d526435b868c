"""Domain models and business rules for telework resolution."""

from teleplan.domain.calendar import Weekday, date_range, week_bounds, week_start
from teleplan.domain.models import (
    AppliedRules,
    ApprovalStatus,
    ConflictSeverity,
    ConflictType,
    OverrideSource,
    PatternChangePreview,
    ProfileConstraints,
    ResolutionSource,
    TeamTeleworkRule,
    TeleworkConflict,
    TeleworkDayResolution,
    TeleworkMode,
    TeleworkOverride,
    TeleworkStats,
    TeleworkWeekView,
    UserTeleworkProfile,
    WeekdayPattern,
    WeeklyStats,
    default_weekly_pattern,
)
from teleplan.domain.policies import DefaultTeleworkPolicy, TeleworkPolicy
from teleplan.domain.recurrence import (
    MonthlyRecurrence,
    Recurrence,
    RecurrenceType,
    SpecificDatesRecurrence,
    WeeklyRecurrence,
    recurrence_from_dict,
)

__all__ = [
    # Calendar
    "Weekday",
    "date_range",
    "week_bounds",
    "week_start",
    # Models
    "AppliedRules",
    "ApprovalStatus",
    "ConflictSeverity",
    "ConflictType",
    "OverrideSource",
    "PatternChangePreview",
    "ProfileConstraints",
    "ResolutionSource",
    "TeamTeleworkRule",
    "TeleworkConflict",
    "TeleworkDayResolution",
    "TeleworkMode",
    "TeleworkOverride",
    "TeleworkStats",
    "TeleworkWeekView",
    "UserTeleworkProfile",
    "WeekdayPattern",
    "WeeklyStats",
    "default_weekly_pattern",
    # Policies
    "DefaultTeleworkPolicy",
    "TeleworkPolicy",
    # Recurrence
    "MonthlyRecurrence",
    "Recurrence",
    "RecurrenceType",
    "SpecificDatesRecurrence",
    "WeeklyRecurrence",
    "recurrence_from_dict",
]
