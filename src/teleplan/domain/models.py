"""Domain models for the telework resolution engine.

This module contains the persisted entities (profiles, overrides and team
rules) and the derived views computed from them (day resolutions, week
views and statistics). Derived views are recomputed on every query and are
never stored.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional

from teleplan.domain.calendar import Weekday
from teleplan.domain.recurrence import Recurrence, recurrence_from_dict
from teleplan.exceptions import InvalidTransitionError


class TeleworkMode(Enum):
    """Work location for a day."""

    OFFICE = "office"
    REMOTE = "remote"


class WeekdayPattern(Enum):
    """Weekly pattern entry for one weekday."""

    OFFICE = "office"
    REMOTE = "remote"
    DEFAULT = "default"  # Fall through to the profile default mode

    def to_mode(self) -> Optional[TeleworkMode]:
        """Get the concrete mode, or None for DEFAULT."""
        if self == WeekdayPattern.DEFAULT:
            return None
        return TeleworkMode(self.value)


class OverrideSource(Enum):
    """Who created an override."""

    USER_REQUEST = "user_request"
    ADMIN_IMPOSED = "admin_imposed"


class ApprovalStatus(Enum):
    """Approval state of an override."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ResolutionSource(Enum):
    """Hierarchy tier that produced a resolved mode."""

    ADMIN_IMPOSED = "admin_imposed"
    TEAM_RULE = "team_rule"
    OVERRIDE = "override"
    PATTERN = "pattern"
    DEFAULT = "default"


class ConflictType(Enum):
    """Kinds of disagreement surfaced for a day or a request."""

    TEAM_RULE_CONFLICT = "team_rule_conflict"
    CONSTRAINT_VIOLATION = "constraint_violation"
    APPROVAL_REQUIRED = "approval_required"


class ConflictSeverity(Enum):
    """How serious a conflict is. Errors are still advisory."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def default_weekly_pattern() -> dict[Weekday, WeekdayPattern]:
    """Weekly pattern with every day falling through to the default mode."""
    return {day: WeekdayPattern.DEFAULT for day in Weekday}


@dataclass
class ProfileConstraints:
    """Contractual limits on a user's remote work.

    Attributes:
        max_remote_days_per_week: Approved remote days allowed per ISO week (0-7).
        max_consecutive_remote_days: Longest allowed run of remote working days.
        requires_approval: If True, every override request needs a manager.
    """

    max_remote_days_per_week: int = 2
    max_consecutive_remote_days: int = 2
    requires_approval: bool = False

    def __post_init__(self):
        if not 0 <= self.max_remote_days_per_week <= 7:
            raise ValueError(
                f"max_remote_days_per_week must be between 0 and 7, "
                f"got {self.max_remote_days_per_week}"
            )
        if self.max_consecutive_remote_days < 1:
            raise ValueError(
                f"max_consecutive_remote_days must be at least 1, "
                f"got {self.max_consecutive_remote_days}"
            )


@dataclass
class UserTeleworkProfile:
    """A user's default mode, weekly pattern and constraints.

    Profiles are never deleted; setting ``is_active`` to False deactivates
    them.

    Attributes:
        user_id: Identifier of the user (also the profile id).
        display_name: Name shown in reports.
        default_mode: Mode used when nothing else applies.
        weekly_pattern: Pattern entry for each of the seven weekdays.
        constraints: Remote-work limits and the approval requirement.
        is_active: False once the profile has been deactivated.
        created_at: When the profile was created.
        created_by: Who created the profile.
        updated_at: When the profile was last updated.
        updated_by: Who last updated the profile.
    """

    user_id: str
    display_name: str = ""
    default_mode: TeleworkMode = TeleworkMode.OFFICE
    weekly_pattern: dict[Weekday, WeekdayPattern] = field(default_factory=default_weekly_pattern)
    constraints: ProfileConstraints = field(default_factory=ProfileConstraints)
    is_active: bool = True
    created_at: Optional[datetime] = None
    created_by: str = ""
    updated_at: Optional[datetime] = None
    updated_by: str = ""

    def __post_init__(self):
        missing = [day.value for day in Weekday if day not in self.weekly_pattern]
        if missing:
            raise ValueError(f"Weekly pattern is missing weekdays: {', '.join(missing)}")

    @classmethod
    def create_default(
        cls,
        user_id: str,
        display_name: str,
        created_by: str,
        created_at: Optional[datetime] = None,
    ) -> "UserTeleworkProfile":
        """Create the profile a user gets on first access.

        Office by default, every weekday falling through to the default,
        at most 2 remote days per week and 2 in a row, no approval needed.
        """
        return cls(
            user_id=user_id,
            display_name=display_name,
            created_at=created_at,
            created_by=created_by,
            updated_at=created_at,
            updated_by=created_by,
        )

    def pattern_for(self, d: date) -> WeekdayPattern:
        """Get the weekly pattern entry for a date."""
        return self.weekly_pattern[Weekday.from_date(d)]

    def with_pattern(self, weekly_pattern: dict[Weekday, WeekdayPattern]) -> "UserTeleworkProfile":
        """Return a copy of this profile with another weekly pattern."""
        return replace(self, weekly_pattern=dict(weekly_pattern))

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "default_mode": self.default_mode.value,
            "weekly_pattern": {day.value: p.value for day, p in self.weekly_pattern.items()},
            "constraints": {
                "max_remote_days_per_week": self.constraints.max_remote_days_per_week,
                "max_consecutive_remote_days": self.constraints.max_consecutive_remote_days,
                "requires_approval": self.constraints.requires_approval,
            },
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "created_by": self.created_by,
            "updated_at": _iso(self.updated_at),
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserTeleworkProfile":
        return cls(
            user_id=data["user_id"],
            display_name=data.get("display_name", ""),
            default_mode=TeleworkMode(data.get("default_mode", "office")),
            weekly_pattern={
                Weekday(day): WeekdayPattern(p)
                for day, p in data.get("weekly_pattern", {}).items()
            },
            constraints=ProfileConstraints(**data.get("constraints", {})),
            is_active=data.get("is_active", True),
            created_at=_parse_datetime(data.get("created_at")),
            created_by=data.get("created_by", ""),
            updated_at=_parse_datetime(data.get("updated_at")),
            updated_by=data.get("updated_by", ""),
        )


@dataclass
class TeleworkOverride:
    """A date-specific exception to a user's profile.

    Only approved overrides take part in resolution.

    Attributes:
        id: Override id, ``{user_id}_{YYYY-MM-DD}`` when created by request.
        user_id: User the override applies to.
        date: Calendar day the override applies to.
        mode: Requested mode for the day.
        source: Whether the user requested it or an admin imposed it.
        priority: Higher wins among overrides on the same date.
        reason: Optional free-text justification.
        approval_status: Pending, approved or rejected.
        created_at: When the request was made.
        created_by: Who made the request.
        approved_at: When it was approved.
        approved_by: Who approved it.
        approval_note: Optional note left by the approver.
        rejected_at: When it was rejected.
        rejected_by: Who rejected it.
        rejection_reason: Why it was rejected.
        expires_at: After this moment the override may be cleaned up.
        updated_at: When it last changed.
        updated_by: Who last changed it.
    """

    id: str
    user_id: str
    date: date
    mode: TeleworkMode
    source: OverrideSource = OverrideSource.USER_REQUEST
    priority: int = 1
    reason: Optional[str] = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    created_at: Optional[datetime] = None
    created_by: str = ""
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approval_note: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @staticmethod
    def make_id(
        user_id: str,
        d: date,
        source: OverrideSource = OverrideSource.USER_REQUEST,
    ) -> str:
        """Deterministic id so one (user, date, source) maps to one override.

        User requests use ``{user_id}_{YYYY-MM-DD}``; admin-imposed
        overrides get an ``_admin`` suffix so they never replace the
        user's own request.
        """
        override_id = f"{user_id}_{d.isoformat()}"
        if source == OverrideSource.ADMIN_IMPOSED:
            override_id += "_admin"
        return override_id

    @property
    def is_pending(self) -> bool:
        return self.approval_status == ApprovalStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def approve(self, approved_by: str, at: datetime, note: Optional[str] = None) -> None:
        """Move a pending override to approved.

        Raises:
            InvalidTransitionError: If the override is not pending.
        """
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Override {self.id} is already {self.approval_status.value}"
            )
        self.approval_status = ApprovalStatus.APPROVED
        self.approved_by = approved_by
        self.approved_at = at
        self.approval_note = note
        self.updated_at = at
        self.updated_by = approved_by

    def reject(self, rejected_by: str, at: datetime, reason: str) -> None:
        """Move a pending override to rejected.

        Raises:
            InvalidTransitionError: If the override is not pending.
            ValueError: If no rejection reason is given.
        """
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Override {self.id} is already {self.approval_status.value}"
            )
        if not reason or not reason.strip():
            raise ValueError("A rejection reason is required")
        self.approval_status = ApprovalStatus.REJECTED
        self.rejected_by = rejected_by
        self.rejected_at = at
        self.rejection_reason = reason
        self.updated_at = at
        self.updated_by = rejected_by

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "mode": self.mode.value,
            "source": self.source.value,
            "priority": self.priority,
            "reason": self.reason,
            "approval_status": self.approval_status.value,
            "created_at": _iso(self.created_at),
            "created_by": self.created_by,
            "approved_at": _iso(self.approved_at),
            "approved_by": self.approved_by,
            "approval_note": self.approval_note,
            "rejected_at": _iso(self.rejected_at),
            "rejected_by": self.rejected_by,
            "rejection_reason": self.rejection_reason,
            "expires_at": _iso(self.expires_at),
            "updated_at": _iso(self.updated_at),
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeleworkOverride":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            date=date.fromisoformat(data["date"]),
            mode=TeleworkMode(data["mode"]),
            source=OverrideSource(data.get("source", "user_request")),
            priority=data.get("priority", 1),
            reason=data.get("reason"),
            approval_status=ApprovalStatus(data.get("approval_status", "pending")),
            created_at=_parse_datetime(data.get("created_at")),
            created_by=data.get("created_by", ""),
            approved_at=_parse_datetime(data.get("approved_at")),
            approved_by=data.get("approved_by"),
            approval_note=data.get("approval_note"),
            rejected_at=_parse_datetime(data.get("rejected_at")),
            rejected_by=data.get("rejected_by"),
            rejection_reason=data.get("rejection_reason"),
            expires_at=_parse_datetime(data.get("expires_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            updated_by=data.get("updated_by"),
        )


@dataclass
class TeamTeleworkRule:
    """A mandate imposing a mode on a group of users on a recurring schedule.

    Attributes:
        id: Rule id.
        name: Short name, e.g. "Sprint planning".
        required_mode: Mode every covered user must follow.
        recurrence: When the rule applies.
        priority: Higher wins among rules applying on the same date.
        is_active: Soft-disable flag.
        exemptions: User ids the rule never applies to.
        affected_user_ids: User ids in the rule's team scope.
        description: Optional longer description.
        team_id: Optional team the rule belongs to.
        created_at: When the rule was created.
        created_by: Who created the rule.
        updated_at: When the rule last changed.
        updated_by: Who last changed the rule.
    """

    id: str
    name: str
    required_mode: TeleworkMode
    recurrence: Recurrence
    priority: int = 1
    is_active: bool = True
    exemptions: set[str] = field(default_factory=set)
    affected_user_ids: set[str] = field(default_factory=set)
    description: str = ""
    team_id: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: str = ""
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    def is_active_on(self, d: date) -> bool:
        """Check the rule is enabled and its recurrence matches ``d``."""
        return self.is_active and self.recurrence.matches(d)

    def exempts(self, user_id: str) -> bool:
        return user_id in self.exemptions

    def applies_to(self, user_id: str, d: date) -> bool:
        """Check the rule binds ``user_id`` on ``d``."""
        return self.is_active_on(d) and not self.exempts(user_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "required_mode": self.required_mode.value,
            "recurrence": self.recurrence.to_dict(),
            "priority": self.priority,
            "is_active": self.is_active,
            "exemptions": sorted(self.exemptions),
            "affected_user_ids": sorted(self.affected_user_ids),
            "description": self.description,
            "team_id": self.team_id,
            "created_at": _iso(self.created_at),
            "created_by": self.created_by,
            "updated_at": _iso(self.updated_at),
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamTeleworkRule":
        return cls(
            id=data["id"],
            name=data["name"],
            required_mode=TeleworkMode(data["required_mode"]),
            recurrence=recurrence_from_dict(data["recurrence"]),
            priority=data.get("priority", 1),
            is_active=data.get("is_active", True),
            exemptions=set(data.get("exemptions", [])),
            affected_user_ids=set(data.get("affected_user_ids", [])),
            description=data.get("description", ""),
            team_id=data.get("team_id"),
            created_at=_parse_datetime(data.get("created_at")),
            created_by=data.get("created_by", ""),
            updated_at=_parse_datetime(data.get("updated_at")),
            updated_by=data.get("updated_by"),
        )


@dataclass
class TeleworkConflict:
    """A disagreement or risk between the rule sources for a day or request.

    Attributes:
        conflict_type: Kind of conflict.
        severity: Info, warning or error.
        message: Human-readable description.
        source: Id of the rule or override causing it.
        resolution_suggestions: Things the user can do about it.
    """

    conflict_type: ConflictType
    severity: ConflictSeverity
    message: str
    source: str
    resolution_suggestions: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"[{self.severity.value}:{self.conflict_type.value}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "type": self.conflict_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
            "resolution_suggestions": list(self.resolution_suggestions),
        }


@dataclass
class AppliedRules:
    """The persisted entities a resolution was computed from."""

    profile: Optional[UserTeleworkProfile] = None
    override: Optional[TeleworkOverride] = None
    team_rules: list[TeamTeleworkRule] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.user_id if self.profile else None,
            "override": self.override.id if self.override else None,
            "team_rules": [rule.id for rule in self.team_rules],
        }


@dataclass
class TeleworkDayResolution:
    """Effective mode for one user on one day.

    Attributes:
        user_id: User the resolution is for.
        date: Day the resolution is for.
        resolved_mode: The single effective mode.
        source: Hierarchy tier that produced the mode.
        confidence: Fixed tier score (0 when the profile is missing).
        applied_rules: Profile, override and team rules considered.
        conflicts: Conflicts detected from the raw inputs.
        warnings: Softer notes derived from the result.
        is_weekend: True when the day falls on a weekend.
    """

    user_id: str
    date: date
    resolved_mode: TeleworkMode
    source: ResolutionSource
    confidence: int
    applied_rules: AppliedRules = field(default_factory=AppliedRules)
    conflicts: list[TeleworkConflict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    is_weekend: bool = False

    @property
    def is_remote(self) -> bool:
        return self.resolved_mode == TeleworkMode.REMOTE

    @property
    def has_errors(self) -> bool:
        return any(c.severity == ConflictSeverity.ERROR for c in self.conflicts)

    @property
    def has_pending_override(self) -> bool:
        override = self.applied_rules.override
        return override is not None and override.is_pending

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "resolved_mode": self.resolved_mode.value,
            "source": self.source.value,
            "confidence": self.confidence,
            "applied_rules": self.applied_rules.to_dict(),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "warnings": list(self.warnings),
            "is_weekend": self.is_weekend,
        }


@dataclass
class WeeklyStats:
    """Counts shown alongside a week view."""

    remote_days: int = 0
    office_days: int = 0
    conflicts: int = 0
    pending_approvals: int = 0

    @classmethod
    def calculate(cls, days: list[TeleworkDayResolution]) -> "WeeklyStats":
        remote = sum(1 for d in days if d.is_remote)
        return cls(
            remote_days=remote,
            office_days=len(days) - remote,
            conflicts=sum(len(d.conflicts) for d in days),
            pending_approvals=sum(1 for d in days if d.has_pending_override),
        )

    def to_dict(self) -> dict:
        return {
            "remote_days": self.remote_days,
            "office_days": self.office_days,
            "conflicts": self.conflicts,
            "pending_approvals": self.pending_approvals,
        }


@dataclass
class TeleworkWeekView:
    """Resolutions for a Monday-to-Sunday week, weekends included."""

    user_id: str
    week_start: date
    week_end: date
    days: list[TeleworkDayResolution] = field(default_factory=list)
    weekly_stats: WeeklyStats = field(default_factory=WeeklyStats)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "days": [d.to_dict() for d in self.days],
            "weekly_stats": self.weekly_stats.to_dict(),
        }


@dataclass
class TeleworkStats:
    """Remote-work statistics for a period of working days.

    Attributes:
        user_id: User the statistics are for.
        period_start: First day of the period.
        period_end: Last day of the period.
        total_work_days: Days resolved (weekends excluded).
        remote_days: Days resolved to remote.
        office_days: Days resolved to office.
        remote_percentage: Rounded share of remote days (0-100).
        average_remote_days_per_week: Remote days per five working days.
        by_source: Day count per resolution source.
        by_weekday: Remote/office counts per weekday name.
        within_limits: True when no error conflict was found.
        exceed_days: Remote days above the policy threshold.
        violations: Every conflict found in the period.
    """

    user_id: str
    period_start: date
    period_end: date
    total_work_days: int = 0
    remote_days: int = 0
    office_days: int = 0
    remote_percentage: int = 0
    average_remote_days_per_week: float = 0.0
    by_source: dict[ResolutionSource, int] = field(default_factory=dict)
    by_weekday: dict[str, dict[str, int]] = field(default_factory=dict)
    within_limits: bool = True
    exceed_days: int = 0
    violations: list[TeleworkConflict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "period": {
                "start": self.period_start.isoformat(),
                "end": self.period_end.isoformat(),
            },
            "summary": {
                "total_work_days": self.total_work_days,
                "remote_days": self.remote_days,
                "office_days": self.office_days,
                "remote_percentage": self.remote_percentage,
                "average_remote_days_per_week": self.average_remote_days_per_week,
            },
            "breakdown": {
                "by_source": {s.value: n for s, n in self.by_source.items()},
                "by_weekday": {k: dict(v) for k, v in self.by_weekday.items()},
            },
            "compliance": {
                "within_limits": self.within_limits,
                "exceed_days": self.exceed_days,
                "violations": [c.to_dict() for c in self.violations],
            },
        }


@dataclass
class PatternChangePreview:
    """Current resolutions next to a baseline projected from a new pattern.

    Attributes:
        current: Full-hierarchy resolutions for the period.
        preview: Pattern/default-only projection with the new pattern.
        changes: Days whose mode differs between the two.
    """

    current: list[TeleworkDayResolution] = field(default_factory=list)
    preview: list[TeleworkDayResolution] = field(default_factory=list)
    changes: int = 0

    def to_dict(self) -> dict:
        return {
            "current": [d.to_dict() for d in self.current],
            "preview": [d.to_dict() for d in self.preview],
            "changes": self.changes,
        }
