"""Shared builders for telework tests.

Dates used across the suite: 2024-01-15 is a Monday, so the week under
test runs from Monday 15 to Sunday 21 January 2024.
"""

from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import (
    ApprovalStatus,
    OverrideSource,
    ProfileConstraints,
    TeamTeleworkRule,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
    WeekdayPattern,
    default_weekly_pattern,
)
from teleplan.domain.recurrence import WeeklyRecurrence
from teleplan.stores.memory import InMemoryTeleworkStore


class FakeClock:
    """Clock that advances one minute on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 10, 9, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def make_profile():
    """Factory for profiles; ``pattern`` only lists the non-default days."""

    def _make(
        user_id: str = "U001",
        default_mode: TeleworkMode = TeleworkMode.OFFICE,
        pattern: Optional[dict[Weekday, WeekdayPattern]] = None,
        max_remote_days_per_week: int = 2,
        max_consecutive_remote_days: int = 2,
        requires_approval: bool = False,
    ) -> UserTeleworkProfile:
        weekly_pattern = default_weekly_pattern()
        weekly_pattern.update(pattern or {})
        return UserTeleworkProfile(
            user_id=user_id,
            display_name=f"User {user_id}",
            default_mode=default_mode,
            weekly_pattern=weekly_pattern,
            constraints=ProfileConstraints(
                max_remote_days_per_week=max_remote_days_per_week,
                max_consecutive_remote_days=max_consecutive_remote_days,
                requires_approval=requires_approval,
            ),
        )

    return _make


@pytest.fixture
def make_override():
    """Factory for overrides; approved user requests by default."""

    def _make(
        d: date,
        mode: TeleworkMode = TeleworkMode.REMOTE,
        status: ApprovalStatus = ApprovalStatus.APPROVED,
        source: OverrideSource = OverrideSource.USER_REQUEST,
        priority: int = 1,
        user_id: str = "U001",
        override_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        expires_at: Optional[datetime] = None,
    ) -> TeleworkOverride:
        return TeleworkOverride(
            id=override_id or TeleworkOverride.make_id(user_id, d, source),
            user_id=user_id,
            date=d,
            mode=mode,
            source=source,
            priority=priority,
            approval_status=status,
            created_at=created_at,
            created_by=user_id,
            expires_at=expires_at,
        )

    return _make


@pytest.fixture
def make_rule():
    """Factory for team rules; weekly on Wednesday by default."""

    def _make(
        rule_id: str = "R1",
        required_mode: TeleworkMode = TeleworkMode.REMOTE,
        recurrence=None,
        priority: int = 1,
        is_active: bool = True,
        exemptions: tuple = (),
        users: tuple = ("U001",),
        name: Optional[str] = None,
    ) -> TeamTeleworkRule:
        return TeamTeleworkRule(
            id=rule_id,
            name=name or f"Rule {rule_id}",
            required_mode=required_mode,
            recurrence=recurrence or WeeklyRecurrence(Weekday.WEDNESDAY),
            priority=priority,
            is_active=is_active,
            exemptions=set(exemptions),
            affected_user_ids=set(users),
        )

    return _make


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryTeleworkStore()


@pytest.fixture
def clock():
    return FakeClock()
