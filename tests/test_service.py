"""Tests for the override workflow and profile lifecycle."""

import logging
from datetime import date, datetime

import pytest

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import (
    ApprovalStatus,
    OverrideSource,
    ResolutionSource,
    TeleworkMode,
    WeekdayPattern,
)
from teleplan.exceptions import (
    InvalidTransitionError,
    OverrideNotFoundError,
    OverrideRejectedError,
    ProfileNotFoundError,
    StoreError,
    TeamRuleNotFoundError,
)
from teleplan.stores.memory import InMemoryTeleworkStore
from teleplan.workflow.legacy import LegacyRemoteScheduleService
from teleplan.workflow.service import TeleworkService

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)
WEDNESDAY = date(2024, 1, 17)


class ReadOnlyStore(InMemoryTeleworkStore):
    """In-memory store whose writes always fail."""

    async def save_override(self, override):
        raise StoreError("override store is read-only")

    async def save_profile(self, profile):
        raise StoreError("profile store is read-only")


@pytest.fixture
def service(store, clock):
    return TeleworkService(store, store, store, clock=clock)


@pytest.fixture
def approval_store(store, make_profile):
    """Store with one user whose requests all need a manager."""
    store.add_profile(make_profile(requires_approval=True))
    return store


class TestRequestOverride:
    """Tests for TeleworkService.request_override."""

    @pytest.mark.asyncio
    async def test_auto_approved(self, store, service, make_profile):
        store.add_profile(make_profile())

        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001", reason="Focus"
        )

        override = result.override
        assert override.id == "U001_2024-01-17"
        assert override.approval_status == ApprovalStatus.APPROVED
        assert override.approved_by == "U001"
        assert override.approved_at == override.created_at
        assert result.needs_approval is False
        assert result.validation.is_valid

        stored = await store.get_override(override.id)
        assert stored.reason == "Focus"
        assert stored.is_approved

    @pytest.mark.asyncio
    async def test_profile_requiring_approval(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        assert result.override.approval_status == ApprovalStatus.PENDING
        assert result.override.approved_by is None
        assert result.needs_approval

    @pytest.mark.asyncio
    async def test_over_weekly_limit_stored_pending(
        self, store, service, make_profile, make_override
    ):
        store.add_profile(make_profile())
        store.add_override(make_override(MONDAY))
        store.add_override(make_override(TUESDAY))

        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        assert result.validation.is_valid is False
        assert result.override.is_pending
        assert await store.get_override("U001_2024-01-17") is not None

    @pytest.mark.asyncio
    async def test_strict_request_not_stored(self, store, service, make_profile, make_override):
        store.add_profile(make_profile())
        store.add_override(make_override(MONDAY))
        store.add_override(make_override(TUESDAY))

        with pytest.raises(OverrideRejectedError) as exc_info:
            await service.request_override(
                "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001", strict=True
            )

        assert exc_info.value.validation.is_valid is False
        assert await store.get_override("U001_2024-01-17") is None

    @pytest.mark.asyncio
    async def test_missing_profile(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.request_override("U404", WEDNESDAY, TeleworkMode.REMOTE, created_by="x")

    @pytest.mark.asyncio
    async def test_second_request_replaces_first(self, store, service, make_profile):
        store.add_profile(make_profile())

        await service.request_override("U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001")
        await service.request_override("U001", WEDNESDAY, TeleworkMode.OFFICE, created_by="U001")

        overrides = await store.get_overrides("U001", WEDNESDAY, WEDNESDAY)
        assert len(overrides) == 1
        assert overrides[0].mode == TeleworkMode.OFFICE

    @pytest.mark.asyncio
    async def test_admin_override_beats_team_rule(
        self, store, service, make_profile, make_rule
    ):
        store.add_profile(make_profile(requires_approval=True))
        store.add_team_rule(make_rule(required_mode=TeleworkMode.OFFICE))
        await service.request_override("U001", WEDNESDAY, TeleworkMode.OFFICE, created_by="U001")

        result = await service.request_override(
            "U001",
            WEDNESDAY,
            TeleworkMode.REMOTE,
            created_by="admin",
            source=OverrideSource.ADMIN_IMPOSED,
        )

        assert result.override.id == "U001_2024-01-17_admin"
        assert result.override.is_approved
        assert result.override.approved_by == "admin"
        assert len(await store.get_overrides("U001", WEDNESDAY, WEDNESDAY)) == 2

        day = await service.resolver.resolve_day("U001", WEDNESDAY)
        assert day.source == ResolutionSource.ADMIN_IMPOSED
        assert day.resolved_mode == TeleworkMode.REMOTE

    @pytest.mark.asyncio
    async def test_admin_and_user_on_same_day_use_one_slot(self, store, service, make_profile):
        store.add_profile(make_profile())
        await service.request_override("U001", MONDAY, TeleworkMode.REMOTE, created_by="U001")
        await service.request_override(
            "U001",
            MONDAY,
            TeleworkMode.REMOTE,
            created_by="admin",
            source=OverrideSource.ADMIN_IMPOSED,
        )

        result = await service.validate_override_request("U001", WEDNESDAY, TeleworkMode.REMOTE)

        assert result.is_valid
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_validate_without_persisting(self, store, service, make_profile):
        store.add_profile(make_profile())

        result = await service.validate_override_request("U001", WEDNESDAY, TeleworkMode.REMOTE)

        assert result.is_valid
        assert await store.get_override("U001_2024-01-17") is None

    @pytest.mark.asyncio
    async def test_validate_missing_profile(self, service):
        result = await service.validate_override_request("U404", WEDNESDAY, TeleworkMode.REMOTE)
        assert result.can_proceed is False


class TestApprovalWorkflow:
    """Tests for approve, reject and delete."""

    @pytest.mark.asyncio
    async def test_approve(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        approved = await service.approve_override(result.override.id, "manager", note="ok")

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.approved_by == "manager"
        assert approved.approval_note == "ok"
        stored = await approval_store.get_override(result.override.id)
        assert stored.is_approved

        day = await service.resolver.resolve_day("U001", WEDNESDAY)
        assert day.source == ResolutionSource.OVERRIDE

    @pytest.mark.asyncio
    async def test_approve_twice_fails(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )
        await service.approve_override(result.override.id, "manager")

        with pytest.raises(InvalidTransitionError):
            await service.approve_override(result.override.id, "manager")

    @pytest.mark.asyncio
    async def test_reject(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        rejected = await service.reject_override(result.override.id, "manager", "Team offsite")

        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert rejected.rejection_reason == "Team offsite"
        with pytest.raises(InvalidTransitionError):
            await service.approve_override(result.override.id, "manager")

    @pytest.mark.asyncio
    async def test_reject_needs_reason(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        with pytest.raises(ValueError):
            await service.reject_override(result.override.id, "manager", "  ")

        stored = await approval_store.get_override(result.override.id)
        assert stored.is_pending

    @pytest.mark.asyncio
    async def test_unknown_override(self, service):
        with pytest.raises(OverrideNotFoundError):
            await service.approve_override("missing", "manager")
        with pytest.raises(OverrideNotFoundError):
            await service.reject_override("missing", "manager", "no")

    @pytest.mark.asyncio
    async def test_delete(self, approval_store, service):
        result = await service.request_override(
            "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
        )

        await service.delete_override(result.override.id)

        assert await approval_store.get_override(result.override.id) is None
        with pytest.raises(OverrideNotFoundError):
            await service.delete_override(result.override.id)

    @pytest.mark.asyncio
    async def test_pending_newest_first(self, approval_store, service):
        await service.request_override("U001", TUESDAY, TeleworkMode.REMOTE, created_by="U001")
        await service.request_override("U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001")

        pending = await service.get_pending_overrides()

        assert [o.date for o in pending] == [WEDNESDAY, TUESDAY]

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, approval_store, service):
        await service.request_override(
            "U001",
            TUESDAY,
            TeleworkMode.REMOTE,
            created_by="U001",
            expires_at=datetime(2024, 1, 11),
        )
        await service.request_override("U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001")

        assert await service.cleanup_expired_overrides() == 0
        assert await service.cleanup_expired_overrides(datetime(2024, 1, 12)) == 1

        remaining = await approval_store.get_overrides("U001", MONDAY, WEDNESDAY)
        assert [o.date for o in remaining] == [WEDNESDAY]


class TestProfiles:
    """Tests for profile creation and updates."""

    @pytest.mark.asyncio
    async def test_get_or_create(self, store, service):
        created = await service.get_or_create_profile("U009", created_by="admin")

        assert created.display_name == "U009"
        assert created.default_mode == TeleworkMode.OFFICE
        assert created.constraints.max_remote_days_per_week == 2
        assert all(p == WeekdayPattern.DEFAULT for p in created.weekly_pattern.values())

        again = await service.get_or_create_profile("U009", display_name="Other")
        assert again.display_name == "U009"
        assert again.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_update_constraints_merges(self, store, service, make_profile):
        store.add_profile(make_profile())

        updated = await service.update_profile(
            "U001", {"constraints": {"max_remote_days_per_week": 3}}, updated_by="hr"
        )

        assert updated.constraints.max_remote_days_per_week == 3
        assert updated.constraints.max_consecutive_remote_days == 2
        assert updated.updated_by == "hr"
        stored = await store.get_profile("U001")
        assert stored.constraints.max_remote_days_per_week == 3

    @pytest.mark.asyncio
    async def test_update_pattern_merges(self, store, service, make_profile):
        store.add_profile(make_profile(pattern={Weekday.MONDAY: WeekdayPattern.REMOTE}))

        updated = await service.update_profile(
            "U001", {"weekly_pattern": {Weekday.FRIDAY: WeekdayPattern.REMOTE}}, updated_by="hr"
        )

        assert updated.weekly_pattern[Weekday.MONDAY] == WeekdayPattern.REMOTE
        assert updated.weekly_pattern[Weekday.FRIDAY] == WeekdayPattern.REMOTE
        assert len(updated.weekly_pattern) == 7

    @pytest.mark.asyncio
    async def test_invalid_constraint_rejected(self, store, service, make_profile):
        store.add_profile(make_profile())

        with pytest.raises(ValueError):
            await service.update_profile(
                "U001", {"constraints": {"max_remote_days_per_week": 9}}, updated_by="hr"
            )

        stored = await store.get_profile("U001")
        assert stored.constraints.max_remote_days_per_week == 2

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store, service, make_profile):
        store.add_profile(make_profile())
        with pytest.raises(ValueError):
            await service.update_profile("U001", {"user_id": "U002"}, updated_by="hr")

    @pytest.mark.asyncio
    async def test_update_missing_profile(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.update_profile("U404", {"is_active": False}, updated_by="hr")

    @pytest.mark.asyncio
    async def test_deactivate(self, store, service, make_profile):
        store.add_profile(make_profile())

        profile = await service.deactivate_profile("U001", updated_by="hr")

        assert profile.is_active is False
        assert (await store.get_profile("U001")).is_active is False

    @pytest.mark.asyncio
    async def test_simple_schedule_round_trip(self, service):
        assert await service.get_simple_schedule("U009") == {day: False for day in Weekday}

        await service.update_simple_schedule(
            "U009", {Weekday.MONDAY: True, Weekday.FRIDAY: True}, updated_by="U009"
        )
        schedule = await service.get_simple_schedule("U009")

        assert schedule[Weekday.MONDAY] is True
        assert schedule[Weekday.FRIDAY] is True
        assert schedule[Weekday.TUESDAY] is False
        assert await service.is_user_remote_on("U009", MONDAY) is True
        assert await service.is_user_remote_on("U009", TUESDAY) is False


    @pytest.mark.asyncio
    async def test_update_accepts_string_values(self, store, service, make_profile):
        store.add_profile(make_profile())

        updated = await service.update_profile(
            "U001",
            {"default_mode": "remote", "weekly_pattern": {"monday": "office"}},
            updated_by="hr",
        )

        assert updated.default_mode == TeleworkMode.REMOTE
        assert updated.weekly_pattern[Weekday.MONDAY] == WeekdayPattern.OFFICE
        stored = await store.get_profile("U001")
        assert stored.default_mode == TeleworkMode.REMOTE
        assert stored.weekly_pattern[Weekday.MONDAY] == WeekdayPattern.OFFICE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "updates",
        [
            {"default_mode": "beach"},
            {"weekly_pattern": {"funday": "remote"}},
            {"weekly_pattern": {"monday": "sometimes"}},
        ],
    )
    async def test_update_rejects_unknown_values(self, store, service, make_profile, updates):
        store.add_profile(make_profile())

        with pytest.raises(ValueError):
            await service.update_profile("U001", updates, updated_by="hr")

        stored = await store.get_profile("U001")
        assert stored.default_mode == TeleworkMode.OFFICE

class TestTeamRules:
    """Tests for team rule management."""

    @pytest.mark.asyncio
    async def test_create_and_disable(self, store, service, make_profile, make_rule):
        store.add_profile(make_profile(pattern={Weekday.WEDNESDAY: WeekdayPattern.REMOTE}))

        rule = await service.create_team_rule(
            make_rule(required_mode=TeleworkMode.OFFICE), created_by="lead"
        )
        assert rule.created_by == "lead"
        day = await service.resolver.resolve_day("U001", WEDNESDAY)
        assert day.source == ResolutionSource.TEAM_RULE

        disabled = await service.set_team_rule_active(rule.id, False, updated_by="lead")
        assert disabled.is_active is False
        day = await service.resolver.resolve_day("U001", WEDNESDAY)
        assert day.source == ResolutionSource.PATTERN
        assert day.resolved_mode == TeleworkMode.REMOTE

    @pytest.mark.asyncio
    async def test_unknown_rule(self, service):
        with pytest.raises(TeamRuleNotFoundError):
            await service.set_team_rule_active("missing", False, updated_by="lead")


class TestLegacyService:
    """The boolean API still works but warns."""

    @pytest.fixture
    def legacy(self, service):
        with pytest.warns(DeprecationWarning):
            return LegacyRemoteScheduleService(service)

    @pytest.mark.asyncio
    async def test_schedule_round_trip(self, legacy):
        with pytest.warns(DeprecationWarning):
            await legacy.update_user_remote_schedule(
                "U009", {"monday": True, "someday": True}, updated_by="U009"
            )
        with pytest.warns(DeprecationWarning):
            schedule = await legacy.get_user_remote_schedule("U009")

        assert schedule["monday"] is True
        assert schedule["tuesday"] is False
        assert "someday" not in schedule

    @pytest.mark.asyncio
    async def test_specific_day(self, store, legacy, make_profile):
        store.add_profile(make_profile())

        with pytest.warns(DeprecationWarning):
            result = await legacy.set_specific_remote_day(
                "U001", WEDNESDAY, True, created_by="U001", note="Plumber"
            )
        assert result.override.is_approved
        assert result.override.reason == "Plumber"

        with pytest.warns(DeprecationWarning):
            assert await legacy.is_user_remote_on_date("U001", WEDNESDAY) is True


class TestStoreFailures:
    """Write-path store failures propagate and are logged."""

    @pytest.fixture
    def read_only_service(self, make_profile, clock):
        store = ReadOnlyStore()
        store.add_profile(make_profile())
        return TeleworkService(store, store, store, clock=clock)

    @pytest.mark.asyncio
    async def test_request_override(self, read_only_service, caplog):
        caplog.set_level(logging.ERROR, logger="teleplan.workflow.service")

        with pytest.raises(StoreError):
            await read_only_service.request_override(
                "U001", WEDNESDAY, TeleworkMode.REMOTE, created_by="U001"
            )

        records = [r for r in caplog.records if r.name == "teleplan.workflow.service"]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].exc_info is not None
        assert "U001_2024-01-17" in records[0].getMessage()

    @pytest.mark.asyncio
    async def test_update_profile(self, read_only_service, caplog):
        caplog.set_level(logging.ERROR, logger="teleplan.workflow.service")

        with pytest.raises(StoreError):
            await read_only_service.update_profile("U001", {"is_active": False}, updated_by="hr")

        assert any(
            r.name == "teleplan.workflow.service" and r.exc_info for r in caplog.records
        )
