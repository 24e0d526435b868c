"""Boolean remote-schedule API kept for older callers.

Every entry point emits a ``DeprecationWarning`` and delegates to
TeleworkService. New code should use TeleworkService directly.
"""

import warnings
from datetime import date
from typing import Optional

from teleplan.domain.calendar import Weekday
from teleplan.domain.models import TeleworkMode
from teleplan.workflow.service import OverrideRequestResult, TeleworkService


def _deprecated(name: str, replacement: str) -> None:
    warnings.warn(
        f"{name} is deprecated, use {replacement} instead",
        DeprecationWarning,
        stacklevel=3,
    )


class LegacyRemoteScheduleService:
    """Remote schedule as seven booleans keyed by weekday name."""

    def __init__(self, service: TeleworkService):
        _deprecated("LegacyRemoteScheduleService", "TeleworkService")
        self.service = service

    async def get_user_remote_schedule(self, user_id: str) -> dict[str, bool]:
        _deprecated("get_user_remote_schedule()", "TeleworkService.get_simple_schedule()")
        schedule = await self.service.get_simple_schedule(user_id)
        return {day.value: remote for day, remote in schedule.items()}

    async def update_user_remote_schedule(
        self,
        user_id: str,
        schedule: dict[str, bool],
        updated_by: str,
    ) -> None:
        """Update the given weekdays; unknown keys are ignored."""
        _deprecated("update_user_remote_schedule()", "TeleworkService.update_simple_schedule()")
        known = {day.value for day in Weekday}
        remote_days = {Weekday(key): value for key, value in schedule.items() if key in known}
        await self.service.update_simple_schedule(user_id, remote_days, updated_by)

    async def is_user_remote_on_date(self, user_id: str, d: date) -> bool:
        _deprecated("is_user_remote_on_date()", "TeleworkService.is_user_remote_on()")
        return await self.service.is_user_remote_on(user_id, d)

    async def set_specific_remote_day(
        self,
        user_id: str,
        d: date,
        is_remote: bool,
        created_by: str,
        note: Optional[str] = None,
    ) -> OverrideRequestResult:
        _deprecated("set_specific_remote_day()", "TeleworkService.request_override()")
        mode = TeleworkMode.REMOTE if is_remote else TeleworkMode.OFFICE
        return await self.service.request_override(
            user_id, d, mode, created_by=created_by, reason=note
        )
