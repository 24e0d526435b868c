"""Override request workflow and profile lifecycle."""

from teleplan.workflow.legacy import LegacyRemoteScheduleService
from teleplan.workflow.service import OverrideRequestResult, TeleworkService

__all__ = [
    "LegacyRemoteScheduleService",
    "OverrideRequestResult",
    "TeleworkService",
]
