"""Business logic services for the tracker."""

from .backup import DeviceState, LocalBackupStore
from .documents import Increment, SqlDocumentStore
from .finalization import FinalizationEngine
from .identity import IdentityProvider
from .ledger import DailyTimeLedger
from .reports import ReportsProjection
from .runtime import TrackerRuntime
from .session import TrackingSession
from .timer import TimerState, TimerStateMachine

__all__ = [
    "DailyTimeLedger",
    "DeviceState",
    "FinalizationEngine",
    "IdentityProvider",
    "Increment",
    "LocalBackupStore",
    "ReportsProjection",
    "SqlDocumentStore",
    "TimerState",
    "TimerStateMachine",
    "TrackerRuntime",
    "TrackingSession",
]
