"""
Pydantic schemas for stored documents and API payloads.

Document models serialize with the camelCase field names used in the
document store (``totalSeconds``, ``finalizedAt`` ...).
"""

from .auth import Credentials, SignUpResponse, TokenResponse
from .documents import DailyRecord, DailyTimeEntry, LocalBackup
from .reports import ChartBar, RecentDay, ReportsOverview, Summary
from .timer import TimerStatus

__all__ = [
    "Credentials", "SignUpResponse", "TokenResponse",
    "DailyRecord", "DailyTimeEntry", "LocalBackup",
    "ChartBar", "RecentDay", "ReportsOverview", "Summary",
    "TimerStatus",
]
