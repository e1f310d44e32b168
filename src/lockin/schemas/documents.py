"""Schemas for the per-day ledger, finalized records and the local backup."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from lockin.schemas.base import CamelModel
from lockin.utils.dates import day_of_week, round_hours

DAY_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class DailyTimeEntry(CamelModel):
    """Mutable per-day accumulator stored under ``users/{uid}/dailyTime/{date}``."""

    date: str = Field(..., pattern=DAY_KEY_PATTERN)
    total_seconds: int = Field(0, ge=0)
    last_updated: datetime | None = None
    finalized: bool = False
    finalized_at: datetime | None = None


class DailyRecord(CamelModel):
    """Immutable summary of a closed day under ``users/{uid}/dailyRecords/{date}``."""

    date: str = Field(..., pattern=DAY_KEY_PATTERN)
    total_seconds: int = Field(..., ge=0)
    total_hours: float = Field(..., ge=0)
    day_of_week: str
    finalized_at: datetime
    # Marks seeded history; kept for provenance only.
    generated: bool | None = None

    @classmethod
    def from_entry(cls, entry: DailyTimeEntry, *, finalized_at: datetime) -> DailyRecord:
        """Derive the record for a ledger entry.

        The aggregate depends only on ``entry.date`` and ``entry.total_seconds``,
        so recomputing it from the same snapshot always yields the same values.
        """
        return cls(
            date=entry.date,
            total_seconds=entry.total_seconds,
            total_hours=round_hours(entry.total_seconds),
            day_of_week=day_of_week(entry.date),
            finalized_at=finalized_at,
        )


class LocalBackup(CamelModel):
    """Seconds of the running session not yet confirmed by the ledger."""

    user_id: str = Field(..., min_length=1)
    date: str = Field(..., pattern=DAY_KEY_PATTERN)
    session_seconds: int = Field(..., ge=0)
    timestamp: datetime
