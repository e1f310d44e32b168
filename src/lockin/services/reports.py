"""Read-only projection of finalized records into report data."""

from __future__ import annotations

from collections.abc import Sequence

from lockin.schemas.documents import DailyRecord
from lockin.schemas.reports import ChartBar, RecentDay, ReportsOverview
from lockin.services.finalization import FinalizationEngine
from lockin.utils.dates import MONTHS, WEEKDAYS, parse_day_key, round2


def daily_chart(records: Sequence[DailyRecord], max_height: float = 180) -> list[ChartBar]:
    """Return chart bars oldest first, scaled so the busiest day is ``max_height``."""
    ordered = sorted(records, key=lambda record: record.date)
    peak = max((record.total_hours for record in ordered), default=0.0)
    bars = []
    for record in ordered:
        day = parse_day_key(record.date)
        height = round2(record.total_hours / peak * max_height) if peak > 0 else 0.0
        bars.append(
            ChartBar(
                date=record.date,
                hours=record.total_hours,
                height=height,
                label=f"{WEEKDAYS[day.weekday()][:3]} {day.day}",
            )
        )
    return bars


def recent_days(records: Sequence[DailyRecord]) -> list[RecentDay]:
    """Return list rows newest first."""
    rows = []
    for record in sorted(records, key=lambda record: record.date, reverse=True):
        day = parse_day_key(record.date)
        rows.append(
            RecentDay(
                date=record.date,
                label=f"{MONTHS[day.month - 1]} {day.day}",
                day_of_week=record.day_of_week or WEEKDAYS[day.weekday()],
                hours=record.total_hours,
            )
        )
    return rows


class ReportsProjection:
    """Builds the reports panel from finalized daily records only."""

    def __init__(
        self,
        engine: FinalizationEngine,
        *,
        chart_days: int = 30,
        recent_days_window: int = 14,
        chart_max_height: float = 180,
    ) -> None:
        self._engine = engine
        self.chart_days = chart_days
        self.recent_days_window = recent_days_window
        self.chart_max_height = chart_max_height

    async def overview(self, user_id: str) -> ReportsOverview:
        weekly = await self._engine.weekly_summary(user_id)
        monthly = await self._engine.monthly_summary(user_id)
        chart_records = await self._engine.get_daily_records(user_id, self.chart_days)
        recent_records = chart_records[: self.recent_days_window]
        if self.recent_days_window > self.chart_days:
            recent_records = await self._engine.get_daily_records(
                user_id, self.recent_days_window
            )
        return ReportsOverview(
            weekly_hours=weekly.total_hours,
            monthly_hours=monthly.total_hours,
            avg_daily_hours=monthly.avg_hours_per_day,
            chart=daily_chart(chart_records, self.chart_max_height),
            recent_days=recent_days(recent_records),
        )
