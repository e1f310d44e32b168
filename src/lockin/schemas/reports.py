"""Report payloads built from finalized daily records."""

from __future__ import annotations

from pydantic import Field

from lockin.schemas.base import CamelModel
from lockin.schemas.documents import DailyRecord


class Summary(CamelModel):
    """Totals over the most recent finalized records."""

    total_hours: float = 0.0
    avg_hours_per_day: float = 0.0
    days_worked: int = 0
    records: list[DailyRecord] = Field(default_factory=list)


class ChartBar(CamelModel):
    """One bar of the daily hours chart."""

    date: str
    hours: float
    height: float = Field(..., description="Bar height scaled against the busiest day")
    label: str = Field(..., description="Short weekday and day of month, e.g. 'Mon 1'")


class RecentDay(CamelModel):
    """One row of the recent days list."""

    date: str
    label: str = Field(..., description="Short month and day, e.g. 'Jan 1'")
    day_of_week: str
    hours: float


class ReportsOverview(CamelModel):
    """Everything the reports panel shows in one payload."""

    weekly_hours: float
    monthly_hours: float
    avg_daily_hours: float
    chart: list[ChartBar]
    recent_days: list[RecentDay]
