"""Report endpoints over finalized daily records."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from lockin.api.v1.dependencies import CurrentUserDep, RuntimeDep
from lockin.schemas.documents import DailyRecord
from lockin.schemas.reports import ReportsOverview, Summary
from lockin.utils.dates import parse_day_key

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/weekly", response_model=Summary)
async def weekly_summary(user_id: CurrentUserDep, runtime: RuntimeDep) -> Summary:
    return await runtime.engine.weekly_summary(user_id)


@router.get("/monthly", response_model=Summary)
async def monthly_summary(user_id: CurrentUserDep, runtime: RuntimeDep) -> Summary:
    return await runtime.engine.monthly_summary(user_id)


@router.get("/overview", response_model=ReportsOverview)
async def reports_overview(user_id: CurrentUserDep, runtime: RuntimeDep) -> ReportsOverview:
    """Summary stats, chart series and recent days in one call."""
    return await runtime.reports.overview(user_id)


@router.post("/finalize/{date}", response_model=DailyRecord | None)
async def finalize_day(date: str, user_id: CurrentUserDep, runtime: RuntimeDep) -> DailyRecord | None:
    """Close ``date`` on demand. Returns null when there was nothing to close.

    The day the signed-in timer is still tracking is refused with 409.
    """
    try:
        parse_day_key(date)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Date must be formatted as YYYY-MM-DD",
        ) from err
    session = runtime.session
    if session is not None and session.user_id == user_id and date == session.timer.active_date:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The timer is still tracking this day",
        )
    return await runtime.engine.finalize(user_id, date)
