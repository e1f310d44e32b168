"""Timer control endpoints and host lifecycle signals."""

from __future__ import annotations

from fastapi import APIRouter

from lockin.api.v1.dependencies import SessionDep
from lockin.schemas.timer import TimerStatus

router = APIRouter(prefix="/timer", tags=["timer"])


@router.get("", response_model=TimerStatus)
async def get_timer(session: SessionDep) -> TimerStatus:
    return session.timer.status()


@router.post("/start", response_model=TimerStatus)
async def start_timer(session: SessionDep) -> TimerStatus:
    await session.timer.start()
    return session.timer.status()


@router.post("/stop", response_model=TimerStatus)
async def stop_timer(session: SessionDep) -> TimerStatus:
    """Stop counting; the ledger write finishes in the background."""
    session.timer.stop()
    return session.timer.status()


@router.post("/visibility", response_model=TimerStatus)
async def client_hidden(session: SessionDep) -> TimerStatus:
    """The client went to the background: save what has been counted so far."""
    session.timer.on_visibility_hidden()
    return session.timer.status()


@router.post("/teardown", response_model=TimerStatus)
async def client_teardown(session: SessionDep) -> TimerStatus:
    """The client is closing: back up locally and attempt a final save."""
    session.teardown()
    return session.timer.status()
