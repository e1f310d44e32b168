"""Timer state as reported to clients."""

from __future__ import annotations

from pydantic import Field

from lockin.schemas.base import CamelModel


class TimerStatus(CamelModel):
    elapsed_seconds: int = Field(..., ge=0)
    display: str = Field(..., description="Elapsed time formatted as HH:MM:SS")
    running: bool
    active_date: str
    unflushed_seconds: int = Field(..., ge=0)
