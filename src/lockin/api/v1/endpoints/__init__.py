"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .reports import router as reports_router
from .timer import router as timer_router

__all__ = ["auth_router", "reports_router", "timer_router"]
