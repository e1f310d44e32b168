"""Version 1 API endpoints."""

from .endpoints import auth_router, reports_router, timer_router

__all__ = ["auth_router", "reports_router", "timer_router"]
