# src/lockin/main.py
"""Main entry point for the Lock-In tracker service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from lockin.api.v1 import auth_router, reports_router, timer_router
from lockin.core.logging import configure_logging
from lockin.core.settings import Settings, settings as default_settings
from lockin.db.session import SessionLocal, create_tables, engine as default_engine
from lockin.services.runtime import TrackerRuntime
from lockin.utils.dates import Clock, local_now

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    engine: Engine | None = None,
    *,
    clock: Clock = local_now,
) -> FastAPI:
    """Build the service around one ``TrackerRuntime``."""
    config = config or default_settings
    session_factory = session_factory or SessionLocal
    bind = engine or default_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(config.log_level)
        create_tables(bind)
        app.state.runtime = TrackerRuntime(config, session_factory, clock=clock)
        logger.info("%s %s ready", config.app_name, config.app_version)
        try:
            yield
        finally:
            # Process is going away: treat it like a page unload.
            await app.state.runtime.shutdown()
            logger.info("%s stopped", config.app_name)

    app = FastAPI(
        title="Lock-In API",
        description="Personal work timer with daily ledger and reports",
        version=config.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(timer_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lockin.main:app", host="127.0.0.1", port=8000, reload=default_settings.debug)
