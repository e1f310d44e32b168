"""Wiring of the tracker components for one device."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.orm import Session, sessionmaker

from lockin.core.settings import Settings
from lockin.services.backup import DeviceState, LocalBackupStore
from lockin.services.documents import DocumentStore, SqlDocumentStore
from lockin.services.finalization import FinalizationEngine
from lockin.services.identity import IdentityProvider
from lockin.services.ledger import DailyTimeLedger
from lockin.services.reports import ReportsProjection
from lockin.services.session import TrackingSession
from lockin.services.timer import TimerStateMachine
from lockin.utils.dates import Clock, local_now

logger = logging.getLogger(__name__)


class TrackerRuntime:
    """Builds every collaborator once and owns the signed-in session.

    Nothing here is a module-level singleton: the service creates one runtime
    at startup and passes it to whatever needs it.
    """

    def __init__(
        self,
        config: Settings,
        session_factory: sessionmaker[Session] | None = None,
        *,
        store: DocumentStore | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.settings = config
        self.clock = clock
        self.store = store or SqlDocumentStore(session_factory, offload=not config.is_sqlite)
        self.ledger = DailyTimeLedger(self.store, clock=clock)
        self.engine = FinalizationEngine(
            self.store,
            self.ledger,
            clock=clock,
            weekly_window=config.weekly_window_days,
            monthly_window=config.monthly_window_days,
        )
        self.reports = ReportsProjection(
            self.engine,
            chart_days=config.monthly_window_days,
            recent_days_window=config.recent_days_window,
            chart_max_height=config.chart_max_height,
        )
        self.backup = LocalBackupStore(
            DeviceState(config.backup_path),
            max_age=timedelta(hours=config.backup_max_age_hours),
            clock=clock,
        )
        self.identity = IdentityProvider(
            self.store,
            session_factory,
            clock=clock,
            min_password_length=config.min_password_length,
            max_failed_attempts=config.max_failed_sign_ins,
            lockout=timedelta(seconds=config.sign_in_lockout_seconds),
        )
        self.session: TrackingSession | None = None

    def build_session(self, user_id: str) -> TrackingSession:
        timer = TimerStateMachine(
            user_id,
            self.ledger,
            self.backup,
            clock=self.clock,
            tick_interval=self.settings.tick_interval_seconds,
            checkpoint_interval=self.settings.checkpoint_interval_seconds,
        )
        return TrackingSession(
            timer,
            self.ledger,
            self.engine,
            finalize_on_close=self.settings.finalize_on_sign_out,
            clock=self.clock,
        )

    async def open_session(self, user_id: str) -> TrackingSession:
        """Make ``user_id`` the active session, closing any other user's first."""
        if self.session is not None:
            if self.session.user_id == user_id:
                return self.session
            await self.close_session()
        session = self.build_session(user_id)
        self.session = session
        await session.open()
        return session

    async def close_session(self) -> None:
        if self.session is None:
            return
        session, self.session = self.session, None
        await session.close()

    async def sign_out(self) -> None:
        await self.close_session()
        self.identity.sign_out()

    async def shutdown(self) -> None:
        """Deliver the teardown signal and wait for the resulting writes."""
        if self.session is None:
            return
        self.session.teardown()
        await self.session.timer.drain()
