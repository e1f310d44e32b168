"""Orchestration of a signed-in tracking session."""

from __future__ import annotations

import logging

from lockin.core.errors import TransientStorageError
from lockin.services.finalization import FinalizationEngine
from lockin.services.ledger import DailyTimeLedger
from lockin.services.timer import TimerStateMachine
from lockin.utils.dates import Clock, day_key, local_now

logger = logging.getLogger(__name__)


class TrackingSession:
    """Brings one user's timer up and down in a fixed order.

    ``open`` runs: seed today from the ledger, hand the seed to the timer
    (which replays the local backup), sweep stale days, ready. Storage
    failures in a step are logged and the next step still runs.
    """

    def __init__(
        self,
        timer: TimerStateMachine,
        ledger: DailyTimeLedger,
        engine: FinalizationEngine,
        *,
        finalize_on_close: bool = False,
        clock: Clock = local_now,
    ) -> None:
        self.timer = timer
        self._ledger = ledger
        self._engine = engine
        self._clock = clock
        self.finalize_on_close = finalize_on_close
        self.ready = False

    @property
    def user_id(self) -> str:
        return self.timer.user_id

    async def open(self) -> None:
        today = self.timer.active_date

        seeded = 0
        try:
            entry = await self._ledger.get(self.user_id, today)
        except TransientStorageError as err:
            logger.warning("Error loading today's time, starting from zero: %s", err)
        else:
            if entry is None:
                logger.info("No time logged for %s yet", today)
            else:
                seeded = entry.total_seconds
                logger.info("Today's total working time: %d seconds", seeded)
        self.timer.set_elapsed_seconds_today(seeded)

        try:
            closed = await self._engine.sweep_unfinalized(self.user_id, self.timer.active_date)
        except TransientStorageError as err:
            logger.warning("Error checking previous days: %s", err)
        else:
            if closed:
                logger.info("Finalized %d previous day(s)", len(closed))

        self.ready = True
        logger.info("Tracking session ready for %s", self.user_id)

    async def close(self) -> None:
        """Stop the timer and wait until its last flush settles.

        With ``finalize_on_close`` every open day that is already over gets
        closed. Today stays open: the user may sign back in and keep working.
        """
        self.timer.stop()
        await self.timer.drain()
        if self.finalize_on_close:
            today = day_key(self._clock())
            try:
                closed = await self._engine.sweep_unfinalized(self.user_id, today)
            except TransientStorageError as err:
                logger.warning("Could not finalize previous days on sign-out: %s", err)
            else:
                if closed:
                    logger.info("Finalized %d day(s) on sign-out", len(closed))
        self.ready = False

    def teardown(self) -> None:
        """Forward the host's teardown signal to the timer."""
        self.timer.on_teardown()
