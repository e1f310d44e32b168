"""Timer state machine for today's worked seconds.

The timer counts locally, one second per tick, and hands accumulated time to
the ledger in batches: on every checkpoint, on stop, when the client is
hidden and when it is torn down. ``elapsed_seconds_today`` is what the user
sees and stays authoritative for display whatever happens to those writes.

Seconds move through three buckets before the ledger confirms them:

- unflushed: counted since ``session_start_mark``;
- in flight: handed to a ledger write that has not finished;
- carried: a write that failed, retried with the next flush.

The local backup always holds the sum of the three for the active day, so a
crash loses nothing that recovery cannot replay. A write that succeeded right
before a crash may be replayed once more, which is the accepted
at-least-once trade-off.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from enum import Enum

from lockin.core.errors import LogicError, TransientStorageError
from lockin.schemas.timer import TimerStatus
from lockin.services.backup import LocalBackupStore
from lockin.services.ledger import DailyTimeLedger
from lockin.services.scheduler import TimerScheduler
from lockin.utils.dates import Clock, day_key, format_hms, local_now

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class TimerStateMachine:
    """Start/stop timer for one user on one device.

    Args:
        user_id: Owner of every ledger write this timer issues.
        ledger: Daily time ledger the seconds are flushed to.
        backup: Local backup slot for unconfirmed seconds.
        clock: Source of wall-clock time, used for day keys only.
        tick_interval: Seconds between ticks.
        checkpoint_interval: Seconds between periodic flushes.
    """

    def __init__(
        self,
        user_id: str,
        ledger: DailyTimeLedger,
        backup: LocalBackupStore,
        *,
        clock: Clock = local_now,
        tick_interval: float = 1.0,
        checkpoint_interval: float = 120.0,
    ) -> None:
        self.user_id = user_id
        self._ledger = ledger
        self._backup = backup
        self._clock = clock

        self.state = TimerState.STOPPED
        self.active_date = day_key(clock())
        self.elapsed_seconds_today = 0
        self.session_start_mark = 0

        self._in_flight: Counter[str] = Counter()
        self._carried: Counter[str] = Counter()
        self._flushes: set[asyncio.Task[None]] = set()
        self._scheduler = TimerScheduler(
            tick=self.tick,
            checkpoint=self.checkpoint,
            tick_interval=tick_interval,
            checkpoint_interval=checkpoint_interval,
        )

    # --- State -------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def unflushed_seconds(self) -> int:
        return max(0, self.elapsed_seconds_today - self.session_start_mark)

    @property
    def pending_seconds(self) -> int:
        """Seconds of the active day the ledger has not confirmed yet."""
        date = self.active_date
        return self.unflushed_seconds + self._in_flight[date] + self._carried[date]

    def status(self) -> TimerStatus:
        return TimerStatus(
            elapsed_seconds=self.elapsed_seconds_today,
            display=format_hms(self.elapsed_seconds_today),
            running=self.running,
            active_date=self.active_date,
            unflushed_seconds=self.unflushed_seconds,
        )

    # --- Session seed and recovery ----------------------------------------------
    def set_elapsed_seconds_today(self, seconds: int) -> None:
        """Seed today's total from the ledger, then replay any local backup."""
        self.elapsed_seconds_today = seconds
        self.session_start_mark = seconds
        logger.info("Timer set to today's accumulated time: %d seconds", seconds)
        self.recover()

    def recover(self) -> int:
        """Fold a valid local backup into today's total and replay it to the ledger.

        Returns the number of recovered seconds. The backup is cleared as soon
        as the ledger write is issued: the seconds now live in memory and any
        failure of that write is carried like a failed checkpoint.
        """
        backup = self._backup.read()
        if backup is None:
            return 0

        if backup.user_id != self.user_id:
            # Single device slot: another account's seconds wait for that account.
            logger.info("Local backup belongs to another user, leaving it in place")
            return 0

        if (
            not self._backup.is_valid(backup, self._clock())
            or backup.date != self.active_date
            or backup.session_seconds < 1
        ):
            logger.info("Cleared old unsaved time data for %s", backup.date)
            self._backup.clear(self.user_id)
            return 0

        recovered = backup.session_seconds
        logger.info("Recovering %d seconds from previous session", recovered)
        self.elapsed_seconds_today += recovered
        self.session_start_mark = self.elapsed_seconds_today
        self._carried[self.active_date] += recovered
        if self._flush("recovery") is not None:
            self._backup.clear(self.user_id)
        return recovered

    # --- Transitions ---------------------------------------------------------------
    async def start(self) -> None:
        """Stopped -> Running. Does nothing while already running."""
        if self.running:
            return
        await self.check_day_rollover()
        self.session_start_mark = self.elapsed_seconds_today
        self.state = TimerState.RUNNING
        self._scheduler.start()
        logger.info("Timer started from %d seconds", self.elapsed_seconds_today)

    def stop(self) -> asyncio.Task[None] | None:
        """Running -> Stopped, flushing the session.

        Returns the flush task without awaiting it; the caller may ignore it.
        """
        if not self.running:
            return None
        self._scheduler.cancel()
        self.state = TimerState.STOPPED
        task = self._flush("stop")
        logger.info("Timer stopped at %d seconds", self.elapsed_seconds_today)
        return task

    def tick(self) -> None:
        """Count one second and refresh the local backup."""
        if not self.running:
            return
        self.elapsed_seconds_today += 1
        pending = self.pending_seconds
        if pending >= 1:
            self._backup.write(self.user_id, self.active_date, pending)

    async def checkpoint(self) -> None:
        """Periodic flush; also where a midnight crossing is noticed."""
        await self.check_day_rollover()
        if self.running:
            self._flush("checkpoint")

    def on_visibility_hidden(self) -> asyncio.Task[None] | None:
        """Flush while the client is backgrounded; the timer keeps running."""
        if not self.running:
            return None
        return self._flush("visibility")

    def on_teardown(self) -> asyncio.Task[None] | None:
        """Best-effort flush before the process goes away.

        The backup is written first and unconditionally because the ledger
        write is not awaited and may never complete.
        """
        if not self.running:
            return None
        self._scheduler.cancel()
        self.state = TimerState.STOPPED
        pending = self.pending_seconds
        if pending >= 1:
            self._backup.write(self.user_id, self.active_date, pending)
        logger.info("Saving %d seconds before teardown", pending)
        return self._flush("teardown")

    async def check_day_rollover(self) -> bool:
        """Move to a new day if the clock crossed midnight.

        Seconds still pending for the ending day are flushed to that day's
        entry, which stays open for the finalization sweep. The new day is
        seeded from the ledger because another device may already have
        recorded time for it.
        """
        today = day_key(self._clock())
        if today == self.active_date:
            return False

        logger.info("Day changed from %s to %s", self.active_date, today)
        self._flush("rollover")
        self.active_date = today
        self.elapsed_seconds_today = 0
        self.session_start_mark = 0

        try:
            entry = await self._ledger.get(self.user_id, today)
        except TransientStorageError as err:
            logger.warning("Could not load %s from the ledger, starting at zero: %s", today, err)
            entry = None
        if entry is not None and entry.total_seconds:
            # Ticks may have landed while the read was in progress; keep them.
            self.elapsed_seconds_today += entry.total_seconds
            self.session_start_mark += entry.total_seconds
        return True

    # --- Flushing ------------------------------------------------------------------
    async def drain(self) -> None:
        """Wait for every in-flight ledger write to settle."""
        while self._flushes:
            await asyncio.gather(*list(self._flushes), return_exceptions=True)

    def _take_pending(self) -> list[tuple[str, int]]:
        unflushed = self.unflushed_seconds
        self.session_start_mark = self.elapsed_seconds_today
        batches = self._carried
        batches[self.active_date] += unflushed
        self._carried = Counter()
        return [(date, seconds) for date, seconds in sorted(batches.items()) if seconds >= 1]

    def _flush(self, reason: str) -> asyncio.Task[None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run the write on: keep everything for the next flush.
            self._carried[self.active_date] += self.unflushed_seconds
            self.session_start_mark = self.elapsed_seconds_today
            logger.warning("No event loop for %s flush; %d seconds kept locally",
                           reason, self.pending_seconds)
            self._sync_backup()
            return None

        batches = self._take_pending()
        if not batches:
            self._sync_backup()
            return None

        for date, seconds in batches:
            self._in_flight[date] += seconds
        task = loop.create_task(self._commit(batches, reason), name=f"timer-{reason}-flush")
        self._flushes.add(task)
        task.add_done_callback(self._flush_done)
        return task

    async def _commit(self, batches: list[tuple[str, int]], reason: str) -> None:
        remaining = list(batches)
        try:
            while remaining:
                date, seconds = remaining.pop(0)
                try:
                    await self._ledger.increment(self.user_id, date, seconds)
                except TransientStorageError as err:
                    logger.warning(
                        "%s flush of %d seconds for %s failed, kept in local backup: %s",
                        reason, seconds, date, err,
                    )
                    self._carried[date] += seconds
                except LogicError:
                    logger.error(
                        "%s flush of %d seconds for %s rejected by the ledger",
                        reason, seconds, date, exc_info=True,
                    )
                except Exception:
                    logger.exception(
                        "%s flush of %d seconds for %s failed unexpectedly, kept in local backup",
                        reason, seconds, date,
                    )
                    self._carried[date] += seconds
                else:
                    logger.info("%s flush: %d seconds saved for %s", reason, seconds, date)
                finally:
                    self._settle(date, seconds)
        finally:
            # Cancelled mid-batch: whatever was not attempted goes back to carried.
            for date, seconds in remaining:
                self._settle(date, seconds)
                self._carried[date] += seconds
            self._sync_backup()

    def _settle(self, date: str, seconds: int) -> None:
        self._in_flight[date] -= seconds
        if self._in_flight[date] <= 0:
            del self._in_flight[date]

    def _flush_done(self, task: asyncio.Task[None]) -> None:
        self._flushes.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            logger.error("Timer flush task failed", exc_info=err)

    def _sync_backup(self) -> None:
        pending = self.pending_seconds
        if pending >= 1:
            self._backup.write(self.user_id, self.active_date, pending)
        else:
            self._backup.clear(self.user_id)
