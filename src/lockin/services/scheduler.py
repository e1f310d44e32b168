"""Cancellable repeating tasks for the timer's tick and checkpoint."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None] | None]


class PeriodicTask:
    """Runs ``callback`` every ``interval`` seconds on the running event loop.

    The task owns its own ``asyncio.Task``; ``cancel`` stops it immediately.
    A failing callback is logged and the loop keeps going.
    """

    def __init__(self, name: str, interval: float, callback: Callback) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive (got {interval})")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop; calling it while already running does nothing."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Periodic task %s failed", self.name)


class TimerScheduler:
    """Holds at most one tick task and one checkpoint task."""

    def __init__(
        self,
        *,
        tick: Callback,
        checkpoint: Callback,
        tick_interval: float = 1.0,
        checkpoint_interval: float = 120.0,
    ) -> None:
        self.tick = PeriodicTask("timer-tick", tick_interval, tick)
        self.checkpoint = PeriodicTask("timer-checkpoint", checkpoint_interval, checkpoint)

    @property
    def running(self) -> bool:
        return self.tick.running

    def start(self) -> None:
        self.tick.start()
        self.checkpoint.start()

    def cancel(self) -> None:
        self.tick.cancel()
        self.checkpoint.cancel()
