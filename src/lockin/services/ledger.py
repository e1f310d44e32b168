"""Daily time ledger: an increment-only counter of seconds per user and day."""

from __future__ import annotations

import logging

from lockin.core.errors import DayAlreadyFinalized, InvalidDelta
from lockin.schemas.documents import DailyTimeEntry
from lockin.services.documents import (
    DocumentStore,
    Increment,
    daily_time_collection,
    daily_time_path,
)
from lockin.utils.dates import Clock, local_now

logger = logging.getLogger(__name__)


class DailyTimeLedger:
    """Accumulates worked seconds in ``users/{uid}/dailyTime/{date}``.

    Increments are additive, so concurrent writers from several tabs or
    devices commute and need no locking. The ``finalized`` flag is never set
    here; closing a day belongs to the finalization engine.
    """

    def __init__(self, store: DocumentStore, *, clock: Clock = local_now) -> None:
        self._store = store
        self._clock = clock

    async def increment(self, user_id: str, date: str, delta_seconds: int) -> None:
        """Add ``delta_seconds`` to the entry for ``date``, creating it if needed.

        Raises:
            InvalidDelta: If ``delta_seconds`` is below one second.
            DayAlreadyFinalized: If the day was already closed.
            TransientStorageError: If the store could not be reached.
        """
        if delta_seconds < 1:
            raise InvalidDelta(delta_seconds)

        path = daily_time_path(user_id, date)
        now = self._clock()
        current = await self._store.get(path)

        if current is None:
            entry = DailyTimeEntry(
                date=date,
                total_seconds=delta_seconds,
                last_updated=now,
                finalized=False,
            )
            await self._store.set(path, entry.to_document())
        else:
            if current.get("finalized"):
                raise DayAlreadyFinalized(date)
            await self._store.update(
                path,
                {"totalSeconds": Increment(delta_seconds), "lastUpdated": now.isoformat()},
            )

        logger.info("Daily time updated: +%d seconds for %s", delta_seconds, date)

    async def get(self, user_id: str, date: str) -> DailyTimeEntry | None:
        data = await self._store.get(daily_time_path(user_id, date))
        return DailyTimeEntry.from_document(data) if data is not None else None

    async def list_unfinalized(self, user_id: str) -> list[DailyTimeEntry]:
        """Return every entry of ``user_id`` that has not been closed yet."""
        rows = await self._store.query(
            daily_time_collection(user_id),
            where={"finalized": False},
            order_by="date",
        )
        return [DailyTimeEntry.from_document(row) for row in rows]
