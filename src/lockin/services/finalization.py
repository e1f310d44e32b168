"""Finalization and reconciliation of ledger entries into daily records."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from lockin.core.errors import TransientStorageError
from lockin.schemas.documents import DailyRecord
from lockin.schemas.reports import Summary
from lockin.services.documents import (
    DocumentStore,
    daily_record_path,
    daily_records_collection,
    daily_time_path,
)
from lockin.services.ledger import DailyTimeLedger
from lockin.utils.dates import Clock, local_now, round2, round_hours

logger = logging.getLogger(__name__)


def summarize(records: Sequence[DailyRecord]) -> Summary:
    """Aggregate records into totals.

    The average is taken over the days that have a record, not over the
    calendar days in the window, so a short history is not diluted.
    """
    total_seconds = sum(record.total_seconds for record in records)
    total_hours = round_hours(total_seconds)
    avg = round2(total_hours / len(records)) if records else 0.0
    return Summary(
        total_hours=total_hours,
        avg_hours_per_day=avg,
        days_worked=len(records),
        records=list(records),
    )


class FinalizationEngine:
    """Sole writer of the ``finalized`` transition and of daily records.

    ``finalize`` writes the record before flagging the ledger entry. A crash
    between the two leaves the entry open with a record already present; the
    retry overwrites that record with the same aggregate, which makes the
    operation idempotent.
    """

    def __init__(
        self,
        store: DocumentStore,
        ledger: DailyTimeLedger,
        *,
        clock: Clock = local_now,
        weekly_window: int = 7,
        monthly_window: int = 30,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._clock = clock
        self.weekly_window = weekly_window
        self.monthly_window = monthly_window

    async def finalize(self, user_id: str, date: str) -> DailyRecord | None:
        """Close ``date`` for ``user_id`` and return the written record.

        Returns None without writing anything when the entry is missing,
        already finalized or empty.
        """
        entry = await self._ledger.get(user_id, date)
        if entry is None or entry.finalized or entry.total_seconds == 0:
            return None

        finalized_at = self._clock()
        record = DailyRecord.from_entry(entry, finalized_at=finalized_at)
        await self._store.set(daily_record_path(user_id, date), record.to_document())
        await self._store.update(
            daily_time_path(user_id, date),
            {"finalized": True, "finalizedAt": finalized_at.isoformat()},
        )
        logger.info(
            "Day %s finalized with %d seconds (%s hours)",
            date,
            record.total_seconds,
            record.total_hours,
        )
        return record

    async def sweep_unfinalized(self, user_id: str, active_date: str) -> list[DailyRecord]:
        """Finalize every open day except ``active_date``.

        Days are independent: a storage failure on one is logged and the
        sweep moves on, leaving that day for the next sweep.
        """
        records: list[DailyRecord] = []
        for entry in await self._ledger.list_unfinalized(user_id):
            if entry.date == active_date:
                continue
            logger.info("Finalizing previous day: %s", entry.date)
            try:
                record = await self.finalize(user_id, entry.date)
            except TransientStorageError as err:
                logger.warning("Could not finalize %s, will retry on next sweep: %s", entry.date, err)
                continue
            if record is not None:
                records.append(record)
        return records

    async def get_daily_records(self, user_id: str, limit: int = 30) -> list[DailyRecord]:
        """Return the ``limit`` most recent records, newest first."""
        rows = await self._store.query(
            daily_records_collection(user_id),
            order_by="date",
            descending=True,
            limit=limit,
        )
        logger.debug("Retrieved %d daily records", len(rows))
        return [DailyRecord.from_document(row) for row in rows]

    async def weekly_summary(self, user_id: str) -> Summary:
        return summarize(await self.get_daily_records(user_id, self.weekly_window))

    async def monthly_summary(self, user_id: str) -> Summary:
        return summarize(await self.get_daily_records(user_id, self.monthly_window))
