"""Tests for opening and closing a tracking session."""

from __future__ import annotations

from datetime import datetime

import pytest

from lockin.core.errors import TransientStorageError
from lockin.services.backup import LocalBackupStore
from lockin.services.finalization import FinalizationEngine
from lockin.services.ledger import DailyTimeLedger
from lockin.services.session import TrackingSession
from tests.conftest import USER_ID


@pytest.fixture()
def make_session(
    make_timer, ledger: DailyTimeLedger, finalization: FinalizationEngine, clock
):
    def _make(user_id: str = USER_ID, **options) -> TrackingSession:
        return TrackingSession(
            make_timer(user_id), ledger, finalization, clock=clock, **options
        )

    return _make


@pytest.mark.asyncio
async def test_open_seeds_today_and_sweeps_previous_days(
    make_session, ledger: DailyTimeLedger
) -> None:
    await ledger.increment(USER_ID, "2023-12-31", 300)
    await ledger.increment(USER_ID, "2024-01-01", 600)

    session = make_session()
    await session.open()

    assert session.ready
    assert session.timer.elapsed_seconds_today == 600
    assert session.timer.state.value == "stopped"
    remaining = await ledger.list_unfinalized(USER_ID)
    assert [entry.date for entry in remaining] == ["2024-01-01"]


@pytest.mark.asyncio
async def test_open_replays_backup_on_top_of_seed(
    make_session, ledger: DailyTimeLedger, backup: LocalBackupStore
) -> None:
    await ledger.increment(USER_ID, "2024-01-01", 600)
    backup.write(USER_ID, "2024-01-01", 45)

    session = make_session()
    await session.open()
    await session.timer.drain()

    assert session.timer.elapsed_seconds_today == 645
    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None and entry.total_seconds == 645


@pytest.mark.asyncio
async def test_open_survives_unreachable_store(
    make_session, ledger: DailyTimeLedger, mocker
) -> None:
    mocker.patch.object(ledger, "get", side_effect=TransientStorageError("offline"))
    mocker.patch.object(ledger, "list_unfinalized", side_effect=TransientStorageError("offline"))

    session = make_session()
    await session.open()

    assert session.ready
    assert session.timer.elapsed_seconds_today == 0


@pytest.mark.asyncio
async def test_close_flushes_running_timer(make_session, ledger: DailyTimeLedger) -> None:
    session = make_session()
    await session.open()
    await session.timer.start()
    for _ in range(42):
        session.timer.tick()

    await session.close()

    assert not session.ready
    assert not session.timer.running
    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None
    assert entry.total_seconds == 42
    assert entry.finalized is False


@pytest.mark.asyncio
async def test_close_leaves_today_open_for_more_work(
    make_session, ledger: DailyTimeLedger
) -> None:
    session = make_session(finalize_on_close=True)
    await session.open()
    await session.timer.start()
    for _ in range(60):
        session.timer.tick()
    await session.close()

    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None and entry.finalized is False

    # Signing back in the same day keeps adding to the same entry.
    again = make_session(finalize_on_close=True)
    await again.open()
    assert again.timer.elapsed_seconds_today == 60
    await again.timer.start()
    for _ in range(50):
        again.timer.tick()
    await again.close()

    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None
    assert entry.total_seconds == 110
    assert entry.finalized is False


@pytest.mark.asyncio
async def test_close_finalizes_days_that_are_over(
    make_session, ledger: DailyTimeLedger, clock
) -> None:
    session = make_session(finalize_on_close=True)
    await session.open()
    await session.timer.start()
    for _ in range(60):
        session.timer.tick()
    session.timer.stop()

    clock.set(datetime(2024, 1, 2, 8, 0, 0))
    await session.close()

    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None and entry.finalized is True


@pytest.mark.asyncio
async def test_open_ignores_backup_of_another_user(
    make_session, ledger: DailyTimeLedger, backup: LocalBackupStore
) -> None:
    backup.write(USER_ID, "2024-01-01", 300)

    session = make_session("user-2")
    await session.open()
    await session.timer.drain()

    assert session.timer.elapsed_seconds_today == 0
    assert await ledger.get("user-2", "2024-01-01") is None
    saved = backup.read()
    assert saved is not None and saved.user_id == USER_ID

    owner = make_session()
    await owner.open()
    await owner.timer.drain()

    assert owner.timer.elapsed_seconds_today == 300
    entry = await ledger.get(USER_ID, "2024-01-01")
    assert entry is not None and entry.total_seconds == 300


@pytest.mark.asyncio
async def test_teardown_writes_backup(make_session, backup: LocalBackupStore) -> None:
    session = make_session()
    await session.open()
    await session.timer.start()
    for _ in range(9):
        session.timer.tick()

    session.teardown()

    saved = backup.read()
    assert saved is not None and saved.session_seconds == 9
    await session.timer.drain()
