"""Tests for the SQL-backed document store."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from lockin.core.errors import DocumentNotFound, TransientStorageError
from lockin.services.documents import (
    Increment,
    SqlDocumentStore,
    daily_record_path,
    daily_records_collection,
    daily_time_path,
)


def test_paths_follow_user_hierarchy() -> None:
    assert daily_time_path("u1", "2024-01-01") == "users/u1/dailyTime/2024-01-01"
    assert daily_record_path("u1", "2024-01-01") == "users/u1/dailyRecords/2024-01-01"
    assert daily_records_collection("u1") == "users/u1/dailyRecords"


@pytest.mark.asyncio
async def test_set_then_get_and_overwrite(store: SqlDocumentStore) -> None:
    path = daily_time_path("u1", "2024-01-01")
    assert await store.get(path) is None

    await store.set(path, {"date": "2024-01-01", "totalSeconds": 5, "extra": True})
    await store.set(path, {"date": "2024-01-01", "totalSeconds": 9})

    assert await store.get(path) == {"date": "2024-01-01", "totalSeconds": 9}


@pytest.mark.asyncio
async def test_update_merges_and_increments(store: SqlDocumentStore) -> None:
    path = daily_time_path("u1", "2024-01-01")
    await store.set(path, {"totalSeconds": 10, "finalized": False})

    merged = await store.update(path, {"totalSeconds": Increment(5), "lastUpdated": "now"})

    assert merged == {"totalSeconds": 15, "finalized": False, "lastUpdated": "now"}
    assert await store.get(path) == merged


@pytest.mark.asyncio
async def test_update_missing_document_fails(store: SqlDocumentStore) -> None:
    with pytest.raises(DocumentNotFound):
        await store.update("users/u1/dailyTime/2024-01-01", {"finalized": True})


@pytest.mark.asyncio
async def test_query_filters_orders_and_limits(store: SqlDocumentStore) -> None:
    for day, finalized in [("2024-01-03", False), ("2024-01-01", False), ("2024-01-02", True)]:
        await store.set(daily_time_path("u1", day), {"date": day, "finalized": finalized})
    await store.set(daily_time_path("u2", "2024-01-01"), {"date": "2024-01-01", "finalized": False})

    open_days = await store.query("users/u1/dailyTime", where={"finalized": False}, order_by="date")
    assert [row["date"] for row in open_days] == ["2024-01-01", "2024-01-03"]

    newest = await store.query("users/u1/dailyTime", order_by="date", descending=True, limit=2)
    assert [row["date"] for row in newest] == ["2024-01-03", "2024-01-02"]


@pytest.mark.asyncio
async def test_driver_errors_become_transient(store: SqlDocumentStore, mocker) -> None:
    mocker.patch(
        "sqlalchemy.orm.Session.get",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    )
    with pytest.raises(TransientStorageError):
        await store.get("users/u1/dailyTime/2024-01-01")


@pytest.mark.asyncio
async def test_invalid_path_is_rejected(store: SqlDocumentStore) -> None:
    with pytest.raises(ValueError):
        await store.set("no-collection", {})


@pytest.mark.asyncio
async def test_offloaded_store_runs_in_worker_thread(session_factory, mocker) -> None:
    to_thread = mocker.spy(asyncio, "to_thread")
    store = SqlDocumentStore(session_factory, offload=True)
    path = daily_time_path("u1", "2024-01-01")

    await store.set(path, {"date": "2024-01-01", "totalSeconds": 10, "finalized": False})
    merged = await store.update(path, {"totalSeconds": Increment(5)})
    rows = await store.query("users/u1/dailyTime", where={"finalized": False})

    assert merged["totalSeconds"] == 15
    assert await store.get(path) == merged
    assert [row["date"] for row in rows] == ["2024-01-01"]
    assert to_thread.call_count == 4


@pytest.mark.asyncio
async def test_inline_store_stays_on_loop(store: SqlDocumentStore, mocker) -> None:
    to_thread = mocker.spy(asyncio, "to_thread")

    await store.set(daily_time_path("u1", "2024-01-01"), {"totalSeconds": 1})

    to_thread.assert_not_called()
