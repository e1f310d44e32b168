# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from lockin.core.settings import Settings
from lockin.db.session import Base, create_tables, drop_tables
from lockin.main import create_app
from lockin.services.backup import DeviceState, LocalBackupStore
from lockin.services.documents import SqlDocumentStore
from lockin.services.finalization import FinalizationEngine
from lockin.services.ledger import DailyTimeLedger
from lockin.services.timer import TimerStateMachine

TEST_DB_URL = "sqlite://"
USER_ID = "user-1"


class FakeClock:
    """Controllable wall clock returning naive local datetimes."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)

    def set(self, moment: datetime) -> None:
        self.now = moment


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> SqlDocumentStore:
    return SqlDocumentStore(session_factory)


@pytest.fixture()
def ledger(store: SqlDocumentStore, clock: FakeClock) -> DailyTimeLedger:
    return DailyTimeLedger(store, clock=clock)


@pytest.fixture()
def finalization(
    store: SqlDocumentStore, ledger: DailyTimeLedger, clock: FakeClock
) -> FinalizationEngine:
    return FinalizationEngine(store, ledger, clock=clock)


@pytest.fixture()
def backup_path(tmp_path: Path) -> Path:
    return tmp_path / "device_state.json"


@pytest.fixture()
def backup(backup_path: Path, clock: FakeClock) -> LocalBackupStore:
    return LocalBackupStore(DeviceState(backup_path), clock=clock)


@pytest.fixture()
def make_timer(
    ledger: DailyTimeLedger, backup: LocalBackupStore, clock: FakeClock
) -> Callable[..., TimerStateMachine]:
    """Build timers whose scheduled tasks never fire on their own.

    Tests drive ``tick`` and ``checkpoint`` by hand unless they pass
    short intervals explicitly.
    """

    def _make(user_id: str = USER_ID, **overrides: Any) -> TimerStateMachine:
        options: dict[str, Any] = {
            "clock": clock,
            "tick_interval": 3600.0,
            "checkpoint_interval": 3600.0,
        }
        options.update(overrides)
        return TimerStateMachine(user_id, ledger, backup, **options)

    return _make


@pytest.fixture()
def test_settings(backup_path: Path) -> Settings:
    return Settings(
        SECRET_KEY="test-secret-key",
        BACKUP_PATH=backup_path,
        TICK_INTERVAL_SECONDS=3600.0,
        CHECKPOINT_INTERVAL_SECONDS=3600.0,
    )


@pytest.fixture()
def client(
    test_settings: Settings,
    session_factory: sessionmaker[Session],
    engine: Engine,
    clock: FakeClock,
) -> Iterator[TestClient]:
    app = create_app(test_settings, session_factory, engine, clock=clock)
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def credentials() -> dict[str, str]:
    return {"email": "worker@example.com", "password": "correct-horse"}


@pytest.fixture()
def auth_headers(client: TestClient, credentials: dict[str, str]) -> dict[str, str]:
    """Sign up the primary test user and return bearer headers."""
    response = client.post("/api/v1/auth/signup", json=credentials)
    assert response.status_code == 201
    token = response.json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}
