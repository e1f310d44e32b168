"""Per-user hierarchical document store.

The ledger and the finalization engine only ever use four primitives:
``get``, ``set`` (full overwrite), ``update`` (partial merge with atomic
``Increment`` support) and ``query`` (equality filter, order, limit).
``SqlDocumentStore`` implements them on top of a single SQLAlchemy table.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lockin.core.errors import DocumentNotFound, TransientStorageError
from lockin.db.session import SessionLocal
from lockin.models import Document

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Increment:
    """Update value that adds ``amount`` to the stored number instead of replacing it."""

    amount: int | float


def user_path(user_id: str) -> str:
    return f"users/{user_id}"


def daily_time_collection(user_id: str) -> str:
    return f"{user_path(user_id)}/dailyTime"


def daily_time_path(user_id: str, date: str) -> str:
    return f"{daily_time_collection(user_id)}/{date}"


def daily_records_collection(user_id: str) -> str:
    return f"{user_path(user_id)}/dailyRecords"


def daily_record_path(user_id: str, date: str) -> str:
    return f"{daily_records_collection(user_id)}/{date}"


class DocumentStore(Protocol):
    """Contract the ledger and finalization engine are written against."""

    async def get(self, path: str) -> dict[str, Any] | None: ...

    async def set(self, path: str, data: Mapping[str, Any]) -> None: ...

    async def update(self, path: str, fields: Mapping[str, Any]) -> dict[str, Any]: ...

    async def query(
        self,
        collection: str,
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...


def _split_path(path: str) -> tuple[str, str]:
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Invalid document path: {path!r}")
    return collection, doc_id


def _merge(current: Mapping[str, Any], fields: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in fields.items():
        if isinstance(value, Increment):
            merged[key] = (merged.get(key) or 0) + value.amount
        else:
            merged[key] = value
    return merged


class SqlDocumentStore:
    """Document store persisted in the ``document`` table.

    Each primitive runs in its own short transaction. Driver and connection
    failures surface as ``TransientStorageError``.

    With ``offload`` the blocking database work runs in a worker thread so
    the event loop keeps ticking. SQLite stays inline: its in-process
    connection is shared and its transactions are short.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        offload: bool = False,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self.offload = offload

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as err:
            session.rollback()
            raise TransientStorageError(f"Document store unavailable: {err}") from err
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        if self.offload:
            return await asyncio.to_thread(func, *args)
        return func(*args)

    async def get(self, path: str) -> dict[str, Any] | None:
        """Return a copy of the document at ``path`` or None."""
        return await self._run(self._get, path)

    async def set(self, path: str, data: Mapping[str, Any]) -> None:
        """Create or fully overwrite the document at ``path``."""
        await self._run(self._set, path, data)
        logger.debug("Set document %s", path)

    async def update(self, path: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``fields`` into an existing document and return the result.

        The row is read with ``FOR UPDATE`` so concurrent increments on
        databases that support row locks are applied one after another.

        Raises:
            DocumentNotFound: If nothing is stored at ``path``.
        """
        merged = await self._run(self._update, path, fields)
        logger.debug("Updated document %s with %s", path, sorted(fields))
        return merged

    async def query(
        self,
        collection: str,
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List documents in ``collection`` matching every equality filter.

        Filtering and ordering happen on the decoded JSON so the same query
        works on every SQL backend.
        """
        results = await self._run(self._load_collection, collection)
        if where:
            results = [
                row for row in results
                if all(row.get(key) == value for key, value in where.items())
            ]
        if order_by is not None:
            results.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)),
                         reverse=descending)
        if limit is not None:
            results = results[:limit]
        return results

    # --- Blocking primitives ------------------------------------------------------
    def _get(self, path: str) -> dict[str, Any] | None:
        with self._transaction() as session:
            document = session.get(Document, path)
            return dict(document.data) if document is not None else None

    def _set(self, path: str, data: Mapping[str, Any]) -> None:
        collection, doc_id = _split_path(path)
        with self._transaction() as session:
            document = session.get(Document, path)
            if document is None:
                session.add(
                    Document(path=path, collection=collection, doc_id=doc_id, data=dict(data))
                )
            else:
                document.data = dict(data)

    def _update(self, path: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        with self._transaction() as session:
            document = session.execute(
                select(Document).where(Document.path == path).with_for_update()
            ).scalar_one_or_none()
            if document is None:
                raise DocumentNotFound(path)
            # Assign a fresh dict so SQLAlchemy sees the JSON column change.
            document.data = _merge(document.data, fields)
            return dict(document.data)

    def _load_collection(self, collection: str) -> list[dict[str, Any]]:
        with self._transaction() as session:
            rows = session.execute(
                select(Document.data).where(Document.collection == collection)
            ).scalars().all()
            return [dict(row) for row in rows]
