"""Storage row behind the hierarchical document store."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from lockin.db.session import Base
from lockin.utils.dates import utcnow


class Document(Base):
    """One document addressed by a slash-separated path.

    ``users/{uid}/dailyTime/2024-01-01`` is stored with
    ``collection = "users/{uid}/dailyTime"`` and ``doc_id = "2024-01-01"`` so a
    whole collection can be listed with a single indexed lookup.
    """

    __tablename__ = "document"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    collection: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
