"""Single-slot backup of unsaved seconds kept on this device.

The slot never reaches the remote document store. It only ever holds time the
ledger has not confirmed yet, so the next session can replay it after a crash
or an abrupt close.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from lockin.schemas.documents import LocalBackup
from lockin.utils.dates import Clock, day_key, local_now

logger = logging.getLogger(__name__)

BACKUP_SLOT = "unsavedTime"
DEFAULT_MAX_AGE = timedelta(hours=24)


class DeviceState:
    """Durable key-value slots stored as one JSON file.

    Writes go to a temporary file that is then renamed over the original, so a
    crash mid-write leaves either the old or the new content.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as err:
            logger.warning("Device state %s is unreadable, starting empty: %s", self.path, err)
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class LocalBackupStore:
    """Last-write-wins backup slot for unflushed session seconds."""

    def __init__(
        self,
        state: DeviceState,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Clock = local_now,
    ) -> None:
        self._state = state
        self.max_age = max_age
        self._clock = clock

    def write(self, user_id: str, date: str, session_seconds: int) -> LocalBackup:
        """Overwrite the slot with ``session_seconds`` of ``user_id`` for ``date``."""
        backup = LocalBackup(
            user_id=user_id,
            date=date,
            session_seconds=session_seconds,
            timestamp=self._clock(),
        )
        self._state.set(BACKUP_SLOT, backup.to_document())
        logger.debug("Backed up %d unsaved seconds for %s", session_seconds, date)
        return backup

    def read(self) -> LocalBackup | None:
        """Return the stored backup, or None when absent or corrupt."""
        raw = self._state.get(BACKUP_SLOT)
        if raw is None:
            return None
        try:
            return LocalBackup.from_document(raw)
        except (ValueError, TypeError) as err:
            logger.warning("Discarding unreadable local backup: %s", err)
            self.clear()
            return None

    def inspect(self) -> dict[str, Any] | None:
        """Return the raw slot content for diagnostics."""
        return self._state.get(BACKUP_SLOT)

    def clear(self, user_id: str | None = None) -> None:
        """Empty the slot.

        With ``user_id`` the slot is only emptied when that user owns it.
        """
        if user_id is not None:
            current = self.read()
            if current is not None and current.user_id != user_id:
                return
        self._state.remove(BACKUP_SLOT)

    def is_valid(self, backup: LocalBackup, now: datetime) -> bool:
        """A backup is usable only on the day it was written and while younger than max_age."""
        return backup.date == day_key(now) and now - backup.timestamp < self.max_age
