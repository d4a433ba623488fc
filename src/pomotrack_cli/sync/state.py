"""Sync state: last successful push/pull per API endpoint.

Persisted as JSON in the data directory so pulls can be incremental.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.time_utils import parse_iso, to_iso

logger = get_logger(__name__)


class SyncState:
    """Manages sync state persistence."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.state_file = self.data_dir / "sync-state.json"
        self._state: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.state_file.exists():
            self._state = {"last_sync": {}}
            return

        try:
            with open(self.state_file, encoding="utf-8") as f:
                self._state = json.load(f) or {"last_sync": {}}
        except JSONDecodeError:
            logger.warning("Sync state %s is corrupted, starting fresh", self.state_file)
            self._state = {"last_sync": {}}

        self._state.setdefault("last_sync", {})

    def _save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.state_file, "w", encoding="utf-8") as f:
            json.dump(self._state, f, indent=2)

    def get_last_sync(self, key: str) -> datetime | None:
        """Last sync time for *key*, or None if never synced."""
        return parse_iso(self._state["last_sync"].get(key))

    def set_last_sync(self, key: str, timestamp: datetime | None = None) -> None:
        if timestamp is None:
            timestamp = datetime.now(UTC)
        self._state["last_sync"][key] = to_iso(timestamp)
        self._save()

    def clear_last_sync(self, key: str) -> None:
        if key in self._state["last_sync"]:
            del self._state["last_sync"][key]
            self._save()

    @staticmethod
    def make_key(endpoint: str, direction: str) -> str:
        """Key for one endpoint and direction ("push" or "pull")."""
        return f"{endpoint} ({direction})"
