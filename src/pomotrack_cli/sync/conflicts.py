"""Sync conflict log and resolution policy.

A conflict is any divergence between the local and remote copy of a
session. Each one is resolved by the configured strategy and appended to
a JSON log so that it can be reviewed with ``pomotrack sync conflicts``.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Literal

from pomotrack_cli.models.session import Session
from pomotrack_cli.utils.logger import get_logger

logger = get_logger(__name__)

Strategy = Literal["last_write_wins", "remote_wins", "local_wins"]
Winner = Literal["local", "remote"]


class SyncConflict:
    """Represents a single sync conflict."""

    def __init__(
        self,
        resource_id: str,
        local_data: dict[str, Any],
        remote_data: dict[str, Any],
        resolution: str,
        resource_type: str = "session",
    ):
        """Initialize a sync conflict.

        Args:
            resource_id: UUID of the conflicting session
            local_data: Local version data
            remote_data: Remote version data
            resolution: local_wins, remote_wins or skipped
            resource_type: Type of resource
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.local_data = local_data
        self.remote_data = remote_data
        self.resolution = resolution
        self.detected_at = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "local_data": self.local_data,
            "remote_data": self.remote_data,
            "resolution": self.resolution,
            "detected_at": self.detected_at.isoformat(),
        }


class SyncConflictTracker:
    """Collects conflicts during a sync run and appends them to the log file."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.conflicts_file = self.data_dir / "sync-conflicts.json"
        self._conflicts: list[SyncConflict] = []

    def add_conflict(self, conflict: SyncConflict) -> None:
        logger.warning(
            "Conflict on %s %s resolved as %s",
            conflict.resource_type, conflict.resource_id, conflict.resolution,
        )
        self._conflicts.append(conflict)

    def load_log(self) -> list[dict[str, Any]]:
        """All conflicts ever saved, oldest first."""
        if not self.conflicts_file.exists():
            return []
        try:
            with open(self.conflicts_file, encoding="utf-8") as f:
                data = json.load(f)
        except JSONDecodeError:
            logger.warning("Conflict log %s is corrupted, ignoring it", self.conflicts_file)
            return []
        return data if isinstance(data, list) else []

    def save(self) -> None:
        """Append the tracked conflicts to the log and forget them."""
        if not self._conflicts:
            return

        self.data_dir.mkdir(parents=True, exist_ok=True)
        all_conflicts = self.load_log() + [c.to_dict() for c in self._conflicts]
        with open(self.conflicts_file, "w", encoding="utf-8") as f:
            json.dump(all_conflicts, f, indent=2)
        self._conflicts.clear()

    def clear_log(self) -> int:
        """Delete the log file, returning how many entries it held."""
        count = len(self.load_log())
        if self.conflicts_file.exists():
            self.conflicts_file.unlink()
        return count


def compare_timestamps(local: datetime | None, remote: datetime | None) -> str:
    """Return "local", "remote" or "equal" depending on which is newer."""
    if local is None and remote is None:
        return "equal"
    if local is None:
        return "remote"
    if remote is None:
        return "local"
    if local > remote:
        return "local"
    if remote > local:
        return "remote"
    return "equal"


def same_content(local: Session, remote: Session) -> bool:
    """Whether two copies of a session carry the same data."""
    return local.to_dict() == remote.to_dict()


def resolve(local: Session, remote: Session, strategy: Strategy) -> Winner:
    """Pick the copy that survives a conflict.

    ``last_write_wins`` compares ``updated_at``; on a tie the server copy
    is kept so every device converges on the same record.
    """
    if strategy == "remote_wins":
        return "remote"
    if strategy == "local_wins":
        return "local"
    if compare_timestamps(local.updated_at, remote.updated_at) == "local":
        return "local"
    return "remote"
