"""Session and timer event records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Literal

from pomotrack_cli.errors import SessionValidationError
from pomotrack_cli.utils.time_utils import parse_iso, to_iso

SessionKind = Literal["focus", "break"]
SessionStatus = Literal["running", "paused", "completed", "cancelled"]
EventKind = Literal["start", "pause", "resume", "complete", "interrupt", "cancel"]

OPEN_STATUSES: tuple[str, ...] = ("running", "paused")
FINAL_STATUSES: tuple[str, ...] = ("completed", "cancelled")


@dataclass
class Session:
    """A focus or break session.

    ``duration_seconds`` is focused time: the wall-clock span between start
    and end minus time spent paused. It is derived, never counted tick by
    tick, so it survives device sleep and process restarts.
    """

    id: str
    kind: SessionKind
    status: SessionStatus
    start_time: datetime
    planned_seconds: int
    end_time: datetime | None = None
    duration_seconds: int = 0
    paused_seconds: int = 0
    pause_time: datetime | None = None
    completed: bool = False
    interruptions: int = 0
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    device_id: str | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.planned_seconds <= 0:
            raise SessionValidationError("planned duration must be positive")
        if self.end_time is not None and self.end_time < self.start_time:
            raise SessionValidationError(
                f"end time {to_iso(self.end_time)} precedes start time "
                f"{to_iso(self.start_time)}"
            )
        if self.updated_at is None:
            self.updated_at = self.start_time

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES

    @property
    def planned_end(self) -> datetime:
        """Wall-clock time at which the countdown reaches zero if not paused again."""
        return self.start_time + timedelta(
            seconds=self.planned_seconds + self.paused_seconds
        )

    def active_seconds(self, now: datetime) -> int:
        """Focused seconds at *now*, excluding pauses."""
        if self.end_time is not None:
            reference = self.end_time
        elif self.status == "paused" and self.pause_time is not None:
            reference = self.pause_time
        else:
            reference = now
        elapsed = (reference - self.start_time).total_seconds() - self.paused_seconds
        return max(0, int(elapsed))

    def remaining_seconds(self, now: datetime) -> int:
        """Seconds left on the countdown at *now*."""
        if self.is_final:
            return 0
        return max(0, self.planned_seconds - self.active_seconds(now))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "kind": self.kind,
            "status": self.status,
            "start_time": to_iso(self.start_time),
            "end_time": to_iso(self.end_time),
            "planned_seconds": self.planned_seconds,
            "duration_seconds": self.duration_seconds,
            "paused_seconds": self.paused_seconds,
            "pause_time": to_iso(self.pause_time),
            "completed": self.completed,
            "interruptions": self.interruptions,
            "category": self.category,
            "tags": list(self.tags),
            "notes": self.notes,
            "device_id": self.device_id,
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Create from a dictionary produced by :meth:`to_dict` or the API."""
        try:
            return cls(
                id=data["id"],
                kind=data["kind"],
                status=data["status"],
                start_time=parse_iso(data["start_time"]),
                planned_seconds=int(data["planned_seconds"]),
                end_time=parse_iso(data.get("end_time")),
                duration_seconds=int(data.get("duration_seconds") or 0),
                paused_seconds=int(data.get("paused_seconds") or 0),
                pause_time=parse_iso(data.get("pause_time")),
                completed=bool(data.get("completed", False)),
                interruptions=int(data.get("interruptions") or 0),
                category=data.get("category"),
                tags=list(data.get("tags") or []),
                notes=data.get("notes"),
                device_id=data.get("device_id"),
                updated_at=parse_iso(data.get("updated_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SessionValidationError(f"Malformed session record: {e}") from e

    def copy(self, **changes: Any) -> Session:
        changes.setdefault("tags", list(self.tags))
        return replace(self, **changes)


@dataclass(frozen=True)
class TimerEvent:
    """An entry of the append-only timer event log."""

    id: str
    session_id: str
    kind: EventKind
    timestamp: datetime
    note: str | None = None

    @classmethod
    def create(
        cls,
        session_id: str,
        kind: EventKind,
        timestamp: datetime,
        note: str | None = None,
    ) -> TimerEvent:
        return cls(
            id=str(uuid.uuid4()),
            session_id=session_id,
            kind=kind,
            timestamp=timestamp,
            note=note,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "kind": self.kind,
            "timestamp": to_iso(self.timestamp),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerEvent:
        return cls(
            id=data["id"],
            session_id=data["session_id"],
            kind=data["kind"],
            timestamp=parse_iso(data["timestamp"]),
            note=data.get("note"),
        )
