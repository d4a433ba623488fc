"""Session tracker: the one stateful owner of the in-progress session."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from pomotrack_cli.core.clock import Clock
from pomotrack_cli.core.events import apply_event
from pomotrack_cli.errors import (
    NoActiveSessionError,
    SessionAlreadyActiveError,
    SessionValidationError,
)
from pomotrack_cli.models.session import EventKind, Session, SessionKind, TimerEvent
from pomotrack_cli.storage import SessionStore
from pomotrack_cli.utils.logger import get_logger

logger = get_logger(__name__)

SessionListener = Callable[[Session], None]


class SessionTracker:
    """Start, pause, resume, interrupt, complete and cancel sessions.

    Only one session (focus or break) may be open at a time. Every operation
    re-reads the open session inside a write transaction, so separate CLI
    processes working on the same database see each other's changes and
    never interleave a read-modify-write.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Clock,
        device_id: str | None = None,
    ):
        self.store = store
        self.clock = clock
        self.device_id = device_id
        self._listeners: list[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> None:
        """Call *listener* with every session that reaches a final state."""
        self._listeners.append(listener)

    def current(self) -> Session | None:
        """The running or paused session, if any."""
        return self.store.get_open_session()

    def remaining_seconds(self) -> int:
        session = self.current()
        if session is None:
            raise NoActiveSessionError()
        return session.remaining_seconds(self.clock.now())

    def start(
        self,
        kind: SessionKind = "focus",
        planned_minutes: float = 25,
        category: str | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
    ) -> Session:
        """Open a new session.

        Raises:
            SessionAlreadyActiveError: another session is running or paused
            SessionValidationError: non-positive duration
        """
        planned_seconds = int(round(planned_minutes * 60))
        if planned_seconds <= 0:
            raise SessionValidationError("Duration must be positive")

        with self.store.transaction():
            existing = self.store.get_open_session()
            if existing is not None:
                raise SessionAlreadyActiveError(existing.id)

            now = self.clock.now()
            session = Session(
                id=str(uuid.uuid4()),
                kind=kind,
                status="running",
                start_time=now,
                planned_seconds=planned_seconds,
                interruptions=0,
                category=category,
                tags=list(tags or []),
                notes=notes,
                device_id=self.device_id,
                updated_at=now,
            )
            event = TimerEvent.create(session.id, "start", now)
            self.store.record(session, event)

        logger.info(
            "Started %s session %s (%ds)", kind, session.id, planned_seconds
        )
        return session

    def pause(self) -> Session:
        return self._transition("pause")

    def resume(self) -> Session:
        return self._transition("resume")

    def interrupt(self, note: str | None = None) -> Session:
        """Count an interruption; the session state is unchanged."""
        return self._transition("interrupt", note=note)

    def complete(self, at: datetime | None = None) -> Session:
        """Finish the open session as completed.

        Args:
            at: completion time; defaults to now. The countdown boundary
                passes its own timestamp so late handling adds no time.
        """
        return self._transition("complete", at=at)

    def cancel(self, note: str | None = None) -> Session:
        """Abandon the open session. It is kept with ``completed=False``."""
        return self._transition("cancel", note=note)

    def reconcile(self) -> Session | None:
        """Complete a running session whose countdown ran out unobserved.

        A detached session keeps counting in wall-clock time while no
        process watches it (terminal closed, laptop asleep). It is completed
        at its planned boundary, not at the moment it is noticed.

        Returns:
            The completed session, or None if nothing was due
        """
        session = self.current()
        if session is None or session.status != "running":
            return None
        if session.remaining_seconds(self.clock.now()) > 0:
            return None
        logger.info("Session %s ran out while unobserved", session.id)
        return self.complete(at=session.planned_end)

    def _transition(
        self,
        kind: EventKind,
        note: str | None = None,
        at: datetime | None = None,
    ) -> Session:
        with self.store.transaction():
            session = self.store.get_open_session()
            if session is None:
                raise NoActiveSessionError()

            event = TimerEvent.create(session.id, kind, at or self.clock.now(), note)
            updated = apply_event(session, event)
            self.store.record(updated, event, enqueue=updated.is_final)

        logger.info("Session %s: %s -> %s", session.id, session.status, updated.status)
        if updated.is_final:
            for listener in self._listeners:
                listener(updated)
        return updated
