"""Session state machine as pure functions over the timer event log.

States: ``running -> {paused <-> running} -> completed``, with ``cancel``
abandoning an open session. ``interrupt`` is a self-transition that only
bumps the interruption counter. ``idle`` is the absence of an open session.
"""

from __future__ import annotations

from collections.abc import Iterable

from pomotrack_cli.errors import InvalidTransitionError, SessionValidationError
from pomotrack_cli.models.session import Session, SessionStatus, TimerEvent

TRANSITIONS: dict[tuple[str, str], SessionStatus] = {
    ("running", "pause"): "paused",
    ("paused", "resume"): "running",
    ("running", "interrupt"): "running",
    ("paused", "interrupt"): "paused",
    ("running", "complete"): "completed",
    ("paused", "complete"): "completed",
    ("running", "cancel"): "cancelled",
    ("paused", "cancel"): "cancelled",
}


def can_apply(status: str, event_kind: str) -> bool:
    """Whether *event_kind* is a legal event for a session in *status*."""
    return (status, event_kind) in TRANSITIONS


def apply_event(session: Session, event: TimerEvent) -> Session:
    """Return the session that results from applying *event*.

    The input is left untouched. Timestamps earlier than the session start
    or than the pause they close (a wall clock stepping backwards) are
    clamped, so ``end_time >= start_time`` always holds.

    Raises:
        InvalidTransitionError: event not allowed in the current state
        SessionValidationError: event belongs to another session
    """
    if event.session_id != session.id:
        raise SessionValidationError(
            f"Event {event.id} belongs to session {event.session_id}, not {session.id}"
        )
    if event.kind == "start":
        raise InvalidTransitionError(session.status, "start")

    new_status = TRANSITIONS.get((session.status, event.kind))
    if new_status is None:
        raise InvalidTransitionError(session.status, event.kind)

    ts = max(event.timestamp, session.start_time)
    updated = session.copy(status=new_status, updated_at=ts)

    if event.kind == "interrupt":
        updated.interruptions = session.interruptions + 1
        return updated

    if event.kind == "pause":
        updated.pause_time = ts
        updated.duration_seconds = updated.active_seconds(ts)
        return updated

    # resume, complete and cancel all close an open pause
    if session.pause_time is not None:
        paused_span = (ts - max(session.pause_time, session.start_time)).total_seconds()
        updated.paused_seconds = session.paused_seconds + max(0, int(paused_span))
        updated.pause_time = None

    if event.kind == "resume":
        updated.duration_seconds = updated.active_seconds(ts)
        return updated

    updated.end_time = ts
    updated.completed = event.kind == "complete"
    # Time past the planned boundary (late completion, device sleep) is not focus time
    updated.duration_seconds = min(updated.active_seconds(ts), session.planned_seconds)
    return updated


def replay(header: Session, events: Iterable[TimerEvent]) -> Session:
    """Fold an event log onto a freshly started session.

    *header* is the session as it was created by its ``start`` event; a
    ``start`` event in *events* is skipped.
    """
    session = header
    for event in events:
        if event.kind == "start":
            continue
        session = apply_event(session, event)
    return session


def fresh_header(session: Session) -> Session:
    """The session as its ``start`` event created it."""
    return session.copy(
        status="running",
        end_time=None,
        pause_time=None,
        paused_seconds=0,
        duration_seconds=0,
        interruptions=0,
        completed=False,
        updated_at=session.start_time,
    )
