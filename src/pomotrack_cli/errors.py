"""Exception hierarchy for Pomotrack CLI.

Commands translate these into the semantic exit codes defined in
``pomotrack_cli.utils.exit_codes``.
"""

from __future__ import annotations

from typing import Any


class PomotrackError(Exception):
    """Base class for all Pomotrack errors."""


class SessionValidationError(PomotrackError):
    """A session record violates one of its invariants."""


class InvalidTransitionError(PomotrackError):
    """An operation is not allowed in the session's current state."""

    def __init__(self, status: str, event: str):
        self.status = status
        self.event = event
        super().__init__(f"Cannot {event} a session that is {status}")


class SessionAlreadyActiveError(PomotrackError):
    """Another session is still running or paused."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id[:8]} is still open")


class NoActiveSessionError(PomotrackError):
    """The operation needs an open session but there is none."""

    def __init__(self):
        super().__init__("No active session")


class StorageError(PomotrackError):
    """Local storage could not be read or written."""


class SyncError(PomotrackError):
    """Base class for synchronization failures."""


class NetworkError(SyncError):
    """The remote store is unreachable. Queued actions stay queued."""


class AuthError(SyncError):
    """Authentication failed and the token could not be refreshed."""


class ConflictError(SyncError):
    """The remote store holds a diverging version of a record."""

    def __init__(self, resource_id: str, remote_data: dict[str, Any] | None = None):
        self.resource_id = resource_id
        self.remote_data = remote_data or {}
        super().__init__(f"Remote version of {resource_id} diverges")
