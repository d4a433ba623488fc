"""Local SQLite storage for sessions, timer events and the sync queue."""

from .session_store import QueueEntry, SessionStore

__all__ = ["QueueEntry", "SessionStore"]
