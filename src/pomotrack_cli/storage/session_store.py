"""SQLite-backed store for sessions, the timer event log and the sync queue.

Provides:
- WAL mode and a busy timeout so several CLI processes can share the file
- ``BEGIN IMMEDIATE`` transactions serialising read-modify-write cycles
- An outbox (``sync_queue``) written in the same transaction as the session
- Owner-only file permissions
"""

from __future__ import annotations

import json
import os
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pomotrack_cli.errors import StorageError
from pomotrack_cli.models.session import Session, TimerEvent
from pomotrack_cli.storage.migrations import ALL_MIGRATIONS, MigrationRunner
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.time_utils import parse_iso, to_iso

logger = get_logger(__name__)

_SESSION_COLUMNS = (
    "id, kind, status, start_time, end_time, planned_seconds, duration_seconds, "
    "paused_seconds, pause_time, completed, interruptions, category, tags, notes, "
    "device_id, updated_at"
)
# Upsert rather than REPLACE: a REPLACE deletes the row and would cascade to its events
_UPSERT_ASSIGNMENTS = ", ".join(
    f"{col.strip()} = excluded.{col.strip()}"
    for col in _SESSION_COLUMNS.split(",")
    if col.strip() != "id"
)


@dataclass
class QueueEntry:
    """A pending action in the sync outbox."""

    id: int
    session_id: str
    action: str
    payload: dict[str, Any]
    status: str
    attempts: int
    last_error: str | None
    created_at: datetime


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        kind=row["kind"],
        status=row["status"],
        start_time=parse_iso(row["start_time"]),
        end_time=parse_iso(row["end_time"]),
        planned_seconds=row["planned_seconds"],
        duration_seconds=row["duration_seconds"],
        paused_seconds=row["paused_seconds"],
        pause_time=parse_iso(row["pause_time"]),
        completed=bool(row["completed"]),
        interruptions=row["interruptions"],
        category=row["category"],
        tags=json.loads(row["tags"] or "[]"),
        notes=row["notes"],
        device_id=row["device_id"],
        updated_at=parse_iso(row["updated_at"]),
    )


def _row_to_entry(row: sqlite3.Row) -> QueueEntry:
    return QueueEntry(
        id=row["id"],
        session_id=row["session_id"],
        action=row["action"],
        payload=json.loads(row["payload"]),
        status=row["status"],
        attempts=row["attempts"],
        last_error=row["last_error"],
        created_at=parse_iso(row["created_at"]),
    )


class SessionStore:
    """Local persistence for everything the tracker and sync layer own."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._in_transaction = False
        self._connection = self._connect()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not self.db_path.exists()

        try:
            connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,  # timer worker thread shares the store
                timeout=30.0,
                isolation_level=None,
            )
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            connection.execute("PRAGMA journal_mode = WAL")
            MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

        if is_new_database:
            os.chmod(self.db_path, 0o600)
            logger.info("Created database %s", self.db_path)

        return connection

    def close(self) -> None:
        with self._lock:
            self._connection.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in one ``BEGIN IMMEDIATE`` transaction.

        Nested use joins the outer transaction.
        """
        with self._lock:
            if self._in_transaction:
                yield self._connection
                return
            try:
                self._connection.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StorageError(f"Cannot lock database: {e}") from e
            self._in_transaction = True
            try:
                yield self._connection
            except sqlite3.Error as e:
                self._connection.execute("ROLLBACK")
                raise StorageError(str(e)) from e
            except BaseException:
                self._connection.execute("ROLLBACK")
                raise
            else:
                self._connection.execute("COMMIT")
            finally:
                self._in_transaction = False

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._connection.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def save_session(self, session: Session) -> None:
        """Insert a session or update the stored copy."""
        data = session.to_dict()
        with self.transaction() as conn:
            conn.execute(
                f"""
                INSERT INTO sessions ({_SESSION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET {_UPSERT_ASSIGNMENTS}
                """,
                (
                    data["id"],
                    data["kind"],
                    data["status"],
                    data["start_time"],
                    data["end_time"],
                    data["planned_seconds"],
                    data["duration_seconds"],
                    data["paused_seconds"],
                    data["pause_time"],
                    1 if data["completed"] else 0,
                    data["interruptions"],
                    data["category"],
                    json.dumps(data["tags"]),
                    data["notes"],
                    data["device_id"],
                    data["updated_at"],
                ),
            )

    def get_session(self, session_id: str) -> Session | None:
        rows = self._query(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,)
        )
        return _row_to_session(rows[0]) if rows else None

    def find_by_prefix(self, prefix: str) -> list[Session]:
        """Sessions whose id starts with *prefix* (short ids on the CLI)."""
        rows = self._query(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id LIKE ? ORDER BY start_time",
            (prefix + "%",),
        )
        return [_row_to_session(r) for r in rows]

    def get_open_session(self) -> Session | None:
        """The running or paused session, if any.

        Should more than one be open (two devices writing one file before an
        upgrade), the most recently started wins.
        """
        rows = self._query(
            f"""
            SELECT {_SESSION_COLUMNS} FROM sessions
            WHERE status IN ('running', 'paused')
            ORDER BY start_time DESC
            LIMIT 1
            """
        )
        return _row_to_session(rows[0]) if rows else None

    def list_sessions(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        kind: str | None = None,
        final_only: bool = True,
        limit: int | None = None,
    ) -> list[Session]:
        """Sessions started in ``[start, end)``, oldest first."""
        clauses = []
        params: list[Any] = []
        if start is not None:
            clauses.append("start_time >= ?")
            params.append(to_iso(start))
        if end is not None:
            clauses.append("start_time < ?")
            params.append(to_iso(end))
        if kind is not None:
            clauses.append("kind = ?")
            params.append(kind)
        if final_only:
            clauses.append("status IN ('completed', 'cancelled')")

        sql = f"SELECT {_SESSION_COLUMNS} FROM sessions"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY start_time"
        if limit is not None:
            sql = f"SELECT * FROM ({sql} DESC LIMIT ?) ORDER BY start_time"
            params.append(limit)
        return [_row_to_session(r) for r in self._query(sql, tuple(params))]

    def recent_sessions(self, limit: int = 20) -> list[Session]:
        """Most recent finished sessions, newest first."""
        return list(reversed(self.list_sessions(limit=limit)))

    # ------------------------------------------------------------------
    # Timer events
    # ------------------------------------------------------------------

    def append_event(self, event: TimerEvent) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO timer_events (id, session_id, kind, timestamp, note)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.session_id,
                    event.kind,
                    to_iso(event.timestamp),
                    event.note,
                ),
            )

    def list_events(self, session_id: str) -> list[TimerEvent]:
        rows = self._query(
            """
            SELECT id, session_id, kind, timestamp, note FROM timer_events
            WHERE session_id = ?
            ORDER BY seq
            """,
            (session_id,),
        )
        return [TimerEvent.from_dict(dict(r)) for r in rows]

    def record(self, session: Session, event: TimerEvent, enqueue: bool = False) -> None:
        """Persist a session change and its event atomically.

        With *enqueue* the session is also added to the sync outbox.
        """
        with self.transaction():
            self.save_session(session)
            self.append_event(event)
            if enqueue:
                self.enqueue(session.id, "upsert", session.to_dict())

    def purge_events(self, before: datetime) -> int:
        """Delete events of finished sessions that started before *before*."""
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                DELETE FROM timer_events WHERE session_id IN (
                    SELECT id FROM sessions
                    WHERE start_time < ? AND status IN ('completed', 'cancelled')
                )
                """,
                (to_iso(before),),
            )
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Sync queue
    # ------------------------------------------------------------------

    def enqueue(self, session_id: str, action: str, payload: dict[str, Any]) -> None:
        """Queue an action; a pending action for the same session is replaced."""
        now = datetime.now(UTC).isoformat()
        with self.transaction() as conn:
            existing = conn.execute(
                """
                SELECT id FROM sync_queue
                WHERE session_id = ? AND action = ? AND status = 'pending'
                """,
                (session_id, action),
            ).fetchone()
            if existing:
                conn.execute(
                    "UPDATE sync_queue SET payload = ?, updated_at = ? WHERE id = ?",
                    (json.dumps(payload), now, existing["id"]),
                )
            else:
                conn.execute(
                    """
                    INSERT INTO sync_queue
                        (session_id, action, payload, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (session_id, action, json.dumps(payload), now, now),
                )

    def pending(self, limit: int | None = None) -> list[QueueEntry]:
        """Pending queue entries in FIFO order."""
        sql = "SELECT * FROM sync_queue WHERE status = 'pending' ORDER BY id"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [_row_to_entry(r) for r in self._query(sql, params)]

    def dead_letters(self) -> list[QueueEntry]:
        rows = self._query("SELECT * FROM sync_queue WHERE status = 'dead' ORDER BY id")
        return [_row_to_entry(r) for r in rows]

    def queue_size(self) -> int:
        rows = self._query("SELECT COUNT(*) FROM sync_queue WHERE status = 'pending'")
        return rows[0][0]

    def ack(self, entry_id: int) -> None:
        """Remove a delivered entry."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM sync_queue WHERE id = ?", (entry_id,))

    def discard_pending(self, session_id: str) -> None:
        """Drop pending entries of a session superseded by the remote copy."""
        with self.transaction() as conn:
            conn.execute(
                "DELETE FROM sync_queue WHERE session_id = ? AND status = 'pending'",
                (session_id,),
            )

    def mark_failed(self, entry_id: int, error: str, max_attempts: int) -> bool:
        """Record a failed delivery attempt.

        Returns:
            True if the entry exceeded *max_attempts* and was dead-lettered
        """
        now = datetime.now(UTC).isoformat()
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT attempts FROM sync_queue WHERE id = ?", (entry_id,)
            ).fetchone()
            if row is None:
                return False
            attempts = row["attempts"] + 1
            status = "dead" if attempts >= max_attempts else "pending"
            conn.execute(
                """
                UPDATE sync_queue
                SET attempts = ?, last_error = ?, status = ?, updated_at = ?
                WHERE id = ?
                """,
                (attempts, error, status, now, entry_id),
            )
        return status == "dead"

    def requeue_dead(self) -> int:
        """Move dead-lettered entries back to pending with a fresh budget."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "UPDATE sync_queue SET status = 'pending', attempts = 0 WHERE status = 'dead'"
            )
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    def unlocked_achievements(self) -> dict[str, datetime]:
        rows = self._query("SELECT id, unlocked_at FROM achievements")
        return {r["id"]: parse_iso(r["unlocked_at"]) for r in rows}

    def unlock_achievement(self, achievement_id: str, at: datetime) -> bool:
        """Persist an unlock; returns False if it was already unlocked."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO achievements (id, unlocked_at) VALUES (?, ?)",
                (achievement_id, to_iso(at)),
            )
            return cursor.rowcount == 1
