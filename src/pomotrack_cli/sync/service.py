"""Offline-first synchronization of sessions with the remote store.

Finished sessions are written to a local outbox in the same transaction
that finishes them. ``push`` drains the outbox in order and stops at the
first network failure, leaving everything else queued for the next run;
``pull`` merges sessions changed on the server since the last pull. Every
divergence between the two copies goes through :func:`resolve` and is
recorded in the conflict log.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from pomotrack_cli.core.clock import Clock
from pomotrack_cli.errors import (
    AuthError,
    ConflictError,
    NetworkError,
    SessionValidationError,
    SyncError,
)
from pomotrack_cli.models.session import Session
from pomotrack_cli.storage import QueueEntry, SessionStore
from pomotrack_cli.sync.client import APIClient
from pomotrack_cli.sync.conflicts import (
    Strategy,
    SyncConflict,
    SyncConflictTracker,
    resolve,
    same_content,
)
from pomotrack_cli.sync.state import SyncState
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.time_utils import to_iso

logger = get_logger(__name__)


@dataclass
class SyncResult:
    """Result of a sync operation."""

    pushed: int = 0
    pulled_new: int = 0
    pulled_updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    conflicts: int = 0
    failed: int = 0
    dead_lettered: int = 0
    remaining: int = 0
    success: bool = False
    error: str | None = None
    duration: float = 0.0

    def merge(self, other: SyncResult) -> SyncResult:
        return SyncResult(
            pushed=self.pushed + other.pushed,
            pulled_new=self.pulled_new + other.pulled_new,
            pulled_updated=self.pulled_updated + other.pulled_updated,
            unchanged=self.unchanged + other.unchanged,
            skipped=self.skipped + other.skipped,
            conflicts=self.conflicts + other.conflicts,
            failed=self.failed + other.failed,
            dead_lettered=self.dead_lettered + other.dead_lettered,
            remaining=other.remaining,
            success=self.success and other.success,
            error=self.error or other.error,
            duration=self.duration + other.duration,
        )


class SyncService:
    """Pushes the outbox and pulls remote changes."""

    def __init__(
        self,
        store: SessionStore,
        client: APIClient,
        state: SyncState,
        conflict_tracker: SyncConflictTracker,
        clock: Clock,
        strategy: Strategy = "last_write_wins",
        max_attempts: int = 5,
        batch_size: int = 50,
    ):
        self.store = store
        self.client = client
        self.state = state
        self.conflict_tracker = conflict_tracker
        self.clock = clock
        self.strategy = strategy
        self.max_attempts = max_attempts
        self.batch_size = batch_size

    @property
    def _push_key(self) -> str:
        return SyncState.make_key(self.client.base_url, "push")

    @property
    def _pull_key(self) -> str:
        return SyncState.make_key(self.client.base_url, "pull")

    def _log_conflict(self, local: Session, remote: Session, resolution: str) -> None:
        self.conflict_tracker.add_conflict(
            SyncConflict(
                resource_id=local.id,
                local_data=local.to_dict(),
                remote_data=remote.to_dict(),
                resolution=resolution,
            )
        )

    async def push(self) -> SyncResult:
        """Deliver queued sessions in FIFO order.

        A network failure ends the run; undelivered entries stay queued.
        Entries rejected by the server are retried on later runs until they
        exceed ``max_attempts`` and are dead-lettered.
        """
        result = SyncResult()
        started = time.monotonic()
        seen: set[int] = set()

        try:
            while True:
                batch = [
                    e for e in self.store.pending(limit=self.batch_size + len(seen))
                    if e.id not in seen
                ]
                if not batch:
                    break
                for entry in batch:
                    seen.add(entry.id)
                    await self._push_entry(entry, result)
            result.success = True
            self.state.set_last_sync(self._push_key, self.clock.now())
        except (NetworkError, AuthError) as e:
            result.error = str(e)
            logger.warning("Push stopped: %s", e)
        finally:
            self.conflict_tracker.save()
            result.remaining = self.store.queue_size()
            result.duration = time.monotonic() - started

        logger.info(
            "Push finished: %d pushed, %d failed, %d remaining",
            result.pushed, result.failed, result.remaining,
        )
        return result

    def _fail(self, entry: QueueEntry, message: str, result: SyncResult) -> None:
        result.failed += 1
        if self.store.mark_failed(entry.id, message, self.max_attempts):
            result.dead_lettered += 1
            logger.error("Dead-lettered queue entry %d: %s", entry.id, message)

    async def _push_entry(self, entry: QueueEntry, result: SyncResult) -> None:
        try:
            await self.client.push_session(entry.payload)
        except ConflictError as e:
            await self._resolve_push_conflict(entry, e, result)
            return
        except (NetworkError, AuthError):
            raise
        except SyncError as e:
            self._fail(entry, str(e), result)
            return

        self.store.ack(entry.id)
        result.pushed += 1

    async def _resolve_push_conflict(
        self, entry: QueueEntry, error: ConflictError, result: SyncResult
    ) -> None:
        local = self.store.get_session(entry.session_id) or Session.from_dict(entry.payload)
        try:
            remote = Session.from_dict(error.remote_data)
        except SessionValidationError as e:
            self._fail(entry, f"Unreadable remote copy: {e}", result)
            return

        if same_content(local, remote):
            self.store.ack(entry.id)
            result.unchanged += 1
            return

        result.conflicts += 1
        # An in-progress remote copy belongs to another device's tracker
        if not remote.is_final or resolve(local, remote, self.strategy) == "local":
            try:
                await self.client.push_session(local.to_dict(), force=True)
            except (NetworkError, AuthError):
                raise
            except SyncError as e:
                self._fail(entry, str(e), result)
                return
            self._log_conflict(local, remote, "local_wins")
            result.pushed += 1
        else:
            self.store.save_session(remote)
            self._log_conflict(local, remote, "remote_wins")
        self.store.ack(entry.id)

    async def pull(self, full: bool = False) -> SyncResult:
        """Merge sessions changed on the server since the last pull.

        With *full* the stored pull time is forgotten first, so every remote
        session is fetched again.
        """
        result = SyncResult()
        started = time.monotonic()
        pull_started = self.clock.now()
        if full:
            self.state.clear_last_sync(self._pull_key)
        since = self.state.get_last_sync(self._pull_key)

        try:
            records = await self.client.fetch_sessions(to_iso(since))
        except (NetworkError, AuthError) as e:
            result.error = str(e)
            result.duration = time.monotonic() - started
            logger.warning("Pull failed: %s", e)
            return result

        try:
            for data in records:
                try:
                    remote = Session.from_dict(data)
                except SessionValidationError as e:
                    result.failed += 1
                    logger.error("Skipping malformed remote session: %s", e)
                    continue
                self._merge(remote, result)
        finally:
            self.conflict_tracker.save()

        self.state.set_last_sync(self._pull_key, pull_started)
        result.success = True
        result.remaining = self.store.queue_size()
        result.duration = time.monotonic() - started
        logger.info(
            "Pull finished: %d new, %d updated, %d conflicts",
            result.pulled_new, result.pulled_updated, result.conflicts,
        )
        return result

    def _merge(self, remote: Session, result: SyncResult) -> None:
        if not remote.is_final:
            logger.debug("Ignoring in-progress remote session %s", remote.id)
            result.skipped += 1
            return

        local = self.store.get_session(remote.id)
        if local is None:
            self.store.save_session(remote)
            result.pulled_new += 1
            return

        if same_content(local, remote):
            result.unchanged += 1
            return

        result.conflicts += 1
        if local.is_open:
            # The tracker owns an open session; it is pushed once finished
            self._log_conflict(local, remote, "skipped")
            return

        if resolve(local, remote, self.strategy) == "local":
            self.store.enqueue(local.id, "upsert", local.to_dict())
            self._log_conflict(local, remote, "local_wins")
        else:
            self.store.save_session(remote)
            self.store.discard_pending(remote.id)
            self._log_conflict(local, remote, "remote_wins")
            result.pulled_updated += 1

    async def sync(self) -> SyncResult:
        """Pull, then push. A failed pull skips the push."""
        pulled = await self.pull()
        if not pulled.success:
            return pulled
        pushed = await self.push()
        return pulled.merge(pushed)

    def status(self) -> dict:
        """Queue and timestamp summary for ``pomotrack sync status``."""
        return {
            "endpoint": self.client.base_url,
            "pending": self.store.queue_size(),
            "dead_letters": len(self.store.dead_letters()),
            "last_push": self.state.get_last_sync(self._push_key),
            "last_pull": self.state.get_last_sync(self._pull_key),
            "strategy": self.strategy,
        }
