"""Tests for the SQLite session store."""

import os
import stat
from datetime import timedelta

import pytest

from conftest import T0, make_session
from pomotrack_cli.errors import StorageError
from pomotrack_cli.models.session import Session, TimerEvent
from pomotrack_cli.storage import SessionStore


def _open(session_id: str = "open-1") -> Session:
    return Session(
        id=session_id, kind="focus", status="running", start_time=T0, planned_seconds=1500
    )


class TestSessions:
    def test_save_and_get(self, store):
        session = make_session(category="code")
        session.tags = ["a"]
        store.save_session(session)
        assert store.get_session(session.id) == session
        assert store.get_session("missing") is None

    def test_upsert_keeps_events(self, store):
        session = _open()
        store.record(session, TimerEvent.create(session.id, "start", T0))
        store.save_session(session.copy(interruptions=1))

        assert store.get_session(session.id).interruptions == 1
        assert len(store.list_events(session.id)) == 1

    def test_get_open_session(self, store):
        store.save_session(make_session())
        assert store.get_open_session() is None
        store.save_session(_open())
        assert store.get_open_session().id == "open-1"

    def test_list_sessions_filters(self, store):
        store.save_session(make_session(T0, session_id="a"))
        store.save_session(make_session(T0 + timedelta(hours=1), kind="break", minutes=5, session_id="b"))
        store.save_session(make_session(T0 + timedelta(days=1), session_id="c"))
        store.save_session(_open("d"))

        assert [s.id for s in store.list_sessions()] == ["a", "b", "c"]
        assert [s.id for s in store.list_sessions(kind="focus")] == ["a", "c"]
        assert [s.id for s in store.list_sessions(T0, T0 + timedelta(days=1))] == ["a", "b"]
        assert "d" in [s.id for s in store.list_sessions(final_only=False)]
        assert [s.id for s in store.list_sessions(limit=2)] == ["b", "c"]
        assert [s.id for s in store.recent_sessions(2)] == ["c", "b"]

    def test_find_by_prefix(self, store):
        store.save_session(make_session(session_id="abc123"))
        store.save_session(make_session(T0 + timedelta(hours=1), session_id="abd456"))
        assert [s.id for s in store.find_by_prefix("abc")] == ["abc123"]
        assert len(store.find_by_prefix("ab")) == 2


class TestTransactions:
    def test_rollback_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.save_session(make_session())
                raise RuntimeError("boom")
        assert store.list_sessions() == []

    def test_nested_transaction_joins_outer(self, store):
        with store.transaction():
            store.save_session(make_session(session_id="x"))
            with store.transaction():
                store.save_session(make_session(T0 + timedelta(hours=1), session_id="y"))
        assert len(store.list_sessions()) == 2

    def test_sqlite_error_wrapped(self, store):
        with pytest.raises(StorageError):
            with store.transaction() as conn:
                conn.execute("INSERT INTO no_such_table VALUES (1)")

    def test_second_connection_sees_commits(self, store, tmp_path):
        store.save_session(make_session())
        other = SessionStore(tmp_path / "test.db")
        try:
            assert len(other.list_sessions()) == 1
        finally:
            other.close()


def test_new_database_is_private(tmp_path):
    path = tmp_path / "private.db"
    SessionStore(path).close()
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestEvents:
    def test_events_in_append_order(self, store):
        session = _open()
        store.save_session(session)
        kinds = ["start", "interrupt", "pause", "resume"]
        for kind in kinds:
            store.append_event(TimerEvent.create(session.id, kind, T0))
        assert [e.kind for e in store.list_events(session.id)] == kinds

    def test_record_enqueues_when_asked(self, store):
        session = make_session()
        store.record(session, TimerEvent.create(session.id, "complete", T0), enqueue=True)
        assert store.queue_size() == 1

    def test_purge_only_old_finished_sessions(self, store):
        old = make_session(T0 - timedelta(days=100), session_id="old")
        current = _open("current")
        for s, kind in ((old, "complete"), (current, "start")):
            store.record(s, TimerEvent.create(s.id, kind, s.start_time))

        removed = store.purge_events(T0 - timedelta(days=90))

        assert removed == 1
        assert store.list_events("old") == []
        assert len(store.list_events("current")) == 1
        assert store.get_session("old") is not None


class TestQueue:
    def test_fifo_and_ack(self, store):
        store.enqueue("s1", "upsert", {"id": "s1"})
        store.enqueue("s2", "upsert", {"id": "s2"})
        entries = store.pending()
        assert [e.session_id for e in entries] == ["s1", "s2"]

        store.ack(entries[0].id)
        assert [e.session_id for e in store.pending()] == ["s2"]

    def test_enqueue_replaces_pending_for_same_session(self, store):
        store.enqueue("s1", "upsert", {"v": 1})
        store.enqueue("s1", "upsert", {"v": 2})
        entries = store.pending()
        assert len(entries) == 1
        assert entries[0].payload == {"v": 2}

    def test_mark_failed_dead_letters(self, store):
        store.enqueue("s1", "upsert", {})
        entry = store.pending()[0]

        assert store.mark_failed(entry.id, "400 bad", max_attempts=2) is False
        assert store.pending()[0].attempts == 1
        assert store.mark_failed(entry.id, "400 bad", max_attempts=2) is True

        assert store.queue_size() == 0
        dead = store.dead_letters()
        assert dead[0].last_error == "400 bad"

        assert store.requeue_dead() == 1
        assert store.pending()[0].attempts == 0

    def test_discard_pending(self, store):
        store.enqueue("s1", "upsert", {})
        store.enqueue("s2", "upsert", {})
        store.discard_pending("s1")
        assert [e.session_id for e in store.pending()] == ["s2"]


class TestAchievements:
    def test_unlock_once(self, store):
        assert store.unlock_achievement("first_session", T0) is True
        assert store.unlock_achievement("first_session", T0 + timedelta(days=1)) is False
        assert store.unlocked_achievements() == {"first_session": T0}
