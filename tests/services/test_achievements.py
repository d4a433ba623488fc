"""Tests for achievement tracking."""

from datetime import UTC, timedelta

import pytest

from conftest import T0, make_session
from pomotrack_cli.models.achievements import ACHIEVEMENTS_BY_ID
from pomotrack_cli.services.achievements import (
    AchievementStatus,
    AchievementTracker,
    is_met,
    requirement_value,
)


@pytest.fixture
def achievements(store, clock):
    return AchievementTracker(store, clock, UTC)


def _save(store, *sessions):
    for s in sessions:
        store.save_session(s)


def _ids(achievements_list):
    return [a.id for a in achievements_list]


def test_nothing_unlocked_without_history(achievements, store):
    assert achievements.check() == []
    assert store.unlocked_achievements() == {}


def test_first_session_unlocked_once(achievements, store):
    session = make_session(T0 - timedelta(hours=2))
    _save(store, session)

    assert _ids(achievements.on_session_finished(session)) == ["first_session"]
    assert achievements.check() == []
    assert list(store.unlocked_achievements()) == ["first_session"]


def test_cancelled_or_break_sessions_do_not_trigger(achievements, store):
    cancelled = make_session(T0 - timedelta(hours=2), completed=False)
    rest = make_session(T0 - timedelta(hours=1), kind="break", minutes=5)
    _save(store, cancelled, rest)

    assert achievements.on_session_finished(cancelled) == []
    assert achievements.on_session_finished(rest) == []
    assert achievements.check() == []


def test_streak_unlock(achievements, store):
    _save(store, *(make_session(T0 - timedelta(days=d)) for d in range(3)))
    assert "streak_3" in _ids(achievements.check())


def test_early_bird_and_night_owl(achievements, store):
    _save(
        store,
        make_session(T0.replace(hour=5, minute=30) - timedelta(days=1)),
        make_session(T0.replace(hour=22, minute=15) - timedelta(days=1)),
    )
    earned = _ids(achievements.check())
    assert "early_bird" in earned
    assert "night_owl" in earned


def test_unlocks_survive_history_changes(achievements, store):
    session = make_session(T0 - timedelta(hours=2))
    _save(store, session)
    achievements.check()

    store.save_session(session.copy(completed=False, status="cancelled"))

    statuses = {s.achievement.id: s for s in achievements.statuses()}
    assert statuses["first_session"].unlocked
    assert statuses["first_session"].current == 0


def test_status_percentage(achievements, store):
    _save(store, *(make_session(T0 + timedelta(hours=h)) for h in range(5)))
    statuses = {s.achievement.id: s for s in achievements.statuses()}

    assert statuses["sessions_10"].current == 5
    assert statuses["sessions_10"].percentage == 50.0
    assert statuses["sessions_10"].unlocked is False
    assert statuses["early_bird"].percentage == 0.0


def test_hour_requirement_percentage():
    status = AchievementStatus(ACHIEVEMENTS_BY_ID["night_owl"], current=23, unlocked_at=None)
    assert status.percentage == 100.0


class TestRequirementValue:
    def test_counts_only_completed_focus(self):
        sessions = [
            make_session(T0),
            make_session(T0 + timedelta(hours=1), completed=False),
            make_session(T0 + timedelta(hours=2), kind="break", minutes=5),
        ]
        assert requirement_value("total_sessions", sessions) == 1

    def test_daily_and_total_hours(self):
        sessions = [make_session(T0 + timedelta(hours=h), minutes=60) for h in range(3)]
        sessions.append(make_session(T0 + timedelta(days=1), minutes=30))
        assert requirement_value("daily_hours", sessions, UTC) == 3.0
        assert requirement_value("total_hours", sessions, UTC) == 3.5
        assert requirement_value("daily_sessions", sessions, UTC) == 3

    def test_weekend_sessions(self):
        saturday = T0 + timedelta(days=5)
        sessions = [make_session(saturday + timedelta(hours=h)) for h in range(2)]
        sessions.append(make_session(T0))
        assert requirement_value("weekend_sessions", sessions, UTC) == 2

    def test_uninterrupted(self):
        sessions = [make_session(T0), make_session(T0 + timedelta(hours=1), interruptions=2)]
        assert requirement_value("uninterrupted_sessions", sessions) == 1

    def test_hours_without_sessions(self):
        early_bird = ACHIEVEMENTS_BY_ID["early_bird"]
        value = requirement_value("early_session", [])
        assert value == -1
        assert not is_met(early_bird, value)

    def test_unknown_requirement(self):
        assert requirement_value("mystery", [make_session()]) == 0
