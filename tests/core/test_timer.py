"""Tests for the countdown engine."""

import threading
from datetime import timedelta

import pytest

from conftest import T0, ManualClock
from pomotrack_cli.core.timer import TimerEngine, TimerTick
from pomotrack_cli.models.session import Session


def _session(**changes) -> Session:
    session = Session(
        id="s1", kind="focus", status="running", start_time=T0, planned_seconds=1500
    )
    return session.copy(**changes) if changes else session


class Holder:
    """Mutable session source for the engine."""

    def __init__(self, session=None):
        self.session = session

    def __call__(self):
        return self.session


@pytest.fixture()
def holder():
    return Holder(_session())


@pytest.fixture()
def engine(clock, holder):
    return TimerEngine(clock, holder, tick_interval=1.0, sleep_tolerance=2.0)


def test_poll_reports_remaining_from_wall_clock(engine, clock):
    clock.advance(60)
    tick = engine.poll()

    assert tick.remaining_seconds == 1440
    assert tick.elapsed_seconds == 60
    assert tick.boundary is False
    assert tick.progress == pytest.approx(60 / 1500)
    assert engine.messages.get_nowait() == tick


def test_no_tick_without_open_session(engine, holder):
    holder.session = None
    assert engine.poll() is None
    holder.session = _session(status="completed", end_time=T0, completed=True)
    assert engine.poll() is None
    assert engine.messages.empty()


def test_sleep_is_detected_and_remaining_is_correct(engine, clock):
    engine.poll()
    clock.advance(600, sleep=True)

    tick = engine.poll()

    assert tick.resynced is True
    assert tick.drift_seconds == pytest.approx(599)
    assert tick.remaining_seconds == 900


def test_stalled_thread_counts_as_resync(engine, clock):
    engine.poll()
    clock.advance(30)
    tick = engine.poll()
    assert tick.resynced is True
    assert tick.remaining_seconds == 1470


def test_regular_ticks_are_not_resynced(engine, clock):
    engine.poll()
    for _ in range(3):
        clock.advance(1)
        assert engine.poll().resynced is False


def test_paused_session_does_not_count_down(engine, clock, holder):
    holder.session = _session(status="paused", pause_time=T0 + timedelta(minutes=5))
    clock.advance(20 * 60)
    assert engine.poll().remaining_seconds == 1200


def test_boundary_fires_once(clock, holder):
    boundaries = []
    engine = TimerEngine(clock, holder, on_boundary=boundaries.append)

    clock.advance(1499)
    assert engine.poll().boundary is False
    clock.advance(1)
    first = engine.poll()
    clock.advance(1)
    second = engine.poll()

    assert first.boundary is True
    assert first.remaining_seconds == 0
    assert second.boundary is False
    assert boundaries == [first]


def test_boundary_after_sleep_past_end(clock, holder):
    engine = TimerEngine(clock, holder)
    engine.poll()
    clock.advance(3600, sleep=True)
    tick = engine.poll()
    assert tick.boundary is True
    assert tick.resynced is True
    assert tick.elapsed_seconds == 3600


def test_on_tick_callback(clock, holder):
    ticks = []
    engine = TimerEngine(clock, holder, on_tick=ticks.append)
    engine.poll()
    assert len(ticks) == 1
    assert isinstance(ticks[0], TimerTick)


def test_invalid_interval():
    with pytest.raises(ValueError):
        TimerEngine(ManualClock(), Holder(), tick_interval=0)


def test_worker_thread_ticks_and_stops(holder):
    clock = ManualClock()
    ticked = threading.Event()
    engine = TimerEngine(clock, holder, on_tick=lambda t: ticked.set(), tick_interval=0.01)

    engine.start()
    assert engine.is_running
    assert ticked.wait(timeout=2.0)
    engine.stop()

    assert not engine.is_running
    drained = engine.messages.qsize()
    engine._stop.wait(0.05)
    assert engine.messages.qsize() == drained


def test_worker_survives_failing_source(clock):
    calls = []

    def source():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("database busy")
        return _session()

    got_tick = threading.Event()
    engine = TimerEngine(clock, source, on_tick=lambda t: got_tick.set(), tick_interval=0.01)
    engine.start()
    try:
        assert got_tick.wait(timeout=2.0)
    finally:
        engine.stop()


def test_worker_stuck_past_stop_delivers_nothing(clock):
    release = threading.Event()
    blocked = threading.Event()

    def source():
        blocked.set()
        release.wait(timeout=5.0)
        return _session()

    ticks = []
    engine = TimerEngine(clock, source, on_tick=ticks.append, tick_interval=0.01)
    engine.start()
    worker = engine._thread
    assert blocked.wait(timeout=2.0)

    engine.stop(timeout=0.05)
    assert worker.is_alive()
    assert not engine.is_running

    release.set()
    worker.join(timeout=2.0)
    assert not worker.is_alive()
    assert ticks == []
    assert engine.messages.empty()
