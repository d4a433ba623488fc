"""Countdown engine running on a worker thread.

The engine never counts ticks. Each tick recomputes the remaining time from
the session's wall-clock timestamps, so a stalled thread, a suspended
process or a sleeping laptop cannot make the countdown drift: the first
tick after wake-up simply reports the correct (smaller) remaining time and
flags itself as ``resynced``.

Ticks are posted as :class:`TimerTick` messages on :attr:`TimerEngine.messages`
and optionally handed to callbacks, both from the worker thread.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass

from pomotrack_cli.core.clock import Clock
from pomotrack_cli.models.session import Session
from pomotrack_cli.utils.logger import get_logger

logger = get_logger(__name__)

SessionSource = Callable[[], Session | None]


@dataclass(frozen=True)
class TimerTick:
    """Countdown snapshot delivered to the presentation layer."""

    session_id: str
    status: str
    planned_seconds: int
    elapsed_seconds: int
    remaining_seconds: int
    boundary: bool = False
    resynced: bool = False
    drift_seconds: float = 0.0

    @property
    def progress(self) -> float:
        if self.planned_seconds <= 0:
            return 1.0
        return min(1.0, self.elapsed_seconds / self.planned_seconds)


class TimerEngine:
    """Drive a countdown for whatever session *source* returns.

    Args:
        clock: wall-clock and monotonic time source
        source: returns the session to count down (re-read every tick so
            pauses made elsewhere are picked up)
        on_tick: called with every tick
        on_boundary: called once when the countdown reaches zero
        tick_interval: seconds between ticks
        sleep_tolerance: extra seconds of wall/monotonic divergence
            tolerated before a tick is flagged as a sleep/wake resync
    """

    def __init__(
        self,
        clock: Clock,
        source: SessionSource,
        on_tick: Callable[[TimerTick], None] | None = None,
        on_boundary: Callable[[TimerTick], None] | None = None,
        tick_interval: float = 1.0,
        sleep_tolerance: float = 2.0,
    ):
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self.clock = clock
        self.source = source
        self.on_tick = on_tick
        self.on_boundary = on_boundary
        self.tick_interval = tick_interval
        self.sleep_tolerance = sleep_tolerance
        self.messages: queue.Queue[TimerTick] = queue.Queue()

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_wall = None
        self._last_mono: float | None = None
        self._boundary_sent: set[str] = set()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. Starting twice is a no-op."""
        if self.is_running:
            return
        # One event per worker; a worker outliving stop() stays silenced
        self._stop = threading.Event()
        self._last_wall = None
        self._last_mono = None
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name="pomotrack-timer", daemon=True
        )
        self._thread.start()
        logger.debug("Timer worker started (interval %.2fs)", self.tick_interval)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the worker. No callback runs after this returns."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Timer worker did not stop within %.1fs", timeout)
        self._thread = None

    def poll(self) -> TimerTick | None:
        """Compute one tick now and deliver it.

        This is what the worker runs each interval; it is public so the
        engine can also be stepped synchronously.

        Returns:
            The delivered tick, or None when there is no open session
        """
        return self._step(None)

    def _step(self, stop: threading.Event | None) -> TimerTick | None:
        session = self.source()
        if stop is not None and stop.is_set():
            return None
        wall = self.clock.now()
        mono = self.clock.monotonic()

        resynced = False
        drift = 0.0
        if self._last_mono is not None and self._last_wall is not None:
            mono_delta = mono - self._last_mono
            wall_delta = (wall - self._last_wall).total_seconds()
            # Suspend stops the monotonic clock on some platforms and only
            # delays the thread on others; either shows up here.
            gap = max(wall_delta, mono_delta)
            if (
                wall_delta - mono_delta > self.sleep_tolerance
                or gap > self.tick_interval + self.sleep_tolerance
            ):
                resynced = True
                drift = gap - self.tick_interval
                logger.info("Resynced countdown after %.1fs gap", gap)
        self._last_wall = wall
        self._last_mono = mono

        if session is None or session.is_final:
            return None

        remaining = session.remaining_seconds(wall)
        tick = TimerTick(
            session_id=session.id,
            status=session.status,
            planned_seconds=session.planned_seconds,
            elapsed_seconds=session.active_seconds(wall),
            remaining_seconds=remaining,
            boundary=remaining == 0 and session.id not in self._boundary_sent,
            resynced=resynced,
            drift_seconds=drift,
        )
        self._deliver(tick)
        return tick

    def _deliver(self, tick: TimerTick) -> None:
        self.messages.put(tick)
        if self.on_tick is not None:
            self.on_tick(tick)
        if tick.boundary:
            self._boundary_sent.add(tick.session_id)
            if self.on_boundary is not None:
                self.on_boundary(tick)

    def _run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                self._step(stop)
            except Exception:
                # Keep the countdown alive; the next tick recomputes from scratch
                logger.exception("Timer tick failed")
            if stop.wait(self.tick_interval):
                break
