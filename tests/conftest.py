"""Shared test fixtures and configuration.

Isolates tests from the real config/data/log directories and provides a
manual clock so timing logic runs without sleeping.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from pomotrack_cli.context import AppContext
from pomotrack_cli.core.tracker import SessionTracker
from pomotrack_cli.models.session import Session
from pomotrack_cli.storage import SessionStore

# A Monday, so weekly windows are easy to reason about
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class ManualClock:
    """Clock that only moves when told to.

    ``advance(seconds, sleep=True)`` moves the wall clock but not the
    monotonic one, like a laptop suspended on a platform whose monotonic
    clock stops during sleep.
    """

    def __init__(self, start: datetime = T0):
        self._now = start
        self._mono = 1000.0

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._mono

    def advance(self, seconds: float, sleep: bool = False) -> None:
        self._now += timedelta(seconds=seconds)
        if not sleep:
            self._mono += seconds


def make_session(
    start: datetime = T0,
    minutes: float = 25,
    kind: str = "focus",
    completed: bool = True,
    interruptions: int = 0,
    category: str | None = None,
    session_id: str | None = None,
    planned_minutes: float = 25,
) -> Session:
    """A finished session lasting *minutes*."""
    seconds = int(minutes * 60)
    end = start + timedelta(seconds=seconds)
    return Session(
        id=session_id or f"{kind}-{start.isoformat()}",
        kind=kind,
        status="completed" if completed else "cancelled",
        start_time=start,
        end_time=end,
        planned_seconds=int(planned_minutes * 60),
        duration_seconds=seconds,
        completed=completed,
        interruptions=interruptions,
        category=category,
        updated_at=end,
    )


# ---------------------------------------------------------------------------
# Directory isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point config, data and log directories at *tmp_path*."""
    from pomotrack_cli.services.config_service import get_config_service

    monkeypatch.delenv("POMOTRACK_API_ENDPOINT", raising=False)
    monkeypatch.delenv("POMOTRACK_API_TOKEN", raising=False)

    tmpdir = str(tmp_path / "home")
    get_config_service.cache_clear()
    with patch("pomotrack_cli.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("pomotrack_cli.services.config_service.user_data_dir", return_value=tmpdir):
            with patch("pomotrack_cli.utils.logger.user_log_dir", return_value=tmpdir):
                yield tmp_path / "home"
    get_config_service.cache_clear()


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def store(tmp_path):
    s = SessionStore(tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture()
def tracker(store, clock):
    return SessionTracker(store, clock, device_id="device-1")


@pytest.fixture()
def config_service(isolated_dirs):
    """A real ConfigService writing into the isolated directory."""
    from pomotrack_cli.services.config_service import ConfigService

    svc = ConfigService()
    svc.load_config()
    return svc


@pytest.fixture()
def app_context(config_service, clock, store):
    """Context handed to CLI commands as ``obj``; sync off by default."""
    config_service.set("sync.enabled", False)
    return AppContext(config_service=config_service, clock=clock, store=store, tz=UTC)
