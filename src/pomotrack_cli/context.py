"""Explicit application context shared by the CLI commands.

Everything a command needs (configuration, clock, store, services) hangs off
one :class:`AppContext` built by :func:`build_context`, instead of living in
module-level globals. Tests build their own context around a temporary
database and a manual clock and hand it to typer as ``obj``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo
from zoneinfo import ZoneInfo

import typer

from pomotrack_cli.core.clock import Clock, SystemClock
from pomotrack_cli.core.tracker import SessionTracker
from pomotrack_cli.models.achievements import Achievement
from pomotrack_cli.models.config_models import AppConfig
from pomotrack_cli.models.session import Session
from pomotrack_cli.services.achievements import AchievementTracker
from pomotrack_cli.services.config_service import ConfigService, get_config_service
from pomotrack_cli.services.goals import GoalsManager
from pomotrack_cli.storage import SessionStore
from pomotrack_cli.sync.client import APIClient
from pomotrack_cli.sync.conflicts import SyncConflictTracker
from pomotrack_cli.sync.service import SyncService
from pomotrack_cli.sync.state import SyncState
from pomotrack_cli.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AppContext:
    config_service: ConfigService
    clock: Clock
    store: SessionStore
    tz: tzinfo | None = None
    unlocked: list[Achievement] = field(default_factory=list)
    _tracker: SessionTracker | None = field(default=None, repr=False)

    @property
    def config(self) -> AppConfig:
        return self.config_service.config

    @property
    def device_id(self) -> str | None:
        return self.config.device_id

    @property
    def sync_enabled(self) -> bool:
        return self.config.sync.enabled

    def tracker(self) -> SessionTracker:
        """The session tracker, with achievement checks on every finish."""
        if self._tracker is None:
            self._tracker = SessionTracker(self.store, self.clock, self.device_id)
            self._tracker.add_listener(self._on_session_finished)
        return self._tracker

    def _on_session_finished(self, session: Session) -> None:
        self.unlocked.extend(self.achievements().on_session_finished(session))

    def achievements(self) -> AchievementTracker:
        return AchievementTracker(self.store, self.clock, self.tz)

    def goals(self) -> GoalsManager:
        return GoalsManager(self.config_service, self.store, self.clock, self.tz)

    def sync_service(self, client: APIClient | None = None) -> SyncService:
        data_dir = self.config_service.data_dir
        sync = self.config.sync
        return SyncService(
            store=self.store,
            client=client or APIClient(self.config_service),
            state=SyncState(data_dir),
            conflict_tracker=SyncConflictTracker(data_dir),
            clock=self.clock,
            strategy=sync.strategy,
            max_attempts=sync.max_attempts,
            batch_size=sync.batch_size,
        )

    def close(self) -> None:
        self.store.close()


def build_context(
    config_service: ConfigService | None = None,
    clock: Clock | None = None,
) -> AppContext:
    """Build the context for one CLI invocation."""
    config_service = config_service or get_config_service()
    config = config_service.config
    tz = ZoneInfo(config.stats.timezone) if config.stats.timezone else None
    store = SessionStore(config_service.database_path)
    logger.debug("Context built for database %s", config_service.database_path)
    return AppContext(
        config_service=config_service,
        clock=clock or SystemClock(),
        store=store,
        tz=tz,
    )


def get_context(ctx: typer.Context) -> AppContext:
    """Context for the running command, built on first use."""
    root = ctx.find_root()
    if isinstance(root.obj, AppContext):
        return root.obj
    app_context = build_context()
    root.obj = app_context
    root.call_on_close(app_context.close)
    return app_context
