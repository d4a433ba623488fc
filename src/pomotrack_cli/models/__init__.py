"""Data models for Pomotrack CLI."""

from .config_models import AppConfig, GoalsConfig, StatsConfig, SyncConfig, TimerConfig
from .session import (
    FINAL_STATUSES,
    OPEN_STATUSES,
    EventKind,
    Session,
    SessionKind,
    SessionStatus,
    TimerEvent,
)

__all__ = [
    "AppConfig",
    "EventKind",
    "FINAL_STATUSES",
    "GoalsConfig",
    "OPEN_STATUSES",
    "Session",
    "SessionKind",
    "SessionStatus",
    "StatsConfig",
    "SyncConfig",
    "TimerConfig",
    "TimerEvent",
]
