"""Configuration models for Pomotrack CLI."""

from __future__ import annotations

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class TimerConfig(BaseModel):
    """Countdown lengths and cycling."""

    focus_minutes: int = Field(default=25, gt=0)
    short_break_minutes: int = Field(default=5, gt=0)
    long_break_minutes: int = Field(default=15, gt=0)
    sessions_before_long_break: int = Field(default=4, gt=0)
    tick_interval: float = Field(default=1.0, gt=0)
    # Wall/monotonic divergence treated as a sleep/wake, in seconds
    sleep_tolerance: float = Field(default=2.0, ge=0)


class APIConfig(BaseModel):
    """API configuration."""

    endpoint: str = Field(default="https://api.pomotrack.app")
    timeout: int = Field(default=30)
    retry: int = Field(default=3)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("endpoint cannot be empty")
        return v.strip().rstrip("/")


class SyncConfig(BaseModel):
    """Sync configuration."""

    enabled: bool = Field(default=True)
    auto: bool = Field(default=True)
    strategy: Literal["last_write_wins", "remote_wins", "local_wins"] = Field(
        default="last_write_wins"
    )
    max_attempts: int = Field(default=5, gt=0)
    batch_size: int = Field(default=50, gt=0)


class StatsConfig(BaseModel):
    """Statistics configuration."""

    timezone: str | None = Field(default=None, description="IANA zone, local if unset")
    score_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "completion": 1.0,
            "interruptions": 1.0,
            "break_compliance": 1.0,
            "consistency": 1.0,
        }
    )
    event_retention_days: int = Field(default=90, gt=0)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @field_validator("score_weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        if any(w < 0 for w in v.values()):
            raise ValueError("score weights must be non-negative")
        return v


class GoalsConfig(BaseModel):
    """Daily/weekly focus targets."""

    daily_sessions: int = Field(default=8, ge=0)
    daily_minutes: int = Field(default=200, ge=0)
    weekly_sessions: int = Field(default=40, ge=0)
    weekly_minutes: int = Field(default=1000, ge=0)
    streak_target: int = Field(default=30, ge=0)


class AppConfig(BaseModel):
    """Main Pomotrack configuration."""

    device_id: str | None = Field(default=None, description="Stable id of this device")
    database_path: str | None = Field(default=None, description="SQLite file override")

    timer: TimerConfig = Field(default_factory=TimerConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    goals: GoalsConfig = Field(default_factory=GoalsConfig)
