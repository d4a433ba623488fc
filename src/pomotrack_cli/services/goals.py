"""Goals and targets for focus sessions."""

from __future__ import annotations

from datetime import timedelta, tzinfo
from typing import Any

from pomotrack_cli.core.clock import Clock
from pomotrack_cli.core.stats import daily_stats, streaks, weekly_stats
from pomotrack_cli.services.config_service import ConfigService
from pomotrack_cli.storage import SessionStore
from pomotrack_cli.utils.time_utils import day_bounds, local_day

GOAL_TYPES = (
    "daily_sessions",
    "daily_minutes",
    "weekly_sessions",
    "weekly_minutes",
    "streak_target",
)


def _progress(current: float, target: int) -> dict[str, Any]:
    percent = (current / target * 100) if target > 0 else 0
    return {
        "current": current,
        "target": target,
        "progress": min(percent, 100),
        "achieved": target > 0 and current >= target,
    }


class GoalsManager:
    """Manage focus goals and track progress."""

    def __init__(
        self,
        config_service: ConfigService,
        store: SessionStore,
        clock: Clock,
        tz: tzinfo | None = None,
    ):
        self.config_service = config_service
        self.store = store
        self.clock = clock
        self.tz = tz

    def get_goals(self) -> dict[str, int]:
        """Get current goals configuration."""
        return self.config_service.config.goals.model_dump()

    def set_goal(self, goal_type: str, value: int) -> None:
        """
        Set a specific goal.

        Args:
            goal_type: Type of goal (daily_sessions, daily_minutes, etc.)
            value: Target value, 0 disables the goal
        """
        if goal_type not in GOAL_TYPES:
            raise ValueError(
                f"Invalid goal type: {goal_type}. Must be one of {list(GOAL_TYPES)}"
            )
        if value < 0:
            raise ValueError("Goal value cannot be negative")
        self.config_service.set(f"goals.{goal_type}", value)

    def reset_goals(self) -> None:
        self.config_service.reset("goals")

    def get_daily_progress(self) -> dict[str, Any]:
        """Get progress toward daily goals."""
        goals = self.get_goals()
        today = local_day(self.clock.now(), self.tz)
        start, end = day_bounds(today, self.tz)
        daily = daily_stats(self.store.list_sessions(start, end), today, self.tz)
        return {
            "sessions": _progress(daily.completed_sessions, goals["daily_sessions"]),
            "minutes": _progress(daily.focus_minutes, goals["daily_minutes"]),
        }

    def get_weekly_progress(self) -> dict[str, Any]:
        """Get progress toward weekly goals over the last seven days."""
        goals = self.get_goals()
        today = local_day(self.clock.now(), self.tz)
        start, _ = day_bounds(today - timedelta(days=6), self.tz)
        _, end = day_bounds(today, self.tz)
        weekly = weekly_stats(self.store.list_sessions(start, end), today, self.tz)
        return {
            "sessions": _progress(weekly.completed_sessions, goals["weekly_sessions"]),
            "minutes": _progress(weekly.focus_minutes, goals["weekly_minutes"]),
        }

    def get_streak_progress(self) -> dict[str, Any]:
        """Get progress toward streak target."""
        goals = self.get_goals()
        today = local_day(self.clock.now(), self.tz)
        streak = streaks(self.store.list_sessions(kind="focus"), today, self.tz)
        progress = _progress(streak.current, goals["streak_target"])
        progress["longest"] = streak.longest
        return progress

    def get_all_progress(self) -> dict[str, Any]:
        """Get progress for all goals."""
        return {
            "daily": self.get_daily_progress(),
            "weekly": self.get_weekly_progress(),
            "streak": self.get_streak_progress(),
        }

    def achieved_goals(self) -> list[str]:
        """Names of the goals currently met."""
        progress = self.get_all_progress()
        achieved = [
            f"{period}_{metric}"
            for period in ("daily", "weekly")
            for metric, values in progress[period].items()
            if values["achieved"]
        ]
        if progress["streak"]["achieved"]:
            achieved.append("streak_target")
        return achieved
