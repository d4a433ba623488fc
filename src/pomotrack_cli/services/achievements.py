"""Achievement tracking over the finished-session history."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from pomotrack_cli.core.clock import Clock
from pomotrack_cli.core.stats import streaks, total_focus_hours
from pomotrack_cli.models.achievements import ACHIEVEMENTS, Achievement
from pomotrack_cli.models.session import Session
from pomotrack_cli.storage import SessionStore
from pomotrack_cli.utils.logger import get_logger
from pomotrack_cli.utils.time_utils import local_day

logger = get_logger(__name__)

HOUR_REQUIREMENTS = ("early_session", "late_session")


@dataclass(frozen=True)
class AchievementStatus:
    achievement: Achievement
    current: float
    unlocked_at: datetime | None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None

    @property
    def percentage(self) -> float:
        if self.unlocked or is_met(self.achievement, self.current):
            return 100.0
        if self.achievement.requirement_type in HOUR_REQUIREMENTS:
            return 0.0
        required = self.achievement.requirement_value
        return min(self.current / required * 100, 100.0) if required > 0 else 0.0


def requirement_value(
    requirement_type: str,
    sessions: Sequence[Session],
    tz: tzinfo | None = None,
    today: date | None = None,
) -> float:
    """Current value of one requirement type over completed focus sessions.

    Hour-of-day requirements (``early_session``/``late_session``) return the
    earliest/latest local start hour instead of a count; see :func:`is_met`.
    """
    completed = [s for s in sessions if s.kind == "focus" and s.completed]

    if requirement_type == "total_sessions":
        return len(completed)
    if requirement_type == "streak":
        if today is None:
            return 0
        result = streaks(completed, today, tz)
        return max(result.current, result.longest)
    if requirement_type == "total_hours":
        return total_focus_hours(completed)
    if requirement_type == "daily_sessions":
        per_day = Counter(local_day(s.start_time, tz) for s in completed)
        return max(per_day.values(), default=0)
    if requirement_type == "daily_hours":
        seconds: Counter = Counter()
        for s in completed:
            seconds[local_day(s.start_time, tz)] += s.duration_seconds
        return round(max(seconds.values(), default=0) / 3600, 2)
    if requirement_type == "uninterrupted_sessions":
        return sum(1 for s in completed if s.interruptions == 0)
    if requirement_type == "weekend_sessions":
        per_day = Counter(
            day for day in (local_day(s.start_time, tz) for s in completed)
            if day.weekday() >= 5
        )
        return max(per_day.values(), default=0)
    if requirement_type in HOUR_REQUIREMENTS:
        hours = [s.start_time.astimezone(tz).hour for s in completed]
        if not hours:
            return -1
        return min(hours) if requirement_type == "early_session" else max(hours)

    return 0


def is_met(achievement: Achievement, value: float) -> bool:
    required = achievement.requirement_value
    kind = achievement.requirement_type
    if kind == "early_session":
        return 0 <= value < required
    if kind == "late_session":
        return value >= required
    return value >= required


class AchievementTracker:
    """Tracks and awards achievements based on focus session data.

    Unlocks are checked when a session finishes and persisted in the store;
    an unlocked achievement is never revoked, even if the history that
    earned it is later edited by a sync.
    """

    def __init__(self, store: SessionStore, clock: Clock, tz: tzinfo | None = None):
        self.store = store
        self.clock = clock
        self.tz = tz

    def _history(self) -> list[Session]:
        return self.store.list_sessions(kind="focus")

    def check(self) -> list[Achievement]:
        """Unlock every achievement whose requirement is now met."""
        unlocked = self.store.unlocked_achievements()
        history = self._history()
        now = self.clock.now()
        today = local_day(now, self.tz)

        newly_earned = []
        for achievement in ACHIEVEMENTS:
            if achievement.id in unlocked:
                continue
            value = requirement_value(achievement.requirement_type, history, self.tz, today)
            if is_met(achievement, value) and self.store.unlock_achievement(achievement.id, now):
                newly_earned.append(achievement)
                logger.info("Unlocked achievement %s", achievement.id)
        return newly_earned

    def on_session_finished(self, session: Session) -> list[Achievement]:
        """Listener hook for the session tracker."""
        if session.kind != "focus" or not session.completed:
            return []
        return self.check()

    def statuses(self) -> list[AchievementStatus]:
        """All achievements with progress, in definition order."""
        unlocked = self.store.unlocked_achievements()
        history = self._history()
        today = local_day(self.clock.now(), self.tz)
        return [
            AchievementStatus(
                achievement=a,
                current=requirement_value(a.requirement_type, history, self.tz, today),
                unlocked_at=unlocked.get(a.id),
            )
            for a in ACHIEVEMENTS
        ]
