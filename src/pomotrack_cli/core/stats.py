"""Daily/weekly rollups, streaks and the focus score.

Everything here is a pure function of a sequence of sessions, so results
are recomputed on demand and never cached or persisted. Only finished
sessions (completed or cancelled) are counted. An empty input yields zero
totals.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Any

from pomotrack_cli.models.session import Session
from pomotrack_cli.utils.time_utils import local_day

SCORE_COMPONENTS = ("completion", "interruptions", "break_compliance", "consistency")
DEFAULT_WEIGHTS: dict[str, float] = dict.fromkeys(SCORE_COMPONENTS, 1.0)


@dataclass(frozen=True)
class FocusScore:
    """Composite 0-100 score and the 0-1 components it was built from."""

    score: float
    completion: float
    interruptions: float
    break_compliance: float
    consistency: float

    @property
    def grade(self) -> str:
        if self.score >= 90:
            return "A"
        if self.score >= 80:
            return "B"
        if self.score >= 70:
            return "C"
        if self.score >= 60:
            return "D"
        return "F"

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "grade": self.grade,
            "components": {
                "completion": self.completion,
                "interruptions": self.interruptions,
                "break_compliance": self.break_compliance,
                "consistency": self.consistency,
            },
        }


@dataclass
class DailyStats:
    date: date
    total_sessions: int = 0
    completed_sessions: int = 0
    cancelled_sessions: int = 0
    focus_minutes: float = 0.0
    break_minutes: float = 0.0
    interruptions: int = 0
    completion_rate: float = 0.0
    focus_score: FocusScore | None = None
    categories: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "total_sessions": self.total_sessions,
            "completed_sessions": self.completed_sessions,
            "cancelled_sessions": self.cancelled_sessions,
            "focus_minutes": self.focus_minutes,
            "break_minutes": self.break_minutes,
            "interruptions": self.interruptions,
            "completion_rate": self.completion_rate,
            "focus_score": self.focus_score.to_dict() if self.focus_score else None,
            "categories": dict(self.categories),
        }


@dataclass
class WeeklyStats:
    start_date: date
    end_date: date
    days: list[DailyStats]
    total_sessions: int = 0
    completed_sessions: int = 0
    focus_minutes: float = 0.0
    break_minutes: float = 0.0
    interruptions: int = 0
    completion_rate: float = 0.0
    daily_average_sessions: float = 0.0
    daily_average_minutes: float = 0.0
    best_day: date | None = None
    focus_score: FocusScore | None = None
    categories: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_sessions": self.total_sessions,
            "completed_sessions": self.completed_sessions,
            "focus_minutes": self.focus_minutes,
            "break_minutes": self.break_minutes,
            "interruptions": self.interruptions,
            "completion_rate": self.completion_rate,
            "daily_average_sessions": self.daily_average_sessions,
            "daily_average_minutes": self.daily_average_minutes,
            "best_day": self.best_day.isoformat() if self.best_day else None,
            "focus_score": self.focus_score.to_dict() if self.focus_score else None,
            "categories": dict(self.categories),
            "days": [d.to_dict() for d in self.days],
        }


@dataclass(frozen=True)
class Streaks:
    current: int = 0
    longest: int = 0
    longest_start: date | None = None
    longest_end: date | None = None


def _finished(sessions: Iterable[Session]) -> list[Session]:
    return [s for s in sessions if s.is_final]


def _minutes(seconds: int) -> float:
    return round(seconds / 60, 1)


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0


def _category_minutes(sessions: Iterable[Session]) -> dict[str, float]:
    seconds: dict[str, int] = defaultdict(int)
    for s in sessions:
        if s.kind == "focus":
            seconds[s.category or "uncategorized"] += s.duration_seconds
    return {
        name: _minutes(total)
        for name, total in sorted(seconds.items(), key=lambda x: x[1], reverse=True)
    }


def focus_score(
    sessions: Iterable[Session],
    weights: Mapping[str, float] | None = None,
) -> FocusScore | None:
    """Score session quality from 0 to 100.

    Components, each in 0..1:

    - completion: completed / finished focus sessions
    - interruptions: ``1 / (1 + interruptions per finished focus session)``
    - break_compliance: completed breaks / completed focus sessions, capped at 1
    - consistency: ``1 - coefficient of variation`` of completed focus
      durations (1.0 with fewer than two sessions)

    The score is the weighted mean of the components times 100. Unknown
    weight names are ignored.

    Returns:
        None when there is no finished focus session to judge
    """
    finished = _finished(sessions)
    focus = [s for s in finished if s.kind == "focus"]
    if not focus:
        return None

    completed = [s for s in focus if s.completed]
    completed_breaks = [s for s in finished if s.kind == "break" and s.completed]

    completion = len(completed) / len(focus)
    interruptions = 1 / (1 + sum(s.interruptions for s in focus) / len(focus))
    if completed:
        break_compliance = min(1.0, len(completed_breaks) / len(completed))
    else:
        break_compliance = 0.0

    durations = [s.duration_seconds for s in completed]
    if len(durations) < 2:
        consistency = 1.0
    else:
        mean = statistics.fmean(durations)
        cv = statistics.pstdev(durations) / mean if mean > 0 else 1.0
        consistency = min(1.0, max(0.0, 1 - cv))

    components = {
        "completion": completion,
        "interruptions": interruptions,
        "break_compliance": break_compliance,
        "consistency": consistency,
    }
    weights = dict(weights) if weights is not None else DEFAULT_WEIGHTS
    used = {name: w for name, w in weights.items() if name in components}
    total_weight = sum(used.values())
    if total_weight <= 0:
        raise ValueError("At least one focus score weight must be positive")

    score = sum(components[name] * w for name, w in used.items()) / total_weight
    return FocusScore(
        score=round(score * 100, 1),
        **{name: round(value, 3) for name, value in components.items()},
    )


def daily_stats(
    sessions: Iterable[Session],
    day: date,
    tz: tzinfo | None = None,
    weights: Mapping[str, float] | None = None,
) -> DailyStats:
    """Roll up the sessions that started on *day* (in *tz*)."""
    selected = [s for s in _finished(sessions) if local_day(s.start_time, tz) == day]
    focus = [s for s in selected if s.kind == "focus"]
    breaks = [s for s in selected if s.kind == "break"]
    completed = sum(1 for s in focus if s.completed)

    return DailyStats(
        date=day,
        total_sessions=len(focus),
        completed_sessions=completed,
        cancelled_sessions=len(focus) - completed,
        focus_minutes=_minutes(sum(s.duration_seconds for s in focus)),
        break_minutes=_minutes(sum(s.duration_seconds for s in breaks)),
        interruptions=sum(s.interruptions for s in focus),
        completion_rate=_rate(completed, len(focus)),
        focus_score=focus_score(selected, weights),
        categories=_category_minutes(focus),
    )


def weekly_stats(
    sessions: Iterable[Session],
    end_day: date,
    tz: tzinfo | None = None,
    weights: Mapping[str, float] | None = None,
) -> WeeklyStats:
    """Roll up the seven days ending on *end_day*, inclusive."""
    sessions = _finished(sessions)
    start_day = end_day - timedelta(days=6)
    days = [daily_stats(sessions, start_day + timedelta(days=i), tz, weights) for i in range(7)]
    in_range = [s for s in sessions if start_day <= local_day(s.start_time, tz) <= end_day]

    total = sum(d.total_sessions for d in days)
    completed = sum(d.completed_sessions for d in days)
    focus_seconds = sum(s.duration_seconds for s in in_range if s.kind == "focus")
    break_seconds = sum(s.duration_seconds for s in in_range if s.kind == "break")

    best = max(days, key=lambda d: d.focus_minutes)
    return WeeklyStats(
        start_date=start_day,
        end_date=end_day,
        days=days,
        total_sessions=total,
        completed_sessions=completed,
        focus_minutes=_minutes(focus_seconds),
        break_minutes=_minutes(break_seconds),
        interruptions=sum(d.interruptions for d in days),
        completion_rate=_rate(completed, total),
        daily_average_sessions=round(total / 7, 1),
        daily_average_minutes=round(focus_seconds / 60 / 7, 1),
        best_day=best.date if best.focus_minutes > 0 else None,
        focus_score=focus_score(in_range, weights),
        categories=_category_minutes(in_range),
    )


def streaks(sessions: Iterable[Session], today: date, tz: tzinfo | None = None) -> Streaks:
    """Current and longest run of days with a completed focus session.

    A streak stays current through *today* until the day ends, so it counts
    back from today when today has a session, otherwise from yesterday.
    """
    days = sorted(
        {
            local_day(s.start_time, tz)
            for s in sessions
            if s.kind == "focus" and s.completed
        }
    )
    if not days:
        return Streaks()

    longest = 0
    longest_start = longest_end = None
    run_start = prev = days[0]
    run = 0
    for day in days:
        if prev is not None and (day - prev).days == 1:
            run += 1
        else:
            run = 1
            run_start = day
        if run > longest:
            longest, longest_start, longest_end = run, run_start, day
        prev = day

    day_set = set(days)
    cursor = today if today in day_set else today - timedelta(days=1)
    current = 0
    while cursor in day_set:
        current += 1
        cursor -= timedelta(days=1)

    return Streaks(
        current=current,
        longest=longest,
        longest_start=longest_start,
        longest_end=longest_end,
    )


def total_focus_hours(sessions: Sequence[Session]) -> float:
    return round(sum(s.duration_seconds for s in _finished(sessions) if s.kind == "focus") / 3600, 2)
