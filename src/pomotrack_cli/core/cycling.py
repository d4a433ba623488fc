"""Pomodoro cycling: which session comes next."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from pomotrack_cli.models.config_models import TimerConfig
from pomotrack_cli.models.session import Session, SessionKind

Phase = Literal["focus", "short_break", "long_break"]

# Breaks carry their phase in the category so the cycle can be rebuilt from history
SHORT_BREAK = "short_break"
LONG_BREAK = "long_break"


@dataclass(frozen=True)
class NextSession:
    """Suggested next session."""

    phase: Phase
    kind: SessionKind
    minutes: int
    session_in_cycle: int
    sessions_per_cycle: int

    @property
    def category(self) -> str | None:
        return None if self.phase == "focus" else self.phase

    @property
    def label(self) -> str:
        return self.phase.replace("_", " ").title()

    def progress_dots(self) -> str:
        """Dots showing the position in the current cycle."""
        dots = []
        for i in range(1, self.sessions_per_cycle + 1):
            if i < self.session_in_cycle:
                dots.append("●")
            elif i == self.session_in_cycle and self.phase == "focus":
                dots.append("◉")
            elif i == self.session_in_cycle:
                dots.append("●")
            else:
                dots.append("○")
        return " ".join(dots)


def completed_in_cycle(history: Sequence[Session]) -> int:
    """Completed focus sessions since the last long break.

    Args:
        history: finished sessions, oldest first
    """
    count = 0
    for session in reversed(history):
        if session.kind == "break" and session.category == LONG_BREAK:
            break
        if session.kind == "focus" and session.completed:
            count += 1
    return count


def next_session(history: Sequence[Session], config: TimerConfig) -> NextSession:
    """Suggest the next session from the finished-session history.

    After a completed focus session comes a break, a long one every
    ``sessions_before_long_break`` focus sessions. After a break, or a
    focus session that was cancelled, comes focus.
    """
    per_cycle = config.sessions_before_long_break
    done = completed_in_cycle(history)
    last = history[-1] if history else None

    if last is not None and last.kind == "focus" and last.completed:
        in_cycle = (done - 1) % per_cycle + 1
        if in_cycle >= per_cycle:
            return NextSession("long_break", "break", config.long_break_minutes, in_cycle, per_cycle)
        return NextSession("short_break", "break", config.short_break_minutes, in_cycle, per_cycle)

    return NextSession("focus", "focus", config.focus_minutes, done % per_cycle + 1, per_cycle)
