"""Achievement badges awarded for focus history milestones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Achievement:
    """Represents an achievement badge."""

    id: str
    name: str
    description: str
    icon: str
    requirement: dict[str, Any]

    @property
    def requirement_type(self) -> str:
        return self.requirement["type"]

    @property
    def requirement_value(self) -> float:
        return self.requirement["value"]


ACHIEVEMENTS = [
    # Session count milestones
    Achievement(
        "first_session",
        "Getting Started",
        "Complete your first focus session",
        "🌱",
        {"type": "total_sessions", "value": 1},
    ),
    Achievement(
        "sessions_10",
        "Decathlon",
        "Complete 10 focus sessions",
        "🎯",
        {"type": "total_sessions", "value": 10},
    ),
    Achievement(
        "sessions_50",
        "Half Century",
        "Complete 50 focus sessions",
        "⭐",
        {"type": "total_sessions", "value": 50},
    ),
    Achievement(
        "sessions_100",
        "Centurion",
        "Complete 100 focus sessions",
        "💪",
        {"type": "total_sessions", "value": 100},
    ),
    # Streak-based
    Achievement(
        "streak_3",
        "Building Momentum",
        "3-day focus streak",
        "🔥",
        {"type": "streak", "value": 3},
    ),
    Achievement(
        "streak_7",
        "Week Warrior",
        "7-day focus streak",
        "🔥🔥",
        {"type": "streak", "value": 7},
    ),
    Achievement(
        "streak_30",
        "Monthly Master",
        "30-day focus streak",
        "🏆",
        {"type": "streak", "value": 30},
    ),
    # Time-based
    Achievement(
        "hours_10",
        "10 Hour Hero",
        "Focus for 10 hours total",
        "⏰",
        {"type": "total_hours", "value": 10},
    ),
    Achievement(
        "hours_50",
        "50 Hour Champion",
        "Focus for 50 hours total",
        "⏱️",
        {"type": "total_hours", "value": 50},
    ),
    # Daily
    Achievement(
        "perfect_day",
        "Perfect Day",
        "Complete 8+ sessions in one day",
        "✨",
        {"type": "daily_sessions", "value": 8},
    ),
    Achievement(
        "marathon",
        "Marathon Focus",
        "Focus for 6+ hours in one day",
        "🏃",
        {"type": "daily_hours", "value": 6},
    ),
    # Quality
    Achievement(
        "undisturbed",
        "Undisturbed",
        "Complete 10 focus sessions without an interruption",
        "🧘",
        {"type": "uninterrupted_sessions", "value": 10},
    ),
    # Special
    Achievement(
        "early_bird",
        "Early Bird",
        "Complete a session started before 6 AM",
        "🌅",
        {"type": "early_session", "value": 6},
    ),
    Achievement(
        "night_owl",
        "Night Owl",
        "Complete a session started after 10 PM",
        "🦉",
        {"type": "late_session", "value": 22},
    ),
    Achievement(
        "weekend_warrior",
        "Weekend Warrior",
        "Complete 5+ sessions on a weekend day",
        "🎮",
        {"type": "weekend_sessions", "value": 5},
    ),
]

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}
