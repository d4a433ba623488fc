"""Pomotrack CLI - Pomodoro timer with session tracking and sync."""

__version__ = "0.1.0"
