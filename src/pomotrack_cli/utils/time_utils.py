"""Datetime helpers shared by models, storage and sync."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string into an aware UTC datetime.

    Naive values are assumed to be UTC. ``None`` passes through.
    """
    if value is None:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Serialize an aware datetime as a UTC ISO 8601 string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def local_day(value: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of *value* in *tz* (the system zone when omitted)."""
    return value.astimezone(tz).date()


def day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return the UTC [start, end) range covering *day* in *tz*."""
    start = datetime(day.year, day.month, day.day)
    if tz is None:
        start = start.astimezone()
    else:
        start = start.replace(tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(UTC), end.astimezone(UTC)


def format_duration(seconds: float) -> str:
    """Format seconds as ``1h 05m`` / ``12m`` / ``45s``."""
    seconds = int(seconds)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{secs}s"


def format_clock(seconds: float) -> str:
    """Format a countdown as ``MM:SS``."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"
