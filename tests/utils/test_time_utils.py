"""Tests for datetime helpers."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from pomotrack_cli.utils.time_utils import (
    day_bounds,
    format_clock,
    format_duration,
    local_day,
    parse_iso,
    to_iso,
)


def test_parse_iso_variants():
    expected = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    assert parse_iso("2026-03-02T09:00:00Z") == expected
    assert parse_iso("2026-03-02T09:00:00") == expected
    assert parse_iso("2026-03-02T10:00:00+01:00") == expected
    assert parse_iso("2026-03-02T10:00:00+01:00").tzinfo == UTC
    assert parse_iso(None) is None


def test_to_iso_normalizes_to_utc():
    berlin = datetime(2026, 3, 2, 10, 0, tzinfo=ZoneInfo("Europe/Berlin"))
    assert to_iso(berlin) == "2026-03-02T09:00:00+00:00"
    assert to_iso(datetime(2026, 3, 2, 9, 0)) == "2026-03-02T09:00:00+00:00"
    assert to_iso(None) is None


def test_local_day_crosses_midnight():
    late = datetime(2026, 3, 2, 23, 30, tzinfo=UTC)
    assert local_day(late, UTC) == date(2026, 3, 2)
    assert local_day(late, ZoneInfo("Asia/Tokyo")) == date(2026, 3, 3)


def test_day_bounds_in_zone():
    start, end = day_bounds(date(2026, 3, 2), ZoneInfo("Asia/Tokyo"))
    assert start == datetime(2026, 3, 1, 15, 0, tzinfo=UTC)
    assert end - start == timedelta(days=1)


def test_day_bounds_dst_day_is_short():
    # Clocks go forward in New York on 2026-03-08
    start, end = day_bounds(date(2026, 3, 8), ZoneInfo("America/New_York"))
    assert end - start == timedelta(hours=23)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(45, "45s"), (60, "1m"), (1500, "25m"), (3900, "1h 05m"), (0, "0s")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_clock():
    assert format_clock(1500) == "25:00"
    assert format_clock(61.9) == "01:01"
    assert format_clock(-5) == "00:00"
