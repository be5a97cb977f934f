"""Tests for loki_mcp.timeparse."""

from datetime import datetime, timedelta, timezone

import pytest

from loki_mcp.errors import InvalidTimeExpression
from loki_mcp.timeparse import parse_duration, resolve_time, to_epoch_seconds
from tests.conftest import NOW

TOLERANCE = timedelta(seconds=5)


class TestRelative:
    def test_now_is_current_instant(self):
        resolved = resolve_time("now")
        assert abs(resolved - datetime.now(timezone.utc)) < TOLERANCE

    def test_minus_one_hour_against_wall_clock(self):
        resolved = resolve_time("-1h")
        expected = datetime.now(timezone.utc) - timedelta(hours=1)
        assert abs(resolved - expected) < TOLERANCE

    def test_now_uses_reference(self):
        assert resolve_time("now", NOW) == NOW

    @pytest.mark.parametrize(
        "text,delta",
        [
            ("-1h", timedelta(hours=1)),
            ("-30m", timedelta(minutes=30)),
            ("-45s", timedelta(seconds=45)),
            ("-1h30m", timedelta(hours=1, minutes=30)),
            ("-2h15m10s", timedelta(hours=2, minutes=15, seconds=10)),
            ("-1.5h", timedelta(minutes=90)),
            ("-500ms", timedelta(milliseconds=500)),
        ],
    )
    def test_durations(self, text, delta):
        assert resolve_time(text, NOW) == NOW - delta

    def test_result_is_timezone_aware(self):
        assert resolve_time("-1h", NOW).tzinfo is not None


class TestAbsolute:
    def test_rfc3339_utc(self):
        assert resolve_time("2024-01-15T10:30:45Z") == datetime(
            2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc
        )

    def test_rfc3339_offset(self):
        resolved = resolve_time("2024-01-15T12:30:45+02:00")
        assert resolved == datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    def test_rfc3339_nanosecond_fraction_is_truncated(self):
        resolved = resolve_time("2024-01-15T10:30:45.123456789Z")
        assert resolved.microsecond == 123456

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2024-01-15T10:30:45", datetime(2024, 1, 15, 10, 30, 45)),
            ("2024-01-15 10:30:45", datetime(2024, 1, 15, 10, 30, 45)),
            ("2024-01-15", datetime(2024, 1, 15)),
        ],
    )
    def test_layouts_without_zone_are_utc(self, text, expected):
        assert resolve_time(text) == expected.replace(tzinfo=timezone.utc)


class TestInvalid:
    @pytest.mark.parametrize(
        "text", ["not-a-time", "yesterday", "-", "-abc", "-1x", "2024-13-45", "15/01/2024"]
    )
    def test_rejected(self, text):
        with pytest.raises(InvalidTimeExpression) as exc_info:
            resolve_time(text, NOW)
        assert exc_info.value.text == text
        assert text in str(exc_info.value)

    def test_overflowing_duration(self):
        with pytest.raises(InvalidTimeExpression):
            resolve_time("-99999999999h", NOW)


def test_parse_duration_rejects_garbage_between_parts():
    assert parse_duration("1h x30m") is None
    assert parse_duration("") is None
    assert parse_duration("90s") == timedelta(seconds=90)


def test_unitless_zero_duration():
    assert parse_duration("0") == timedelta(0)
    assert resolve_time("-0", NOW) == NOW
    assert parse_duration("5") is None


def test_to_epoch_seconds():
    instant = datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
    assert to_epoch_seconds(instant) == 1705314645
