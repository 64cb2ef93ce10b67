"""Tests for duration, datetime and hours-range parsing."""

from datetime import date, datetime, timedelta, timezone

import pytest

from chronoplan.timeparse import (
    format_duration,
    parse_datetime,
    parse_duration,
    parse_hours_range,
)


class TestParseDuration:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1h", timedelta(hours=1)),
            ("30m", timedelta(minutes=30)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("2d", timedelta(days=2)),
            ("1w", timedelta(weeks=1)),
            ("90s", timedelta(seconds=90)),
            ("1.5h", timedelta(hours=1.5)),
            (" 2H ", timedelta(hours=2)),
            ("2", timedelta(hours=2)),
            (2, timedelta(hours=2)),
            (0.25, timedelta(minutes=15)),
        ],
    )
    def test_valid(self, value: str | float, expected: timedelta) -> None:
        assert parse_duration(value) == expected

    def test_timedelta_passthrough(self) -> None:
        value = timedelta(minutes=7)
        assert parse_duration(value) is value

    @pytest.mark.parametrize("value", ["", "h", "1x", "one hour", "1h foo", True, ["1h"], None])
    def test_invalid(self, value: object) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)


class TestParseDatetime:
    """Test datetime parsing."""

    def test_iso_string(self) -> None:
        assert parse_datetime("2025-03-05 09:30") == datetime(2025, 3, 5, 9, 30)

    def test_zulu_suffix(self) -> None:
        assert parse_datetime("2025-03-05T09:30Z") == datetime(
            2025, 3, 5, 9, 30, tzinfo=timezone.utc
        )

    def test_date_is_midnight(self) -> None:
        assert parse_datetime(date(2025, 3, 5)) == datetime(2025, 3, 5)

    def test_datetime_passthrough(self) -> None:
        value = datetime(2025, 3, 5, 1, 2)
        assert parse_datetime(value) is value

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid datetime"):
            parse_datetime("next tuesday")

    @pytest.mark.parametrize("value", [20250306, 2025.5, ["2025-03-06"]])
    def test_non_string_rejected(self, value: object) -> None:
        with pytest.raises(ValueError, match="Invalid datetime"):
            parse_datetime(value)


class TestParseHoursRange:
    """Test time-of-day ranges."""

    def test_daytime(self) -> None:
        assert parse_hours_range("12:00-13:30") == (
            timedelta(hours=12),
            timedelta(hours=13, minutes=30),
        )

    def test_full_day(self) -> None:
        assert parse_hours_range("00:00-24:00") == (timedelta(0), timedelta(hours=24))

    def test_overnight_wraps(self) -> None:
        assert parse_hours_range("22:00-06:00") == (timedelta(hours=22), timedelta(hours=30))

    @pytest.mark.parametrize("value", ["9-17", "09:00", "25:00-26:00", "10:60-11:00", "24:00-01:00"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_hours_range(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (timedelta(0), "0m"),
        (timedelta(minutes=45), "45m"),
        (timedelta(hours=2), "2h"),
        (timedelta(hours=1, minutes=30), "1h30m"),
        (timedelta(hours=-1), "0m"),
    ],
)
def test_format_duration(value: timedelta, expected: str) -> None:
    assert format_duration(value) == expected
