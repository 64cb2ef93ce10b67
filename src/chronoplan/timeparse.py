"""Duration, datetime and time-of-day range parsing."""

import re
from datetime import date, datetime, time, timedelta

_DURATION_UNITS = {
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
}

_DURATION_PART = re.compile(r"([\d.]+)\s*([wdhms])")
_DURATION_FULL = re.compile(r"^(?:\s*[\d.]+\s*[wdhms])+\s*$")
_HOURS_RANGE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")

DAY = timedelta(days=1)


def parse_duration(value: str | float | timedelta) -> timedelta:
    """Parse a duration into a timedelta.

    Supported formats:
    - "1h30m", "45m", "2d", "1w", "90s" - unit-suffixed parts, summed
    - 1.5 - bare numbers are hours
    - timedelta - returned unchanged

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return timedelta(hours=value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid duration: {value!r}") from e

    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")
    text = value.strip().lower()
    try:
        return timedelta(hours=float(text))
    except (ValueError, OverflowError):
        pass

    if not _DURATION_FULL.match(text):
        raise ValueError(f"Invalid duration: {value!r}")

    total = timedelta()
    for amount, unit in _DURATION_PART.findall(text):
        total += float(amount) * _DURATION_UNITS[unit]
    return total


def parse_datetime(value: str | date | datetime) -> datetime:
    """Parse a point in time.

    Accepts datetime objects, dates (midnight) and ISO-8601 strings such as
    "2025-03-05 09:00" or "2025-03-05T09:00Z".

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())

    if not isinstance(value, str):
        raise ValueError(f"Invalid datetime: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid datetime: {value!r}") from e


def parse_hours_range(value: str) -> tuple[timedelta, timedelta]:
    """Parse "HH:MM-HH:MM" into offsets from midnight.

    "24:00" denotes the end of the day. An end that is not after the start
    wraps to the following day ("22:00-06:00" covers the night).

    Returns:
        Tuple of (start offset, end offset), end offset > start offset

    Raises:
        ValueError: If the value is malformed
    """
    match = _HOURS_RANGE.match(value)
    if not match:
        raise ValueError(f"Invalid hours range: {value!r} (expected HH:MM-HH:MM)")

    start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
    for hour, minute in ((start_h, start_m), (end_h, end_m)):
        if minute >= 60 or hour > 24 or (hour == 24 and minute != 0):  # noqa: PLR2004
            raise ValueError(f"Invalid time of day in {value!r}")
    if start_h == 24:  # noqa: PLR2004
        raise ValueError(f"Range cannot start at 24:00: {value!r}")

    start = timedelta(hours=start_h, minutes=start_m)
    end = timedelta(hours=end_h, minutes=end_m)
    if end <= start:
        end += DAY
    return (start, end)


def format_duration(value: timedelta) -> str:
    """Format a timedelta compactly, e.g. "1h30m"."""
    total_minutes = int(value.total_seconds() // 60)
    if total_minutes <= 0:
        return "0m"
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours}h{minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"
