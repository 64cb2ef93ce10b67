"""Non-working (blackout) period configuration and expansion.

This module handles:
- One-off blackout periods (holidays, appointments)
- Recurring blackouts described by an RRULE and a time-of-day range
  (nights, weekends, lunch breaks)
- Expansion of both into concrete intervals across a horizon
"""

from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

from dateutil import rrule
from pydantic import BaseModel, field_validator, model_validator

from chronoplan.logger import get_logger
from chronoplan.scheduler.core import Interval, merge_intervals
from chronoplan.timeparse import DAY, parse_datetime, parse_hours_range

logger = get_logger()


class BlackoutPeriod(BaseModel):
    """A single non-working period."""

    start: datetime
    end: datetime
    label: str = ""

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_point(cls, value: Any) -> Any:
        if isinstance(value, (str, date)):
            return parse_datetime(value)
        return value

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "BlackoutPeriod":
        """Ensure end is after start."""
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    def to_interval(self) -> Interval:
        return Interval(self.start, self.end, available=False)


class RecurringBlackout(BaseModel):
    """A blackout repeating on the days selected by an RRULE.

    Examples:
        rule: "FREQ=DAILY", hours: "22:00-07:00"          (nights)
        rule: "FREQ=WEEKLY;BYDAY=SA,SU", hours: "00:00-24:00"  (weekends)
    """

    rule: str
    hours: str = "00:00-24:00"
    label: str = ""

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: str) -> str:
        parse_hours_range(value)
        return value

    @field_validator("rule")
    @classmethod
    def validate_rule(cls, value: str) -> str:
        try:
            rrule.rrulestr(value, dtstart=datetime(2000, 1, 1))
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid recurrence rule '{value}': {e}") from e
        return value

    def expand(self, horizon: Interval) -> list[Interval]:
        """Concrete blackout intervals overlapping the horizon, clipped to it.

        Occurrences are generated from the day before the horizon so that a
        range wrapping past midnight still covers the first morning.
        """
        start_offset, end_offset = parse_hours_range(self.hours)
        first_day = datetime.combine(
            (horizon.start - DAY).date(), time(), tzinfo=horizon.start.tzinfo
        )
        rule = rrule.rrulestr(self.rule, dtstart=first_day)

        intervals: list[Interval] = []
        for occurrence in rule.between(first_day, horizon.end, inc=True):
            day = datetime.combine(occurrence.date(), time(), tzinfo=horizon.start.tzinfo)
            blackout = Interval(day + start_offset, day + end_offset, available=False)
            clipped = blackout.clip(horizon)
            if clipped is not None:
                intervals.append(clipped)
        return intervals


def expand_blackouts(
    horizon: Interval,
    periods: Iterable[BlackoutPeriod] = (),
    recurring: Iterable[RecurringBlackout] = (),
) -> tuple[Interval, ...]:
    """Merge one-off and recurring blackouts into sorted, non-overlapping intervals.

    Both sources are clipped to the horizon.

    Args:
        horizon: Scheduling horizon; recurring rules are expanded across it
        periods: One-off blackout periods
        recurring: Recurring blackouts

    Returns:
        Merged blackout intervals
    """
    intervals: list[Interval] = []
    for period in periods:
        clipped = period.to_interval().clip(horizon)
        if clipped is not None:
            intervals.append(clipped)
    for item in recurring:
        expanded = item.expand(horizon)
        logger.debug(f"Recurring blackout '{item.label or item.rule}': {len(expanded)} intervals")
        intervals.extend(expanded)
    return merge_intervals(intervals)


def labelled_blackouts(
    horizon: Interval,
    periods: Iterable[BlackoutPeriod] = (),
    recurring: Iterable[RecurringBlackout] = (),
) -> list[tuple[str, Interval]]:
    """Blackouts inside the horizon paired with their labels, for agenda output."""
    result: list[tuple[str, Interval]] = []
    for period in periods:
        clipped = period.to_interval().clip(horizon)
        if clipped is not None:
            result.append((period.label, clipped))
    for item in recurring:
        result.extend((item.label, interval) for interval in item.expand(horizon))
    result.sort(key=lambda pair: (pair[1].start, pair[1].end, pair[0]))
    return result

