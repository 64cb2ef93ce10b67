"""Presentation of a finished schedule: day agendas and issue summaries."""

from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

import yaml

from .scheduler.core import Interval, IssueReason, Schedule
from .timeparse import DAY, format_duration


def _clock(point: datetime, *, is_end: bool = False) -> str:
    """HH:MM, printing a midnight end as 24:00 of the previous day."""
    if is_end and point.time() == time():
        return "24:00"
    return point.strftime("%H:%M")


def _day_of(interval: Interval) -> date:
    return interval.start.date()


def split_by_day(interval: Interval) -> list[Interval]:
    """Split an interval at midnight so each piece lies within one day."""
    pieces: list[Interval] = []
    start = interval.start
    while start < interval.end:
        next_midnight = datetime.combine(start.date() + DAY, time(), tzinfo=start.tzinfo)
        end = min(interval.end, next_midnight)
        pieces.append(Interval(start, end, interval.available))
        start = end
    return pieces


def _entries(
    schedule: Schedule, blackouts: Iterable[tuple[str, Interval]] = ()
) -> list[tuple[Interval, str]]:
    entries: list[tuple[Interval, str]] = []
    for task_id, interval in schedule.intervals():
        description = schedule.tasks[task_id].description
        entries.extend((piece, description) for piece in split_by_day(interval))
    for label, interval in blackouts:
        entries.extend((piece, label or "(blocked)") for piece in split_by_day(interval))
    entries.sort(key=lambda entry: (entry[0].start, entry[0].end, entry[1]))
    return entries


def schedule_to_agenda(
    schedule: Schedule, blackouts: Iterable[tuple[str, Interval]] = ()
) -> dict[str, dict[str, str]]:
    """Group slices by day: {"YYYY-MM-DD": {"HH:MM - HH:MM": description}}.

    Args:
        schedule: Finished schedule
        blackouts: Optional (label, interval) pairs to show alongside tasks

    Returns:
        Ordered mapping of day to time ranges
    """
    agenda: dict[str, dict[str, str]] = {}
    for interval, description in _entries(schedule, blackouts):
        day = agenda.setdefault(_day_of(interval).isoformat(), {})
        key = f"{_clock(interval.start)} - {_clock(interval.end, is_end=True)}"
        day[key] = f"{day[key]}; {description}" if key in day else description
    return agenda


def dump_agenda_yaml(
    schedule: Schedule, blackouts: Iterable[tuple[str, Interval]] = ()
) -> str:
    """Agenda as YAML text."""
    return yaml.safe_dump(
        schedule_to_agenda(schedule, blackouts),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def format_schedule_text(
    schedule: Schedule, blackouts: Iterable[tuple[str, Interval]] = ()
) -> str:
    """Human-readable agenda, one block per day, optionally listing blackouts."""
    lines: list[str] = []
    current_day: date | None = None
    for interval, description in _entries(schedule, blackouts):
        day = _day_of(interval)
        if day != current_day:
            lines.append(f"{day.isoformat()}:")
            current_day = day
        lines.append(
            f"    {description}: {_clock(interval.start)} - {_clock(interval.end, is_end=True)}"
        )
    if not lines:
        lines.append("(nothing scheduled)")
    return "\n".join(lines) + "\n"


def format_issues(schedule: Schedule) -> list[str]:
    """One line per reported task, ordered by task id."""
    lines: list[str] = []
    for task_id in sorted(schedule.issues):
        issue = schedule.issues[task_id]
        description = schedule.tasks[task_id].description
        if issue.reason == IssueReason.DEADLINE_INFEASIBLE:
            lines.append(f"Missed deadline: {description} ({issue.detail})")
        else:
            lines.append(
                f"Unresolved [{issue.reason.value}]: {description}, needs "
                f"{format_duration(issue.remaining)} more ({issue.detail})"
            )
    return lines


def summary(schedule: Schedule) -> dict[str, Any]:
    """Counts for a one-line status report."""
    return {
        "status": schedule.status.value,
        "tasks": len(schedule.tasks),
        "slices": sum(len(intervals) for intervals in schedule.allocations.values()),
        "late": len(schedule.late),
        "unresolved": len(schedule.unresolved),
    }
