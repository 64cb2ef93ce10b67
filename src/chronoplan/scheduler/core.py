"""Core dataclasses for the scheduling system."""

import bisect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any

ZERO = timedelta()


@dataclass(frozen=True, order=True)
class Interval:
    """A half-open time range [start, end) with an availability tag."""

    start: datetime
    end: datetime
    available: bool = field(default=True, compare=False)

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"Interval start {self.start} must be before end {self.end}")

    @classmethod
    def from_span(cls, start: datetime, span: timedelta, available: bool = True) -> "Interval":
        """Create an interval from a start point and a length."""
        return cls(start, start + span, available)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        """True if the two ranges share any time (touching ends do not overlap)."""
        return self.start < other.end and other.start < self.end

    def contains(self, point: datetime) -> bool:
        return self.start <= point < self.end

    def clip(self, other: "Interval") -> "Interval | None":
        """Return the part of this interval inside other, or None."""
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start >= end:
            return None
        return Interval(start, end, self.available)


def merge_intervals(intervals: Iterable[Interval]) -> tuple[Interval, ...]:
    """Merge overlapping or touching intervals into a sorted, non-overlapping tuple."""
    ordered = sorted(intervals, key=lambda i: (i.start, i.end))
    if not ordered:
        return ()

    merged: list[Interval] = [ordered[0]]
    for interval in ordered[1:]:
        last = merged[-1]
        if interval.start <= last.end:
            if interval.end > last.end:
                merged[-1] = Interval(last.start, interval.end, last.available)
        else:
            merged.append(interval)
    return tuple(merged)


def blocked_time(start: datetime, end: datetime, blackouts: tuple[Interval, ...]) -> timedelta:
    """Total time inside [start, end) covered by merged, sorted blackouts."""
    if start >= end or not blackouts:
        return ZERO

    window = Interval(start, end)
    total = ZERO
    # First blackout that ends after the window starts
    idx = bisect.bisect_right(blackouts, start, key=lambda i: i.end)
    for blackout in blackouts[idx:]:
        if blackout.start >= end:
            break
        overlap = blackout.clip(window)
        if overlap is not None:
            total += overlap.duration
    return total


def working_time(start: datetime, end: datetime, blackouts: tuple[Interval, ...]) -> timedelta:
    """Time inside [start, end) that is not blacked out. Zero if end <= start."""
    if end <= start:
        return ZERO
    return (end - start) - blocked_time(start, end, blackouts)


@dataclass(frozen=True)
class Task:
    """A schedulable unit of work.

    Instances are immutable snapshots: the scheduler records progress by
    replacing a task with an updated copy, so heuristics and the dependency
    graph only ever see read-only values.
    """

    id: str
    description: str
    deadline: datetime
    priority: float
    granularity: timedelta
    workload: timedelta
    velocity: float = 1.0
    dependencies: frozenset[str] = frozenset()
    remaining: timedelta | None = None  # Defaults to workload
    allocated: tuple[Interval, ...] = ()

    def __post_init__(self) -> None:
        if self.remaining is None:
            object.__setattr__(self, "remaining", self.workload)
        if not isinstance(self.dependencies, frozenset):
            object.__setattr__(self, "dependencies", frozenset(self.dependencies))

    @property
    def remaining_workload(self) -> timedelta:
        assert self.remaining is not None
        return self.remaining

    @property
    def is_complete(self) -> bool:
        return self.remaining_workload <= ZERO

    @property
    def finished_at(self) -> datetime | None:
        """End of the last allocated slice, if any."""
        return self.allocated[-1].end if self.allocated else None

    @property
    def required_time(self) -> timedelta:
        """Calendar time needed to finish the remaining workload at this velocity."""
        return self.remaining_workload / self.velocity


@dataclass(frozen=True)
class SchedulingContext:
    """Read-only view of the scheduler state handed to heuristics."""

    cursor: datetime
    horizon: Interval
    tasks: Mapping[str, Task]
    completed: frozenset[str]
    blackouts: tuple[Interval, ...] = ()

    def working_time_until(self, point: datetime) -> timedelta:
        """Non-blacked-out time between the cursor and point.

        Time after the horizon end is not counted.
        """
        return working_time(self.cursor, min(point, self.horizon.end), self.blackouts)

    def is_complete(self, task_id: str) -> bool:
        return task_id in self.completed


def make_context(
    cursor: datetime,
    horizon: Interval,
    tasks: Mapping[str, Task],
    completed: Iterable[str],
    blackouts: tuple[Interval, ...] = (),
) -> SchedulingContext:
    """Build a context whose task mapping cannot be modified by heuristics."""
    return SchedulingContext(
        cursor=cursor,
        horizon=horizon,
        tasks=MappingProxyType(dict(tasks)),
        completed=frozenset(completed),
        blackouts=blackouts,
    )


class IssueReason(str, Enum):
    """Why a task is reported to the user."""

    NO_DEPENDENCY_PATH = "no-dependency-path"
    HORIZON_EXHAUSTED = "horizon-exhausted"
    DEADLINE_INFEASIBLE = "deadline-infeasible"


UNRESOLVED_REASONS = frozenset({IssueReason.NO_DEPENDENCY_PATH, IssueReason.HORIZON_EXHAUSTED})


@dataclass(frozen=True)
class TaskIssue:
    """A non-fatal problem recorded for one task."""

    task_id: str
    reason: IssueReason
    detail: str
    remaining: timedelta

    @property
    def is_unresolved(self) -> bool:
        return self.reason in UNRESOLVED_REASONS


class ScheduleStatus(str, Enum):
    """Overall outcome of a scheduling run."""

    ON_TIME = "on_time"  # Every task fully allocated before its deadline
    LATE = "late"  # Every task fully allocated, some after their deadline
    INCOMPLETE = "incomplete"  # At least one task is unresolved


@dataclass(frozen=True)
class Schedule:
    """Final, immutable result of a scheduling run."""

    horizon: Interval
    allocations: Mapping[str, tuple[Interval, ...]]
    issues: Mapping[str, TaskIssue]
    tasks: Mapping[str, Task]

    @property
    def unresolved(self) -> dict[str, TaskIssue]:
        return {tid: issue for tid, issue in self.issues.items() if issue.is_unresolved}

    @property
    def late(self) -> dict[str, TaskIssue]:
        return {
            tid: issue
            for tid, issue in self.issues.items()
            if issue.reason == IssueReason.DEADLINE_INFEASIBLE
        }

    @property
    def status(self) -> ScheduleStatus:
        if self.unresolved:
            return ScheduleStatus.INCOMPLETE
        if self.late:
            return ScheduleStatus.LATE
        return ScheduleStatus.ON_TIME

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def intervals(self) -> list[tuple[str, Interval]]:
        """All (task_id, interval) pairs ordered by start time, then task id."""
        pairs = [(tid, iv) for tid, ivs in self.allocations.items() for iv in ivs]
        pairs.sort(key=lambda pair: (pair[1].start, pair[0]))
        return pairs

    def to_dict(self) -> dict[str, Any]:
        """Plain-data representation for presenters and persisters."""
        return {
            "horizon": {
                "start": self.horizon.start.isoformat(),
                "end": self.horizon.end.isoformat(),
            },
            "status": self.status.value,
            "allocations": {
                tid: [
                    {"start": iv.start.isoformat(), "end": iv.end.isoformat()}
                    for iv in self.allocations[tid]
                ]
                for tid in sorted(self.allocations)
            },
            "issues": [
                {
                    "task_id": issue.task_id,
                    "reason": issue.reason.value,
                    "detail": issue.detail,
                    "remaining_hours": issue.remaining.total_seconds() / 3600,
                }
                for issue in sorted(self.issues.values(), key=lambda i: i.task_id)
            ],
        }
