"""Pytest configuration and fixtures for chronoplan tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest

from chronoplan import context
from chronoplan.logger import reset_logger
from chronoplan.scheduler import (
    CalendarAllocator,
    Interval,
    Schedule,
    Scheduler,
    SchedulingConfig,
    Task,
    chain_allocators,
)

# Monday
START = datetime(2025, 3, 3, 0, 0)


def hours(value: float) -> timedelta:
    """Shorthand for a timedelta in hours."""
    return timedelta(hours=value)


def at(day: int, hour: float = 0.0) -> datetime:
    """Point in time relative to START (day 0 is Monday 2025-03-03)."""
    return START + timedelta(days=day, hours=hour)


def make_task(  # noqa: PLR0913 - mirrors Task fields
    task_id: str,
    *,
    workload: float = 1.0,
    granularity: float = 1.0,
    deadline: datetime | None = None,
    priority: float = 1.0,
    velocity: float = 1.0,
    dependencies: Iterable[str] = (),
    description: str | None = None,
) -> Task:
    """Create a Task with hour-based durations and sensible defaults."""
    return Task(
        id=task_id,
        description=description or task_id,
        deadline=deadline or at(5),
        priority=priority,
        granularity=hours(granularity),
        workload=hours(workload),
        velocity=velocity,
        dependencies=frozenset(dependencies),
    )


@pytest.fixture
def horizon() -> Interval:
    """One week starting Monday 2025-03-03."""
    return Interval(START, at(7))


@pytest.fixture
def run_scheduler(horizon: Interval) -> Callable[..., Schedule]:
    """Factory that schedules tasks over the default horizon with optional blackouts."""

    def _run(
        tasks: list[Task],
        *,
        blackouts: Iterable[Interval] = (),
        config: SchedulingConfig | None = None,
        schedule_horizon: Interval | None = None,
        **kwargs: Any,
    ) -> Schedule:
        effective_horizon = schedule_horizon or horizon
        blackout_list = list(blackouts)
        allocator = chain_allocators(CalendarAllocator(effective_horizon), blackout_list)
        scheduler = Scheduler(
            tasks, allocator, effective_horizon, config=config, blackouts=blackout_list, **kwargs
        )
        return scheduler.schedule()

    return _run


@pytest.fixture(autouse=True)
def clean_state() -> Iterator[None]:
    """Reset logger and CLI context between tests."""
    reset_logger()
    context.reset()
    yield
    reset_logger()
    context.reset()


def assert_valid_schedule(schedule: Schedule, blackouts: Iterable[Interval] = ()) -> None:
    """Assert the structural guarantees every schedule must satisfy.

    - slices of one task never overlap
    - every slice except the last is at least the task's granularity
    - no slice touches a blackout
    - a task starts only after all of its dependencies' slices end
    - no two slices of any tasks overlap (single timeline)
    """
    blackout_list = list(blackouts)
    for task_id, intervals in schedule.allocations.items():
        task = schedule.tasks[task_id]
        for first, second in zip(intervals, intervals[1:]):
            assert first.end <= second.start, f"{task_id}: {first} overlaps {second}"
        for interval in intervals[:-1]:
            assert interval.duration >= task.granularity, f"{task_id}: short slice {interval}"
        for interval in intervals:
            for blackout in blackout_list:
                assert not interval.overlaps(blackout), f"{task_id}: {interval} in {blackout}"
            for dep_id in task.dependencies:
                dep_intervals = schedule.allocations[dep_id]
                assert dep_intervals, f"{task_id} scheduled before {dep_id} got any time"
                assert interval.start >= dep_intervals[-1].end, (
                    f"{task_id} starts {interval.start} before {dep_id} ends "
                    f"{dep_intervals[-1].end}"
                )

    timeline = [interval for _, interval in schedule.intervals()]
    for first, second in zip(timeline, timeline[1:]):
        assert first.end <= second.start, f"{first} overlaps {second}"
