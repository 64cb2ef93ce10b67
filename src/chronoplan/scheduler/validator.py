"""Validation of raw task records before scheduling begins."""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from chronoplan.exceptions import InvalidTaskError
from chronoplan.logger import get_logger
from chronoplan.timeparse import parse_datetime, parse_duration

from .core import ZERO, Interval, Task

logger = get_logger()

REQUIRED_FIELDS = ("id", "deadline", "granularity", "workload")


class TaskValidator:
    """Converts task records into Task objects and checks their invariants.

    All checks happen before any allocation is made, so an invalid task
    aborts the run without producing a partial schedule.
    """

    def __init__(self, horizon: Interval) -> None:
        self.horizon = horizon

    def parse_record(self, record: Mapping[str, Any]) -> Task:
        """Convert one raw record (e.g. from YAML) into a validated Task.

        Raises:
            InvalidTaskError: If a field is missing, malformed or out of range
        """
        raw_id = record.get("id")
        task_id = str(raw_id) if raw_id is not None else None
        for name in REQUIRED_FIELDS:
            if record.get(name) is None:
                raise InvalidTaskError(f"missing required field '{name}'", task_id)
        assert task_id is not None

        try:
            deadline = parse_datetime(record["deadline"])
            granularity = parse_duration(record["granularity"])
            workload = parse_duration(record["workload"])
        except (TypeError, ValueError) as e:
            raise InvalidTaskError(str(e), task_id) from e

        try:
            priority = float(record.get("priority", 0.0))
            velocity = float(record.get("velocity", 1.0))
        except (TypeError, ValueError) as e:
            raise InvalidTaskError(f"priority and velocity must be numbers: {e}", task_id) from e

        deps_raw = record.get("dependencies") or []
        if isinstance(deps_raw, str):
            deps_raw = [deps_raw]
        if not isinstance(deps_raw, (list, tuple, set, frozenset)):
            raise InvalidTaskError("dependencies must be a list of task ids", task_id)

        task = Task(
            id=task_id,
            description=str(record.get("description") or task_id),
            deadline=deadline,
            priority=priority,
            granularity=granularity,
            workload=workload,
            velocity=velocity,
            dependencies=frozenset(str(dep) for dep in deps_raw),
        )
        self.validate_task(task)
        return task

    def validate_task(self, task: Task) -> None:
        """Check a single task's invariants.

        Raises:
            InvalidTaskError: On the first violated constraint
        """
        if not task.id:
            raise InvalidTaskError("task id must not be empty")
        if task.granularity <= ZERO:
            raise InvalidTaskError(f"granularity must be positive, got {task.granularity}", task.id)
        if task.workload <= ZERO:
            raise InvalidTaskError(f"workload must be positive, got {task.workload}", task.id)
        if task.remaining_workload != task.workload or task.allocated:
            raise InvalidTaskError("task must start with no allocated work", task.id)
        if not math.isfinite(task.velocity) or task.velocity <= 0:
            raise InvalidTaskError(f"velocity must be positive, got {task.velocity}", task.id)
        if not math.isfinite(task.priority):
            raise InvalidTaskError(f"priority must be finite, got {task.priority}", task.id)
        if not _comparable(task.deadline, self.horizon.start):
            raise InvalidTaskError(
                "deadline and horizon must both be timezone-aware or both naive", task.id
            )
        if task.deadline < self.horizon.start:
            raise InvalidTaskError(
                f"deadline {task.deadline} is before horizon start {self.horizon.start}", task.id
            )

    def validate_tasks(self, tasks: Iterable[Task]) -> dict[str, Task]:
        """Validate a collection of tasks and index them by id.

        Raises:
            InvalidTaskError: On a duplicate id or any per-task violation
        """
        by_id: dict[str, Task] = {}
        for task in tasks:
            if task.id in by_id:
                raise InvalidTaskError("duplicate task id", task.id)
            self.validate_task(task)
            by_id[task.id] = task
        logger.debug(f"Validated {len(by_id)} tasks")
        return by_id


def _comparable(a: datetime, b: datetime) -> bool:
    return (a.tzinfo is None) == (b.tzinfo is None)


def granularity_floor(task: Task) -> timedelta:
    """Shortest slice the task may receive next."""
    return min(task.granularity, task.remaining_workload)
