"""Iterative greedy scheduling loop."""

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timedelta
from types import MappingProxyType

from chronoplan.exceptions import SchedulingError
from chronoplan.logger import checks_enabled, get_logger
from chronoplan.timeparse import format_duration

from .allocators import collect_blackouts
from .config import SchedulingConfig
from .core import (
    ZERO,
    Interval,
    IssueReason,
    Schedule,
    SchedulingContext,
    Task,
    TaskIssue,
    make_context,
    merge_intervals,
)
from .graph import DependencyGraph
from .heuristics import build_heuristics, compose_score
from .protocols import Allocator, Heuristic
from .validator import TaskValidator, granularity_floor

logger = get_logger()


class Scheduler:
    """Builds a timetable one slice at a time.

    Each iteration:
    1. Asks the dependency graph which tasks are ready
    2. Scores them with the composed heuristic
    3. Picks the best one (ties: earlier deadline, then lower id)
    4. Asks the allocator for a slice at the cursor
    5. Commits the slice and advances the cursor

    A task for which the allocator has no room is excluded for the rest of
    the run, so the loop always terminates.
    """

    def __init__(  # noqa: PLR0913 - Keyword-only parameters reduce API complexity
        self,
        tasks: Iterable[Task],
        allocator: Allocator,
        horizon: Interval,
        *,
        heuristics: Sequence[Heuristic] | None = None,
        blackouts: Iterable[Interval] | None = None,
        config: SchedulingConfig | None = None,
    ):
        """Validate inputs and prepare the initial state.

        Args:
            tasks: Tasks to schedule (must not have allocated work yet)
            allocator: Allocator chain to take free time from
            horizon: Bounded time range for scheduling
            heuristics: Heuristics to compose (defaults to those in config)
            blackouts: Non-working intervals for working-time estimates
                (defaults to every idle layer found in the allocator chain)
            config: Scheduling configuration

        Raises:
            InvalidTaskError: If a task violates its invariants
            CycleError: If the dependencies contain a cycle
        """
        self.config = config or SchedulingConfig()
        self.horizon = horizon
        self.allocator = allocator
        self.heuristics = (
            list(heuristics) if heuristics is not None else build_heuristics(config=self.config)
        )
        self.blackouts = (
            merge_intervals(blackouts) if blackouts is not None else collect_blackouts(allocator)
        )

        self.tasks = TaskValidator(horizon).validate_tasks(tasks)
        self.graph = DependencyGraph({tid: task.dependencies for tid, task in self.tasks.items()})

        self.cursor: datetime = horizon.start
        self.completed: set[str] = set()
        self.excluded: dict[str, str] = {}  # task id -> reason detail
        self.iterations = 0
        self._schedule: Schedule | None = None

    def schedule(self) -> Schedule:
        """Run the loop to completion and return the final schedule.

        Calling this again returns the same Schedule object.
        """
        if self._schedule is not None:
            return self._schedule

        while self.step():
            pass

        self._schedule = self._finalize()
        return self._schedule

    def context(self) -> SchedulingContext:
        """Read-only snapshot of the current state."""
        return make_context(self.cursor, self.horizon, self.tasks, self.completed, self.blackouts)

    def candidates(self) -> list[str]:
        """Ready tasks that have not been excluded, sorted by id."""
        ready = self.graph.ready(self.completed)
        return sorted(tid for tid in ready if tid not in self.excluded)

    def score_candidates(self, candidate_ids: Iterable[str]) -> dict[str, float]:
        """Composed score for each candidate against one shared context."""
        context = self.context()
        return {
            tid: compose_score(self.heuristics, self.tasks[tid], context) for tid in candidate_ids
        }

    def select(self, scores: dict[str, float]) -> str | None:
        """Pick the highest positive score; ties go to the earlier deadline, then lower id."""
        positive = [tid for tid, value in scores.items() if value > 0.0]
        if not positive:
            return None
        return min(
            positive,
            key=lambda tid: (-scores[tid], self.tasks[tid].deadline, tid),
        )

    def step(self) -> bool:
        """Run one iteration.

        Returns:
            False once no further progress is possible
        """
        self.iterations += 1
        if self.iterations > self.config.max_iterations:
            raise SchedulingError(
                f"Scheduling did not finish within {self.config.max_iterations} iterations"
            )

        candidate_ids = self.candidates()
        if not candidate_ids:
            return False

        scores = self.score_candidates(candidate_ids)
        if checks_enabled():
            logger.checks(f"At {self.cursor}:")
            for tid in candidate_ids:
                logger.checks(f"  {tid}: score={scores[tid]:.4g}")

        task_id = self.select(scores)
        if task_id is None:
            logger.checks("  Every ready task scored zero, stopping")
            return False

        task = self.tasks[task_id]
        needed = granularity_floor(task)
        offer = self.allocator.next_available(self.cursor, needed)
        if offer is None:
            detail = (
                f"no free interval of {format_duration(needed)} between {self.cursor} "
                f"and {self.horizon.end}"
            )
            logger.changes(f"{task_id}: unresolved ({detail})")
            self.excluded[task_id] = detail
            return True

        self._commit(task, offer)
        return True

    def _slice_length(self, task: Task, offer: Interval) -> timedelta:
        length = min(offer.duration, task.remaining_workload)
        if self.config.slice_limit is not None:
            length = min(length, max(self.config.slice_limit, task.granularity))
        return length

    def _commit(self, task: Task, offer: Interval) -> None:
        committed = Interval.from_span(offer.start, self._slice_length(task, offer))
        remaining = task.remaining_workload - committed.duration
        if remaining < ZERO:
            remaining = ZERO

        updated = replace(task, remaining=remaining, allocated=(*task.allocated, committed))
        self.tasks[task.id] = updated
        self.cursor = committed.end

        logger.changes(
            f"{task.id}: {committed.start} - {committed.end} "
            f"({format_duration(committed.duration)}, {format_duration(remaining)} left)"
        )

        if updated.is_complete:
            self.completed.add(task.id)
            logger.changes(f"{task.id}: complete")

    def _finalize(self) -> Schedule:
        issues: dict[str, TaskIssue] = {}

        for tid in self.graph.topological_order:
            task = self.tasks[tid]
            if tid in self.excluded:
                issues[tid] = TaskIssue(
                    tid, IssueReason.HORIZON_EXHAUSTED, self.excluded[tid], task.remaining_workload
                )
            elif not task.is_complete:
                blockers = sorted(self.graph.blocked_by(tid, self.completed))
                detail = (
                    f"waiting on unfinished dependencies: {', '.join(blockers)}"
                    if blockers
                    else "never selected by the configured heuristics"
                )
                issues[tid] = TaskIssue(
                    tid, IssueReason.NO_DEPENDENCY_PATH, detail, task.remaining_workload
                )
            elif task.finished_at is not None and task.finished_at > task.deadline:
                issues[tid] = TaskIssue(
                    tid,
                    IssueReason.DEADLINE_INFEASIBLE,
                    f"finishes at {task.finished_at}, after deadline {task.deadline}",
                    ZERO,
                )

        for issue in issues.values():
            logger.changes(f"{issue.task_id}: {issue.reason.value} ({issue.detail})")

        allocations = {
            tid: self._output_intervals(task.allocated) for tid, task in sorted(self.tasks.items())
        }
        return Schedule(
            horizon=self.horizon,
            allocations=MappingProxyType(allocations),
            issues=MappingProxyType(issues),
            tasks=MappingProxyType(dict(self.tasks)),
        )

    def _output_intervals(self, intervals: tuple[Interval, ...]) -> tuple[Interval, ...]:
        if not self.config.merge_adjacent:
            return intervals
        return merge_intervals(intervals)
