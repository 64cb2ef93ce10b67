"""High-level scheduling service."""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from chronoplan.logger import get_logger

from .allocators import CalendarAllocator, chain_allocators
from .core import Schedule, Task
from .engine import Scheduler
from .heuristics import build_heuristics
from .protocols import Allocator, Heuristic
from .validator import TaskValidator

if TYPE_CHECKING:
    from chronoplan.config import PlanConfig

logger = get_logger()


class SchedulingService:
    """Coordinates allocator chain, heuristics and the scheduling loop.

    This service wires together:
    - TaskValidator (record-to-task conversion)
    - the allocator chain (calendar, one-off blackouts, recurring blackouts)
    - the configured heuristics
    - Scheduler (the iterative loop)
    """

    def __init__(
        self,
        plan: "PlanConfig",
        *,
        extra_heuristics: Iterable[Heuristic] = (),
    ):
        """Initialize the scheduling service.

        Args:
            plan: Horizon, blackouts and scheduler configuration
            extra_heuristics: Heuristic objects composed in addition to the configured ones
        """
        self.plan = plan
        self.horizon = plan.horizon_interval
        self.validator = TaskValidator(self.horizon)
        self.extra_heuristics = list(extra_heuristics)

    def build_allocator(self) -> Allocator:
        """Calendar allocator narrowed by one-off, then recurring blackouts."""
        layers: list[tuple[str, Any]] = []
        if self.plan.blackouts:
            layers.append(("blackouts", self.plan.one_off_layer()))
        if self.plan.recurring_blackouts:
            layers.append(("recurring", self.plan.recurring_layer()))
        return chain_allocators(CalendarAllocator(self.horizon), *layers)

    def build_heuristics(self) -> list[Heuristic]:
        return build_heuristics(config=self.plan.scheduler) + self.extra_heuristics

    def parse_tasks(self, records: Iterable[Mapping[str, Any]]) -> list[Task]:
        """Convert raw records into validated tasks."""
        return [self.validator.parse_record(record) for record in records]

    def create_scheduler(self, tasks: Iterable[Task]) -> Scheduler:
        """Build a scheduler; raises before any allocation on invalid input."""
        return Scheduler(
            tasks,
            self.build_allocator(),
            self.horizon,
            heuristics=self.build_heuristics(),
            blackouts=self.plan.all_blackouts(),
            config=self.plan.scheduler,
        )

    def schedule(self, tasks: Iterable[Task]) -> Schedule:
        """Schedule tasks and return the final schedule.

        Raises:
            InvalidTaskError: If a task is invalid
            CycleError: If the dependencies contain a cycle
        """
        task_list = list(tasks)
        logger.changes(
            f"Scheduling {len(task_list)} tasks between {self.horizon.start} and {self.horizon.end}"
        )
        schedule = self.create_scheduler(task_list).schedule()
        logger.changes(f"Result: {schedule.status.value}")
        return schedule

    def schedule_records(self, records: Iterable[Mapping[str, Any]]) -> Schedule:
        """Parse raw task records and schedule them."""
        return self.schedule(self.parse_tasks(records))
