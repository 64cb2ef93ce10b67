"""Tests for the high-level scheduling service."""

from datetime import datetime, timedelta

import pytest

from chronoplan.config import PlanConfig
from chronoplan.exceptions import CycleError
from chronoplan.loader import load_plan
from chronoplan.scheduler import (
    CalendarAllocator,
    CallableHeuristic,
    HeuristicConfig,
    HeuristicType,
    IdleIntervalAllocator,
    Interval,
    ScheduleStatus,
    SchedulingConfig,
    SchedulingService,
)
from tests.conftest import assert_valid_schedule


@pytest.fixture
def plan_config() -> PlanConfig:
    return PlanConfig.model_validate(
        {
            "horizon": {"start": "2025-03-03", "end": "2025-03-08"},
            "blackouts": [
                {"start": "2025-03-03 12:00", "end": "2025-03-03 13:00", "label": "Lunch"}
            ],
            "recurring_blackouts": [
                {"rule": "FREQ=DAILY", "hours": "17:00-09:00", "label": "Off hours"}
            ],
        }
    )


def record(task_id: str, **fields: object) -> dict[str, object]:
    base: dict[str, object] = {
        "id": task_id,
        "deadline": "2025-03-07 17:00",
        "granularity": "1h",
        "workload": "2h",
    }
    base.update(fields)
    return base


class TestSchedulingService:
    """Test wiring of config, allocators and heuristics."""

    def test_allocator_chain_layers(self, plan_config: PlanConfig) -> None:
        allocator = SchedulingService(plan_config).build_allocator()

        assert isinstance(allocator, IdleIntervalAllocator)
        assert allocator.name == "recurring"
        assert isinstance(allocator.inner, IdleIntervalAllocator)
        assert allocator.inner.name == "blackouts"

    def test_no_blackouts_means_calendar_only(self) -> None:
        plan = PlanConfig.model_validate({"horizon": {"start": "2025-03-03", "end": "2025-03-04"}})

        allocator = SchedulingService(plan).build_allocator()

        assert isinstance(allocator, CalendarAllocator)
        assert allocator.next_available(datetime(2025, 3, 3, 5), timedelta(hours=1)) == Interval(
            datetime(2025, 3, 3, 5), datetime(2025, 3, 4)
        )

    def test_schedule_records_respects_blackouts(self, plan_config: PlanConfig) -> None:
        schedule = SchedulingService(plan_config).schedule_records(
            [record("a", workload="4h"), record("b", dependencies=["a"])]
        )

        assert schedule.allocations["a"] == (
            Interval(datetime(2025, 3, 3, 9), datetime(2025, 3, 3, 12)),
            Interval(datetime(2025, 3, 3, 13), datetime(2025, 3, 3, 14)),
        )
        assert schedule.allocations["b"] == (
            Interval(datetime(2025, 3, 3, 14), datetime(2025, 3, 3, 16)),
        )
        assert schedule.status == ScheduleStatus.ON_TIME
        assert_valid_schedule(schedule, plan_config.all_blackouts())

    def test_extra_heuristics(self, plan_config: PlanConfig) -> None:
        prefer_b = CallableHeuristic(lambda task, ctx: 10.0 if task.id == "b" else 1.0)

        schedule = SchedulingService(plan_config, extra_heuristics=[prefer_b]).schedule_records(
            [record("a"), record("b")]
        )

        assert schedule.allocations["b"][0].start == datetime(2025, 3, 3, 9)

    def test_cycle_raises(self, plan_config: PlanConfig) -> None:
        with pytest.raises(CycleError):
            SchedulingService(plan_config).schedule_records(
                [record("a", dependencies=["b"]), record("b", dependencies=["a"])]
            )

    def test_example_plan(self) -> None:
        """The bundled example schedules every task within working hours."""
        plan = load_plan("examples/tasks.yaml")

        schedule = SchedulingService(plan.config).schedule(plan.tasks)

        assert schedule.is_complete
        assert_valid_schedule(schedule, plan.config.all_blackouts())
        first_task, first_slice = schedule.intervals()[0]
        assert first_task == "research"
        assert first_slice.start == datetime(2025, 3, 3, 9)

    def test_custom_heuristic_from_example_file(self) -> None:
        plan = load_plan("examples/tasks.yaml")
        scheduler_config = SchedulingConfig(
            heuristics=[
                HeuristicConfig(type=HeuristicType.DEPENDENCY),
                HeuristicConfig(
                    type=HeuristicType.CUSTOM,
                    handler="examples/heuristics.py:short_tasks_first",
                ),
            ],
            slice_limit="3h",
        )
        config = plan.config.model_copy(update={"scheduler": scheduler_config})

        schedule = SchedulingService(config).schedule(plan.tasks)

        # inbox (3h) is shorter than research (4h), and both are ready first
        assert schedule.intervals()[0][0] == "inbox"
