"""Heuristics for ranking ready tasks, and their multiplicative composition.

Each heuristic scores a task on its own, independently of its peers. The
composed score of a task is the product of all configured scores, so:

- a zero from any heuristic excludes the task for the current iteration
- a score of one is neutral
- the order in which heuristics are listed never changes the result
"""

import importlib
import importlib.util
import math
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from chronoplan.exceptions import HeuristicError, ValidationError

from .config import HeuristicConfig, HeuristicType, SchedulingConfig
from .core import ZERO, SchedulingContext, Task
from .protocols import Heuristic

HeuristicFunction = Callable[[Task, SchedulingContext], float]

SECONDS_PER_HOUR = 3600.0


class PriorityHeuristic:
    """Score = 1 + priority; negative priorities count as zero.

    The offset keeps the score positive, so priority never excludes a task
    on its own, and priority 1 scores twice as high as priority 0.
    """

    name = "priority"

    def score(self, task: Task, context: SchedulingContext) -> float:
        return 1.0 + max(task.priority, 0.0)


class DeadlineVelocityHeuristic:
    """Urgency from remaining work (at the task's velocity) versus time left.

    With ``required = remaining / velocity`` and ``available`` the working
    time between the cursor and the deadline, the pressure is
    ``p = required / available`` and the score is ``1 / (1 - p)``:

    - 1.0 when nothing is left to do or the deadline is far away
    - rising steeply as the task approaches the point of no return
    - capped at ``max_urgency``, which is also returned for tasks that can no
      longer finish in time, so the product stays finite and comparable
    """

    name = "deadline"

    def __init__(self, max_urgency: float = 100.0) -> None:
        if max_urgency <= 1.0:
            raise ValueError("max_urgency must be greater than 1")
        self.max_urgency = max_urgency

    def score(self, task: Task, context: SchedulingContext) -> float:
        required = task.required_time
        if required <= ZERO:
            return 1.0

        available = context.working_time_until(task.deadline)
        if available <= ZERO or required >= available:
            return self.max_urgency

        pressure = required / available
        return min(1.0 / (1.0 - pressure), self.max_urgency)


class DependencyGateHeuristic:
    """Zero while any dependency is incomplete, one otherwise."""

    name = "dependency"

    def score(self, task: Task, context: SchedulingContext) -> float:
        if all(context.is_complete(dep) for dep in task.dependencies):
            return 1.0
        return 0.0


class VolumeHeuristic:
    """Proportional to the remaining workload in hours (bigger tasks first)."""

    name = "volume"

    def score(self, task: Task, context: SchedulingContext) -> float:
        return task.remaining_workload.total_seconds() / SECONDS_PER_HOUR


class CallableHeuristic:
    """Adapts a plain ``(task, context) -> float`` function."""

    def __init__(self, func: HeuristicFunction, name: str | None = None) -> None:
        self.func = func
        self.name = name or getattr(func, "__name__", "custom")

    def score(self, task: Task, context: SchedulingContext) -> float:
        return float(self.func(task, context))


class WeightedHeuristic:
    """Raises another heuristic's score to a positive power.

    Exponent weighting keeps the composition a commutative product and keeps
    zero scores at zero.
    """

    def __init__(self, inner: Heuristic, weight: float) -> None:
        if weight <= 0:
            raise ValueError("weight must be positive")
        self.inner = inner
        self.weight = weight
        self.name = inner.name if weight == 1.0 else f"{inner.name}^{weight:g}"

    def score(self, task: Task, context: SchedulingContext) -> float:
        value = self.inner.score(task, context)
        if self.weight == 1.0 or value <= 0.0:
            return value
        try:
            return value**self.weight
        except OverflowError as e:
            raise HeuristicError(
                f"Heuristic '{self.name}' overflowed for task '{task.id}'"
            ) from e


def checked_score(heuristic: Heuristic, task: Task, context: SchedulingContext) -> float:
    """Score a task and reject negative or non-finite values."""
    value = heuristic.score(task, context)
    if not math.isfinite(value) or value < 0:
        raise HeuristicError(
            f"Heuristic '{heuristic.name}' returned invalid score {value!r} for task '{task.id}'"
        )
    return value


def compose_score(
    heuristics: Sequence[Heuristic], task: Task, context: SchedulingContext
) -> float:
    """Product of all heuristic scores; stops at the first zero.

    Args:
        heuristics: Heuristics to combine
        task: Task to score
        context: Current scheduling context

    Returns:
        The composed score (1.0 when no heuristic is configured)

    Raises:
        HeuristicError: If any heuristic returns a negative or non-finite score
    """
    values: list[float] = []
    for heuristic in heuristics:
        value = checked_score(heuristic, task, context)
        if value == 0.0:
            return 0.0
        values.append(value)
    # Multiply in sorted order so float rounding cannot depend on listing order
    total = math.prod(sorted(values))
    if not math.isfinite(total):
        raise HeuristicError(f"Composed score for task '{task.id}' overflowed")
    return total


def load_heuristic_function(handler: str) -> HeuristicFunction:
    """Load a heuristic function from a handler string.

    Supports two formats:
    - "module.path.function" - Import from an installed module
    - "file/path.py:function" - Load from a file

    Raises:
        ValidationError: If the handler cannot be loaded
    """
    if ":" in handler:
        file_path_str, func_name = handler.rsplit(":", 1)
        file_path = Path(file_path_str)

        if not file_path.exists():
            raise ValidationError(f"Heuristic handler file not found: {file_path}")

        spec = importlib.util.spec_from_file_location(f"heuristic_{file_path.stem}", file_path)
        if spec is None or spec.loader is None:
            raise ValidationError(f"Failed to load heuristic from file: {file_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        spec.loader.exec_module(module)

        if not hasattr(module, func_name):
            raise ValidationError(f"Heuristic function '{func_name}' not found in {file_path}")

        return getattr(module, func_name)  # type: ignore[no-any-return]

    try:
        module_path, func_name = handler.rsplit(".", 1)
    except ValueError:
        raise ValidationError(f"Invalid heuristic handler '{handler}'") from None

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ValidationError(f"Failed to import heuristic module '{handler}': {e}") from e

    if not hasattr(module, func_name):
        raise ValidationError(
            f"Heuristic function '{func_name}' not found in module '{module_path}'"
        )
    return getattr(module, func_name)  # type: ignore[no-any-return]


def create_heuristic(config: HeuristicConfig, max_urgency: float = 100.0) -> Heuristic:
    """Create a heuristic from its configuration."""
    heuristic: Heuristic
    if config.type == HeuristicType.DEPENDENCY:
        heuristic = DependencyGateHeuristic()
    elif config.type == HeuristicType.PRIORITY:
        heuristic = PriorityHeuristic()
    elif config.type == HeuristicType.DEADLINE:
        heuristic = DeadlineVelocityHeuristic(max_urgency=max_urgency)
    elif config.type == HeuristicType.VOLUME:
        heuristic = VolumeHeuristic()
    elif config.type == HeuristicType.CUSTOM:
        assert config.handler is not None
        heuristic = CallableHeuristic(load_heuristic_function(config.handler))
    else:
        msg = f"Unknown heuristic type: {config.type}"
        raise ValueError(msg)

    if config.weight != 1.0:
        return WeightedHeuristic(heuristic, config.weight)
    return heuristic


def build_heuristics(
    configs: Iterable[HeuristicConfig] | None = None, config: SchedulingConfig | None = None
) -> list[Heuristic]:
    """Create every heuristic named in a scheduling configuration.

    Args:
        configs: Explicit heuristic configs (defaults to config.heuristics)
        config: Scheduling configuration (defaults to SchedulingConfig())

    Returns:
        Heuristics in configured order
    """
    effective = config or SchedulingConfig()
    return [
        create_heuristic(item, max_urgency=effective.max_urgency)
        for item in (configs if configs is not None else effective.heuristics)
    ]
