"""Example user-defined heuristic.

Enable it in chronoplan.yaml with:

    scheduler:
      heuristics:
        - type: dependency
        - type: custom
          handler: examples/heuristics.py:short_tasks_first
"""

from chronoplan.scheduler import SchedulingContext, Task


def short_tasks_first(task: Task, context: SchedulingContext) -> float:
    """Favour tasks with little work left; 1.0 for an hour, 0.5 for two hours, ..."""
    hours = task.remaining_workload.total_seconds() / 3600
    return 1.0 / max(hours, 1.0)
