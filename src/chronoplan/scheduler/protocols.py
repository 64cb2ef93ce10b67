"""Protocol definitions for the scheduling system."""

from datetime import datetime, timedelta
from typing import Protocol

from .core import Interval, SchedulingContext, Task


class Allocator(Protocol):
    """Protocol for finding free time.

    Implementations must be deterministic: the same arguments against the
    same configuration always produce the same interval.
    """

    def next_available(self, after: datetime, min_duration: timedelta) -> Interval | None:
        """Find the earliest free interval starting at or after a point.

        Args:
            after: Earliest allowed start
            min_duration: Minimum length of the returned interval

        Returns:
            The earliest qualifying interval, or None if the horizon is exhausted
        """
        ...


class Heuristic(Protocol):
    """Protocol for scoring candidate tasks.

    Scores are combined by multiplication, so a score of zero removes the
    task from the current iteration and a score of one is neutral.
    """

    name: str

    def score(self, task: Task, context: SchedulingContext) -> float:
        """Score a task against the current scheduling state.

        Args:
            task: Read-only task snapshot
            context: Read-only scheduling context

        Returns:
            Non-negative, finite score
        """
        ...
