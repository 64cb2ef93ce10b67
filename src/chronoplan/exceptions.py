"""Custom exceptions for chronoplan."""

from __future__ import annotations


class ChronoplanError(Exception):
    """Base exception for all chronoplan errors."""

    pass


class ValidationError(ChronoplanError):
    """Raised when input validation fails before scheduling starts."""

    pass


class InvalidTaskError(ValidationError):
    """Raised when a task record is malformed or violates a constraint."""

    def __init__(self, message: str, task_id: str | None = None) -> None:
        self.task_id = task_id
        if task_id is not None:
            message = f"Task '{task_id}': {message}"
        super().__init__(message)


class CycleError(ValidationError):
    """Raised when the dependency relation contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        path = " -> ".join([*cycle, cycle[0]]) if cycle else "<unknown>"
        super().__init__(f"Circular dependency detected: {path}")


class ParseError(ChronoplanError):
    """Raised when a task or config file cannot be parsed."""

    pass


class SchedulingError(ChronoplanError):
    """Raised when the scheduling loop cannot proceed."""

    pass


class HeuristicError(SchedulingError):
    """Raised when a heuristic score is negative, non-finite or overflows."""

    pass
