"""Configuration classes for the scheduling system."""

from datetime import timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from chronoplan.timeparse import parse_duration


class HeuristicType(str, Enum):
    """Available heuristics."""

    DEPENDENCY = "dependency"  # Gate: zero while a dependency is incomplete
    PRIORITY = "priority"
    DEADLINE = "deadline"  # Deadline pressure over velocity
    VOLUME = "volume"  # Remaining workload in hours
    CUSTOM = "custom"  # User function loaded from `handler`


class HeuristicConfig(BaseModel):
    """Configuration for one heuristic in the composed score."""

    type: HeuristicType
    weight: float = Field(default=1.0, gt=0)  # Score is raised to this power
    handler: str | None = None  # "module.function" or "file.py:function" for custom

    @model_validator(mode="after")
    def validate_handler(self) -> "HeuristicConfig":
        """Custom heuristics need a handler; built-ins must not have one."""
        if self.type == HeuristicType.CUSTOM and not self.handler:
            raise ValueError("custom heuristic requires a 'handler'")
        if self.type != HeuristicType.CUSTOM and self.handler:
            raise ValueError(
                f"'handler' is only valid for custom heuristics, not '{self.type.value}'"
            )
        return self


def _default_heuristics() -> list[HeuristicConfig]:
    return [
        HeuristicConfig(type=HeuristicType.DEPENDENCY),
        HeuristicConfig(type=HeuristicType.PRIORITY),
        HeuristicConfig(type=HeuristicType.DEADLINE),
    ]


class SchedulingConfig(BaseModel):
    """Configuration for heuristic composition and slice allocation."""

    heuristics: list[HeuristicConfig] = Field(default_factory=_default_heuristics)

    # Longest slice committed in one iteration (None = take the whole free gap).
    # Never smaller than a task's granularity.
    slice_limit: timedelta | None = None

    # Score given by the deadline heuristic to tasks that cannot finish on time
    max_urgency: float = Field(default=100.0, gt=1.0)

    # Join touching slices of the same task in the final schedule
    merge_adjacent: bool = True

    # Safety bound on loop iterations
    max_iterations: int = Field(default=100_000, gt=0)

    @field_validator("slice_limit", mode="before")
    @classmethod
    def parse_slice_limit(cls, value: Any) -> Any:
        """Accept "2h"-style durations."""
        if value is None or isinstance(value, timedelta):
            return value
        return parse_duration(value)

    @field_validator("slice_limit")
    @classmethod
    def validate_slice_limit(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value <= timedelta():
            raise ValueError("slice_limit must be positive")
        return value
