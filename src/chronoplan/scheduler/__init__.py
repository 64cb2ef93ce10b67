"""Scheduler package - greedy, heuristic-driven task timetabling.

This package provides a pluggable scheduling system with:
- Allocators that find free time (calendar, idle-interval, chained)
- Heuristics that score ready tasks (priority, deadline, dependency gate, custom)
- An iterative loop that combines them into a timetable

Main entry points:
- SchedulingService: High-level service driven by a PlanConfig
- Scheduler: The iterative loop
- DependencyGraph: Dependency validation and ready queries

Configuration:
- SchedulingConfig: Heuristic composition and slice settings
- HeuristicConfig: One heuristic and its weight
"""

from .allocators import CalendarAllocator, IdleIntervalAllocator, chain_allocators
from .config import HeuristicConfig, HeuristicType, SchedulingConfig
from .core import (
    Interval,
    IssueReason,
    Schedule,
    ScheduleStatus,
    SchedulingContext,
    Task,
    TaskIssue,
)
from .engine import Scheduler
from .graph import DependencyGraph
from .heuristics import (
    CallableHeuristic,
    DeadlineVelocityHeuristic,
    DependencyGateHeuristic,
    PriorityHeuristic,
    VolumeHeuristic,
    WeightedHeuristic,
    build_heuristics,
    compose_score,
    create_heuristic,
)
from .protocols import Allocator, Heuristic
from .service import SchedulingService
from .validator import TaskValidator

__all__ = [
    # Core dataclasses
    "Interval",
    "Task",
    "Schedule",
    "ScheduleStatus",
    "SchedulingContext",
    "TaskIssue",
    "IssueReason",
    # Configuration
    "SchedulingConfig",
    "HeuristicConfig",
    "HeuristicType",
    # Protocols
    "Allocator",
    "Heuristic",
    # Allocators
    "CalendarAllocator",
    "IdleIntervalAllocator",
    "chain_allocators",
    # Heuristics
    "PriorityHeuristic",
    "DeadlineVelocityHeuristic",
    "DependencyGateHeuristic",
    "VolumeHeuristic",
    "CallableHeuristic",
    "WeightedHeuristic",
    "compose_score",
    "create_heuristic",
    "build_heuristics",
    # Graph and loop
    "DependencyGraph",
    "Scheduler",
    # High-level service
    "SchedulingService",
    # Input validation
    "TaskValidator",
]
