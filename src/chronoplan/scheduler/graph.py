"""Dependency graph over task identifiers."""

from collections import deque
from collections.abc import Iterable, Mapping

from chronoplan.exceptions import CycleError, InvalidTaskError


class DependencyGraph:
    """Directed acyclic "depends on" relation keyed by task id.

    The graph holds only structure. Completion state is passed in on every
    query, so the same graph can be re-queried as tasks complete.
    """

    def __init__(self, dependencies: Mapping[str, Iterable[str]]) -> None:
        """Build and validate the graph.

        Args:
            dependencies: Map of task id to the ids it depends on

        Raises:
            InvalidTaskError: If a dependency names an unknown task
            CycleError: If the relation contains a cycle
        """
        self._requires: dict[str, frozenset[str]] = {
            task_id: frozenset(deps) for task_id, deps in dependencies.items()
        }
        self._enables: dict[str, set[str]] = {task_id: set() for task_id in self._requires}

        for task_id in sorted(self._requires):
            for dep_id in sorted(self._requires[task_id]):
                if dep_id not in self._requires:
                    raise InvalidTaskError(f"depends on unknown task '{dep_id}'", task_id)
                self._enables[dep_id].add(task_id)

        self._order = self._topological_sort()

    def _topological_sort(self) -> list[str]:
        """Kahn's algorithm; ties broken by id so the order is reproducible."""
        pending = {task_id: len(deps) for task_id, deps in self._requires.items()}
        queue = deque(sorted(task_id for task_id, count in pending.items() if count == 0))
        order: list[str] = []

        while queue:
            task_id = queue.popleft()
            order.append(task_id)
            for dependent in sorted(self._enables[task_id]):
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    queue.append(dependent)

        if len(order) != len(self._requires):
            emitted = set(order)
            raise CycleError(self._find_cycle({t for t in self._requires if t not in emitted}))

        return order

    def _find_cycle(self, remaining: set[str]) -> list[str]:
        """Walk dependencies inside the unsorted remainder until a node repeats.

        Every node left over by Kahn's algorithm has at least one dependency
        that is also left over, so the walk always closes a cycle.
        """
        node = min(remaining)
        path: list[str] = []
        seen: dict[str, int] = {}

        while node not in seen:
            seen[node] = len(path)
            path.append(node)
            node = min(dep for dep in self._requires[node] if dep in remaining)

        return path[seen[node] :]

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._requires

    def __len__(self) -> int:
        return len(self._requires)

    @property
    def topological_order(self) -> list[str]:
        """Task ids with every dependency before its dependents."""
        return list(self._order)

    def dependencies_of(self, task_id: str) -> frozenset[str]:
        return self._requires[task_id]

    def dependents_of(self, task_id: str) -> frozenset[str]:
        return frozenset(self._enables[task_id])

    def blocked_by(self, task_id: str, completed: Iterable[str]) -> set[str]:
        """Dependencies of task_id that are not in completed."""
        return set(self._requires[task_id]) - set(completed)

    def ready(self, completed: Iterable[str]) -> set[str]:
        """Tasks not yet complete whose dependencies are all complete.

        Args:
            completed: Ids of completed tasks

        Returns:
            Set of ready task ids
        """
        done = set(completed)
        return {
            task_id
            for task_id, deps in self._requires.items()
            if task_id not in done and deps <= done
        }
