"""Tests for the dependency graph."""

import pytest

from chronoplan.exceptions import CycleError, InvalidTaskError
from chronoplan.scheduler import DependencyGraph


class TestDependencyGraphConstruction:
    """Test validation performed when the graph is built."""

    def test_self_dependency_is_cycle(self) -> None:
        """A task depending on itself is rejected."""
        with pytest.raises(CycleError) as exc_info:
            DependencyGraph({"a": {"a"}})

        assert exc_info.value.cycle == ["a"]
        assert "a -> a" in str(exc_info.value)

    def test_two_node_cycle_reports_members(self) -> None:
        """A mutual dependency reports both members."""
        with pytest.raises(CycleError) as exc_info:
            DependencyGraph({"a": {"b"}, "b": {"a"}, "c": set()})

        assert sorted(exc_info.value.cycle) == ["a", "b"]

    def test_cycle_behind_acyclic_prefix(self) -> None:
        """Only the cycle members are reported, not tasks that merely lead into it."""
        with pytest.raises(CycleError) as exc_info:
            DependencyGraph(
                {"start": set(), "x": {"start", "z"}, "y": {"x"}, "z": {"y"}, "w": {"x"}}
            )

        assert sorted(exc_info.value.cycle) == ["x", "y", "z"]

    def test_unknown_dependency_rejected(self) -> None:
        """Dependencies must name known tasks."""
        with pytest.raises(InvalidTaskError, match="unknown task 'ghost'"):
            DependencyGraph({"a": {"ghost"}})

    def test_long_chain_does_not_recurse(self) -> None:
        """Deep chains are handled iteratively."""
        size = 5000
        deps = {f"t{i:05d}": ({f"t{i - 1:05d}"} if i else set()) for i in range(size)}

        graph = DependencyGraph(deps)

        assert graph.topological_order[0] == "t00000"
        assert graph.topological_order[-1] == f"t{size - 1:05d}"

    def test_topological_order_is_deterministic(self) -> None:
        """Independent tasks are ordered by id."""
        graph = DependencyGraph({"c": set(), "a": set(), "b": {"a"}, "d": {"b", "c"}})

        assert graph.topological_order == ["a", "c", "b", "d"]


class TestReadyQueries:
    """Test ready-set queries as tasks complete."""

    @pytest.fixture
    def graph(self) -> DependencyGraph:
        """Diamond: a -> (b, c) -> d."""
        return DependencyGraph({"a": set(), "b": {"a"}, "c": {"a"}, "d": {"b", "c"}})

    def test_initial_ready_set(self, graph: DependencyGraph) -> None:
        """Only tasks without dependencies are ready at first."""
        assert graph.ready(set()) == {"a"}

    def test_ready_after_completion(self, graph: DependencyGraph) -> None:
        """Completing a task releases its dependents and drops itself."""
        assert graph.ready({"a"}) == {"b", "c"}
        assert graph.ready({"a", "b"}) == {"c"}
        assert graph.ready({"a", "b", "c"}) == {"d"}
        assert graph.ready({"a", "b", "c", "d"}) == set()

    def test_requery_is_stateless(self, graph: DependencyGraph) -> None:
        """The graph keeps no completion state between queries."""
        graph.ready({"a", "b", "c"})
        assert graph.ready(set()) == {"a"}

    def test_blocked_by(self, graph: DependencyGraph) -> None:
        """blocked_by lists the incomplete dependencies."""
        assert graph.blocked_by("d", {"a", "b"}) == {"c"}
        assert graph.blocked_by("a", set()) == set()

    def test_structure_accessors(self, graph: DependencyGraph) -> None:
        """Dependencies and dependents are exposed both ways."""
        assert graph.dependencies_of("d") == frozenset({"b", "c"})
        assert graph.dependents_of("a") == frozenset({"b", "c"})
        assert "d" in graph
        assert "z" not in graph
        assert len(graph) == 4
