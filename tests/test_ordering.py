"""Tests for the build order (topological sort)."""

import random

import pytest

from dotnet_deps.analysis import DependencyGraph
from dotnet_deps.errors import CircularDependencyError, ValidationError
from dotnet_deps.models import ProjectRecord


def _random_dag(config, size=30, seed=7):
    """Project i may only depend on projects with a smaller index."""
    rng = random.Random(seed)
    graph = DependencyGraph(config)
    names = [f"P{i:02d}" for i in range(size)]
    for i, name in reversed(list(enumerate(names))):
        deps = [f"{names[j]}.csproj" for j in range(i) if rng.random() < 0.2]
        graph.add_project(ProjectRecord(path=f"{name}.csproj", project_references=deps))
    return graph


class TestBuildOrder:
    def test_linear_order(self, graph, add, pid):
        add("A")
        add("B", deps=["A"])
        add("C", deps=["A", "B"])
        assert graph.get_build_order().order == [pid("A"), pid("B"), pid("C")]

    def test_registration_order_is_irrelevant(self, graph, add, pid):
        add("C", deps=["A", "B"])
        add("B", deps=["A"])
        add("A")
        assert graph.get_build_order().order == [pid("A"), pid("B"), pid("C")]

    def test_ties_broken_by_smallest_id(self, graph, add, pid):
        add("Zeta")
        add("Mid")
        add("Alpha")
        assert graph.get_build_order().order == [pid("Alpha"), pid("Mid"), pid("Zeta")]

    def test_tie_break_applies_to_newly_ready_nodes(self, graph, add, pid):
        # B only becomes ready after A, but still sorts ahead of C.
        add("A")
        add("C")
        add("B", deps=["A"])
        add("D", deps=["C"])
        assert graph.get_build_order().order == [pid("A"), pid("B"), pid("C"), pid("D")]

    def test_repeatable(self, config):
        graph = _random_dag(config)
        assert graph.get_build_order().order == graph.get_build_order().order

    def test_every_dependency_comes_first(self, config):
        graph = _random_dag(config)
        order = graph.get_build_order().order
        position = {project_id: i for i, project_id in enumerate(order)}
        assert len(order) == len(graph)
        for project_id in order:
            for dep in graph.neighbors_out(project_id):
                assert position[dep] < position[project_id]

    def test_empty_graph(self, graph):
        result = graph.get_build_order()
        assert result.order == []
        assert result.unresolved_dependencies == []


class TestDanglingInBuildOrder:
    def test_missing_dependency_is_reported_not_ordered(self, graph, add, pid):
        add("E", deps=["Missing"])
        result = graph.get_build_order()
        assert result.order == [pid("E")]
        assert result.unresolved_dependencies == [pid("Missing")]
        assert [w.reference_id for w in result.warnings] == [pid("Missing")]

    def test_missing_dependency_does_not_block_dependents(self, graph, add, pid):
        add("A", deps=["Missing"])
        add("B", deps=["A"])
        assert graph.get_build_order().order == [pid("A"), pid("B")]

    def test_no_validation_error(self, graph, add):
        add("E", deps=["Missing"])
        try:
            graph.get_build_order()
        except ValidationError:
            pytest.fail("dangling reference must not raise ValidationError")

    def test_to_dict(self, graph, add, pid):
        add("E", deps=["Missing"])
        assert graph.get_build_order().to_dict() == {
            "order": [pid("E")],
            "unresolved_dependencies": [pid("Missing")],
            "warnings": [{"project_id": pid("E"), "reference_id": pid("Missing")}],
        }


class TestCyclesInBuildOrder:
    def test_cycle_raises(self, graph, add, pid):
        add("X", deps=["Y"])
        add("Y", deps=["X"])
        with pytest.raises(CircularDependencyError) as exc:
            graph.get_build_order()
        assert len(exc.value.cycles) == 1
        assert set(exc.value.cycles[0]) == {pid("X"), pid("Y")}

    def test_self_reference_raises(self, graph, add, pid):
        add("A", deps=["A"])
        with pytest.raises(CircularDependencyError) as exc:
            graph.get_build_order()
        assert exc.value.cycles == [[pid("A"), pid("A")]]

    def test_error_carries_every_cycle_and_unresolved(self, graph, add, pid):
        add("A", deps=["B"])
        add("B", deps=["A"])
        add("M", deps=["N", "Missing"])
        add("N", deps=["M"])
        add("Free")
        with pytest.raises(CircularDependencyError) as exc:
            graph.get_build_order()
        assert len(exc.value.cycles) == 2
        assert exc.value.unresolved_dependencies == [pid("Missing")]

    def test_cycle_check_does_not_raise(self, graph, add):
        add("X", deps=["Y"])
        add("Y", deps=["X"])
        assert graph.check_circular_dependencies().has_cycles is True
