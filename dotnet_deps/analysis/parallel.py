"""Parallel build groups: dependency levels over an acyclic graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from dotnet_deps.analysis.cycles import detect_cycles
from dotnet_deps.errors import CircularDependencyError, ValidationError
from dotnet_deps.models import MAX_PARALLEL_BUILDS, MIN_PARALLEL_BUILDS

if TYPE_CHECKING:
    from dotnet_deps.analysis.dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


def compute_levels(graph: DependencyGraph) -> dict[str, int]:
    """Assign every resolved project its dependency level.

    level = 0 without resolved dependencies, otherwise
    1 + max(level of each resolved dependency).
    """
    report = detect_cycles(graph)
    if report.has_cycles:
        logger.error("Cannot compute parallel groups: %d cycle(s)", len(report.cycles))
        raise CircularDependencyError(report.cycles, graph.unresolved_dependencies)

    def resolved_deps(index: int) -> list[int]:
        return [d for d in graph.edges_from(index) if not graph.node_at(d).unresolved]

    levels: dict[int, int] = {}
    for start in range(graph.node_count):
        if start in levels or graph.node_at(start).unresolved:
            continue
        # Memoized postorder: a node is finalized once all its deps are.
        stack = [(start, False)]
        while stack:
            node, expanded = stack.pop()
            if node in levels:
                continue
            deps = resolved_deps(node)
            if expanded:
                levels[node] = 1 + max((levels[d] for d in deps), default=-1)
            else:
                stack.append((node, True))
                stack.extend((d, False) for d in deps if d not in levels)

    return {graph.node_at(i).project_id: level for i, level in levels.items()}


def parallel_groups(graph: DependencyGraph) -> list[list[str]]:
    """Group projects by level; level 0 first, each group sorted by id."""
    levels = compute_levels(graph)
    if not levels:
        return []

    groups: list[list[str]] = [[] for _ in range(max(levels.values()) + 1)]
    for project_id, level in levels.items():
        groups[level].append(project_id)
    for group in groups:
        group.sort()
    return groups


def batch_groups(groups: Sequence[Sequence[str]], max_parallel: int) -> list[list[str]]:
    """Split each level into batches of at most ``max_parallel`` projects."""
    if not MIN_PARALLEL_BUILDS <= max_parallel <= MAX_PARALLEL_BUILDS:
        raise ValidationError(
            f"max_parallel must be between {MIN_PARALLEL_BUILDS} and {MAX_PARALLEL_BUILDS}"
        )
    batches: list[list[str]] = []
    for group in groups:
        for start in range(0, len(group), max_parallel):
            batches.append(list(group[start:start + max_parallel]))
    return batches
