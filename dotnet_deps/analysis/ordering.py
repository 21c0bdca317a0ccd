"""Build order: Kahn's algorithm with a lexicographic tie-break."""

from __future__ import annotations

import heapq
import logging
from typing import TYPE_CHECKING

from dotnet_deps.analysis.cycles import detect_cycles
from dotnet_deps.analysis.graph_models import BuildOrder
from dotnet_deps.errors import CircularDependencyError

if TYPE_CHECKING:
    from dotnet_deps.analysis.dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


def topological_order(graph: DependencyGraph) -> BuildOrder:
    """Order resolved projects so every dependency precedes its dependents.

    Among projects that are ready at the same time, the smallest canonical id
    goes first, so the result is reproducible. Dangling placeholders are left
    out of the order and listed in ``unresolved_dependencies``.

    Raises CircularDependencyError if any resolved project is left over.
    """
    resolved = [i for i in range(graph.node_count) if not graph.node_at(i).unresolved]
    in_degree = {
        i: sum(1 for dep in graph.edges_from(i) if not graph.node_at(dep).unresolved)
        for i in resolved
    }

    ready = [(graph.node_at(i).project_id, i) for i in resolved if in_degree[i] == 0]
    heapq.heapify(ready)
    order: list[str] = []

    while ready:
        project_id, current = heapq.heappop(ready)
        order.append(project_id)
        for dependent in graph.edges_to(current):
            if dependent not in in_degree:
                continue
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, (graph.node_at(dependent).project_id, dependent))

    unresolved = graph.unresolved_dependencies
    if len(order) < len(resolved):
        report = detect_cycles(graph)
        logger.error(
            "Circular dependencies detected: %d cycle(s), %d project(s) blocked",
            len(report.cycles), len(resolved) - len(order),
        )
        raise CircularDependencyError(report.cycles, unresolved)

    return BuildOrder(order=order, unresolved_dependencies=unresolved, warnings=graph.warnings)
