"""Cycle detection over the project dependency graph."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from dotnet_deps.analysis.graph_models import CycleReport

if TYPE_CHECKING:
    from dotnet_deps.analysis.dependency_graph import DependencyGraph

_UNVISITED, _IN_PROGRESS, _FINISHED = 0, 1, 2


def detect_cycles(graph: DependencyGraph) -> CycleReport:
    """Detect cycles using an iterative three-color DFS.

    Every node is used as a start point (in canonical id order), so the whole
    graph is covered. An edge into an in-progress node closes a cycle, which
    is reported as the path from that node back to itself, e.g. ``[a, b, a]``.
    A self-reference comes out as ``[a, a]``. Nodes that sit on a cycle but
    only reach it through finished nodes get a shortest cycle of their own.
    """
    count = graph.node_count
    ids = [graph.node_at(i).project_id for i in range(count)]
    color = [_UNVISITED] * count
    cycles: list[list[str]] = []
    seen: set[tuple[int, ...]] = set()

    def ordered(index: int) -> list[int]:
        return sorted(graph.edges_from(index), key=ids.__getitem__)

    for root in sorted(range(count), key=ids.__getitem__):
        if color[root] != _UNVISITED:
            continue

        color[root] = _IN_PROGRESS
        path = [root]
        position = {root: 0}
        stack = [(root, iter(ordered(root)))]

        while stack:
            node, neighbors = stack[-1]
            descended = False
            for neighbor in neighbors:
                if color[neighbor] == _UNVISITED:
                    color[neighbor] = _IN_PROGRESS
                    position[neighbor] = len(path)
                    path.append(neighbor)
                    stack.append((neighbor, iter(ordered(neighbor))))
                    descended = True
                    break
                if color[neighbor] == _IN_PROGRESS:
                    loop = path[position[neighbor]:]
                    key = _rotation_key(loop)
                    if key not in seen:
                        seen.add(key)
                        cycles.append([ids[i] for i in loop] + [ids[neighbor]])
            if not descended:
                stack.pop()
                path.pop()
                del position[node]
                color[node] = _FINISHED

    if cycles:
        _cover_remaining(graph, ids, ordered, cycles, seen)
    return CycleReport(cycles=cycles)


def _cover_remaining(graph, ids, ordered, cycles, seen) -> None:
    """Add a shortest cycle through every cyclic node no reported cycle contains.

    The DFS only closes cycles over back edges, so a cycle that re-enters an
    already finished node (A -> D -> B with B -> C -> A finished) is missed.
    """
    covered = {graph.registry.index_of(project_id) for cycle in cycles for project_id in cycle}
    for start in sorted(range(graph.node_count), key=ids.__getitem__):
        if start in covered:
            continue
        loop = _shortest_loop(start, ordered)
        if loop is None:
            continue
        key = _rotation_key(loop)
        if key not in seen:
            seen.add(key)
            cycles.append([ids[i] for i in loop] + [ids[start]])
        covered.update(loop)


def _shortest_loop(start: int, ordered) -> list[int] | None:
    parent: dict[int, int] = {}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for neighbor in ordered(node):
            if neighbor == start:
                loop = [node]
                while loop[-1] != start:
                    loop.append(parent[loop[-1]])
                return loop[::-1]
            if neighbor not in parent:
                parent[neighbor] = node
                queue.append(neighbor)
    return None


def _rotation_key(loop: list[int]) -> tuple[int, ...]:
    # Same cycle entered at a different node -> same key
    start = loop.index(min(loop))
    return tuple(loop[start:] + loop[:start])
