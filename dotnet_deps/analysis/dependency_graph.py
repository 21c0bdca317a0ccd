"""Dependency graph: registers projects, records project and package edges.

Nodes live in a flat indexed list owned by the NodeRegistry; edges are
integer index pairs held in per-node outgoing (dependencies) and incoming
(dependents) adjacency sets. ``add_dependency(a, b)`` means ``b`` must be
built before ``a``.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from typing import Any, Iterable, Mapping

from dotnet_deps.analysis.graph_models import BuildOrder, CycleReport, PackageUsage, ProjectNode
from dotnet_deps.analysis.cycles import detect_cycles
from dotnet_deps.analysis.ordering import topological_order
from dotnet_deps.analysis.packages import aggregate_packages
from dotnet_deps.analysis.parallel import parallel_groups
from dotnet_deps.analysis.registry import NodeRegistry
from dotnet_deps.errors import DanglingReferenceWarning, UnknownProjectError, ValidationError
from dotnet_deps.models import GraphConfig, PackageReference, ProjectRecord

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Project/package dependency graph for one solution."""

    def __init__(self, config: GraphConfig | None = None):
        self.config = config or GraphConfig()
        self.registry = NodeRegistry(self.config)
        self._out: list[set[int]] = []  # index -> dependency indices
        self._in: list[set[int]] = []   # index -> dependent indices
        self._packages: dict[tuple[str, str], set[int]] = {}  # (name, version) -> project indices

    @classmethod
    def from_records(
        cls,
        records: Iterable[ProjectRecord | Mapping[str, Any]],
        config: GraphConfig | None = None,
    ) -> DependencyGraph:
        """Build a graph from parsed records.

        All projects are registered before any reference is added, so
        references between records never produce spurious dangling
        placeholders regardless of record order.
        """
        graph = cls(config)
        parsed = [r if isinstance(r, ProjectRecord) else ProjectRecord.from_mapping(r) for r in records]
        targets = [graph._resolve_references(record) for record in parsed]
        ids = [graph.register(record) for record in parsed]
        for project_id, record, target_ids in zip(ids, parsed, targets):
            graph._add_references(project_id, record, target_ids)
        return graph

    # ── Registration ────────────────────────────────────────

    def resolve(self, path: str | os.PathLike) -> str:
        return self.registry.resolve(path)

    def register(self, record: ProjectRecord | Mapping[str, Any]) -> str:
        project_id = self.registry.register(record)
        self._grow()
        return project_id

    def add_project(self, record: ProjectRecord | Mapping[str, Any]) -> str:
        """Register a record, then add its project and package references."""
        if isinstance(record, Mapping):
            record = ProjectRecord.from_mapping(record)
        target_ids = self._resolve_references(record)
        project_id = self.register(record)
        self._add_references(project_id, record, target_ids)
        return project_id

    def _resolve_references(self, record: ProjectRecord) -> list[str]:
        # Fails on a bad reference before the record touches the graph
        if not isinstance(record, ProjectRecord):
            raise ValidationError(f"Expected a ProjectRecord, got {type(record).__name__}")
        return [self.resolve(ref) for ref in record.project_references]

    def _add_references(self, project_id: str, record: ProjectRecord, target_ids: list[str]) -> None:
        for target_id in target_ids:
            self.add_dependency(project_id, target_id)
        for package in record.package_references:
            self._attach_package(self.registry.index_of(project_id), package)

    def _grow(self) -> None:
        while len(self._out) < len(self.registry):
            self._out.append(set())
            self._in.append(set())

    # ── Edges ───────────────────────────────────────────────

    def add_dependency(self, from_id: str, to_id: str) -> None:
        """Record that ``from_id`` depends on ``to_id``.

        An unregistered ``to_id`` becomes a dangling placeholder; this is
        reported through ``warnings``, never raised.
        """
        source = self._source_index(from_id)
        target_id = self.resolve(to_id)
        target = self.registry.lookup(target_id)
        if target is None:
            target = self.registry.add_placeholder(target_id)
            self._grow()

        if target in self._out[source]:
            return

        self._out[source].add(target)
        self._in[target].add(source)
        source_node = self.registry.node_at(source)
        source_node.project_references.add(target_id)

        if source == target:
            logger.warning("Project references itself: %s", target_id)
        elif self.registry.node_at(target).unresolved:
            logger.warning("Unresolved project reference: %s -> %s", source_node.project_id, target_id)
        else:
            logger.debug("Added project dependency: %s -> %s", source_node.project_id, target_id)

    def add_package_reference(self, project_id: str, name: str, version: str) -> None:
        if not name or not str(name).strip():
            raise ValidationError(f"Package reference for {project_id} has no name")
        index = self._source_index(project_id)
        self._attach_package(index, PackageReference(name=str(name).strip(), version=str(version or "").strip()))

    def _attach_package(self, index: int, package: PackageReference) -> None:
        node = self.registry.node_at(index)
        if package not in node.package_references:
            node.package_references.append(package)
        self._packages.setdefault(package.key, set()).add(index)
        logger.debug("Added package dependency: %s -> %s@%s", node.project_id, package.name, package.version)

    def _source_index(self, project_id: str) -> int:
        """Index of a registered project; placeholders cannot own references."""
        resolved = self.resolve(project_id)
        index = self.registry.index_of(resolved)
        if self.registry.node_at(index).unresolved:
            raise UnknownProjectError(resolved)
        return index

    # ── Structure access ────────────────────────────────────

    def neighbors_out(self, project_id: str) -> frozenset[str]:
        """Direct dependencies of a project."""
        index = self.registry.index_of(self.resolve(project_id))
        return frozenset(self.registry.node_at(i).project_id for i in self._out[index])

    def neighbors_in(self, project_id: str) -> frozenset[str]:
        """Direct dependents of a project."""
        index = self.registry.index_of(self.resolve(project_id))
        return frozenset(self.registry.node_at(i).project_id for i in self._in[index])

    def edges_from(self, index: int) -> set[int]:
        return self._out[index]

    def edges_to(self, index: int) -> set[int]:
        return self._in[index]

    def node_at(self, index: int) -> ProjectNode:
        return self.registry.node_at(index)

    def get_node(self, project_id: str) -> ProjectNode:
        return self.registry.get(self.resolve(project_id))

    def package_index(self) -> dict[tuple[str, str], set[int]]:
        return self._packages

    @property
    def node_count(self) -> int:
        return len(self.registry)

    @property
    def projects(self) -> list[ProjectNode]:
        return [node for node in self.registry if not node.unresolved]

    @property
    def unresolved_dependencies(self) -> list[str]:
        return sorted(node.project_id for node in self.registry if node.unresolved)

    @property
    def warnings(self) -> list[DanglingReferenceWarning]:
        """Dangling references in the current graph state."""
        found = []
        for index, node in enumerate(self.registry):
            for target in self._out[index]:
                target_node = self.registry.node_at(target)
                if target_node.unresolved:
                    found.append(DanglingReferenceWarning(node.project_id, target_node.project_id))
        found.sort(key=lambda w: (w.project_id, w.reference_id))
        return found

    def __len__(self) -> int:
        return len(self.registry)

    def __contains__(self, project_id: object) -> bool:
        if not isinstance(project_id, (str, os.PathLike)):
            return False
        if not os.fspath(project_id).strip():
            return False
        return self.resolve(project_id) in self.registry

    # ── Queries ─────────────────────────────────────────────

    def get_dependencies(self, project_id: str) -> list[str]:
        return sorted(self.neighbors_out(project_id))

    def get_dependents(self, project_id: str) -> list[str]:
        return sorted(self.neighbors_in(project_id))

    def get_all_dependencies(self, project_id: str) -> list[str]:
        """BFS to find all transitive dependencies of a project."""
        root = self.registry.index_of(self.resolve(project_id))
        visited = {root}
        queue = deque([root])
        found: set[int] = set()

        while queue:
            current = queue.popleft()
            for neighbor in self._out[current]:
                if neighbor != root:
                    found.add(neighbor)
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return sorted(self.registry.node_at(i).project_id for i in found)

    def check_circular_dependencies(self) -> CycleReport:
        return detect_cycles(self)

    def get_build_order(self) -> BuildOrder:
        return topological_order(self)

    def get_parallel_build_groups(self) -> list[list[str]]:
        return parallel_groups(self)

    def get_package_stats(self) -> dict[tuple[str, str], PackageUsage]:
        return aggregate_packages(self)
