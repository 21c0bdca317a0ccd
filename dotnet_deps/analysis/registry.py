"""Node registry: canonical project identity and per-project metadata."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Iterator, Mapping

from dotnet_deps.analysis.graph_models import ProjectNode
from dotnet_deps.errors import UnknownProjectError, ValidationError
from dotnet_deps.models import GraphConfig, ProjectRecord

logger = logging.getLogger(__name__)

_DRIVE_RE = re.compile(r"^[A-Za-z]:/")


def canonicalize(path: str | os.PathLike, base_dir: str | os.PathLike, fold_case: bool) -> str:
    """Normalize a project path into its canonical id.

    Pure string work: no filesystem access, symlinks are not resolved.
    """
    raw = os.fspath(path).strip()
    if not raw:
        raise ValidationError("Project path is empty")

    if os.sep == "/":
        # Manifests written on Windows use backslash separators.
        raw = raw.replace("\\", "/")
    raw = os.path.expanduser(raw)
    if not os.path.isabs(raw) and not _DRIVE_RE.match(raw):
        raw = os.path.join(os.fspath(base_dir), raw)

    normalized = os.path.normpath(raw)
    if fold_case:
        normalized = normalized.casefold()
    return normalized


class NodeRegistry:
    """Flat indexed node storage with a single canonical-path lookup table."""

    def __init__(self, config: GraphConfig | None = None):
        self.config = config or GraphConfig()
        self._nodes: list[ProjectNode] = []
        self._index: dict[str, int] = {}

    def resolve(self, path: str | os.PathLike) -> str:
        if path is None:
            raise ValidationError("Project path is required")
        return canonicalize(path, self.config.base_dir, self.config.fold_case)

    def register(self, record: ProjectRecord | Mapping[str, Any]) -> str:
        """Insert or update a project; returns its stable id."""
        if isinstance(record, Mapping):
            record = ProjectRecord.from_mapping(record)
        if not isinstance(record, ProjectRecord):
            raise ValidationError(f"Expected a ProjectRecord, got {type(record).__name__}")
        if record.path is None or not str(record.path).strip():
            raise ValidationError(f"Project record {record.name or '<unnamed>'!r} has no path")

        project_id = self.resolve(record.path)
        index = self._index.get(project_id)
        if index is None:
            node = ProjectNode(
                project_id=project_id,
                path=record.path,
                name=record.name,
                kind=record.kind,
                frameworks=list(record.frameworks),
            )
            self._index[project_id] = len(self._nodes)
            self._nodes.append(node)
            logger.debug("Added project to dependency graph: %s (%s)", record.name, project_id)
            return project_id

        node = self._nodes[index]
        if node.unresolved:
            logger.debug("Resolved placeholder %s", project_id)
        else:
            logger.debug("Updated project metadata: %s", project_id)
        node.path = record.path
        node.name = record.name
        node.kind = record.kind
        node.frameworks = list(record.frameworks)
        node.unresolved = False
        return project_id

    def add_placeholder(self, project_id: str) -> int:
        """Register a dangling marker for an id nobody has registered yet."""
        index = self._index.get(project_id)
        if index is not None:
            return index
        name = Path(project_id.replace("\\", "/")).stem
        self._index[project_id] = len(self._nodes)
        self._nodes.append(ProjectNode(project_id=project_id, path=project_id, name=name, unresolved=True))
        return len(self._nodes) - 1

    def lookup(self, project_id: str) -> int | None:
        return self._index.get(project_id)

    def index_of(self, project_id: str) -> int:
        index = self._index.get(project_id)
        if index is None:
            raise UnknownProjectError(project_id)
        return index

    def node_at(self, index: int) -> ProjectNode:
        return self._nodes[index]

    def get(self, project_id: str) -> ProjectNode:
        return self._nodes[self.index_of(project_id)]

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._index

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ProjectNode]:
        return iter(self._nodes)
