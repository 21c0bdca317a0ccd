"""Data models for the dependency graph and its query results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from dotnet_deps.errors import DanglingReferenceWarning
from dotnet_deps.models import PackageReference, ProjectKind


@dataclass
class ProjectNode:
    project_id: str
    path: str
    name: str
    kind: ProjectKind = ProjectKind.UNKNOWN
    frameworks: list[str] = field(default_factory=list)
    package_references: list[PackageReference] = field(default_factory=list)
    project_references: set[str] = field(default_factory=set)  # canonical ids, resolved or dangling
    unresolved: bool = False  # placeholder for a path nobody registered

    def to_dict(self) -> dict:
        return {
            "id": self.project_id,
            "path": self.path,
            "name": self.name,
            "kind": self.kind.value,
            "frameworks": list(self.frameworks),
            "package_references": [
                {"name": p.name, "version": p.version} for p in self.package_references
            ],
            "project_references": sorted(self.project_references),
            "unresolved": self.unresolved,
        }


@dataclass
class CycleReport:
    """Result of a cycle check. Unpacks as ``has_cycles, cycles``."""
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def __iter__(self) -> Iterator:
        yield self.has_cycles
        yield self.cycles

    def to_dict(self) -> dict:
        return {
            "has_cycles": self.has_cycles,
            "cycles": [list(c) for c in self.cycles],
        }


@dataclass
class BuildOrder:
    order: list[str] = field(default_factory=list)
    unresolved_dependencies: list[str] = field(default_factory=list)
    warnings: list[DanglingReferenceWarning] = field(default_factory=list)

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def to_dict(self) -> dict:
        return {
            "order": list(self.order),
            "unresolved_dependencies": list(self.unresolved_dependencies),
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class PackageUsage:
    name: str
    version: str
    usage_count: int = 0
    referencing_project_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "usage_count": self.usage_count,
            "referencing_project_ids": list(self.referencing_project_ids),
        }
