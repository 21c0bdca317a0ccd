"""Error taxonomy for the dependency engine."""

from __future__ import annotations

from typing import Iterable, Sequence


class DependencyGraphError(Exception):
    """Base class for errors raised by the dependency engine."""


class ValidationError(DependencyGraphError, ValueError):
    """A project record is malformed (e.g. it has no path)."""


class UnknownProjectError(DependencyGraphError, KeyError):
    """A query referenced a project id that is not in the registry."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(project_id)

    def __str__(self) -> str:
        return f"Unknown project: {self.project_id}"


class CircularDependencyError(DependencyGraphError):
    """Raised when a build order or parallel grouping is blocked by cycles.

    Carries every detected cycle, not just the first one, so callers can
    report all offending paths.
    """

    def __init__(
        self,
        cycles: Iterable[Sequence[str]],
        unresolved_dependencies: Iterable[str] = (),
    ):
        self.cycles = [list(cycle) for cycle in cycles]
        self.unresolved_dependencies = list(unresolved_dependencies)
        rendered = "; ".join(" -> ".join(cycle) for cycle in self.cycles)
        super().__init__(
            f"Circular dependencies detected ({len(self.cycles)}): {rendered}"
        )

    def to_dict(self) -> dict:
        return {
            "error": "circular_dependency",
            "cycles": [list(cycle) for cycle in self.cycles],
            "unresolved_dependencies": list(self.unresolved_dependencies),
        }


class DanglingReferenceWarning(UserWarning):
    """A declared project reference does not resolve to a registered project.

    Non-fatal: instances are collected on the graph and returned alongside
    successful results, never raised.
    """

    def __init__(self, project_id: str, reference_id: str):
        self.project_id = project_id
        self.reference_id = reference_id
        super().__init__(f"{project_id} references unregistered project {reference_id}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DanglingReferenceWarning):
            return NotImplemented
        return (self.project_id, self.reference_id) == (other.project_id, other.reference_id)

    def __hash__(self) -> int:
        return hash((self.project_id, self.reference_id))

    def to_dict(self) -> dict:
        return {"project_id": self.project_id, "reference_id": self.reference_id}
