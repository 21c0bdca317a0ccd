"""dotnet-deps: dependency tracking for .NET solutions."""

from dotnet_deps.analysis import (
    BuildOrder,
    CycleReport,
    DependencyGraph,
    PackageUsage,
    ProjectNode,
)
from dotnet_deps.errors import (
    CircularDependencyError,
    DanglingReferenceWarning,
    DependencyGraphError,
    UnknownProjectError,
    ValidationError,
)
from dotnet_deps.models import GraphConfig, PackageReference, ProjectKind, ProjectRecord

__version__ = "0.1.0"

__all__ = [
    "BuildOrder",
    "CircularDependencyError",
    "CycleReport",
    "DanglingReferenceWarning",
    "DependencyGraph",
    "DependencyGraphError",
    "GraphConfig",
    "PackageReference",
    "PackageUsage",
    "ProjectKind",
    "ProjectNode",
    "ProjectRecord",
    "UnknownProjectError",
    "ValidationError",
]
