"""Dependency graph analysis: registry, cycles, ordering, grouping, packages."""

from dotnet_deps.analysis.dependency_graph import DependencyGraph
from dotnet_deps.analysis.graph_models import BuildOrder, CycleReport, PackageUsage, ProjectNode
from dotnet_deps.analysis.packages import stats_to_dict, version_conflicts
from dotnet_deps.analysis.parallel import batch_groups, compute_levels

__all__ = [
    "BuildOrder",
    "CycleReport",
    "DependencyGraph",
    "PackageUsage",
    "ProjectNode",
    "batch_groups",
    "compute_levels",
    "stats_to_dict",
    "version_conflicts",
]
