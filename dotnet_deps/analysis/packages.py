"""Package usage statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from dotnet_deps.analysis.graph_models import PackageUsage

if TYPE_CHECKING:
    from dotnet_deps.analysis.dependency_graph import DependencyGraph


def aggregate_packages(graph: DependencyGraph) -> dict[tuple[str, str], PackageUsage]:
    """Count distinct referencing projects per exact (name, version) pair.

    Different versions of one package are separate keys and never merged.
    """
    stats: dict[tuple[str, str], PackageUsage] = {}
    for (name, version), indices in sorted(graph.package_index().items()):
        project_ids = sorted({graph.node_at(i).project_id for i in indices})
        stats[(name, version)] = PackageUsage(
            name=name,
            version=version,
            usage_count=len(project_ids),
            referencing_project_ids=project_ids,
        )
    return stats


def version_conflicts(stats: Mapping[tuple[str, str], PackageUsage]) -> dict[str, dict[str, list[str]]]:
    """Packages referenced at more than one version.

    Returns: {name: {version: [project ids]}}
    """
    by_name: dict[str, dict[str, list[str]]] = {}
    for usage in stats.values():
        by_name.setdefault(usage.name, {})[usage.version] = list(usage.referencing_project_ids)
    return {
        name: dict(sorted(versions.items()))
        for name, versions in sorted(by_name.items())
        if len(versions) > 1
    }


def stats_to_dict(stats: Mapping[tuple[str, str], PackageUsage]) -> dict[str, dict]:
    """Flatten tuple keys to ``name@version`` for serialization."""
    return {f"{name}@{version}": usage.to_dict() for (name, version), usage in stats.items()}
