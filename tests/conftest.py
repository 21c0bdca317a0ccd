from pathlib import Path

import pytest

from dotnet_deps.analysis import DependencyGraph
from dotnet_deps.models import GraphConfig, ProjectRecord


@pytest.fixture
def config():
    return GraphConfig(base_dir=Path("/sln"), case_insensitive=False)


@pytest.fixture
def graph(config):
    return DependencyGraph(config)


@pytest.fixture
def add(graph):
    """Register a project by short name (``"A"`` -> ``A.csproj``) with its deps."""

    def _add(name, deps=(), packages=()):
        return graph.add_project(ProjectRecord(
            path=f"{name}.csproj",
            frameworks=["net8.0"],
            package_references=list(packages),
            project_references=[f"{d}.csproj" for d in deps],
        ))

    return _add


@pytest.fixture
def pid(graph):
    """Canonical id for a short project name."""
    return lambda name: graph.resolve(f"{name}.csproj")
