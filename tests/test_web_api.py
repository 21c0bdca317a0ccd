"""Tests for the HTTP API: build order, cycles, groups, packages, dependencies."""

import logging
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
    from dotnet_deps.web import create_app
    HAS_WEB = True
except ImportError:
    HAS_WEB = False

from dotnet_deps.analysis import DependencyGraph
from dotnet_deps.models import GraphConfig

pytestmark = pytest.mark.skipif(not HAS_WEB, reason="web dependencies not installed")

BASE_DIR = "/sln"


@pytest.fixture
def client():
    return TestClient(create_app())


def _id(path):
    return DependencyGraph(GraphConfig(base_dir=Path(BASE_DIR))).resolve(path)


def _body(*projects, **extra):
    return {"projects": list(projects), "base_dir": BASE_DIR, **extra}


LINEAR = (
    {"path": "A.csproj"},
    {"path": "B.csproj", "project_references": ["A.csproj"]},
    {"path": "C.csproj", "project_references": ["A.csproj", "B.csproj"]},
)

CYCLE = (
    {"path": "X.csproj", "project_references": ["Y.csproj"]},
    {"path": "Y.csproj", "project_references": ["X.csproj"]},
)


class TestHealth:
    def test_health(self, client):
        res = client.get("/api/health")
        assert res.status_code == 200
        assert res.json()["status"] == "ok"


class TestBuildOrder:
    def test_linear(self, client):
        res = client.post("/api/graph/build-order", json=_body(*LINEAR))
        assert res.status_code == 200
        assert res.json()["order"] == [_id("A.csproj"), _id("B.csproj"), _id("C.csproj")]

    def test_dangling(self, client):
        res = client.post("/api/graph/build-order", json=_body(
            {"path": "E.csproj", "project_references": ["Missing.csproj"]},
        ))
        assert res.status_code == 200
        data = res.json()
        assert data["order"] == [_id("E.csproj")]
        assert data["unresolved_dependencies"] == [_id("Missing.csproj")]
        assert data["warnings"][0]["reference_id"] == _id("Missing.csproj")

    def test_cycle_is_conflict(self, client):
        res = client.post("/api/graph/build-order", json=_body(*CYCLE))
        assert res.status_code == 409
        detail = res.json()["detail"]
        assert detail["error"] == "circular_dependency"
        assert set(detail["cycles"][0]) == {_id("X.csproj"), _id("Y.csproj")}

    def test_missing_path_is_unprocessable(self, client):
        res = client.post("/api/graph/build-order", json=_body({"name": "NoPath"}))
        assert res.status_code == 422

    def test_rejections_are_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="dotnet_deps.web"):
            client.post("/api/graph/build-order", json=_body(*CYCLE))
            client.post("/api/graph/build-order", json=_body({"name": "NoPath"}))
        assert "Circular dependencies block the request" in caplog.text
        assert "Rejected project records" in caplog.text


class TestCycles:
    def test_cycles(self, client):
        res = client.post("/api/graph/cycles", json=_body(*CYCLE))
        assert res.status_code == 200
        data = res.json()
        assert data["has_cycles"] is True
        assert len(data["cycles"]) == 1

    def test_no_cycles(self, client):
        res = client.post("/api/graph/cycles", json=_body(*LINEAR))
        assert res.json() == {"has_cycles": False, "cycles": []}


class TestParallelGroups:
    def test_groups(self, client):
        res = client.post("/api/graph/parallel-groups", json=_body(
            {"path": "A.csproj"},
            {"path": "B.csproj", "project_references": ["A.csproj"]},
            {"path": "D.csproj", "project_references": ["A.csproj"]},
        ))
        assert res.status_code == 200
        assert res.json()["groups"] == [[_id("A.csproj")], [_id("B.csproj"), _id("D.csproj")]]

    def test_batched(self, client):
        res = client.post("/api/graph/parallel-groups", json=_body(
            {"path": "A.csproj"}, {"path": "B.csproj"}, {"path": "C.csproj"},
            max_parallel=2,
        ))
        assert res.json()["groups"] == [[_id("A.csproj"), _id("B.csproj")], [_id("C.csproj")]]

    def test_limit_validated(self, client):
        res = client.post("/api/graph/parallel-groups", json=_body({"path": "A.csproj"}, max_parallel=0))
        assert res.status_code == 422

    def test_cycle_is_conflict(self, client):
        res = client.post("/api/graph/parallel-groups", json=_body(*CYCLE))
        assert res.status_code == 409


class TestPackages:
    def test_stats(self, client):
        pkg = {"name": "Newtonsoft.Json", "version": "13.0.1"}
        res = client.post("/api/graph/packages", json=_body(
            {"path": "Project1.csproj", "package_references": [pkg]},
            {"path": "Project2.csproj", "package_references": [pkg]},
        ))
        assert res.status_code == 200
        usage = res.json()["packages"]["Newtonsoft.Json@13.0.1"]
        assert usage["usage_count"] == 2
        assert usage["referencing_project_ids"] == [_id("Project1.csproj"), _id("Project2.csproj")]

    def test_conflicts_only(self, client):
        res = client.post("/api/graph/packages", json=_body(
            {"path": "A.csproj", "package_references": [{"name": "Serilog", "version": "3.1.1"}]},
            {"path": "B.csproj", "package_references": [{"name": "Serilog", "version": "2.12.0"}]},
            conflicts_only=True,
        ))
        assert list(res.json()["conflicts"]) == ["Serilog"]


class TestDependencies:
    def test_direct(self, client):
        res = client.post("/api/graph/dependencies", json=_body(*LINEAR, project="C.csproj"))
        assert res.status_code == 200
        assert res.json() == {"project": _id("C.csproj"), "projects": [_id("A.csproj"), _id("B.csproj")]}

    def test_dependents(self, client):
        res = client.post("/api/graph/dependencies", json=_body(*LINEAR, project="A.csproj", dependents=True))
        assert res.json()["projects"] == [_id("B.csproj"), _id("C.csproj")]

    def test_transitive(self, client):
        res = client.post("/api/graph/dependencies", json=_body(
            *LINEAR, {"path": "D.csproj", "project_references": ["C.csproj"]},
            project="D.csproj", transitive=True,
        ))
        assert res.json()["projects"] == [_id("A.csproj"), _id("B.csproj"), _id("C.csproj")]

    def test_unknown_project(self, client):
        res = client.post("/api/graph/dependencies", json=_body(*LINEAR, project="Nope.csproj"))
        assert res.status_code == 404

    def test_conflicting_flags(self, client):
        res = client.post("/api/graph/dependencies", json=_body(
            *LINEAR, project="A.csproj", transitive=True, dependents=True,
        ))
        assert res.status_code == 400
