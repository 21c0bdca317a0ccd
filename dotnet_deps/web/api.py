"""Graph API: build order, cycles, parallel groups, package stats, dependencies.

Stateless: every request carries its project records and gets a fresh
DependencyGraph, so independent solutions never share state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from dotnet_deps.analysis import DependencyGraph, batch_groups, stats_to_dict, version_conflicts
from dotnet_deps.errors import CircularDependencyError, UnknownProjectError, ValidationError
from dotnet_deps.models import MAX_PARALLEL_BUILDS, MIN_PARALLEL_BUILDS, GraphConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/graph")


class PackageReferenceIn(BaseModel):
    name: str
    version: str = ""
    include_assets: Optional[str] = None
    exclude_assets: Optional[str] = None


class ProjectRecordIn(BaseModel):
    path: Optional[str] = None
    name: str = ""
    kind: Optional[str] = None
    frameworks: list[str] = Field(default_factory=list)
    package_references: list[PackageReferenceIn] = Field(default_factory=list)
    project_references: list[str] = Field(default_factory=list)


class GraphRequest(BaseModel):
    projects: list[ProjectRecordIn]
    base_dir: Optional[str] = None


class GroupsRequest(GraphRequest):
    max_parallel: Optional[int] = Field(default=None, ge=MIN_PARALLEL_BUILDS, le=MAX_PARALLEL_BUILDS)


class PackagesRequest(GraphRequest):
    conflicts_only: bool = False


class DepsRequest(GraphRequest):
    project: str
    transitive: bool = False
    dependents: bool = False


def _build_graph(req: GraphRequest) -> DependencyGraph:
    config = GraphConfig(base_dir=req.base_dir) if req.base_dir else GraphConfig()
    records = [p.model_dump() for p in req.projects]
    try:
        return DependencyGraph.from_records(records, config)
    except ValidationError as e:
        logger.warning("Rejected project records: %s", e)
        raise HTTPException(422, str(e))


def _cycle_conflict(e: CircularDependencyError) -> HTTPException:
    logger.info("Circular dependencies block the request: %d cycle(s)", len(e.cycles))
    return HTTPException(409, e.to_dict())


@router.post("/build-order")
async def build_order(req: GraphRequest):
    def _run():
        return _build_graph(req).get_build_order()

    try:
        result = await asyncio.to_thread(_run)
    except CircularDependencyError as e:
        raise _cycle_conflict(e)
    return result.to_dict()


@router.post("/cycles")
async def check_cycles(req: GraphRequest):
    def _run():
        return _build_graph(req).check_circular_dependencies()

    report = await asyncio.to_thread(_run)
    return report.to_dict()


@router.post("/parallel-groups")
async def parallel_groups(req: GroupsRequest):
    def _run():
        groups = _build_graph(req).get_parallel_build_groups()
        if req.max_parallel:
            return batch_groups(groups, req.max_parallel)
        return groups

    try:
        groups = await asyncio.to_thread(_run)
    except CircularDependencyError as e:
        raise _cycle_conflict(e)
    return {"groups": groups, "max_parallel": req.max_parallel}


@router.post("/packages")
async def package_stats(req: PackagesRequest):
    def _run():
        return _build_graph(req).get_package_stats()

    stats = await asyncio.to_thread(_run)
    if req.conflicts_only:
        return {"conflicts": version_conflicts(stats)}
    return {"packages": stats_to_dict(stats)}


@router.post("/dependencies")
async def dependencies(req: DepsRequest):
    if req.transitive and req.dependents:
        raise HTTPException(400, "transitive and dependents are mutually exclusive")

    def _run():
        graph = _build_graph(req)
        project_id = graph.resolve(req.project)
        if req.dependents:
            return project_id, graph.get_dependents(project_id)
        if req.transitive:
            return project_id, graph.get_all_dependencies(project_id)
        return project_id, graph.get_dependencies(project_id)

    try:
        project_id, found = await asyncio.to_thread(_run)
    except UnknownProjectError as e:
        raise HTTPException(404, str(e))
    except ValidationError as e:
        raise HTTPException(422, str(e))
    return {"project": project_id, "projects": found}
