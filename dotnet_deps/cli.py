"""Click CLI with order, cycles, groups, packages, deps, and serve subcommands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO

import click

from dotnet_deps import __version__
from dotnet_deps.analysis import DependencyGraph, batch_groups, stats_to_dict, version_conflicts
from dotnet_deps.errors import CircularDependencyError, DependencyGraphError
from dotnet_deps.models import MAX_PARALLEL_BUILDS, MIN_PARALLEL_BUILDS, GraphConfig

_LOG_LEVELS = ["debug", "info", "warning", "error"]

_records_argument = click.argument("records", type=click.File("r"), default="-")
_json_option = click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
_base_dir_option = click.option(
    "--base-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory relative project paths are resolved against (default: the records file's directory)",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", type=click.Choice(_LOG_LEVELS), default="warning", help="Logging level")
@click.option("--verbose", "-v", is_flag=True, help="Shortcut for --log-level debug")
def cli(log_level: str, verbose: bool):
    """dotnet-deps: build order, cycles, and package usage for .NET solutions.

    RECORDS is a JSON file holding a list of project records (or an object
    with a "projects" list), as produced by a solution/project parser.
    Use "-" to read from stdin.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_graph(records: IO[str], base_dir: Path | None) -> DependencyGraph:
    try:
        data = json.load(records)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {records.name}: {e}")

    if isinstance(data, dict):
        data = data.get("projects")
    if not isinstance(data, list):
        raise click.ClickException("Expected a list of project records")

    if base_dir is None and records.name not in ("-", "<stdin>"):
        base_dir = Path(records.name).absolute().parent

    try:
        config = GraphConfig.from_env(base_dir=base_dir)
        return DependencyGraph.from_records(data, config)
    except DependencyGraphError as e:
        raise click.ClickException(str(e))


def _label(graph: DependencyGraph, project_id: str) -> str:
    node = graph.get_node(project_id)
    return f"{node.name}  {click.style(project_id, dim=True)}"


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2))


def _fail_on_cycles(e: CircularDependencyError, as_json: bool):
    if as_json:
        _echo_json(e.to_dict())
    else:
        click.echo(click.style("Circular dependencies detected:", fg="red"), err=True)
        for cycle in e.cycles:
            click.echo(f"  {' -> '.join(cycle)}", err=True)
    raise click.ClickException(f"{len(e.cycles)} cycle(s) block the build order")


@cli.command()
@_records_argument
@_base_dir_option
@_json_option
def order(records: IO[str], base_dir: Path | None, as_json: bool):
    """Print the build order (dependencies first)."""
    graph = _load_graph(records, base_dir)
    try:
        result = graph.get_build_order()
    except CircularDependencyError as e:
        _fail_on_cycles(e, as_json)
        return

    if as_json:
        _echo_json(result.to_dict())
        return

    click.echo(f"\nBuild order ({len(result.order)} project(s)):\n")
    for position, project_id in enumerate(result.order, 1):
        click.echo(f"  {position:>3}. {_label(graph, project_id)}")

    if result.unresolved_dependencies:
        click.echo(click.style("\nUnresolved dependencies:", fg="yellow"))
        for warning in result.warnings:
            click.echo(f"  {warning.project_id} -> {warning.reference_id}")


@cli.command()
@_records_argument
@_base_dir_option
@_json_option
def cycles(records: IO[str], base_dir: Path | None, as_json: bool):
    """Check for circular project dependencies."""
    graph = _load_graph(records, base_dir)
    report = graph.check_circular_dependencies()

    if as_json:
        _echo_json(report.to_dict())
        return

    if not report.has_cycles:
        click.echo(click.style("No circular dependencies.", fg="green"))
        return

    click.echo(click.style(f"Found {len(report.cycles)} cycle(s):", fg="red"))
    for cycle in report.cycles:
        click.echo(f"  {' -> '.join(cycle)}")


@cli.command()
@_records_argument
@_base_dir_option
@click.option(
    "--max-parallel",
    type=click.IntRange(MIN_PARALLEL_BUILDS, MAX_PARALLEL_BUILDS),
    help="Split each level into batches of at most N projects",
)
@_json_option
def groups(records: IO[str], base_dir: Path | None, max_parallel: int | None, as_json: bool):
    """Print groups of projects that can be built in parallel."""
    graph = _load_graph(records, base_dir)
    try:
        levels = graph.get_parallel_build_groups()
    except CircularDependencyError as e:
        _fail_on_cycles(e, as_json)
        return

    if max_parallel:
        levels = batch_groups(levels, max_parallel)

    if as_json:
        _echo_json({"groups": levels})
        return

    title = "Batch" if max_parallel else "Level"
    for number, group in enumerate(levels):
        click.echo(click.style(f"{title} {number} ({len(group)})", fg="cyan"))
        for project_id in group:
            click.echo(f"  {_label(graph, project_id)}")


@cli.command()
@_records_argument
@_base_dir_option
@click.option("--conflicts", is_flag=True, help="Only show packages referenced at several versions")
@_json_option
def packages(records: IO[str], base_dir: Path | None, conflicts: bool, as_json: bool):
    """Print package usage statistics."""
    graph = _load_graph(records, base_dir)
    stats = graph.get_package_stats()

    if conflicts:
        found = version_conflicts(stats)
        if as_json:
            _echo_json(found)
            return
        if not found:
            click.echo("No version conflicts.")
            return
        for name, versions in found.items():
            click.echo(click.style(name, fg="yellow"))
            for version, project_ids in versions.items():
                click.echo(f"  {version}: {len(project_ids)} project(s)")
        return

    if as_json:
        _echo_json(stats_to_dict(stats))
        return

    if not stats:
        click.echo("No package references.")
        return

    for usage in sorted(stats.values(), key=lambda u: (-u.usage_count, u.name, u.version)):
        click.echo(f"  {usage.usage_count:>3}  {usage.name} {click.style(usage.version, dim=True)}")


@cli.command()
@_records_argument
@click.argument("project")
@_base_dir_option
@click.option("--transitive", is_flag=True, help="Include indirect dependencies")
@click.option("--dependents", is_flag=True, help="Show projects that depend on PROJECT instead")
@_json_option
def deps(
    records: IO[str],
    project: str,
    base_dir: Path | None,
    transitive: bool,
    dependents: bool,
    as_json: bool,
):
    """Print the dependencies of PROJECT (a project path)."""
    if transitive and dependents:
        raise click.UsageError("--transitive and --dependents are mutually exclusive")

    graph = _load_graph(records, base_dir)
    try:
        if dependents:
            found = graph.get_dependents(project)
        elif transitive:
            found = graph.get_all_dependencies(project)
        else:
            found = graph.get_dependencies(project)
    except DependencyGraphError as e:
        raise click.ClickException(str(e))

    if as_json:
        _echo_json({"project": graph.resolve(project), "projects": found})
        return

    if not found:
        click.echo("None.")
        return
    for project_id in found:
        click.echo(f"  {_label(graph, project_id)}")


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(port: int, host: str):
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the HTTP API. "
            "Install with: pip install 'dotnet-deps[web]'"
        )

    from dotnet_deps.web import create_app

    click.echo(f"Starting dotnet-deps API at http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
