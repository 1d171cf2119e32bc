"""Command-line interface for Flowplan."""

from __future__ import annotations

import csv
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError as PydanticValidationError

from .config import discover_config, set_config_path
from .exceptions import FlowplanError
from .importer import read_import_csv
from .loader import load_workspace
from .logger import setup_logger
from .scheduler import SchedulingEngine
from .store import InMemoryStore
from .writer import task_record, write_workspace

app = typer.Typer(
    name="flowplan",
    help="Per-assignee task scheduling: dates from hours, capacities and dependencies",
    add_completion=False,
)

CSV_COLUMNS = (
    "id",
    "project_id",
    "assignee_id",
    "title",
    "order",
    "sprint_id",
    "status",
    "estimated_hours",
    "actual_hours",
    "start_date",
    "end_date",
    "expected_start_date",
    "expected_end_date",
)

WorkspaceArg = Annotated[Path, typer.Argument(help="Path to the workspace YAML file")]
WriteOption = Annotated[
    bool, typer.Option("--write", "-w", help="Write the results back to the workspace file")
]


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show allocations, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: flowplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for flowplan commands."""
    setup_logger(verbose)
    set_config_path(config)


@contextmanager
def _errors_to_exit() -> Iterator[None]:
    """Report library errors on stderr and exit with status 1."""
    try:
        yield
    except (FlowplanError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _parse_date_option(date_str: str | None, option_name: str) -> date | None:
    if date_str is None:
        return None
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{date_str}'. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _open_workspace(
    workspace: Path, today: date | None = None
) -> tuple[InMemoryStore, SchedulingEngine]:
    try:
        config = discover_config(workspace)
    except (ValueError, PydanticValidationError) as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(1) from None
    store = load_workspace(workspace, config.engine)
    engine = SchedulingEngine.from_store(store, config.engine, today)
    return store, engine


def _display_schedule(store: InMemoryStore) -> None:
    for project in store.list_projects():
        end = project.actual_expected_end_date or "-"
        typer.echo(f"Project {project.id}: {project.name} (expected end {end})")
        tasks = store.list_tasks(project.id)
        if not tasks:
            typer.echo("  (no planned tasks)")
        for assignee_id in sorted({t.assignee_id for t in tasks}):
            typer.echo(f"  Assignee {assignee_id}:")
            for task in (t for t in tasks if t.assignee_id == assignee_id):
                typer.echo(
                    f"    {task.order!s:>3}  #{task.id} {task.title}: "
                    f"{task.start_date} -> {task.end_date} "
                    f"({task.hours_to_occupy():g}h, {task.status.value})"
                )
        backlog = store.list_tasks(project.id, is_backlog=True)
        if backlog:
            typer.echo(f"  Backlog: {', '.join(f'#{t.id}' for t in backlog)}")
        typer.echo("")


def _export_schedule_csv(store: InMemoryStore, output_path: Path) -> None:
    """Export every planned task with its computed dates."""
    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for project in store.list_projects():
            for task in store.list_tasks(project.id):
                writer.writerow(task_record(task))


def _finish(workspace: Path, store: InMemoryStore, write: bool) -> None:
    if write:
        count = write_workspace(workspace, store)
        typer.echo(f"Updated {workspace} ({count} change(s))")
    else:
        _display_schedule(store)


@app.command()
def schedule(
    workspace: WorkspaceArg,
    today: Annotated[
        str | None,
        typer.Option(
            "--today",
            help="Calendar start for projects without a start date (YYYY-MM-DD)",
        ),
    ] = None,
    write: WriteOption = False,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Export the computed schedule to a CSV file"),
    ] = None,
) -> None:
    """Recalculate every project and display or persist the dates."""
    parsed_today = _parse_date_option(today, "--today date")
    failed = False
    with _errors_to_exit():
        store, engine = _open_workspace(workspace, parsed_today)
        for project in store.list_projects():
            try:
                engine.recalculate_project(project.id)
            except FlowplanError as e:
                typer.echo(f"Error: project {project.id}: {e}", err=True)
                failed = True

        if output_csv:
            _export_schedule_csv(store, output_csv)
            typer.echo(f"Schedule exported to {output_csv}")
        _finish(workspace, store, write)

    if failed:
        raise typer.Exit(1)


def _parse_assignments(assignments: list[str]) -> list[tuple[int, int]]:
    pairs: list[tuple[int, int]] = []
    for item in assignments:
        task_id, sep, order = item.partition("=")
        try:
            if not sep:
                raise ValueError(item)
            pairs.append((int(task_id), int(order)))
        except ValueError:
            typer.echo(f"Error: Expected TASK_ID=ORDER, got '{item}'", err=True)
            raise typer.Exit(1) from None
    return pairs


@app.command()
def reorder(
    workspace: WorkspaceArg,
    project_id: Annotated[int, typer.Argument(help="Project whose tasks are reordered")],
    assignments: Annotated[list[str], typer.Argument(help="New orders as TASK_ID=ORDER")],
    write: WriteOption = False,
) -> None:
    """Give tasks explicit orders and recalculate their assignees."""
    pairs = _parse_assignments(assignments)
    with _errors_to_exit():
        store, engine = _open_workspace(workspace)
        changed = engine.reorder_tasks(project_id, pairs)
        typer.echo(f"Reordered {len(changed)} task(s)")
        _finish(workspace, store, write)


@app.command()
def compact(
    workspace: WorkspaceArg,
    project_id: Annotated[int, typer.Argument(help="Project to check")],
    write: WriteOption = False,
) -> None:
    """Fix duplicate task orders within a project."""
    with _errors_to_exit():
        store, engine = _open_workspace(workspace)
        report = engine.fix_duplicate_orders(project_id)
        if not report.assignees:
            typer.echo("No duplicate orders found")
        for entry in report.assignees:
            typer.echo(
                f"Assignee {entry.assignee_id}: duplicates {entry.duplicate_orders}, "
                f"{entry.tasks_reordered} task(s) renumbered"
            )
        _finish(workspace, store, write)


@app.command("complete-sprint")
def complete_sprint(
    workspace: WorkspaceArg,
    sprint_id: Annotated[int, typer.Argument(help="Sprint that was completed")],
    write: WriteOption = False,
) -> None:
    """Move completed tasks ahead of open ones after a sprint ends."""
    with _errors_to_exit():
        store, engine = _open_workspace(workspace)
        report = engine.complete_sprint(sprint_id)
        typer.echo(f"Reordered {report.reordered_count} task(s)")
        for entry in report.assignees:
            typer.echo(
                f"  Assignee {entry.assignee_id}: {entry.completed_count} completed, "
                f"{entry.incomplete_count} open"
            )
        _finish(workspace, store, write)


@app.command("import")
def import_tasks(
    workspace: WorkspaceArg,
    project_id: Annotated[int, typer.Argument(help="Project receiving the tasks")],
    csv_file: Annotated[Path, typer.Argument(help="CSV file with one task per line")],
    write: WriteOption = False,
) -> None:
    """Create tasks from a CSV file; nothing is created if any row is invalid."""
    with _errors_to_exit():
        store, engine = _open_workspace(workspace)
        rows = read_import_csv(csv_file)
        created = engine.import_tasks(project_id, rows)
        backlog = sum(1 for task in created if task.is_backlog)
        typer.echo(f"Imported {len(created)} task(s) ({backlog} in backlog)")
        _finish(workspace, store, write)


@app.command("end-date")
def end_date(
    workspace: WorkspaceArg,
    project_id: Annotated[int, typer.Argument(help="Project to report")],
) -> None:
    """Print a project's actual expected end date from the stored task dates."""
    with _errors_to_exit():
        _, engine = _open_workspace(workspace)
        latest = engine.aggregator.update(project_id)
    if latest is None:
        typer.echo(f"Project {project_id} has no scheduled tasks")
    else:
        typer.echo(latest.isoformat())


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
