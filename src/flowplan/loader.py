"""Workspace loading: YAML parsing, schema validation and reference checks."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import EngineConfig
from .exceptions import ParseError, ValidationError
from .models import Project, Sprint, Task, TaskDependency, Team, TeamMember
from .schemas import WorkspaceSchema
from .store import InMemoryStore


def parse_workspace(path: Path | str) -> WorkspaceSchema:
    """Parse and schema-validate a workspace file.

    Raises:
        ParseError: If the file is missing, is not YAML, or does not match
            the workspace schema
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")

    try:
        return WorkspaceSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid workspace structure in {path}: {e}") from e


def _duplicates(ids: list[int]) -> list[int]:
    return sorted(i for i, count in Counter(ids).items() if count > 1)


def validate_workspace(schema: WorkspaceSchema) -> None:  # noqa: PLR0912 - one check per reference kind
    """Check ids are unique and every reference points at something.

    Raises:
        ValidationError: Listing every problem found
    """
    errors: list[str] = []
    for section, ids in (
        ("project", [p.id for p in schema.projects]),
        ("team", [t.id for t in schema.teams]),
        ("sprint", [s.id for s in schema.sprints]),
        ("task", [t.id for t in schema.tasks]),
        ("dependency", [d.id for d in schema.dependencies if d.id is not None]),
    ):
        for duplicate in _duplicates(ids):
            errors.append(f"Duplicate {section} id {duplicate}")

    project_ids = {p.id for p in schema.projects}
    team_ids = {t.id for t in schema.teams}
    sprints = {s.id: s for s in schema.sprints}
    task_ids = {t.id for t in schema.tasks}

    for project in schema.projects:
        if project.team_id is not None and project.team_id not in team_ids:
            errors.append(f"Project {project.id} references unknown team {project.team_id}")
    for sprint in schema.sprints:
        if sprint.project_id not in project_ids:
            errors.append(f"Sprint {sprint.id} references unknown project {sprint.project_id}")
    for task in schema.tasks:
        if task.project_id not in project_ids:
            errors.append(f"Task {task.id} references unknown project {task.project_id}")
        if task.sprint_id is not None:
            sprint = sprints.get(task.sprint_id)
            if sprint is None:
                errors.append(f"Task {task.id} references unknown sprint {task.sprint_id}")
            elif sprint.project_id != task.project_id:
                errors.append(
                    f"Task {task.id} is in sprint {task.sprint_id} of another project"
                )
    for dep in schema.dependencies:
        for ref in (dep.task_id, dep.depends_on_id):
            if ref not in task_ids:
                errors.append(f"Dependency {dep.task_id} -> {dep.depends_on_id}: unknown task {ref}")
        if dep.task_id == dep.depends_on_id:
            errors.append(f"Task {dep.task_id} cannot depend on itself")

    if errors:
        raise ValidationError("Invalid workspace", errors)


def build_store(schema: WorkspaceSchema, config: EngineConfig | None = None) -> InMemoryStore:
    """Populate an InMemoryStore from a validated workspace."""
    config = config or EngineConfig()
    store = InMemoryStore()

    for project in schema.projects:
        store.add_project(Project(**project.model_dump()))
    for team in schema.teams:
        members = [
            TeamMember(
                team_id=team.id,
                user_id=member.user_id,
                daily_work_hours=(
                    member.daily_work_hours
                    if member.daily_work_hours is not None
                    else config.default_daily_work_hours
                ),
                work_days=list(
                    member.work_days if member.work_days is not None else config.default_work_days
                ),
                is_active=member.is_active,
            )
            for member in team.members
        ]
        store.add_team(Team(id=team.id, name=team.name, members=members))
    for sprint in schema.sprints:
        store.add_sprint(Sprint(**sprint.model_dump()))
    for task in schema.tasks:
        store.add_task(Task(**task.model_dump()))
    # Edges with explicit ids go first so generated ids never collide with them
    for dep in sorted(schema.dependencies, key=lambda d: d.id is None):
        store.add_dependency(
            TaskDependency(
                id=dep.id or 0,
                task_id=dep.task_id,
                depends_on_id=dep.depends_on_id,
                type=dep.type,
                lag_days=dep.lag_days,
            )
        )
    return store


def load_workspace(path: Path | str, config: EngineConfig | None = None) -> InMemoryStore:
    """Load a workspace file into a fresh InMemoryStore.

    This is the main entry point for reading workspaces: it parses the
    YAML, validates the schema and cross references, and builds the store.

    Args:
        path: Path to the workspace YAML file
        config: Engine settings supplying member capacity defaults

    Returns:
        Store holding every entity of the workspace

    Raises:
        ParseError: If the file cannot be read or parsed
        ValidationError: If ids collide or references dangle
    """
    schema = parse_workspace(path)
    validate_workspace(schema)
    return build_store(schema, config)
