"""Bulk task import from CSV.

Rows are parsed into ImportRow models, then validated against the target
project as a whole. Nothing is created unless every row is valid; the
resulting ValidationError lists each bad row with its CSV line number
(the header is line 1).
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .models import TaskStatus

if TYPE_CHECKING:
    from .models import Project
    from .scheduler.protocols import CapacityResolver, SprintStore

IMPORT_COLUMNS = (
    "title",
    "assignee_id",
    "estimated_hours",
    "actual_hours",
    "sprint_id",
    "status",
    "order",
    "is_backlog",
)
REQUIRED_COLUMNS = ("title", "assignee_id")


def line_number(index: int) -> int:
    """CSV line of the row at ``index`` (0-based, header excluded)."""
    return index + 2


class ImportRow(BaseModel):
    """One task to create."""

    title: str = Field(min_length=1)
    assignee_id: int
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float = Field(default=0.0, ge=0)
    sprint_id: int | None = None
    status: TaskStatus = TaskStatus.TODO
    # Position among this import's rows of the same assignee
    order: int | None = Field(default=None, ge=0)
    # None means "use the configured default"
    is_backlog: bool | None = None


def _format_pydantic_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"])
        parts.append(f"{field}: {item['msg']}" if field else item["msg"])
    return "; ".join(parts)


def parse_rows(records: list[dict[str, Any]]) -> list[ImportRow]:
    """Turn raw records into ImportRow models.

    Empty strings count as missing values.

    Raises:
        ValidationError: Listing every record that failed to parse
    """
    rows: list[ImportRow] = []
    errors: list[str] = []
    for index, record in enumerate(records):
        cleaned = {
            key.strip(): value.strip() if isinstance(value, str) else value
            for key, value in record.items()
            if key is not None
        }
        cleaned = {key: value for key, value in cleaned.items() if value not in ("", None)}
        try:
            rows.append(ImportRow.model_validate(cleaned))
        except PydanticValidationError as e:
            errors.append(f"Line {line_number(index)}: {_format_pydantic_errors(e)}")
    if errors:
        raise ValidationError("Import rejected", errors)
    return rows


def read_import_csv(path: Path | str) -> list[ImportRow]:
    """Read import rows from a CSV file with a header line.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If required columns are missing or rows are invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Import file not found: {path}")

    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        header = [name.strip() for name in reader.fieldnames or []]
        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise ValidationError(f"Import file {path} is missing columns: {', '.join(missing)}")
        unknown = [column for column in header if column not in IMPORT_COLUMNS]
        if unknown:
            raise ValidationError(f"Import file {path} has unknown columns: {', '.join(unknown)}")
        records = list(reader)

    return parse_rows(records)


def validate_rows(
    rows: list[ImportRow],
    project: Project,
    capacities: CapacityResolver,
    sprints: SprintStore | None = None,
) -> None:
    """Check every row against the project before anything is created.

    Raises:
        ValidationError: Listing every problem with its line number
    """
    errors: list[str] = []
    if not rows:
        raise ValidationError("Import rejected: no rows to import")

    for index, row in enumerate(rows):
        line = line_number(index)
        if project.team_id is None:
            errors.append(f"Line {line}: project {project.id} has no team assigned")
        elif capacities.get_work_capacity(project.team_id, row.assignee_id) is None:
            errors.append(
                f"Line {line}: user {row.assignee_id} is not an active member of team "
                f"{project.team_id}"
            )
        if row.sprint_id is not None:
            sprint = sprints.get_sprint(row.sprint_id) if sprints is not None else None
            if sprint is None:
                errors.append(f"Line {line}: sprint {row.sprint_id} not found")
            elif sprint.project_id != project.id:
                errors.append(
                    f"Line {line}: sprint {row.sprint_id} does not belong to project {project.id}"
                )

    if errors:
        raise ValidationError("Import rejected", errors)
