"""Pydantic schemas for workspace YAML validation."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .models import DependencyType, TaskStatus


class ProjectSchema(BaseModel):
    id: int
    name: str = ""
    team_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    actual_expected_end_date: date | None = None


class MemberSchema(BaseModel):
    """Team membership; capacity fields fall back to the engine defaults."""

    user_id: int
    daily_work_hours: float | None = Field(default=None, gt=0)
    work_days: list[int] | None = None
    is_active: bool = True

    @field_validator("work_days")
    @classmethod
    def check_weekdays(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        invalid = [d for d in v if d not in range(7)]
        if invalid:
            raise ValueError(f"work days must be 0 (Sunday) .. 6 (Saturday), got {invalid}")
        return v


class TeamSchema(BaseModel):
    id: int
    name: str = ""
    members: list[MemberSchema] = Field(default_factory=list)


class SprintSchema(BaseModel):
    id: int
    project_id: int
    name: str = ""
    start_date: date | None = None
    end_date: date | None = None


class TaskSchema(BaseModel):
    """A task as written in the workspace, computed dates included."""

    id: int
    project_id: int
    assignee_id: int
    title: str = ""
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float = Field(default=0.0, ge=0)
    sprint_id: int | None = None
    status: TaskStatus = TaskStatus.TODO
    order: int | None = Field(default=None, ge=0)
    is_backlog: bool = False
    start_date: date | None = None
    end_date: date | None = None
    expected_start_date: date | None = None
    expected_end_date: date | None = None
    deleted: bool = False

    @field_validator("actual_hours", mode="before")
    @classmethod
    def none_is_zero(cls, v: Any) -> Any:
        """A blank actual_hours means nothing logged yet."""
        return 0.0 if v is None else v


class DependencySchema(BaseModel):
    id: int | None = None  # Assigned on load when omitted
    task_id: int
    depends_on_id: int
    type: DependencyType = DependencyType.FINISH_TO_START
    lag_days: int = Field(default=0, ge=0)


class WorkspaceSchema(BaseModel):
    """Schema for the entire workspace YAML document."""

    projects: list[ProjectSchema] = Field(default_factory=list)
    teams: list[TeamSchema] = Field(default_factory=list)
    sprints: list[SprintSchema] = Field(default_factory=list)
    tasks: list[TaskSchema] = Field(default_factory=list)
    dependencies: list[DependencySchema] = Field(default_factory=list)

    @field_validator("projects", "teams", "sprints", "tasks", "dependencies", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        """An empty section (``tasks:`` with nothing under it) is an empty list."""
        return [] if v is None else v
