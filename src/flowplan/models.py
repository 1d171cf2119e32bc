"""Data models for Flowplan."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

# Weekday numbering used for work days: 0 = Sunday .. 6 = Saturday
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
DEFAULT_WORK_DAYS = (MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY)
DEFAULT_DAILY_WORK_HOURS = 8.0
# Fields written by recalculation and dependency propagation
SCHEDULE_FIELDS = ("start_date", "end_date", "expected_start_date", "expected_end_date")


class TaskStatus(str, Enum):
    """Workflow states of a task, in workflow order."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"  # Terminal


class DependencyType(str, Enum):
    """Dependency types. Only finish-to-start moves dates."""

    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"


@dataclass
class Task:
    """A unit of planned work assigned to one person in one project."""

    id: int
    project_id: int
    assignee_id: int
    title: str = ""
    estimated_hours: float | None = None
    actual_hours: float = 0.0
    sprint_id: int | None = None
    status: TaskStatus = TaskStatus.TODO
    order: int | None = None
    is_backlog: bool = False
    start_date: date | None = None
    end_date: date | None = None
    expected_start_date: date | None = None  # Baseline, estimated hours only
    expected_end_date: date | None = None
    deleted: bool = False

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        """Active tasks are the ones placed on the calendar."""
        return not self.deleted and not self.is_backlog

    def hours_to_occupy(self) -> float:
        """Hours this task claims on the calendar.

        Completed tasks claim what was actually logged. Open tasks claim the
        larger of estimate and logged hours, so under-reported progress never
        shortens the plan.
        """
        estimated = float(self.estimated_hours or 0.0)
        actual = float(self.actual_hours or 0.0)
        if self.is_completed:
            return actual
        return max(estimated, actual)

    def clear_schedule(self) -> None:
        for name in SCHEDULE_FIELDS:
            setattr(self, name, None)


@dataclass
class TaskDependency:
    """Directed edge: ``task_id`` depends on ``depends_on_id``.

    ``lag_days`` counts working days of the dependent's assignee that must
    pass after the predecessor ends.
    """

    id: int
    task_id: int
    depends_on_id: int
    type: DependencyType = DependencyType.FINISH_TO_START
    lag_days: int = 0
    deleted: bool = False


@dataclass
class TeamMember:
    """Membership of a user in a team, with their personal work capacity."""

    team_id: int
    user_id: int
    daily_work_hours: float = DEFAULT_DAILY_WORK_HOURS
    work_days: list[int] = field(default_factory=lambda: list(DEFAULT_WORK_DAYS))
    is_active: bool = True


@dataclass
class Team:
    id: int
    name: str = ""
    members: list[TeamMember] = field(default_factory=list)

    def find_member(self, user_id: int) -> TeamMember | None:
        for member in self.members:
            if member.user_id == user_id and member.is_active:
                return member
        return None


@dataclass
class Sprint:
    """Grouping label for tasks; affects ordering only."""

    id: int
    project_id: int
    name: str = ""
    start_date: date | None = None
    end_date: date | None = None


@dataclass
class Project:
    id: int
    name: str = ""
    team_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None  # Planned end, authored by users
    actual_expected_end_date: date | None = None  # Aggregate, recomputed


@dataclass
class HoursLogEntry:
    """History record written whenever logged hours change."""

    task_id: int
    user_id: int
    previous_hours: float
    new_hours: float
    hours_changed: float
    comment: str | None = None
    reason: str | None = None
    logged_at: datetime | None = None
