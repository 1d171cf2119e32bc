"""Dictionary-backed store implementing every engine protocol.

Entities are copied on the way in and on the way out, so callers only see
their edits once they save them, the same as with a database.
"""

from __future__ import annotations

import copy
import threading
from typing import TypeVar

from flowplan.models import (
    SCHEDULE_FIELDS,
    HoursLogEntry,
    Project,
    Sprint,
    Task,
    TaskDependency,
    Team,
)
from flowplan.scheduler.capacity import WorkCapacity

T = TypeVar("T")


def _copy(entity: T) -> T:
    return copy.copy(entity)


def _order_key(task: Task) -> tuple[bool, int, int]:
    return (task.order is None, task.order or 0, task.id)


class InMemoryStore:
    """Projects, teams, sprints, tasks, dependencies and hour logs in memory."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.projects: dict[int, Project] = {}
        self.teams: dict[int, Team] = {}
        self.sprints: dict[int, Sprint] = {}
        self.tasks: dict[int, Task] = {}
        self.dependencies: dict[int, TaskDependency] = {}
        self.hours_entries: list[HoursLogEntry] = []

    # Projects, teams and sprints

    def add_project(self, project: Project) -> Project:
        with self._lock:
            self.projects[project.id] = _copy(project)
        return project

    def get_project(self, project_id: int) -> Project | None:
        with self._lock:
            project = self.projects.get(project_id)
            return _copy(project) if project is not None else None

    def save_project(self, project: Project) -> None:
        with self._lock:
            self.projects[project.id] = _copy(project)

    def list_projects(self) -> list[Project]:
        with self._lock:
            return [_copy(p) for _, p in sorted(self.projects.items())]

    def add_team(self, team: Team) -> Team:
        with self._lock:
            self.teams[team.id] = copy.deepcopy(team)
        return team

    def get_team(self, team_id: int) -> Team | None:
        with self._lock:
            team = self.teams.get(team_id)
            return copy.deepcopy(team) if team is not None else None

    def get_work_capacity(self, team_id: int, user_id: int) -> WorkCapacity | None:
        with self._lock:
            team = self.teams.get(team_id)
            member = team.find_member(user_id) if team is not None else None
            return WorkCapacity.from_member(member) if member is not None else None

    def add_sprint(self, sprint: Sprint) -> Sprint:
        with self._lock:
            self.sprints[sprint.id] = _copy(sprint)
        return sprint

    def get_sprint(self, sprint_id: int) -> Sprint | None:
        with self._lock:
            sprint = self.sprints.get(sprint_id)
            return _copy(sprint) if sprint is not None else None

    def list_sprints(self, project_id: int | None = None) -> list[Sprint]:
        with self._lock:
            return [
                _copy(s)
                for _, s in sorted(self.sprints.items())
                if project_id is None or s.project_id == project_id
            ]

    # Tasks

    def get_task(self, task_id: int) -> Task | None:
        with self._lock:
            task = self.tasks.get(task_id)
            return _copy(task) if task is not None else None

    def list_tasks(
        self,
        project_id: int,
        assignee_id: int | None = None,
        *,
        is_backlog: bool | None = False,
        sprint_id: int | None = None,
    ) -> list[Task]:
        with self._lock:
            selected = [
                _copy(task)
                for task in self.tasks.values()
                if task.project_id == project_id
                and not task.deleted
                and (assignee_id is None or task.assignee_id == assignee_id)
                and (is_backlog is None or task.is_backlog == is_backlog)
                and (sprint_id is None or task.sprint_id == sprint_id)
            ]
        return sorted(selected, key=_order_key)

    def all_tasks(self, *, include_deleted: bool = False) -> list[Task]:
        with self._lock:
            return [
                _copy(t)
                for _, t in sorted(self.tasks.items())
                if include_deleted or not t.deleted
            ]

    def add_task(self, task: Task) -> Task:
        with self._lock:
            if task.id <= 0:
                task.id = max(self.tasks, default=0) + 1
            self.tasks[task.id] = _copy(task)
        return task

    def save_tasks(self, tasks: list[Task]) -> None:
        with self._lock:
            for task in tasks:
                self.tasks[task.id] = _copy(task)

    def save_schedule(self, tasks: list[Task]) -> None:
        with self._lock:
            for task in tasks:
                stored = self.tasks.get(task.id)
                if stored is None:
                    continue
                for name in SCHEDULE_FIELDS:
                    setattr(stored, name, getattr(task, name))

    # Dependencies

    def get_dependency(self, dependency_id: int) -> TaskDependency | None:
        with self._lock:
            dependency = self.dependencies.get(dependency_id)
            return _copy(dependency) if dependency is not None else None

    def list_dependencies(self, *, include_deleted: bool = False) -> list[TaskDependency]:
        with self._lock:
            return [
                _copy(d)
                for _, d in sorted(self.dependencies.items())
                if include_deleted or not d.deleted
            ]

    def dependents_of(self, task_id: int) -> list[TaskDependency]:
        return [d for d in self.list_dependencies() if d.depends_on_id == task_id]

    def predecessors_of(self, task_id: int) -> list[TaskDependency]:
        return [d for d in self.list_dependencies() if d.task_id == task_id]

    def add_dependency(self, dependency: TaskDependency) -> TaskDependency:
        with self._lock:
            if dependency.id <= 0:
                dependency.id = max(self.dependencies, default=0) + 1
            self.dependencies[dependency.id] = _copy(dependency)
        return dependency

    def remove_dependency(self, dependency_id: int) -> None:
        with self._lock:
            dependency = self.dependencies.get(dependency_id)
            if dependency is not None:
                dependency.deleted = True

    # Hours history

    def add_hours_log(self, entry: HoursLogEntry) -> None:
        with self._lock:
            self.hours_entries.append(_copy(entry))

    def hours_log(self, task_id: int) -> list[HoursLogEntry]:
        with self._lock:
            return [_copy(e) for e in self.hours_entries if e.task_id == task_id]
