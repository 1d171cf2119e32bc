"""Collaborator interfaces the scheduling engine depends on.

Any storage (in-memory, relational, test fakes) can drive the engine by
implementing these protocols.
"""

from typing import Protocol

from flowplan.models import HoursLogEntry, Project, Sprint, Task, TaskDependency

from .capacity import WorkCapacity


class TaskStore(Protocol):
    """Read/write access to tasks."""

    def get_task(self, task_id: int) -> Task | None:
        """Get a task by id, including soft-deleted ones."""
        ...

    def list_tasks(
        self,
        project_id: int,
        assignee_id: int | None = None,
        *,
        is_backlog: bool | None = False,
        sprint_id: int | None = None,
    ) -> list[Task]:
        """List active (not deleted) tasks of a project.

        Args:
            project_id: Project to list
            assignee_id: Restrict to one assignee (None = all assignees)
            is_backlog: Restrict to backlog (True) or planned (False) tasks;
                None returns both
            sprint_id: Restrict to one sprint (None = any sprint)

        Returns:
            Tasks sorted by (order, id), tasks without order last
        """
        ...

    def add_task(self, task: Task) -> Task:
        """Store a new task, assigning an id when it has none (id <= 0)."""
        ...

    def save_tasks(self, tasks: list[Task]) -> None:
        """Persist updated tasks in one batch."""
        ...

    def save_schedule(self, tasks: list[Task]) -> None:
        """Copy only the computed date fields onto the stored rows.

        Other fields of the stored rows are left as they are, so a
        recalculation never reverts a change made after it read its input.
        """
        ...


class CapacityResolver(Protocol):
    """Team membership lookup."""

    def get_work_capacity(self, team_id: int, user_id: int) -> WorkCapacity | None:
        """Capacity of an active team member, or None if not a member."""
        ...


class DependencyStore(Protocol):
    """Access to task dependency edges."""

    def get_dependency(self, dependency_id: int) -> TaskDependency | None: ...

    def dependents_of(self, task_id: int) -> list[TaskDependency]:
        """Active edges where ``task_id`` is the predecessor."""
        ...

    def predecessors_of(self, task_id: int) -> list[TaskDependency]:
        """Active edges where ``task_id`` is the dependent."""
        ...

    def add_dependency(self, dependency: TaskDependency) -> TaskDependency: ...

    def remove_dependency(self, dependency_id: int) -> None:
        """Soft delete an edge."""
        ...


class ProjectStore(Protocol):
    """Access to projects."""

    def get_project(self, project_id: int) -> Project | None: ...

    def save_project(self, project: Project) -> None: ...


class SprintStore(Protocol):
    def get_sprint(self, sprint_id: int) -> Sprint | None: ...


class HoursLogStore(Protocol):
    def add_hours_log(self, entry: HoursLogEntry) -> None: ...

    def hours_log(self, task_id: int) -> list[HoursLogEntry]: ...
