"""Task order maintenance: insertion, sprint transfer, reorder and compaction.

These operations only rewrite ``Task.order``. Callers are expected to
recalculate the touched assignees afterwards (SchedulingEngine does).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flowplan.exceptions import SprintNotFound, TaskNotFound, ValidationError
from flowplan.logger import get_logger

if TYPE_CHECKING:
    from flowplan.models import Task

    from .protocols import SprintStore, TaskStore

logger = get_logger()


@dataclass
class AssigneeReorder:
    """What a maintenance pass did to one assignee's orders."""

    assignee_id: int
    tasks_reordered: int
    duplicate_orders: list[int] = field(default_factory=list)
    completed_count: int = 0
    incomplete_count: int = 0


@dataclass
class ReorderReport:
    """Result of a project-wide reorder pass."""

    reordered_count: int = 0
    assignees: list[AssigneeReorder] = field(default_factory=list)

    @property
    def touched_assignees(self) -> list[int]:
        return [entry.assignee_id for entry in self.assignees]


def _has_duplicates_or_gaps(tasks: list[Task]) -> bool:
    orders = [task.order for task in tasks]
    return len(set(orders)) != len(orders) or any(o != i for i, o in enumerate(orders))


def _duplicate_orders(tasks: list[Task]) -> list[int]:
    seen: set[int] = set()
    duplicates: set[int] = set()
    for task in tasks:
        order = task.order if task.order is not None else 0
        if order in seen:
            duplicates.add(order)
        seen.add(order)
    return sorted(duplicates)


def _renumber(tasks: list[Task]) -> list[Task]:
    """Assign 0..n-1 in list order and return the tasks whose order changed."""
    changed: list[Task] = []
    for index, task in enumerate(tasks):
        if task.order != index:
            task.order = index
            changed.append(task)
    return changed


def _by_order_then_id(task: Task) -> tuple[int, int]:
    return (task.order if task.order is not None else 0, task.id)


class TaskOrdering:
    """Order-mutating operations on one task store."""

    def __init__(self, tasks: TaskStore, sprints: SprintStore | None = None) -> None:
        self.tasks = tasks
        self.sprints = sprints

    def next_order(self, project_id: int, assignee_id: int) -> int:
        """Order for a task appended after the assignee's last one."""
        orders = [
            task.order
            for task in self.tasks.list_tasks(project_id, assignee_id, is_backlog=None)
            if task.order is not None
        ]
        return max(orders) + 1 if orders else 0

    def insert_at_end(self, task: Task) -> Task:
        """Give a new planned task the next free order unless it has one.

        An explicit order already held by another planned task of the same
        assignee is an insertion point: that task and every later one shift
        up by one.

        Raises:
            ValidationError: If the explicit order is negative
        """
        if task.is_backlog:
            task.order = None
            return task
        if task.order is None:
            task.order = self.next_order(task.project_id, task.assignee_id)
            return task
        if task.order < 0:
            raise ValidationError(f"order must be non-negative, got {task.order}")

        others = [
            t
            for t in self.tasks.list_tasks(task.project_id, task.assignee_id, is_backlog=False)
            if t.id != task.id and t.order is not None
        ]
        if any(t.order == task.order for t in others):
            shifted = [t for t in others if t.order is not None and t.order >= task.order]
            for other in shifted:
                other.order = (other.order or 0) + 1
            self.tasks.save_tasks(shifted)
            logger.changes(
                f"Order {task.order} of assignee {task.assignee_id} taken: "
                f"shifted {len(shifted)} task(s) up"
            )
        return task

    def move_to_sprint(self, task_id: int, sprint_id: int | None) -> Task:
        """Move a task into another sprint, placing it after that sprint's last task.

        Every other planned task of the same assignee at or after the
        insertion point shifts up by one. Moving to no sprint only clears
        the sprint.

        Raises:
            TaskNotFound: If the task does not exist
            SprintNotFound: If the target sprint does not exist
            ValidationError: If the sprint belongs to another project
        """
        task = self.tasks.get_task(task_id)
        if task is None or task.deleted:
            raise TaskNotFound(task_id)
        if task.sprint_id == sprint_id:
            return task

        if sprint_id is not None and self.sprints is not None:
            sprint = self.sprints.get_sprint(sprint_id)
            if sprint is None:
                raise SprintNotFound(sprint_id)
            if sprint.project_id != task.project_id:
                raise ValidationError(
                    f"Sprint {sprint_id} does not belong to project {task.project_id}"
                )

        changed: list[Task] = [task]
        if sprint_id is not None and not task.is_backlog:
            in_target = [
                t
                for t in self.tasks.list_tasks(
                    task.project_id, task.assignee_id, is_backlog=False, sprint_id=sprint_id
                )
                if t.id != task.id and t.order is not None
            ]
            insert_at = max(t.order or 0 for t in in_target) + 1 if in_target else 0

            for other in self.tasks.list_tasks(task.project_id, task.assignee_id, is_backlog=False):
                if other.id != task.id and other.order is not None and other.order >= insert_at:
                    other.order += 1
                    changed.append(other)

            task.order = insert_at
            logger.changes(
                f"Task {task.id} moved from sprint {task.sprint_id} to {sprint_id} at order {insert_at}"
            )

        task.sprint_id = sprint_id
        self.tasks.save_tasks(changed)
        return task

    def bulk_reorder(self, project_id: int, orders: list[tuple[int, int]]) -> list[Task]:
        """Apply explicit ``(task_id, new_order)`` pairs.

        Every pair is checked before anything is written. Afterwards each
        touched assignee is renumbered densely; when a moved task lands on an
        order another task still holds, the moved task goes first.

        Returns:
            Tasks whose order was written

        Raises:
            ValidationError: Listing every id that is unknown, deleted,
                outside the project, in the backlog or repeated, and every
                negative order
        """
        project_tasks = {
            task.id: task for task in self.tasks.list_tasks(project_id, is_backlog=None)
        }
        errors: list[str] = []
        seen: set[int] = set()
        for task_id, new_order in orders:
            task = project_tasks.get(task_id)
            if task is None:
                errors.append(f"Task {task_id} does not belong to project {project_id}")
            elif task.is_backlog:
                errors.append(f"Task {task_id} is in the backlog and has no order")
            elif task_id in seen:
                errors.append(f"Task {task_id} appears more than once")
            elif new_order < 0:
                errors.append(f"Task {task_id}: order must be non-negative, got {new_order}")
            seen.add(task_id)
        if errors:
            raise ValidationError("Reorder rejected", errors)

        for task_id, new_order in orders:
            project_tasks[task_id].order = new_order

        moved = {task_id for task_id, _ in orders}
        assignees = {project_tasks[task_id].assignee_id for task_id in moved}
        changed: dict[int, Task] = {task_id: project_tasks[task_id] for task_id in moved}
        for assignee_id in sorted(assignees):
            tasks = sorted(
                (t for t in project_tasks.values() if t.assignee_id == assignee_id and t.is_active),
                key=lambda t: (t.order if t.order is not None else 0, t.id not in moved, t.id),
            )
            for task in _renumber(tasks):
                changed[task.id] = task

        self.tasks.save_tasks(list(changed.values()))
        return list(changed.values())

    def compact(self, project_id: int, assignee_id: int) -> list[Task]:
        """Renumber an assignee's planned tasks to a dense 0..n-1 run.

        Ties on order are broken by task id. Nothing is written when the
        orders are already dense.

        Returns:
            Tasks whose order changed
        """
        tasks = sorted(
            self.tasks.list_tasks(project_id, assignee_id, is_backlog=False),
            key=_by_order_then_id,
        )
        if not _has_duplicates_or_gaps(tasks):
            return []
        changed = _renumber(tasks)
        if changed:
            logger.changes(
                f"Compacted orders of assignee {assignee_id} in project {project_id}: "
                f"{len(changed)} task(s) renumbered"
            )
            self.tasks.save_tasks(changed)
        return changed

    def _by_assignee(self, project_id: int) -> dict[int, list[Task]]:
        grouped: dict[int, list[Task]] = {}
        for task in sorted(self.tasks.list_tasks(project_id, is_backlog=False), key=_by_order_then_id):
            grouped.setdefault(task.assignee_id, []).append(task)
        return dict(sorted(grouped.items()))

    def fix_duplicate_orders(self, project_id: int) -> ReorderReport:
        """Compact every assignee whose planned tasks share an order value."""
        report = ReorderReport()
        for assignee_id, tasks in self._by_assignee(project_id).items():
            duplicates = _duplicate_orders(tasks)
            if not duplicates:
                continue
            changed = _renumber(tasks)
            self.tasks.save_tasks(changed)
            report.reordered_count += len(changed)
            report.assignees.append(
                AssigneeReorder(
                    assignee_id=assignee_id,
                    tasks_reordered=len(changed),
                    duplicate_orders=duplicates,
                )
            )
        return report

    def reorder_after_sprint_completion(self, sprint_id: int) -> ReorderReport:
        """Completed-first pass over the project that owns ``sprint_id``.

        Raises:
            SprintNotFound: If the sprint does not exist
        """
        sprint = self.sprints.get_sprint(sprint_id) if self.sprints is not None else None
        if sprint is None:
            raise SprintNotFound(sprint_id)
        return self.completed_first(sprint.project_id)

    def completed_first(self, project_id: int) -> ReorderReport:
        """Move completed tasks ahead of open ones for every assignee.

        Relative order inside each group is preserved. Assignees that have
        only completed or only open tasks are left alone.
        """
        report = ReorderReport()
        for assignee_id, tasks in self._by_assignee(project_id).items():
            completed = [t for t in tasks if t.is_completed]
            incomplete = [t for t in tasks if not t.is_completed]
            if not completed or not incomplete:
                continue
            changed = _renumber(completed + incomplete)
            self.tasks.save_tasks(changed)
            report.reordered_count += len(changed)
            report.assignees.append(
                AssigneeReorder(
                    assignee_id=assignee_id,
                    tasks_reordered=len(changed),
                    completed_count=len(completed),
                    incomplete_count=len(incomplete),
                )
            )
        return report
