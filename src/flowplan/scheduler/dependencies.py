"""Finish-to-start dependency propagation."""

from __future__ import annotations

import copy
from datetime import date
from typing import TYPE_CHECKING

from flowplan.exceptions import DependencyCycleDetected, ProjectNotFound
from flowplan.logger import get_logger
from flowplan.models import DependencyType

from .calendar import calculate_end_date, dependent_start_date
from .recalculator import resolve_capacity

if TYPE_CHECKING:
    from flowplan.models import Task

    from .capacity import WorkCapacity
    from .protocols import CapacityResolver, DependencyStore, ProjectStore, TaskStore

logger = get_logger()

DEFAULT_MAX_DEPTH = 256


def find_cycle(dependencies: DependencyStore, task_id: int, depends_on_id: int) -> list[int] | None:
    """Return the cycle that adding ``task_id -> depends_on_id`` would close.

    The new edge closes a cycle when ``task_id`` is already reachable from
    ``depends_on_id`` by following predecessor edges backwards, i.e. when
    ``depends_on_id`` (transitively) depends on ``task_id``.
    """
    stack: list[tuple[int, list[int]]] = [(depends_on_id, [task_id, depends_on_id])]
    seen: set[int] = set()
    while stack:
        current, path = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        for edge in dependencies.predecessors_of(current):
            if edge.depends_on_id == task_id:
                return path + [task_id]
            stack.append((edge.depends_on_id, path + [edge.depends_on_id]))
    return None


class DependencyPropagator:
    """Pushes a predecessor's end date down its finish-to-start dependents.

    Every dependent starts on the working day after its latest predecessor's
    end plus lag, and its end dates are recomputed from that start. The walk
    recurses into dependents of dependents. Updates are collected first and
    written in one batch once the walk completed without error.
    """

    def __init__(  # noqa: PLR0913 - one store per collaborator
        self,
        tasks: TaskStore,
        dependencies: DependencyStore,
        projects: ProjectStore,
        capacities: CapacityResolver,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.tasks = tasks
        self.dependencies = dependencies
        self.projects = projects
        self.capacities = capacities
        self.max_depth = max_depth
        self._capacity_cache: dict[tuple[int, int], WorkCapacity] = {}

    def propagate(self, task: Task) -> list[Task]:
        """Recompute every task downstream of ``task``.

        Args:
            task: Predecessor whose end date or completion state changed

        Returns:
            Updated dependents in the order they were first reached

        Raises:
            DependencyCycleDetected: If the walk meets a task already on the
                current path, or goes deeper than ``max_depth``
        """
        self._capacity_cache.clear()
        planned: dict[int, Task] = {task.id: task}
        reached: list[int] = []
        self._visit(task, [task.id], planned, reached)

        updated = [planned[task_id] for task_id in reached]
        if updated:
            self.tasks.save_schedule(updated)
        return updated

    def _visit(
        self,
        predecessor: Task,
        path: list[int],
        planned: dict[int, Task],
        reached: list[int],
    ) -> None:
        for edge in self.dependencies.dependents_of(predecessor.id):
            if edge.type != DependencyType.FINISH_TO_START:
                continue

            if edge.task_id in path:
                cycle = path[path.index(edge.task_id) :] + [edge.task_id]
                raise DependencyCycleDetected(cycle)
            if len(path) >= self.max_depth:
                raise DependencyCycleDetected(
                    path + [edge.task_id],
                    f"Dependency chain deeper than {self.max_depth} starting at task {path[0]}",
                )

            dependent = self._working_copy(edge.task_id, planned)
            if dependent is None:
                continue

            start = self._latest_start(dependent, planned)
            if start is None:
                continue

            capacity = self._capacity(dependent)
            previous = (dependent.start_date, dependent.end_date)
            dependent.start_date = start
            dependent.expected_start_date = start
            dependent.expected_end_date = calculate_end_date(
                start, float(dependent.estimated_hours or 0.0), capacity
            )
            dependent.end_date = calculate_end_date(start, dependent.hours_to_occupy(), capacity)
            if previous != (dependent.start_date, dependent.end_date):
                logger.changes(
                    f"Dependent task {dependent.id} (after {predecessor.id}, lag {edge.lag_days}d): "
                    f"{previous[0]}..{previous[1]} -> {dependent.start_date}..{dependent.end_date}"
                )

            planned[dependent.id] = dependent
            if dependent.id not in reached:
                reached.append(dependent.id)
            self._visit(dependent, path + [dependent.id], planned, reached)

    def _working_copy(self, task_id: int, planned: dict[int, Task]) -> Task | None:
        if task_id in planned:
            return planned[task_id]
        stored = self.tasks.get_task(task_id)
        if stored is None or not stored.is_active:
            return None
        return copy.copy(stored)

    def _latest_start(self, dependent: Task, planned: dict[int, Task]) -> date | None:
        """Latest start imposed by the dependent's finish-to-start predecessors."""
        capacity = self._capacity(dependent)
        starts: list[date] = []
        for edge in self.dependencies.predecessors_of(dependent.id):
            if edge.type != DependencyType.FINISH_TO_START:
                continue
            predecessor = planned.get(edge.depends_on_id) or self.tasks.get_task(edge.depends_on_id)
            if predecessor is None or predecessor.deleted or predecessor.end_date is None:
                continue
            starts.append(dependent_start_date(predecessor.end_date, capacity, edge.lag_days))
        return max(starts) if starts else None

    def _capacity(self, task: Task) -> WorkCapacity:
        key = (task.project_id, task.assignee_id)
        if key not in self._capacity_cache:
            project = self.projects.get_project(task.project_id)
            if project is None:
                raise ProjectNotFound(task.project_id)
            self._capacity_cache[key] = resolve_capacity(project, task.assignee_id, self.capacities)
        return self._capacity_cache[key]
