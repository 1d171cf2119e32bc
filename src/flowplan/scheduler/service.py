"""Trigger orchestration for the scheduling engine."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import ExitStack, contextmanager
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from flowplan.config import EngineConfig
from flowplan.exceptions import (
    DependencyCycleDetected,
    DependencyNotFound,
    FlowplanError,
    ProjectNotFound,
    SprintNotFound,
    TaskNotFound,
    ValidationError,
)
from flowplan.importer import ImportRow, validate_rows
from flowplan.logger import get_logger
from flowplan.models import (
    DependencyType,
    HoursLogEntry,
    Project,
    Task,
    TaskDependency,
    TaskStatus,
)

from .aggregate import ProjectEndDateAggregator
from .dependencies import DependencyPropagator, find_cycle
from .locks import KeyedLocks
from .ordering import ReorderReport, TaskOrdering
from .recalculator import AssigneeScheduleRecalculator, resolve_capacity

if TYPE_CHECKING:
    from .protocols import (
        CapacityResolver,
        DependencyStore,
        HoursLogStore,
        ProjectStore,
        SprintStore,
        TaskStore,
    )

logger = get_logger()

# Fields update_task() applies directly; the rest have dedicated triggers
UPDATABLE_FIELDS = ("title", "assignee_id", "status", "estimated_hours")
DEDICATED_TRIGGERS = {
    "actual_hours": "log_hours",
    "is_backlog": "set_backlog",
    "sprint_id": "move_task_to_sprint",
    "order": "reorder_tasks",
    "deleted": "delete_task",
}


def _parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(f"Invalid status '{value}'. Valid values: {valid}") from None


def _check_hours(name: str, value: float | None) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


class SchedulingEngine:
    """Entry point for every event that can move a task on the calendar.

    Each trigger applies its mutation, recalculates the affected assignees
    (serialized per assignee and project), pushes changed end dates down
    finish-to-start dependencies where the trigger calls for it, and
    finally refreshes the project's actual expected end date.
    """

    def __init__(  # noqa: PLR0913 - one store per collaborator
        self,
        tasks: TaskStore,
        projects: ProjectStore,
        capacities: CapacityResolver,
        dependencies: DependencyStore,
        sprints: SprintStore | None = None,
        hours_log: HoursLogStore | None = None,
        config: EngineConfig | None = None,
        today: date | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            tasks: Task storage
            projects: Project storage
            capacities: Team membership lookup
            dependencies: Dependency edge storage
            sprints: Sprint lookup, needed for sprint moves and completion
            hours_log: Where hour changes are recorded (None = not recorded)
            config: Engine settings (defaults when omitted)
            today: Calendar seed for projects without a start date
            locks: Lock registry, shareable between engines on the same data
        """
        self.tasks = tasks
        self.projects = projects
        self.capacities = capacities
        self.dependencies = dependencies
        self.sprints = sprints
        self.hours_log = hours_log
        self.config = config or EngineConfig()
        self.locks = locks or KeyedLocks()

        self.recalculator = AssigneeScheduleRecalculator(tasks, projects, capacities, today)
        self.propagator = DependencyPropagator(
            tasks,
            dependencies,
            projects,
            capacities,
            max_depth=self.config.max_dependency_depth,
        )
        self.aggregator = ProjectEndDateAggregator(tasks, projects)
        self.ordering = TaskOrdering(tasks, sprints)

    @classmethod
    def from_store(
        cls,
        store: Any,
        config: EngineConfig | None = None,
        today: date | None = None,
    ) -> SchedulingEngine:
        """Build an engine over one object implementing every store protocol."""
        return cls(
            tasks=store,
            projects=store,
            capacities=store,
            dependencies=store,
            sprints=store,
            hours_log=store,
            config=config,
            today=today,
        )

    # Lookups

    def _require_task(self, task_id: int) -> Task:
        task = self.tasks.get_task(task_id)
        if task is None or task.deleted:
            raise TaskNotFound(task_id)
        return task

    def _require_project(self, project_id: int) -> Project:
        project = self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    def _check_assignee(self, project_id: int, assignee_id: int) -> None:
        resolve_capacity(self._require_project(project_id), assignee_id, self.capacities)

    def _check_sprint(self, sprint_id: int | None, project_id: int) -> None:
        if sprint_id is None or self.sprints is None:
            return
        sprint = self.sprints.get_sprint(sprint_id)
        if sprint is None:
            raise SprintNotFound(sprint_id)
        if sprint.project_id != project_id:
            raise ValidationError(f"Sprint {sprint_id} does not belong to project {project_id}")

    # Building blocks

    @contextmanager
    def _holding(self, project_id: int, assignees: Iterable[int]) -> Iterator[None]:
        """Hold the lock of every (assignee, project) key for a whole trigger.

        Keys are taken in sorted order so two triggers sharing assignees
        cannot deadlock.
        """
        with ExitStack() as stack:
            for assignee_id in sorted(set(assignees)):
                stack.enter_context(self.locks.hold((assignee_id, project_id)))
            yield

    def _project_assignees(self, project_id: int) -> set[int]:
        return {t.assignee_id for t in self.tasks.list_tasks(project_id, is_backlog=None)}

    def _recalculate(self, project_id: int, assignee_id: int) -> list[Task]:
        with self.locks.hold((assignee_id, project_id)):
            return self.recalculator.recalculate(assignee_id, project_id)

    def _predecessors_of_assignee(self, project_id: int, assignee_id: int) -> list[int]:
        """Finish-to-start predecessors of an assignee's planned tasks."""
        found: list[int] = []
        for task in self.tasks.list_tasks(project_id, assignee_id):
            for edge in self.dependencies.predecessors_of(task.id):
                if edge.type == DependencyType.FINISH_TO_START and edge.depends_on_id not in found:
                    found.append(edge.depends_on_id)
        return found

    def _propagate_from(self, task_ids: Iterable[int]) -> list[Task]:
        updated: list[Task] = []
        for task_id in dict.fromkeys(task_ids):
            task = self.tasks.get_task(task_id)
            if task is None or task.deleted:
                continue
            updated.extend(self.propagator.propagate(task))
        return updated

    def _refresh(
        self,
        project_id: int,
        assignees: Iterable[int],
        propagate_from: Iterable[int] = (),
    ) -> list[Task]:
        """Recalculate assignees, propagate, then update the project aggregate.

        Repacking puts a dependent back at its packed position, so the
        predecessors of every recalculated assignee's tasks are propagated
        again along with ``propagate_from``.

        Returns:
            Recalculated tasks, per assignee in schedule order
        """
        recalculated: list[Task] = []
        sources = list(propagate_from)
        for assignee_id in sorted(set(assignees)):
            recalculated.extend(self._recalculate(project_id, assignee_id))
            sources.extend(self._predecessors_of_assignee(project_id, assignee_id))
        projects = {project_id}
        for dependent in self._propagate_from(sources):
            projects.add(dependent.project_id)
        for affected in sorted(projects):
            self.aggregator.update(affected)
        return recalculated

    # Task lifecycle

    def create_task(self, task: Task) -> Task:
        """Store a new task and place it on its assignee's calendar.

        Planned tasks without an order are appended after the assignee's
        last task. An explicit order that is already taken pushes that task
        and the later ones down by one. Backlog tasks get no order and no
        dates.

        Raises:
            ProjectNotFound: If the task's project does not exist
            SprintNotFound: If the task's sprint does not exist
            ValidationError: If hours or the order are negative or the sprint
                is foreign
            MissingTeamAssignment: If the project has no team
            MemberNotFound: If the assignee is not on the project's team
        """
        self._check_assignee(task.project_id, task.assignee_id)
        self._check_sprint(task.sprint_id, task.project_id)
        _check_hours("estimated_hours", task.estimated_hours)
        _check_hours("actual_hours", task.actual_hours)
        task.status = _parse_status(task.status)

        if task.is_backlog:
            task.clear_schedule()
        with self._holding(task.project_id, [task.assignee_id]):
            self.ordering.insert_at_end(task)
            task = self.tasks.add_task(task)
            logger.changes(
                f"Created task {task.id} for assignee {task.assignee_id} (order {task.order})"
            )
            if not task.is_backlog:
                self._refresh(task.project_id, [task.assignee_id])
            return self._require_task(task.id)

    def update_task(self, task_id: int, **changes: Any) -> Task:
        """Apply field changes and recalculate what they affect.

        Accepts ``title``, ``assignee_id``, ``status`` and
        ``estimated_hours``. An assignee change appends the task to the new
        assignee's list and recalculates both. A changed estimate or a
        completion flip also propagates to dependents.

        Raises:
            TaskNotFound: If the task does not exist
            ValidationError: If a field is unknown, has its own trigger, or
                has an invalid value
        """
        errors = []
        for name in changes:
            if name in DEDICATED_TRIGGERS:
                errors.append(f"{name}: use {DEDICATED_TRIGGERS[name]}()")
            elif name not in UPDATABLE_FIELDS:
                errors.append(f"{name}: unknown field")
        if errors:
            raise ValidationError(f"Cannot update task {task_id}", errors)

        task = self._require_task(task_id)
        if "status" in changes:
            changes["status"] = _parse_status(changes["status"])
        if "estimated_hours" in changes:
            _check_hours("estimated_hours", changes["estimated_hours"])
        if changes.get("assignee_id", task.assignee_id) != task.assignee_id:
            self._check_assignee(task.project_id, changes["assignee_id"])

        keys = [task.assignee_id, changes.get("assignee_id", task.assignee_id)]
        with self._holding(task.project_id, keys):
            task = self._require_task(task_id)
            old_assignee = task.assignee_id
            was_completed = task.is_completed
            old_estimate = task.estimated_hours
            for name, value in changes.items():
                setattr(task, name, value)

            reassigned = task.assignee_id != old_assignee
            if reassigned and not task.is_backlog:
                task.order = self.ordering.next_order(task.project_id, task.assignee_id)
            self.tasks.save_tasks([task])

            if task.is_backlog:
                return task

            assignees = [task.assignee_id]
            if reassigned:
                logger.changes(
                    f"Task {task.id} reassigned from {old_assignee} to {task.assignee_id}"
                )
                self.ordering.compact(task.project_id, old_assignee)
                assignees.append(old_assignee)
            moved_end = was_completed != task.is_completed or old_estimate != task.estimated_hours
            self._refresh(task.project_id, assignees, [task.id] if moved_end or reassigned else [])
            return self._require_task(task.id)

    def log_hours(
        self,
        task_id: int,
        actual_hours: float,
        user_id: int | None = None,
        comment: str | None = None,
        reason: str | None = None,
    ) -> HoursLogEntry:
        """Set a task's logged hours and record the change.

        Args:
            task_id: Task to update
            actual_hours: New total of logged hours (not a delta)
            user_id: Who logged them (defaults to the assignee)
            comment: Free text stored with the history entry
            reason: Free text stored with the history entry

        Returns:
            The history entry written

        Raises:
            TaskNotFound: If the task does not exist
            ValidationError: If hours are negative
        """
        _check_hours("actual_hours", actual_hours)
        task = self._require_task(task_id)
        with self._holding(task.project_id, [task.assignee_id]):
            task = self._require_task(task_id)
            previous = float(task.actual_hours or 0.0)
            entry = HoursLogEntry(
                task_id=task.id,
                user_id=user_id if user_id is not None else task.assignee_id,
                previous_hours=previous,
                new_hours=float(actual_hours),
                hours_changed=float(actual_hours) - previous,
                comment=comment,
                reason=reason,
                logged_at=datetime.now(timezone.utc),
            )
            task.actual_hours = float(actual_hours)
            self.tasks.save_tasks([task])
            if self.hours_log is not None:
                self.hours_log.add_hours_log(entry)
            logger.changes(f"Task {task.id} logged hours: {previous:g}h -> {actual_hours:g}h")

            if not task.is_backlog:
                self._refresh(task.project_id, [task.assignee_id], [task.id])
            return entry

    def set_backlog(self, task_id: int, is_backlog: bool) -> Task:
        """Move a task into or out of the backlog.

        Entering the backlog drops the task's order and dates; the remaining
        tasks of the assignee close the gap. Leaving it appends the task
        after the assignee's last planned task.

        Raises:
            TaskNotFound: If the task does not exist
        """
        task = self._require_task(task_id)
        with self._holding(task.project_id, [task.assignee_id]):
            task = self._require_task(task_id)
            if task.is_backlog == is_backlog:
                return task

            task.is_backlog = is_backlog
            if is_backlog:
                task.order = None
                task.clear_schedule()
            else:
                task.order = self.ordering.next_order(task.project_id, task.assignee_id)
            self.tasks.save_tasks([task])
            logger.changes(
                f"Task {task.id} "
                f"{'moved to backlog' if is_backlog else f'planned at order {task.order}'}"
            )

            if is_backlog:
                self.ordering.compact(task.project_id, task.assignee_id)
            self._refresh(task.project_id, [task.assignee_id])
            return self._require_task(task.id)

    def move_task_to_sprint(self, task_id: int, sprint_id: int | None) -> Task:
        """Move a task to another sprint (or out of any sprint).

        Raises:
            TaskNotFound: If the task does not exist
            SprintNotFound: If the sprint does not exist
            ValidationError: If the sprint belongs to another project
        """
        task = self._require_task(task_id)
        with self._holding(task.project_id, [task.assignee_id]):
            task = self.ordering.move_to_sprint(task_id, sprint_id)
            if not task.is_backlog:
                self._refresh(task.project_id, [task.assignee_id])
            return self._require_task(task.id)

    def reorder_tasks(
        self, project_id: int, orders: Mapping[int, int] | Iterable[tuple[int, int]]
    ) -> list[Task]:
        """Apply explicit orders and recalculate every touched assignee.

        Raises:
            ProjectNotFound: If the project does not exist
            ValidationError: If any pair is invalid (nothing is written)
        """
        self._require_project(project_id)
        pairs = list(orders.items()) if isinstance(orders, Mapping) else list(orders)
        keys = {
            task.assignee_id
            for task in (self.tasks.get_task(task_id) for task_id, _ in pairs)
            if task is not None and task.project_id == project_id
        }
        with self._holding(project_id, keys):
            changed = self.ordering.bulk_reorder(project_id, pairs)
            assignees = {task.assignee_id for task in changed}
            # Every task of a touched assignee may have moved, not just the reordered ones
            shifted = [
                t.id for t in self.tasks.list_tasks(project_id) if t.assignee_id in assignees
            ]
            self._refresh(project_id, assignees, propagate_from=shifted)
            return [self._require_task(task.id) for task in changed]

    def delete_task(self, task_id: int) -> None:
        """Soft delete one task.

        Raises:
            TaskNotFound: If the task does not exist or is already deleted
        """
        self.delete_tasks([task_id])

    def delete_tasks(self, task_ids: Iterable[int]) -> None:
        """Soft delete several tasks, checking all ids first.

        Raises:
            ValidationError: Listing every id that does not exist
            TaskNotFound: If a single id was given and it does not exist
        """
        ids = list(dict.fromkeys(task_ids))
        found: list[Task] = []
        missing: list[int] = []
        for task_id in ids:
            task = self.tasks.get_task(task_id)
            if task is None or task.deleted:
                missing.append(task_id)
            else:
                found.append(task)
        if missing:
            if len(ids) == 1:
                raise TaskNotFound(missing[0])
            raise ValidationError("Delete rejected", [f"Task {t} not found" for t in missing])

        touched: dict[int, set[int]] = {}
        for task in found:
            touched.setdefault(task.project_id, set()).add(task.assignee_id)
        with ExitStack() as stack:
            for project_id, assignees in sorted(touched.items()):
                stack.enter_context(self._holding(project_id, assignees))

            for task in found:
                task.deleted = True
            self.tasks.save_tasks(found)
            logger.changes(f"Deleted task(s): {', '.join(str(t.id) for t in found)}")

            planned: dict[int, set[int]] = {}
            for task in found:
                if not task.is_backlog:
                    planned.setdefault(task.project_id, set()).add(task.assignee_id)
            for project_id, assignees in sorted(planned.items()):
                for assignee_id in sorted(assignees):
                    self.ordering.compact(project_id, assignee_id)
                self._refresh(project_id, assignees)

    # Sprints and maintenance

    def complete_sprint(self, sprint_id: int) -> ReorderReport:
        """Put completed tasks ahead of open ones across the sprint's project.

        Raises:
            SprintNotFound: If the sprint does not exist
        """
        sprint = self.sprints.get_sprint(sprint_id) if self.sprints is not None else None
        if sprint is None:
            raise SprintNotFound(sprint_id)
        with self._holding(sprint.project_id, self._project_assignees(sprint.project_id)):
            report = self.ordering.reorder_after_sprint_completion(sprint_id)
            logger.changes(
                f"Sprint {sprint_id} completed: {report.reordered_count} task(s) reordered"
            )
            self._refresh(sprint.project_id, report.touched_assignees)
            return report

    def fix_duplicate_orders(self, project_id: int) -> ReorderReport:
        """Compact every assignee with duplicate orders, then recalculate them.

        Raises:
            ProjectNotFound: If the project does not exist
        """
        self._require_project(project_id)
        with self._holding(project_id, self._project_assignees(project_id)):
            report = self.ordering.fix_duplicate_orders(project_id)
            for entry in report.assignees:
                logger.changes(
                    f"Assignee {entry.assignee_id}: fixed duplicate orders {entry.duplicate_orders}"
                )
            self._refresh(project_id, report.touched_assignees)
            return report

    def recalculate_assignee(self, project_id: int, assignee_id: int) -> list[Task]:
        """Compact the assignee's orders, then recalculate their schedule.

        Dependents of the assignee's tasks are pushed again afterwards.

        Raises:
            ProjectNotFound: If the project does not exist
        """
        self._require_project(project_id)
        with self._holding(project_id, [assignee_id]):
            self.ordering.compact(project_id, assignee_id)
            return self._refresh(project_id, [assignee_id])

    def recalculate_task(self, task_id: int) -> Task:
        """Recalculate a task's assignee and push its end date downstream.

        Raises:
            TaskNotFound: If the task does not exist
        """
        task = self._require_task(task_id)
        with self._holding(task.project_id, [task.assignee_id]):
            task = self._require_task(task_id)
            if not task.is_backlog:
                self._refresh(task.project_id, [task.assignee_id], [task.id])
            return self._require_task(task.id)

    def recalculate_project(self, project_id: int) -> dict[int, list[Task]]:
        """Recalculate every assignee of a project.

        A failing assignee does not stop the others. Failures are logged as
        they happen and the first one is raised once all assignees ran.

        Returns:
            Updated tasks per assignee id

        Raises:
            ProjectNotFound: If the project does not exist
            FlowplanError: The first per-assignee failure
        """
        self._require_project(project_id)
        with self._holding(project_id, self._project_assignees(project_id)):
            tasks = self.tasks.list_tasks(project_id)
            results: dict[int, list[Task]] = {}
            failures: list[FlowplanError] = []
            for assignee_id in sorted({t.assignee_id for t in tasks}):
                try:
                    results[assignee_id] = self._recalculate(project_id, assignee_id)
                except FlowplanError as e:
                    logger.error(f"Assignee {assignee_id} in project {project_id}: {e}")
                    failures.append(e)

            # Dependencies are applied on top of the packed schedule
            predecessors = [t.id for t in tasks if self.dependencies.dependents_of(t.id)]
            try:
                self._propagate_from(predecessors)
            except FlowplanError as e:
                logger.error(f"Dependencies of project {project_id}: {e}")
                failures.append(e)

            self.aggregator.update(project_id)
        if failures:
            raise failures[0]
        return results

    # Dependencies

    def add_dependency(
        self,
        task_id: int,
        depends_on_id: int,
        type: DependencyType | str = DependencyType.FINISH_TO_START,  # noqa: A002
        lag_days: int = 0,
    ) -> TaskDependency:
        """Make ``task_id`` depend on ``depends_on_id`` and reschedule it.

        Raises:
            TaskNotFound: If either task does not exist
            ValidationError: For self-dependencies, duplicates, negative lag
                or an unknown type
            DependencyCycleDetected: If the edge would close a cycle
        """
        dependent = self._require_task(task_id)
        predecessor = self._require_task(depends_on_id)

        try:
            dependency_type = DependencyType(type)
        except ValueError:
            valid = ", ".join(t.value for t in DependencyType)
            raise ValidationError(
                f"Invalid dependency type '{type}'. Valid values: {valid}"
            ) from None
        if task_id == depends_on_id:
            raise ValidationError(f"Task {task_id} cannot depend on itself")
        if lag_days < 0:
            raise ValidationError(f"lag_days must be non-negative, got {lag_days}")

        keys = [dependent.assignee_id]
        if predecessor.project_id == dependent.project_id:
            keys.append(predecessor.assignee_id)
        with self._holding(dependent.project_id, keys):
            if any(
                e.depends_on_id == depends_on_id
                for e in self.dependencies.predecessors_of(task_id)
            ):
                raise ValidationError(f"Task {task_id} already depends on task {depends_on_id}")
            cycle = find_cycle(self.dependencies, task_id, depends_on_id)
            if cycle is not None:
                raise DependencyCycleDetected(cycle)

            dependency = self.dependencies.add_dependency(
                TaskDependency(
                    id=0,
                    task_id=task_id,
                    depends_on_id=depends_on_id,
                    type=dependency_type,
                    lag_days=lag_days,
                )
            )
            logger.changes(
                f"Task {task_id} now depends on {depends_on_id} "
                f"({dependency_type.value}, lag {lag_days}d)"
            )

            if dependency_type == DependencyType.FINISH_TO_START:
                projects = {dependent.project_id, predecessor.project_id}
                for updated in self._propagate_from([depends_on_id]):
                    projects.add(updated.project_id)
                for project_id in sorted(projects):
                    self.aggregator.update(project_id)
            return dependency

    def remove_dependency(self, dependency_id: int) -> None:
        """Soft delete a dependency and let the dependent fall back in line.

        Raises:
            DependencyNotFound: If the dependency does not exist
        """
        dependency = self.dependencies.get_dependency(dependency_id)
        if dependency is None or dependency.deleted:
            raise DependencyNotFound(dependency_id)
        dependent = self.tasks.get_task(dependency.task_id)
        if dependent is None:
            self.dependencies.remove_dependency(dependency_id)
            return

        with self._holding(dependent.project_id, [dependent.assignee_id]):
            self.dependencies.remove_dependency(dependency_id)
            logger.changes(
                f"Removed dependency {dependency_id} "
                f"({dependency.task_id} on {dependency.depends_on_id})"
            )
            dependent = self.tasks.get_task(dependency.task_id)
            if dependent is not None and dependent.is_active:
                self._refresh(dependent.project_id, [dependent.assignee_id], [dependent.id])

    # Import

    def import_tasks(self, project_id: int, rows: list[ImportRow]) -> list[Task]:
        """Create many tasks at once, all or nothing.

        Planned rows are appended after each assignee's current last task,
        in row order (rows with an explicit ``order`` first, sorted by it).

        Raises:
            ProjectNotFound: If the project does not exist
            ValidationError: Listing every invalid row (nothing is created)
        """
        project = self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        validate_rows(rows, project, self.capacities, self.sprints)

        indexed = sorted(
            enumerate(rows),
            key=lambda item: (item[1].order is None, item[1].order or 0, item[0]),
        )
        next_orders: dict[int, int] = {}
        created: dict[int, Task] = {}
        with self._holding(project_id, {row.assignee_id for row in rows}):
            for index, row in indexed:
                is_backlog = (
                    row.is_backlog if row.is_backlog is not None else self.config.import_to_backlog
                )
                task = Task(
                    id=0,
                    project_id=project_id,
                    assignee_id=row.assignee_id,
                    title=row.title,
                    estimated_hours=row.estimated_hours,
                    actual_hours=row.actual_hours,
                    sprint_id=row.sprint_id,
                    status=row.status,
                    is_backlog=is_backlog,
                )
                if not is_backlog:
                    if row.assignee_id not in next_orders:
                        next_orders[row.assignee_id] = self.ordering.next_order(
                            project_id, row.assignee_id
                        )
                    task.order = next_orders[row.assignee_id]
                    next_orders[row.assignee_id] += 1
                created[index] = self.tasks.add_task(task)

            logger.changes(f"Imported {len(created)} task(s) into project {project_id}")
            self._refresh(project_id, next_orders)
            return [self._require_task(created[index].id) for index in sorted(created)]
