"""Per-assignee schedule recalculation."""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from flowplan.exceptions import MemberNotFound, MissingTeamAssignment, ProjectNotFound
from flowplan.logger import get_logger

from .allocator import HourAllocator
from .calendar import WorkCalendar, calculate_end_date

if TYPE_CHECKING:
    from flowplan.models import Project, Task

    from .capacity import WorkCapacity
    from .protocols import CapacityResolver, ProjectStore, TaskStore

logger = get_logger()


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_capacity(
    project: Project, assignee_id: int, capacities: CapacityResolver
) -> WorkCapacity:
    """Capacity of ``assignee_id`` within the project's team.

    Raises:
        MissingTeamAssignment: If the project has no team
        MemberNotFound: If the assignee is not an active member of the team
    """
    if project.team_id is None:
        raise MissingTeamAssignment(project.id)
    capacity = capacities.get_work_capacity(project.team_id, assignee_id)
    if capacity is None:
        raise MemberNotFound(project.team_id, assignee_id)
    return capacity


def group_by_sprint(tasks: list[Task]) -> list[list[Task]]:
    """Split ordered tasks into sprint groups.

    Groups appear in the order their first task appears; tasks keep their
    relative order inside a group. Tasks without a sprint form one group.
    """
    groups: dict[int | None, list[Task]] = {}
    for task in tasks:
        groups.setdefault(task.sprint_id, []).append(task)
    return list(groups.values())


class AssigneeScheduleRecalculator:
    """Recomputes the dates of every planned task of one assignee.

    All tasks of the (project, assignee) pair are packed, in order, into a
    calendar rebuilt from the project start on every call, so two calls
    without intervening changes produce identical dates.
    """

    def __init__(
        self,
        tasks: TaskStore,
        projects: ProjectStore,
        capacities: CapacityResolver,
        today: date | None = None,
    ) -> None:
        """Initialize the recalculator.

        Args:
            tasks: Task storage
            projects: Project storage (start date, team)
            capacities: Team membership lookup
            today: Calendar seed for projects without a start date
                (defaults to the current UTC date)
        """
        self.tasks = tasks
        self.projects = projects
        self.capacities = capacities
        self.today = today

    def recalculate(self, assignee_id: int, project_id: int) -> list[Task]:
        """Recalculate and persist dates for one assignee's planned tasks.

        Returns:
            The updated tasks in schedule order (empty if there were none)

        Raises:
            ProjectNotFound: If the project does not exist
            MissingTeamAssignment: If the project has no team
            MemberNotFound: If the assignee is not on the team
            InvalidCapacity: If the assignee's capacity cannot hold hours
        """
        tasks = self.tasks.list_tasks(project_id, assignee_id, is_backlog=False)
        if not tasks:
            logger.debug(f"Assignee {assignee_id} has no planned tasks in project {project_id}")
            return []

        project = self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        capacity = resolve_capacity(project, assignee_id, self.capacities)

        seed = project.start_date or self.today or utc_today()
        calendar = WorkCalendar(seed, capacity)
        allocator = HourAllocator(calendar)
        logger.checks(
            f"Recalculating {len(tasks)} task(s) of assignee {assignee_id} in project "
            f"{project_id} from {calendar.start} at {capacity.describe()}"
        )

        # Work on copies so nothing is written unless every task was placed
        updated: list[Task] = []
        for group in group_by_sprint(tasks):
            for original in group:
                task = copy.copy(original)
                allocation = allocator.allocate(task.hours_to_occupy(), label=f"task {task.id}")
                task.start_date = allocation.start_date
                task.end_date = allocation.end_date
                task.expected_start_date = allocation.start_date
                task.expected_end_date = calculate_end_date(
                    allocation.start_date,
                    float(task.estimated_hours or 0.0),
                    capacity,
                    hours_used_on_start=allocation.start_offset_hours,
                )
                if (original.start_date, original.end_date) != (task.start_date, task.end_date):
                    logger.changes(
                        f"Task {task.id}: {original.start_date}..{original.end_date} -> "
                        f"{task.start_date}..{task.end_date}"
                    )
                updated.append(task)

        self.tasks.save_schedule(updated)
        return updated
