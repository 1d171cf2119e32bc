"""Project-level end date aggregate."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from flowplan.exceptions import ProjectNotFound
from flowplan.logger import get_logger

if TYPE_CHECKING:
    from .protocols import ProjectStore, TaskStore

logger = get_logger()


class ProjectEndDateAggregator:
    """Keeps ``Project.actual_expected_end_date`` equal to the latest task end."""

    def __init__(self, tasks: TaskStore, projects: ProjectStore) -> None:
        self.tasks = tasks
        self.projects = projects

    def latest_end_date(self, project_id: int) -> date | None:
        end_dates = [
            task.end_date
            for task in self.tasks.list_tasks(project_id, is_backlog=False)
            if task.end_date is not None
        ]
        return max(end_dates) if end_dates else None

    def update(self, project_id: int) -> date | None:
        """Recompute and store the project's actual expected end date.

        Leaves the project untouched when none of its planned tasks is dated.

        Returns:
            The aggregate end date, or None if there were no dated tasks

        Raises:
            ProjectNotFound: If the project does not exist
        """
        project = self.projects.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)

        latest = self.latest_end_date(project_id)
        if latest is None:
            return None

        if project.actual_expected_end_date != latest:
            logger.changes(
                f"Project {project_id} expected end: {project.actual_expected_end_date} -> {latest}"
            )
            project.actual_expected_end_date = latest
            self.projects.save_project(project)
        return latest
