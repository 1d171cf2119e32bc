"""Custom exceptions for Flowplan."""

from __future__ import annotations

from collections.abc import Iterable


class FlowplanError(Exception):
    """Base exception for all Flowplan errors."""

    pass


class SchedulingError(FlowplanError):
    """Raised when a schedule cannot be computed."""

    pass


class InvalidCapacity(SchedulingError):
    """Raised when a work capacity cannot hold any hours.

    Either the daily hours are not positive or no weekday is a working day;
    allocating against such a capacity would never terminate.
    """

    pass


class MissingTeamAssignment(SchedulingError):
    """Raised when a project has no team to resolve capacities from."""

    def __init__(self, project_id: int) -> None:
        self.project_id = project_id
        super().__init__(f"Project {project_id} has no team assigned")


class MemberNotFound(SchedulingError):
    """Raised when an assignee is not an active member of the project's team."""

    def __init__(self, team_id: int, user_id: int) -> None:
        self.team_id = team_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not an active member of team {team_id}")


class DependencyCycleDetected(SchedulingError):
    """Raised when finish-to-start dependencies form a cycle."""

    def __init__(self, cycle: list[int], message: str | None = None) -> None:
        self.cycle = cycle
        if message is None:
            message = "Circular dependency detected: " + " -> ".join(str(t) for t in cycle)
        super().__init__(message)


class NotFoundError(FlowplanError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: int) -> None:
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class TaskNotFound(NotFoundError):
    entity = "Task"


class ProjectNotFound(NotFoundError):
    entity = "Project"


class SprintNotFound(NotFoundError):
    entity = "Sprint"


class DependencyNotFound(NotFoundError):
    entity = "Dependency"


class ValidationError(FlowplanError):
    """Raised when input validation fails.

    Bulk operations collect one message per offending item in ``errors``
    so the caller can report them all at once.
    """

    def __init__(self, message: str, errors: Iterable[str] | None = None) -> None:
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}:\n" + "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(message)


class ParseError(FlowplanError):
    """Raised when YAML parsing fails."""

    pass
