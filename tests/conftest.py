"""Pytest configuration and fixtures for flowplan tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date
from typing import Any

import pytest

from flowplan.logger import reset_logger
from flowplan.models import Project, Sprint, Task, Team, TeamMember
from flowplan.scheduler import SchedulingEngine, WorkCapacity
from flowplan.store import InMemoryStore

# 2025-01-06 is a Monday
MONDAY = date(2025, 1, 6)
PROJECT_ID = 1
TEAM_ID = 1
ALICE = 10
BOB = 20
MON_FRI_8H = WorkCapacity.of(8.0, [1, 2, 3, 4, 5])


@pytest.fixture(autouse=True)
def _clean_logger() -> Iterator[None]:
    """Keep verbosity from leaking between tests."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def store() -> InMemoryStore:
    """Store with one project starting Monday 2025-01-06 and a Mon-Fri 8h team."""
    s = InMemoryStore()
    s.add_team(
        Team(
            id=TEAM_ID,
            name="Core",
            members=[
                TeamMember(team_id=TEAM_ID, user_id=ALICE),
                TeamMember(team_id=TEAM_ID, user_id=BOB),
            ],
        )
    )
    s.add_project(Project(id=PROJECT_ID, name="Website", team_id=TEAM_ID, start_date=MONDAY))
    s.add_sprint(Sprint(id=1, project_id=PROJECT_ID, name="Sprint 1"))
    s.add_sprint(Sprint(id=2, project_id=PROJECT_ID, name="Sprint 2"))
    return s


@pytest.fixture
def add_task(store: InMemoryStore) -> Callable[..., Task]:
    """Factory storing a planned task for ALICE unless told otherwise."""

    def _add(task_id: int, hours: float | None = 8.0, **kwargs: Any) -> Task:
        kwargs.setdefault("project_id", PROJECT_ID)
        kwargs.setdefault("assignee_id", ALICE)
        kwargs.setdefault("title", f"Task {task_id}")
        if not kwargs.get("is_backlog"):
            kwargs.setdefault("order", task_id)
        task = Task(id=task_id, estimated_hours=hours, **kwargs)
        store.add_task(task)
        return task

    return _add


@pytest.fixture
def engine(store: InMemoryStore) -> SchedulingEngine:
    return SchedulingEngine.from_store(store)
