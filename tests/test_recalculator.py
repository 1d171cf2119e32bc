"""Tests for per-assignee schedule recalculation."""

from collections.abc import Callable
from datetime import date

import pytest
from conftest import ALICE, BOB, MONDAY, PROJECT_ID, TEAM_ID

from flowplan.exceptions import (
    InvalidCapacity,
    MemberNotFound,
    MissingTeamAssignment,
    ProjectNotFound,
)
from flowplan.models import Project, Task, TaskStatus, Team, TeamMember
from flowplan.scheduler import AssigneeScheduleRecalculator
from flowplan.store import InMemoryStore


def dates(store: InMemoryStore, task_id: int) -> tuple[date | None, date | None]:
    task = store.get_task(task_id)
    assert task is not None
    return task.start_date, task.end_date


@pytest.fixture
def recalculator(store: InMemoryStore) -> AssigneeScheduleRecalculator:
    return AssigneeScheduleRecalculator(store, store, store)


class TestRecalculate:
    def test_packs_tasks_in_order(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 12)
        add_task(2, 8)
        add_task(3, 2)

        recalculator.recalculate(ALICE, PROJECT_ID)

        assert dates(store, 1) == (MONDAY, date(2025, 1, 7))
        assert dates(store, 2) == (date(2025, 1, 7), date(2025, 1, 8))
        assert dates(store, 3) == (date(2025, 1, 8), date(2025, 1, 8))

    def test_deterministic(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        for task_id, hours in [(1, 5), (2, 13), (3, 0.5), (4, 20)]:
            add_task(task_id, hours)

        first = [(t.id, t.start_date, t.end_date) for t in recalculator.recalculate(ALICE, PROJECT_ID)]
        second = [(t.id, t.start_date, t.end_date) for t in recalculator.recalculate(ALICE, PROJECT_ID)]

        assert first == second

    def test_max_hours_policy(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        """Estimated 5h with 8h logged occupies 8h; the next task starts a day later."""
        add_task(1, 5, actual_hours=8)
        add_task(2, 1)

        recalculator.recalculate(ALICE, PROJECT_ID)

        assert dates(store, 1) == (MONDAY, MONDAY)
        assert dates(store, 2)[0] == date(2025, 1, 7)

    def test_completed_task_occupies_actual_hours(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 16, actual_hours=4, status=TaskStatus.COMPLETED)
        add_task(2, 4)

        recalculator.recalculate(ALICE, PROJECT_ID)

        assert dates(store, 1) == (MONDAY, MONDAY)
        assert dates(store, 2) == (MONDAY, MONDAY)

    def test_expected_end_uses_estimate_and_start_offset(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 6)
        add_task(2, 4, actual_hours=12)

        recalculator.recalculate(ALICE, PROJECT_ID)

        task = store.get_task(2)
        assert task is not None
        # Occupies 12h from Monday 2h in: Monday 2h, Tuesday 8h, Wednesday 2h
        assert (task.start_date, task.end_date) == (MONDAY, date(2025, 1, 8))
        # Baseline of 4h with the same 6h offset: Monday 2h, Tuesday 2h
        assert task.expected_start_date == MONDAY
        assert task.expected_end_date == date(2025, 1, 7)

    def test_groups_by_sprint_first_appearance(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 8, sprint_id=2, order=0)
        add_task(2, 8, sprint_id=1, order=1)
        add_task(3, 8, sprint_id=2, order=2)

        updated = recalculator.recalculate(ALICE, PROJECT_ID)

        assert [t.id for t in updated] == [1, 3, 2]
        assert dates(store, 3) == (date(2025, 1, 7), date(2025, 1, 7))
        assert dates(store, 2) == (date(2025, 1, 8), date(2025, 1, 8))

    def test_ignores_backlog_deleted_and_other_assignees(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 8, is_backlog=True)
        add_task(2, 8, deleted=True)
        add_task(3, 8, assignee_id=BOB)
        add_task(4, 8)

        recalculator.recalculate(ALICE, PROJECT_ID)

        assert dates(store, 4) == (MONDAY, MONDAY)
        assert dates(store, 1) == (None, None)
        assert dates(store, 2) == (None, None)
        assert dates(store, 3) == (None, None)

    def test_no_tasks_is_noop(self, recalculator: AssigneeScheduleRecalculator) -> None:
        assert recalculator.recalculate(ALICE, 999) == []

    def test_uses_today_without_project_start(
        self, store: InMemoryStore, add_task: Callable[..., Task]
    ) -> None:
        store.save_project(Project(id=PROJECT_ID, team_id=TEAM_ID))
        add_task(1, 4)

        AssigneeScheduleRecalculator(store, store, store, today=date(2025, 3, 1)).recalculate(
            ALICE, PROJECT_ID
        )

        # 2025-03-01 is a Saturday
        assert dates(store, 1) == (date(2025, 3, 3), date(2025, 3, 3))


class TestRecalculateErrors:
    def test_missing_project(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 8, project_id=42)
        with pytest.raises(ProjectNotFound):
            recalculator.recalculate(ALICE, 42)

    def test_project_without_team(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        store.save_project(Project(id=PROJECT_ID, start_date=MONDAY))
        add_task(1, 8)
        with pytest.raises(MissingTeamAssignment):
            recalculator.recalculate(ALICE, PROJECT_ID)

    def test_assignee_not_in_team(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        add_task(1, 8, assignee_id=99)
        with pytest.raises(MemberNotFound):
            recalculator.recalculate(99, PROJECT_ID)

    def test_invalid_capacity_leaves_tasks_untouched(
        self,
        store: InMemoryStore,
        add_task: Callable[..., Task],
        recalculator: AssigneeScheduleRecalculator,
    ) -> None:
        store.add_team(
            Team(id=TEAM_ID, members=[TeamMember(team_id=TEAM_ID, user_id=ALICE, work_days=[])])
        )
        add_task(1, 8)

        with pytest.raises(InvalidCapacity):
            recalculator.recalculate(ALICE, PROJECT_ID)
        assert dates(store, 1) == (None, None)
