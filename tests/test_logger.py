"""Tests for scheduler log output at different verbosity levels."""

from collections.abc import Callable
from io import StringIO

from flowplan.logger import (
    changes_enabled,
    checks_enabled,
    debug_enabled,
    get_logger,
    reset_logger,
    setup_logger,
)
from flowplan.models import Task
from flowplan.scheduler import SchedulingEngine


def run_with_verbosity(
    verbosity: int, engine: SchedulingEngine, add_task: Callable[..., Task]
) -> str:
    add_task(1, hours=12)
    add_task(2, hours=4)
    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)
    try:
        engine.recalculate_assignee(1, 10)
        return output_stream.getvalue()
    finally:
        reset_logger()


def test_verbosity_0_silent(engine: SchedulingEngine, add_task: Callable[..., Task]) -> None:
    assert run_with_verbosity(0, engine, add_task) == ""


def test_verbosity_1_shows_date_changes(
    engine: SchedulingEngine, add_task: Callable[..., Task]
) -> None:
    output = run_with_verbosity(1, engine, add_task)

    assert "Task 1: None..None -> 2025-01-06..2025-01-07" in output
    assert "Task 2: None..None -> 2025-01-07..2025-01-07" in output
    assert "Project 1 expected end: None -> 2025-01-07" in output
    assert "Allocated" not in output


def test_verbosity_2_shows_allocations(
    engine: SchedulingEngine, add_task: Callable[..., Task]
) -> None:
    output = run_with_verbosity(2, engine, add_task)

    assert "Recalculating 2 task(s) of assignee 10 in project 1 from 2025-01-06" in output
    assert "Allocated task 1: 12h 2025-01-06 -> 2025-01-07 (start day offset 0h)" in output
    assert "Allocated task 2: 4h 2025-01-07 -> 2025-01-07 (start day offset 4h)" in output
    assert "calendar: extended" not in output


def test_verbosity_3_shows_calendar_growth(
    engine: SchedulingEngine, add_task: Callable[..., Task]
) -> None:
    output = run_with_verbosity(3, engine, add_task)

    assert "calendar: extended to 2025-01-07" in output
    assert "lock acquired" in output


def test_level_checks() -> None:
    setup_logger(1, stream=StringIO())
    assert changes_enabled()
    assert not checks_enabled()

    setup_logger(3, stream=StringIO())
    assert checks_enabled()
    assert debug_enabled()

    reset_logger()
    assert not changes_enabled()


def test_setup_replaces_handlers() -> None:
    setup_logger(1, stream=StringIO())
    setup_logger(2, stream=StringIO())
    assert len(get_logger().handlers) == 1
