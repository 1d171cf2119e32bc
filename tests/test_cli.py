"""Tests for CLI commands."""

import csv
import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from flowplan.cli import app
from flowplan.loader import load_workspace
from flowplan.scheduler import SchedulingEngine

runner = CliRunner()

EXAMPLE = Path(__file__).parent.parent / "examples" / "workspace.yaml"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace.yaml"
    shutil.copy(EXAMPLE, path)
    return path


class TestScheduleCommand:
    def test_displays_schedule(self, workspace: Path) -> None:
        result = runner.invoke(app, ["schedule", str(workspace)])

        assert result.exit_code == 0
        assert "Project 1: Website relaunch (expected end 2025-01-17)" in result.stdout
        assert "#100 Design system: 2025-01-06 -> 2025-01-07" in result.stdout
        assert "#102 Checkout flow: 2025-01-08 -> 2025-01-10" in result.stdout
        assert "#200 Copywriting: 2025-01-06 -> 2025-01-08" in result.stdout
        # Two working days of lag on a Mon/Wed/Fri calendar
        assert "#201 Launch checklist: 2025-01-17 -> 2025-01-17" in result.stdout
        assert "Backlog: #300" in result.stdout

    def test_display_does_not_touch_file(self, workspace: Path) -> None:
        before = workspace.read_text()
        runner.invoke(app, ["schedule", str(workspace)])
        assert workspace.read_text() == before

    def test_write(self, workspace: Path) -> None:
        result = runner.invoke(app, ["schedule", str(workspace), "--write"])

        assert result.exit_code == 0
        assert f"Updated {workspace} (6 change(s))" in result.stdout
        task = load_workspace(workspace).get_task(101)
        assert task is not None
        assert task.end_date is not None
        assert task.end_date.isoformat() == "2025-01-08"

    def test_output_csv(self, workspace: Path, tmp_path: Path) -> None:
        output = tmp_path / "schedule.csv"

        result = runner.invoke(app, ["schedule", str(workspace), "--output-csv", str(output)])

        assert result.exit_code == 0
        assert f"Schedule exported to {output}" in result.stdout
        with output.open() as f:
            rows = list(csv.DictReader(f))
        assert [row["id"] for row in rows] == ["100", "200", "101", "201", "102"]
        assert rows[0]["start_date"] == "2025-01-06"
        assert rows[0]["status"] == "todo"

    def test_today_for_projects_without_start(self, tmp_path: Path) -> None:
        path = tmp_path / "workspace.yaml"
        path.write_text(
            """
projects: [{id: 1, team_id: 1}]
teams: [{id: 1, members: [{user_id: 10}]}]
tasks:
  - {id: 1, project_id: 1, assignee_id: 10, estimated_hours: 8, order: 0}
"""
        )

        result = runner.invoke(app, ["schedule", str(path), "--today", "2025-03-01"])

        # 2025-03-01 is a Saturday
        assert result.exit_code == 0
        assert "#1 : 2025-03-03 -> 2025-03-03" in result.stdout

    def test_invalid_today(self, workspace: Path) -> None:
        result = runner.invoke(app, ["schedule", str(workspace), "--today", "03/01/2025"])

        assert result.exit_code == 1
        assert "Use YYYY-MM-DD format" in result.output

    def test_missing_workspace(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["schedule", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_assignee_off_team_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "workspace.yaml"
        path.write_text(
            """
projects: [{id: 1, team_id: 1, start_date: 2025-01-06}]
teams: [{id: 1, members: [{user_id: 10}]}]
tasks:
  - {id: 1, project_id: 1, assignee_id: 10, estimated_hours: 8, order: 0}
  - {id: 2, project_id: 1, assignee_id: 99, estimated_hours: 8, order: 0}
"""
        )

        result = runner.invoke(app, ["schedule", str(path)])

        assert result.exit_code == 1
        assert "project 1" in result.output
        assert "#1 : 2025-01-06 -> 2025-01-06" in result.output

    def test_config_option(self, workspace: Path, tmp_path: Path) -> None:
        config = tmp_path / "custom.yaml"
        config.write_text("engine:\n  default_daily_work_hours: 4\n")

        result = runner.invoke(app, ["--config", str(config), "schedule", str(workspace)])

        assert result.exit_code == 0
        assert "#100 Design system: 2025-01-06 -> 2025-01-08" in result.stdout

    def test_invalid_config(self, workspace: Path, tmp_path: Path) -> None:
        config = tmp_path / "custom.yaml"
        config.write_text("engine:\n  default_daily_work_hours: -1\n")

        result = runner.invoke(app, ["--config", str(config), "schedule", str(workspace)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_other_value_errors_are_not_config_errors(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fail(_engine: SchedulingEngine, project_id: int) -> None:
            raise ValueError("unexpected")

        monkeypatch.setattr(SchedulingEngine, "fix_duplicate_orders", fail)

        result = runner.invoke(app, ["compact", str(workspace), "1"])

        assert "Invalid configuration" not in result.output
        assert isinstance(result.exception, ValueError)


class TestOrderCommands:
    def test_reorder(self, workspace: Path) -> None:
        result = runner.invoke(app, ["reorder", str(workspace), "1", "102=0", "--write"])

        assert result.exit_code == 0
        assert "Reordered 3 task(s)" in result.stdout
        store = load_workspace(workspace)
        assert [t.id for t in store.list_tasks(1, 10)] == [102, 100, 101]

    def test_reorder_rejects_bad_pair(self, workspace: Path) -> None:
        result = runner.invoke(app, ["reorder", str(workspace), "1", "102:0"])

        assert result.exit_code == 1
        assert "Expected TASK_ID=ORDER" in result.output

    def test_reorder_backlog_task(self, workspace: Path) -> None:
        result = runner.invoke(app, ["reorder", str(workspace), "1", "300=0"])

        assert result.exit_code == 1
        assert "backlog" in result.output

    def test_compact_without_duplicates(self, workspace: Path) -> None:
        result = runner.invoke(app, ["compact", str(workspace), "1"])

        assert result.exit_code == 0
        assert "No duplicate orders found" in result.stdout

    def test_compact_fixes_duplicates(self, workspace: Path) -> None:
        text = workspace.read_text().replace("order: 1, sprint_id: 1}", "order: 0, sprint_id: 1}")
        workspace.write_text(text)

        result = runner.invoke(app, ["compact", str(workspace), "1", "--write"])

        assert result.exit_code == 0
        assert "Assignee 10: duplicates [0], 1 task(s) renumbered" in result.stdout
        store = load_workspace(workspace)
        assert [t.order for t in store.list_tasks(1, 10)] == [0, 1, 2]

    def test_complete_sprint(self, workspace: Path) -> None:
        text = workspace.read_text().replace(
            "title: Landing page,", "title: Landing page, status: completed,"
        )
        workspace.write_text(text)

        result = runner.invoke(app, ["complete-sprint", str(workspace), "1"])

        assert result.exit_code == 0
        assert "Reordered 2 task(s)" in result.stdout
        assert "Assignee 10: 1 completed, 2 open" in result.stdout

    def test_unknown_sprint(self, workspace: Path) -> None:
        result = runner.invoke(app, ["complete-sprint", str(workspace), "9"])

        assert result.exit_code == 1
        assert "Sprint 9" in result.output


class TestImportCommand:
    def test_import_to_backlog_by_default(self, workspace: Path, tmp_path: Path) -> None:
        rows = tmp_path / "tasks.csv"
        rows.write_text("title,assignee_id,estimated_hours\nSearch,10,5\nFooter,20,2\n")

        result = runner.invoke(app, ["import", str(workspace), "1", str(rows), "--write"])

        assert result.exit_code == 0
        assert "Imported 2 task(s) (2 in backlog)" in result.stdout
        store = load_workspace(workspace)
        assert [t.title for t in store.list_tasks(1, is_backlog=True)] == [
            "Blog redesign",
            "Search",
            "Footer",
        ]

    def test_import_planned(self, workspace: Path, tmp_path: Path) -> None:
        rows = tmp_path / "tasks.csv"
        rows.write_text("title,assignee_id,estimated_hours,is_backlog\nSearch,10,5,false\n")

        result = runner.invoke(app, ["import", str(workspace), "1", str(rows)])

        assert result.exit_code == 0
        assert "Imported 1 task(s) (0 in backlog)" in result.stdout
        assert "#301 Search: 2025-01-10 -> 2025-01-13" in result.stdout

    def test_import_rejects_non_member(self, workspace: Path, tmp_path: Path) -> None:
        rows = tmp_path / "tasks.csv"
        rows.write_text("title,assignee_id\nSearch,10\nMystery,77\n")

        result = runner.invoke(app, ["import", str(workspace), "1", str(rows), "--write"])

        assert result.exit_code == 1
        assert "Line 3: user 77 is not an active member of team 1" in result.output
        assert load_workspace(workspace).get_task(301) is None


class TestEndDateCommand:
    def test_unscheduled_project(self, workspace: Path) -> None:
        result = runner.invoke(app, ["end-date", str(workspace), "1"])

        assert result.exit_code == 0
        assert "Project 1 has no scheduled tasks" in result.stdout

    def test_after_schedule(self, workspace: Path) -> None:
        runner.invoke(app, ["schedule", str(workspace), "--write"])

        result = runner.invoke(app, ["end-date", str(workspace), "1"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "2025-01-17"

    def test_unknown_project(self, workspace: Path) -> None:
        result = runner.invoke(app, ["end-date", str(workspace), "5"])

        assert result.exit_code == 1
        assert "Project 5" in result.output
