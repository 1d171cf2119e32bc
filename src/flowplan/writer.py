"""Write scheduling results back into a workspace file.

The file is round-tripped with ruamel.yaml: only values that changed are
touched, so comments, key order and flow style of the rest survive.
"""

from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from .exceptions import ParseError
from .logger import get_logger

if TYPE_CHECKING:
    from .models import Task, TaskDependency
    from .store import InMemoryStore

logger = get_logger()

TASK_FIELDS = (
    "id",
    "project_id",
    "assignee_id",
    "title",
    "estimated_hours",
    "actual_hours",
    "sprint_id",
    "status",
    "order",
    "is_backlog",
    "start_date",
    "end_date",
    "expected_start_date",
    "expected_end_date",
    "deleted",
)
# Written even when unset, so a cleared date does not linger in the file
COMPUTED_TASK_FIELDS = ("order", "start_date", "end_date", "expected_start_date", "expected_end_date")
# Not added to entries that omit them
TASK_DEFAULTS: dict[str, Any] = {
    "title": "",
    "actual_hours": 0.0,
    "status": "todo",
    "is_backlog": False,
    "deleted": False,
}


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _update_in_place(node: Any, values: dict[str, Any], computed: tuple[str, ...] = ()) -> bool:
    """Set changed keys on a YAML mapping, returning whether anything changed.

    Missing keys whose value is None or a default are left out, except for
    ``computed`` keys, which are removed when they become None.
    """
    changed = False
    for key, value in values.items():
        value = _plain(value)
        if key in node:
            if value is None and key in computed:
                del node[key]
                changed = True
            elif node[key] != value:
                node[key] = value
                changed = True
        elif not _is_default(key, value):
            node[key] = value
            changed = True
    return changed


def _is_default(key: str, value: Any) -> bool:
    return value is None or (key in TASK_DEFAULTS and TASK_DEFAULTS[key] == value)


def _task_node(task: Task) -> CommentedMap:
    node = CommentedMap()
    for key in TASK_FIELDS:
        value = _plain(getattr(task, key))
        if key == "id" or not _is_default(key, value):
            node[key] = value
    return node


def _dependency_node(dependency: TaskDependency) -> CommentedMap:
    node = CommentedMap()
    node["id"] = dependency.id
    node["task_id"] = dependency.task_id
    node["depends_on_id"] = dependency.depends_on_id
    node["type"] = _plain(dependency.type)
    node["lag_days"] = dependency.lag_days
    return node


def _section(data: CommentedMap, name: str) -> CommentedSeq:
    if data.get(name) is None:
        data[name] = CommentedSeq()
    return data[name]


def write_workspace(path: Path | str, store: InMemoryStore) -> int:
    """Write the store's tasks, dependencies and project aggregates to ``path``.

    Tasks and dependencies missing from the file are appended; dependencies
    removed from the store are dropped from the file.

    Args:
        path: Existing workspace file to update
        store: Store holding the state to write

    Returns:
        Number of entries added or changed

    Raises:
        ParseError: If the file is missing or has no mapping at its root
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    yaml_rt = YAML()
    yaml_rt.preserve_quotes = True  # type: ignore[assignment]
    with path.open(encoding="utf-8") as f:
        data: Any = yaml_rt.load(f)  # type: ignore[no-untyped-call]
    if data is None:
        data = CommentedMap()
    if not isinstance(data, CommentedMap):
        raise ParseError("YAML must contain a dictionary at the root level")

    updated = 0

    projects = _section(data, "projects")
    for node in projects:
        project = store.get_project(node["id"])
        if project is not None and _update_in_place(
            node,
            {"actual_expected_end_date": project.actual_expected_end_date},
            computed=("actual_expected_end_date",),
        ):
            updated += 1

    tasks = _section(data, "tasks")
    written: set[int] = set()
    for node in tasks:
        task = store.get_task(node["id"])
        if task is None:
            continue
        written.add(task.id)
        values = {key: getattr(task, key) for key in TASK_FIELDS if key != "id"}
        if _update_in_place(node, values, computed=COMPUTED_TASK_FIELDS):
            updated += 1
    for task in store.all_tasks(include_deleted=True):
        if task.id not in written:
            tasks.append(_task_node(task))
            updated += 1

    dependencies = _section(data, "dependencies")
    active = {d.id: d for d in store.list_dependencies()}
    kept = CommentedSeq()
    seen: set[int] = set()
    for node in dependencies:
        dep_id = node.get("id")
        if dep_id is not None and dep_id not in active:
            updated += 1
            continue
        if dep_id is None:
            # Id-less edges were numbered on load; match them by endpoints
            match = next(
                (
                    d
                    for d in active.values()
                    if d.id not in seen
                    and (d.task_id, d.depends_on_id) == (node["task_id"], node["depends_on_id"])
                ),
                None,
            )
            if match is None:
                updated += 1
                continue
            dep_id = match.id
        seen.add(dep_id)
        kept.append(node)
    for dep_id, dependency in active.items():
        if dep_id not in seen:
            kept.append(_dependency_node(dependency))
            updated += 1
    if list(kept) != list(dependencies):
        data["dependencies"] = kept

    with path.open("w", encoding="utf-8") as f:
        yaml_rt.dump(data, f)  # type: ignore[no-untyped-call]

    logger.changes(f"Wrote {updated} change(s) to {path}")
    return updated


def task_record(task: Task) -> dict[str, Any]:
    """Task as a flat dict of plain values, for CSV export."""
    return {key: _plain(value) for key, value in asdict(task).items()}
