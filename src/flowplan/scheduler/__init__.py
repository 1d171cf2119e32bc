"""Scheduler package - per-assignee calendar scheduling.

Main entry points:
- SchedulingEngine: applies task events and keeps dates consistent
- AssigneeScheduleRecalculator: packs one assignee's tasks into their calendar
- DependencyPropagator: pushes end dates down finish-to-start dependencies
- ProjectEndDateAggregator: maintains a project's actual expected end date

Building blocks:
- WorkCapacity, WorkCalendar, HourAllocator
- TaskOrdering for order maintenance
- Store protocols implemented by flowplan.store.InMemoryStore
"""

from .aggregate import ProjectEndDateAggregator
from .allocator import Allocation, HourAllocator
from .calendar import (
    CalendarDay,
    WorkCalendar,
    add_work_days,
    calculate_end_date,
    dependent_start_date,
    next_work_date,
)
from .capacity import WorkCapacity, weekday_number
from .dependencies import DependencyPropagator, find_cycle
from .locks import KeyedLocks
from .ordering import AssigneeReorder, ReorderReport, TaskOrdering
from .protocols import (
    CapacityResolver,
    DependencyStore,
    HoursLogStore,
    ProjectStore,
    SprintStore,
    TaskStore,
)
from .recalculator import AssigneeScheduleRecalculator
from .service import SchedulingEngine

__all__ = [
    "Allocation",
    "AssigneeReorder",
    "AssigneeScheduleRecalculator",
    "CalendarDay",
    "CapacityResolver",
    "DependencyPropagator",
    "DependencyStore",
    "HourAllocator",
    "HoursLogStore",
    "KeyedLocks",
    "ProjectEndDateAggregator",
    "ProjectStore",
    "ReorderReport",
    "SchedulingEngine",
    "SprintStore",
    "TaskOrdering",
    "TaskStore",
    "WorkCalendar",
    "WorkCapacity",
    "add_work_days",
    "calculate_end_date",
    "dependent_start_date",
    "find_cycle",
    "next_work_date",
    "weekday_number",
]
