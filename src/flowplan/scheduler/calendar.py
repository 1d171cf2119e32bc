"""Per-assignee work calendar and working-day date arithmetic.

The calendar is an ordered list of working days, each with an hour budget.
It grows lazily at the end and keeps a cursor on the first day that still
has capacity, so every day before the cursor is known to be exhausted.
"""

import bisect
from dataclasses import dataclass
from datetime import date, timedelta

from flowplan.logger import debug_enabled, get_logger

from .capacity import WorkCapacity

logger = get_logger()

# Hour arithmetic is rounded to this many decimals to avoid float residue
HOURS_PRECISION = 6


def round_hours(hours: float) -> float:
    return round(hours, HOURS_PRECISION)


@dataclass
class CalendarDay:
    """One working day and its remaining hour budget."""

    date: date
    available_hours: float
    used_hours: float = 0.0

    @property
    def has_capacity(self) -> bool:
        return self.available_hours > 0

    def take(self, hours: float) -> float:
        """Claim up to ``hours`` from this day and return what was claimed."""
        claimed = min(hours, self.available_hours)
        self.available_hours = round_hours(self.available_hours - claimed)
        self.used_hours = round_hours(self.used_hours + claimed)
        return claimed


def first_work_day(day: date, capacity: WorkCapacity) -> date:
    """First working day on or after ``day``."""
    capacity.validate()
    while not capacity.is_work_day(day):
        day += timedelta(days=1)
    return day


def next_work_date(day: date, capacity: WorkCapacity) -> date:
    """First working day strictly after ``day``."""
    return first_work_day(day + timedelta(days=1), capacity)


def add_work_days(day: date, count: int, capacity: WorkCapacity) -> date:
    """Advance ``count`` working days past ``day``.

    Returns ``day`` unchanged when ``count`` is zero, even if it is not a
    working day itself.
    """
    capacity.validate()
    added = 0
    while added < count:
        day += timedelta(days=1)
        if capacity.is_work_day(day):
            added += 1
    return day


def calculate_end_date(
    start: date,
    hours: float,
    capacity: WorkCapacity,
    hours_used_on_start: float = 0.0,
) -> date:
    """Walk working days from ``start`` until ``hours`` are consumed.

    Unlike WorkCalendar this ignores other tasks: each day offers the full
    daily capacity, except the start day, which offers what is left after
    ``hours_used_on_start``.

    Args:
        start: First day the work may use
        hours: Hours to place (zero returns ``start``)
        capacity: Capacity of the person doing the work
        hours_used_on_start: Hours already claimed on ``start`` by earlier work

    Returns:
        Last day that receives any of the hours
    """
    capacity.validate()
    remaining = round_hours(hours)
    current = start
    available = 0.0
    if capacity.is_work_day(current):
        available = max(0.0, capacity.daily_work_hours - hours_used_on_start)
    while True:
        remaining = round_hours(remaining - min(remaining, available))
        if remaining <= 0:
            return current
        current = next_work_date(current, capacity)
        available = capacity.daily_work_hours


def dependent_start_date(predecessor_end: date, capacity: WorkCapacity, lag_days: int = 0) -> date:
    """Start of a finish-to-start dependent.

    The lag is counted in working days after the predecessor's end, then the
    dependent starts on the next working day, never on the same day.
    """
    return next_work_date(add_work_days(predecessor_end, max(0, lag_days), capacity), capacity)


class WorkCalendar:
    """Growable arena of working days for one assignee.

    Maintains the invariant that every day before ``cursor`` has no
    available hours, so allocations that always start from the cursor can
    never overlap.
    """

    def __init__(self, start: date, capacity: WorkCapacity) -> None:
        """Seed the calendar at the first working day on or after ``start``.

        Raises:
            InvalidCapacity: If the capacity cannot hold any hours
        """
        capacity.validate()
        self.capacity = capacity
        self.days: list[CalendarDay] = [self._new_day(first_work_day(start, capacity))]
        self.cursor = 0

    @property
    def start(self) -> date:
        return self.days[0].date

    @property
    def last(self) -> CalendarDay:
        return self.days[-1]

    def _new_day(self, day: date) -> CalendarDay:
        return CalendarDay(date=day, available_hours=self.capacity.daily_work_hours)

    def _append_next_day(self) -> CalendarDay:
        day = self._new_day(next_work_date(self.last.date, self.capacity))
        self.days.append(day)
        if debug_enabled():
            logger.debug(f"    calendar: extended to {day.date} ({len(self.days)} days)")
        return day

    def _advance_cursor(self) -> None:
        while self.cursor < len(self.days) and not self.days[self.cursor].has_capacity:
            self.cursor += 1

    def ensure_day_at(self, on_or_after: date | None = None) -> CalendarDay:
        """Return the first day with capacity on or after a date.

        Without a date, returns the first day with capacity at or after the
        cursor. Grows the calendar when no known day qualifies.

        Args:
            on_or_after: Earliest acceptable date

        Returns:
            A CalendarDay with available_hours > 0
        """
        self._advance_cursor()
        index = self.cursor
        if on_or_after is not None:
            index = max(index, bisect.bisect_left(self.days, on_or_after, key=lambda d: d.date))

        for day in self.days[index:]:
            if day.has_capacity:
                return day

        while True:
            day = self._append_next_day()
            if on_or_after is None or day.date >= on_or_after:
                return day
