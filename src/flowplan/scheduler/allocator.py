"""Hour allocation against a work calendar."""

from dataclasses import dataclass
from datetime import date

from flowplan.logger import checks_enabled, get_logger

from .calendar import CalendarDay, WorkCalendar, round_hours

logger = get_logger()


@dataclass(frozen=True)
class Allocation:
    """Days consumed by one allocation.

    ``start_offset_hours`` is how much of the start day was already claimed
    before this allocation began.
    """

    start_date: date
    end_date: date
    hours: float
    start_offset_hours: float = 0.0


class HourAllocator:
    """Packs hour quantities into a WorkCalendar, earliest day first.

    Each call continues where the previous one stopped: a day is split
    between consecutive allocations when the first one leaves hours on it,
    and a day consumed to exactly zero is never handed out again.
    """

    def __init__(self, calendar: WorkCalendar) -> None:
        self.calendar = calendar

    def allocate(self, hours: float, label: str = "") -> Allocation:
        """Claim ``hours`` from the calendar.

        Args:
            hours: Quantity to place. Zero places a marker on the next day
                with capacity without claiming anything.
            label: Optional name used in verbose logging

        Returns:
            Allocation with the first and last day touched

        Raises:
            ValueError: If hours is negative
        """
        if hours < 0:
            raise ValueError(f"Cannot allocate a negative number of hours: {hours}")

        remaining = round_hours(hours)
        first: CalendarDay = self.calendar.ensure_day_at()
        offset = first.used_hours
        last = first

        while remaining > 0:
            day = self.calendar.ensure_day_at(last.date)
            remaining = round_hours(remaining - day.take(remaining))
            last = day

        if checks_enabled():
            name = f" {label}" if label else ""
            logger.checks(
                f"  Allocated{name}: {hours:g}h {first.date} -> {last.date} "
                f"(start day offset {offset:g}h)"
            )

        return Allocation(
            start_date=first.date,
            end_date=last.date,
            hours=hours,
            start_offset_hours=offset,
        )
