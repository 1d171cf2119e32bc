"""Work capacity value type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from flowplan.exceptions import InvalidCapacity
from flowplan.models import WEEKDAY_NAMES

if TYPE_CHECKING:
    from flowplan.models import TeamMember


def weekday_number(day: date) -> int:
    """Weekday of ``day`` with Sunday = 0 .. Saturday = 6."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class WorkCapacity:
    """How many hours a person works per day, and on which weekdays."""

    daily_work_hours: float
    work_days: frozenset[int]

    @classmethod
    def of(cls, daily_work_hours: float, work_days: list[int] | tuple[int, ...]) -> WorkCapacity:
        return cls(daily_work_hours=float(daily_work_hours), work_days=frozenset(work_days))

    @classmethod
    def from_member(cls, member: TeamMember) -> WorkCapacity:
        """Build the capacity stored on a team membership."""
        return cls.of(member.daily_work_hours, [int(d) for d in member.work_days])

    def validate(self) -> None:
        """Raise InvalidCapacity unless hours can actually be placed.

        Raises:
            InvalidCapacity: If daily hours are not positive, or the work day
                set is empty or holds something other than 0..6
        """
        if self.daily_work_hours <= 0:
            raise InvalidCapacity(
                f"Daily work hours must be positive, got {self.daily_work_hours}"
            )
        if not self.work_days:
            raise InvalidCapacity("Work days must contain at least one weekday")
        invalid = sorted(d for d in self.work_days if d not in range(7))
        if invalid:
            raise InvalidCapacity(f"Invalid weekday numbers in work days: {invalid}")

    def is_work_day(self, day: date) -> bool:
        return weekday_number(day) in self.work_days

    def describe(self) -> str:
        days = ",".join(WEEKDAY_NAMES[d] for d in sorted(self.work_days) if d in range(7))
        return f"{self.daily_work_hours:g}h/day [{days}]"
