"""Tests for packing hours into a work calendar."""

from datetime import date

import pytest

from flowplan.scheduler import HourAllocator, WorkCalendar, WorkCapacity

MON_FRI = WorkCapacity.of(8, [1, 2, 3, 4, 5])
MONDAY = date(2025, 1, 6)
FRIDAY = date(2025, 1, 10)


def make_allocator(start: date = MONDAY, capacity: WorkCapacity = MON_FRI) -> HourAllocator:
    return HourAllocator(WorkCalendar(start, capacity))


class TestHourAllocator:
    def test_weekend_skip(self) -> None:
        """10h at 8h/day from Friday: 8h Friday, 2h Monday."""
        allocator = make_allocator(FRIDAY)

        allocation = allocator.allocate(10)

        assert allocation.start_date == FRIDAY
        assert allocation.end_date == date(2025, 1, 13)
        used = {day.date: day.used_hours for day in allocator.calendar.days if day.used_hours}
        assert used == {FRIDAY: 8, date(2025, 1, 13): 2}

    def test_single_day(self) -> None:
        allocation = make_allocator().allocate(3)
        assert allocation.start_date == allocation.end_date == MONDAY

    def test_full_day_moves_next_allocation(self) -> None:
        allocator = make_allocator()
        first = allocator.allocate(8)
        second = allocator.allocate(1)
        assert first.end_date == MONDAY
        assert second.start_date == date(2025, 1, 7)

    def test_consecutive_allocations_share_a_day(self) -> None:
        allocator = make_allocator()
        allocator.allocate(5)
        second = allocator.allocate(5)
        assert second.start_date == MONDAY
        assert second.start_offset_hours == 5
        assert second.end_date == date(2025, 1, 7)

    def test_allocations_never_overlap(self) -> None:
        allocator = make_allocator()
        for hours in (3, 7.5, 12, 0.5, 16, 1):
            allocator.allocate(hours)
        days = allocator.calendar.days
        assert all(day.used_hours <= 8 for day in days)
        assert sum(day.used_hours for day in days) == pytest.approx(40)

    def test_zero_hours_claims_nothing(self) -> None:
        allocator = make_allocator()
        allocator.allocate(8)
        allocation = allocator.allocate(0)
        assert allocation.start_date == allocation.end_date == date(2025, 1, 7)
        assert [day.used_hours for day in allocator.calendar.days if day.used_hours] == [8]
        assert allocator.calendar.days[0].date == MONDAY

    def test_fractional_hours_do_not_leave_residue(self) -> None:
        allocator = make_allocator()
        for _ in range(8):
            allocator.allocate(0.1)
        allocator.allocate(7.2)
        assert allocator.allocate(1).start_date == date(2025, 1, 7)

    def test_negative_hours_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            make_allocator().allocate(-1)
