"""Pay period boundary arithmetic.

Weekday indexes follow the tenant setting convention, 0=Sunday .. 6=Saturday,
which differs from ``date.weekday()`` (0=Monday).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from timesheet_payroll.exceptions import InvalidInputError

DAYS_PER_WEEK = 7


def sunday_based_weekday(day: date) -> int:
    """Weekday of ``day`` with Sunday as 0."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


def week_start_for(day: date, work_week_start: int) -> date:
    """Most recent date on or before ``day`` that starts a work week."""
    if not 0 <= work_week_start <= 6:
        raise InvalidInputError(
            "work_week_start must be between 0 and 6",
            field="work_week_start",
            value=work_week_start,
        )
    offset = (sunday_based_weekday(day) - work_week_start) % DAYS_PER_WEEK
    return day - timedelta(days=offset)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidInputError(
                f"Date range end {self.end} precedes start {self.start}",
                field="end",
                value=str(self.end),
            )

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def shift(self, weeks: int) -> DateRange:
        delta = timedelta(weeks=weeks)
        return DateRange(self.start + delta, self.end + delta)

    def previous(self) -> DateRange:
        """Adjacent range of equal length ending the day before this one."""
        delta = timedelta(days=self.days)
        return DateRange(self.start - delta, self.end - delta)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}-to-{self.end.isoformat()}"


def week_window(day: date, work_week_start: int) -> DateRange:
    """The work week containing ``day``."""
    start = week_start_for(day, work_week_start)
    return DateRange(start, start + timedelta(days=DAYS_PER_WEEK - 1))


def trailing_weeks(day: date, work_week_start: int, count: int) -> list[DateRange]:
    """``count`` consecutive work weeks ending with the one containing ``day``.

    Most recent first.
    """
    current = week_window(day, work_week_start)
    return [current.shift(-i) for i in range(count)]


def pay_period_before(day: date, work_week_start: int, weeks: int = 2) -> DateRange:
    """The ``weeks``-long pay period that ends just before the current week."""
    current_start = week_start_for(day, work_week_start)
    return DateRange(
        current_start - timedelta(weeks=weeks),
        current_start - timedelta(days=1),
    )
