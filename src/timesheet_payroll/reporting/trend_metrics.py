"""Week-over-week trends, weekly pay series and the overtime leaderboard."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from timesheet_payroll.calculators.payroll_calculator import OVERTIME_MULTIPLIER, PayrollCalculator
from timesheet_payroll.calculators.periods import DateRange, trailing_weeks, week_start_for
from timesheet_payroll.calculators.types import ZERO, EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.exceptions import InvalidInputError
from timesheet_payroll.reporting.period_aggregator import PeriodSummary
from timesheet_payroll.reporting.types import (
    DashboardMetrics,
    DerivedEntry,
    LastPayrollSummary,
    OvertimeLeader,
    TrendMetric,
    WeeklyBucket,
)

HUNDRED = Decimal("100")


def trend_percentage(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change from ``previous`` to ``current``.

    Policy: a zero previous value yields a trend of exactly 0, whatever the
    current value. "No baseline" is reported as "no change" rather than as an
    infinite or undefined percentage.
    """
    if previous == 0:
        return ZERO
    return (current - previous) / previous * HUNDRED


def overtime_leaders(
    entries: Iterable[DerivedEntry], limit: int | None = 5
) -> list[OvertimeLeader]:
    """Employees ranked by overtime hours, most first.

    OT pay here is ``ot_hours * rate * 1.5`` summed per employee. Employees
    with no overtime are left out.
    """
    by_employee: dict[int, OvertimeLeader] = {}
    for entry in entries:
        ot_hours = entry.breakdown.ot_hours
        if ot_hours == 0:
            continue
        leader = by_employee.get(entry.employee.employee_id)
        if leader is None:
            leader = OvertimeLeader(employee=entry.employee)
            by_employee[entry.employee.employee_id] = leader
        leader.total_ot_hours += ot_hours
        leader.total_ot_pay += ot_hours * entry.employee.rate * OVERTIME_MULTIPLIER

    leaders = [l for l in by_employee.values() if l.total_ot_hours > 0]
    for leader in leaders:
        leader.total_ot_pay = PayrollCalculator.round_to_cents(leader.total_ot_pay)
    leaders.sort(key=lambda l: (-l.total_ot_hours, l.employee.name, l.employee.employee_id))
    if limit is not None:
        leaders = leaders[:limit]
    return leaders


class TrendMetricsComputer:
    """Builds dashboard metrics from already-derived entries.

    "This period" is the work week containing ``as_of_date`` and "last period"
    the equal-length week before it, with week boundaries taken from the
    tenant's ``work_week_start``. The weekly series covers the trailing
    ``weeks_in_series`` work weeks.
    """

    def __init__(
        self,
        work_week_start: int,
        leaders_limit: int = 5,
        weeks_in_series: int = 4,
    ):
        self.work_week_start = work_week_start
        self.leaders_limit = leaders_limit
        self.weeks_in_series = weeks_in_series

    def current_window(self, as_of_date: date) -> DateRange:
        return trailing_weeks(as_of_date, self.work_week_start, 1)[0]

    def previous_window(self, as_of_date: date) -> DateRange:
        return self.current_window(as_of_date).previous()

    def series_range(self, as_of_date: date) -> DateRange:
        weeks = trailing_weeks(as_of_date, self.work_week_start, self.weeks_in_series)
        return DateRange(weeks[-1].start, weeks[0].end)

    def weekly_series(
        self, entries: Iterable[DerivedEntry], as_of_date: date
    ) -> list[WeeklyBucket]:
        """Regular/overtime/mileage pay per week start, newest first."""
        window = self.series_range(as_of_date)
        buckets: dict[date, WeeklyBucket] = {}
        for entry in entries:
            day = entry.punch.work_date
            if not window.contains(day):
                continue
            start = week_start_for(day, self.work_week_start)
            bucket = buckets.get(start)
            if bucket is None:
                bucket = WeeklyBucket(week_start=start, week_end=start + timedelta(days=6))
                buckets[start] = bucket
            bucket.regular_pay += entry.breakdown.reg_pay
            bucket.overtime_pay += entry.breakdown.ot_pay
            bucket.mileage_pay += entry.breakdown.mileage_pay

        ordered = sorted(buckets.values(), key=lambda b: b.week_start, reverse=True)
        return ordered[: self.weeks_in_series]

    def compute_dashboard(
        self,
        tenant_id: int,
        as_of_date: date,
        entries: Sequence[DerivedEntry],
        active_employees: int,
        recent_entries: Sequence[
            tuple[PunchRecord, EmployeeRecord | None, PayBreakdown | None]
        ] = (),
        last_payroll: LastPayrollSummary | None = None,
    ) -> DashboardMetrics:
        for entry in entries:
            if entry.punch.tenant_id != tenant_id or entry.employee.tenant_id != tenant_id:
                raise InvalidInputError(
                    f"Punch {entry.punch.punch_id} does not belong to tenant {tenant_id}",
                    field="tenant_id",
                    value=entry.punch.tenant_id,
                )

        current = self.current_window(as_of_date)
        previous = current.previous()
        this_period = [e for e in entries if current.contains(e.punch.work_date)]
        last_period = [e for e in entries if previous.contains(e.punch.work_date)]

        def pay(items: list[DerivedEntry]) -> Decimal:
            return sum(
                (e.breakdown.reg_pay + e.breakdown.ot_pay + e.breakdown.mileage_pay for e in items),
                ZERO,
            )

        def ot_hours(items: list[DerivedEntry]) -> Decimal:
            return sum((e.breakdown.ot_hours for e in items), ZERO)

        def miles(items: list[DerivedEntry]) -> Decimal:
            return sum((e.punch.miles for e in items), ZERO)

        return DashboardMetrics(
            as_of_date=as_of_date,
            current_start=current.start,
            current_end=current.end,
            previous_start=previous.start,
            previous_end=previous.end,
            total_payroll=self._metric(pay(this_period), pay(last_period)),
            overtime_hours=self._metric(ot_hours(this_period), ot_hours(last_period)),
            total_mileage=self._metric(miles(this_period), miles(last_period)),
            active_employees=active_employees,
            weekly_series=self.weekly_series(entries, as_of_date),
            overtime_leaders=overtime_leaders(this_period, self.leaders_limit),
            recent_entries=list(recent_entries),
            last_payroll=last_payroll,
        )

    @staticmethod
    def _metric(current: Decimal, previous: Decimal) -> TrendMetric:
        return TrendMetric(
            current=current,
            previous=previous,
            trend=trend_percentage(current, previous),
        )

    @staticmethod
    def summarize_last_payroll(
        date_range: DateRange, summaries: Sequence[PeriodSummary]
    ) -> LastPayrollSummary:
        """Collapse per-employee period summaries into dashboard totals."""
        return LastPayrollSummary(
            start_date=date_range.start,
            end_date=date_range.end,
            total_hours=sum((s.total_hours for s in summaries), ZERO),
            overtime_hours=sum((s.ot_hours for s in summaries), ZERO),
            pto_hours=sum((s.pto_hours for s in summaries), ZERO),
            total_miles=sum((s.miles for s in summaries), ZERO),
            employees_completed=sum(1 for s in summaries if s.has_entries),
            total_employees=len(summaries),
        )
