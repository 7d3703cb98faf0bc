"""Unit tests for trend metrics, the weekly series and the OT leaderboard."""

from datetime import date, time
from decimal import Decimal

import pytest

from timesheet_payroll.calculators.payroll_calculator import PayrollCalculator
from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import EmployeeRecord, PunchRecord
from timesheet_payroll.exceptions import InvalidInputError
from timesheet_payroll.reporting.period_aggregator import PeriodSummary
from timesheet_payroll.reporting.trend_metrics import (
    TrendMetricsComputer,
    overtime_leaders,
    trend_percentage,
)
from timesheet_payroll.reporting.types import DerivedEntry

TENANT = 1
SETTINGS = TenantSettings(mileage_rate=Decimal("0.50"))

JANE = EmployeeRecord(1, TENANT, "Jane", "Doe", Decimal("20"))
JOHN = EmployeeRecord(2, TENANT, "John", "Smith", Decimal("25"))
ANNA = EmployeeRecord(3, TENANT, "Anna", "Brown", Decimal("30"))

_ids = iter(range(1, 10_000))


def entry(
    employee: EmployeeRecord,
    work_date: date,
    time_out: time = time(18, 0),
    miles: Decimal = Decimal("0"),
    tenant_id: int = TENANT,
) -> DerivedEntry:
    """Derived entry for an 08:00 start with a 30 minute lunch."""
    punch = PunchRecord(
        punch_id=next(_ids),
        tenant_id=tenant_id,
        employee_id=employee.employee_id,
        work_date=work_date,
        time_in=time(8, 0),
        time_out=time_out,
        lunch_minutes=30,
        miles=miles,
    )
    breakdown = PayrollCalculator().compute(punch, employee.rate, SETTINGS)
    return DerivedEntry(punch=punch, employee=employee, breakdown=breakdown)


class TestTrendPercentage:
    def test_increase(self):
        assert trend_percentage(Decimal("150"), Decimal("100")) == Decimal("50")

    def test_decrease(self):
        assert trend_percentage(Decimal("75"), Decimal("100")) == Decimal("-25")

    @pytest.mark.parametrize("current", [Decimal("0"), Decimal("42")])
    def test_zero_baseline_is_no_change(self, current):
        """Nothing last period reports 0, never a division error."""
        assert trend_percentage(current, Decimal("0")) == Decimal("0")


class TestOvertimeLeaders:
    """Ranking employees by overtime hours."""

    def test_sorted_by_hours_descending(self):
        entries = [
            entry(JANE, date(2024, 1, 10)),  # 1.5 OT
            entry(JOHN, date(2024, 1, 10), time_out=time(20, 0)),  # 3.5 OT
        ]
        leaders = overtime_leaders(entries)

        assert [l.employee.employee_id for l in leaders] == [2, 1]
        assert leaders[0].total_ot_hours == Decimal("3.5")
        assert leaders[0].total_ot_pay == Decimal("131.25")

    def test_no_overtime_excluded(self):
        entries = [
            entry(JANE, date(2024, 1, 10)),
            entry(ANNA, date(2024, 1, 10), time_out=time(15, 0)),
        ]
        leaders = overtime_leaders(entries)

        assert [l.employee.employee_id for l in leaders] == [1]

    def test_hours_summed_across_punches(self):
        entries = [entry(JANE, date(2024, 1, 10)), entry(JANE, date(2024, 1, 11))]
        [leader] = overtime_leaders(entries)

        assert leader.total_ot_hours == Decimal("3")
        assert leader.total_ot_pay == Decimal("90.00")

    def test_limit(self):
        entries = [
            entry(JANE, date(2024, 1, 10)),
            entry(JOHN, date(2024, 1, 10), time_out=time(20, 0)),
            entry(ANNA, date(2024, 1, 10), time_out=time(19, 0)),
        ]
        leaders = overtime_leaders(entries, limit=2)

        assert [l.employee.employee_id for l in leaders] == [2, 3]


class TestWindows:
    """Week windows follow the tenant's work week start (3 = Wednesday)."""

    def test_current_and_previous_weeks(self):
        computer = TrendMetricsComputer(work_week_start=3)

        assert computer.current_window(date(2024, 1, 12)) == DateRange(
            date(2024, 1, 10), date(2024, 1, 16)
        )
        assert computer.previous_window(date(2024, 1, 12)) == DateRange(
            date(2024, 1, 3), date(2024, 1, 9)
        )

    def test_series_range_covers_four_weeks(self):
        computer = TrendMetricsComputer(work_week_start=3)

        assert computer.series_range(date(2024, 1, 12)) == DateRange(
            date(2023, 12, 20), date(2024, 1, 16)
        )


class TestWeeklySeries:
    def test_newest_first_and_capped(self):
        computer = TrendMetricsComputer(work_week_start=3)
        entries = [
            entry(JANE, date(2023, 12, 13)),  # before the series window
            entry(JANE, date(2023, 12, 21)),
            entry(JANE, date(2023, 12, 28)),
            entry(JANE, date(2024, 1, 4), miles=Decimal("10")),
            entry(JANE, date(2024, 1, 11)),
        ]
        series = computer.weekly_series(entries, date(2024, 1, 12))

        assert [b.week_start for b in series] == [
            date(2024, 1, 10),
            date(2024, 1, 3),
            date(2023, 12, 27),
            date(2023, 12, 20),
        ]
        assert series[1].week_end == date(2024, 1, 9)
        assert series[1].regular_pay == Decimal("160.00")
        assert series[1].overtime_pay == Decimal("45.00")
        assert series[1].mileage_pay == Decimal("5.00")
        assert series[1].total_pay == Decimal("210.00")

    def test_weeks_without_entries_absent(self):
        computer = TrendMetricsComputer(work_week_start=3)
        series = computer.weekly_series([entry(JANE, date(2024, 1, 11))], date(2024, 1, 12))

        assert len(series) == 1


class TestDashboard:
    """Current versus previous work week."""

    def test_metrics(self):
        computer = TrendMetricsComputer(work_week_start=3)
        entries = [
            entry(JANE, date(2024, 1, 4), miles=Decimal("10")),
            entry(JANE, date(2024, 1, 10), miles=Decimal("20")),
            entry(JOHN, date(2024, 1, 11), time_out=time(20, 0)),
        ]
        metrics = computer.compute_dashboard(TENANT, date(2024, 1, 12), entries, active_employees=2)

        assert metrics.current_start == date(2024, 1, 10)
        assert metrics.previous_end == date(2024, 1, 9)
        # previous: 160 + 45 + 5; current: 160 + 45 + 10 plus 200 + 131.25
        assert metrics.total_payroll.previous == Decimal("210.00")
        assert metrics.total_payroll.current == Decimal("546.25")
        assert metrics.overtime_hours.current == Decimal("5")
        assert metrics.overtime_hours.trend == (
            (Decimal("5") - Decimal("1.5")) / Decimal("1.5") * 100
        )
        assert metrics.total_mileage.current == Decimal("20")
        assert metrics.total_mileage.trend == Decimal("100")
        assert metrics.active_employees == 2
        assert [l.employee.employee_id for l in metrics.overtime_leaders] == [2, 1]

    def test_empty_previous_week_trends_to_zero(self):
        computer = TrendMetricsComputer(work_week_start=3)
        metrics = computer.compute_dashboard(
            TENANT, date(2024, 1, 12), [entry(JANE, date(2024, 1, 10))], active_employees=1
        )

        assert metrics.total_payroll.trend == Decimal("0")
        assert metrics.overtime_hours.trend == Decimal("0")

    def test_foreign_entry_rejected(self):
        computer = TrendMetricsComputer(work_week_start=3)
        foreign = entry(JANE, date(2024, 1, 10), tenant_id=99)
        with pytest.raises(InvalidInputError):
            computer.compute_dashboard(TENANT, date(2024, 1, 12), [foreign], active_employees=1)


class TestLastPayroll:
    def test_summary_totals(self):
        period = DateRange(date(2023, 12, 27), date(2024, 1, 9))
        summaries = [
            PeriodSummary(
                employee_id=1,
                employee_name="Jane Doe",
                has_entries=True,
                entry_count=2,
                reg_hours=Decimal("16"),
                ot_hours=Decimal("3"),
                pto_hours=Decimal("8"),
                miles=Decimal("12"),
            ),
            PeriodSummary(employee_id=2, employee_name="John Smith"),
        ]
        summary = TrendMetricsComputer.summarize_last_payroll(period, summaries)

        assert summary.start_date == date(2023, 12, 27)
        assert summary.total_hours == Decimal("19")
        assert summary.overtime_hours == Decimal("3")
        assert summary.pto_hours == Decimal("8")
        assert summary.total_miles == Decimal("12")
        assert summary.employees_completed == 1
        assert summary.total_employees == 2
