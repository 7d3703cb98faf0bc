"""Type definitions for report outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from timesheet_payroll.calculators.types import ZERO, EmployeeRecord, PayBreakdown, PunchRecord


@dataclass(frozen=True)
class DerivedEntry:
    """A punch joined with its employee and derived breakdown."""

    punch: PunchRecord
    employee: EmployeeRecord
    breakdown: PayBreakdown


@dataclass
class OvertimeLeader:
    """One row of the overtime leaderboard."""

    employee: EmployeeRecord
    total_ot_hours: Decimal = ZERO
    total_ot_pay: Decimal = ZERO


@dataclass
class WeeklyBucket:
    """Pay totals for one work week."""

    week_start: date
    week_end: date
    regular_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    mileage_pay: Decimal = ZERO

    @property
    def total_pay(self) -> Decimal:
        return self.regular_pay + self.overtime_pay + self.mileage_pay


@dataclass(frozen=True)
class TrendMetric:
    """A current-period value and its change against the previous period."""

    current: Decimal
    previous: Decimal
    trend: Decimal


@dataclass(frozen=True)
class LastPayrollSummary:
    """Totals of the most recently closed pay period."""

    start_date: date
    end_date: date
    total_hours: Decimal
    overtime_hours: Decimal
    pto_hours: Decimal
    total_miles: Decimal
    employees_completed: int
    total_employees: int


@dataclass
class DashboardMetrics:
    """Everything the dashboard endpoint returns."""

    as_of_date: date
    current_start: date
    current_end: date
    previous_start: date
    previous_end: date
    total_payroll: TrendMetric
    overtime_hours: TrendMetric
    total_mileage: TrendMetric
    active_employees: int
    weekly_series: list[WeeklyBucket] = field(default_factory=list)
    overtime_leaders: list[OvertimeLeader] = field(default_factory=list)
    recent_entries: list[tuple[PunchRecord, EmployeeRecord | None, PayBreakdown | None]] = field(
        default_factory=list
    )
    last_payroll: LastPayrollSummary | None = None
