"""Pure payroll calculation components."""

from timesheet_payroll.calculators.payroll_calculator import (
    OVERTIME_MULTIPLIER,
    PayrollCalculator,
    worked_minutes,
)
from timesheet_payroll.calculators.periods import (
    DateRange,
    pay_period_before,
    trailing_weeks,
    week_start_for,
    week_window,
)
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import (
    EmployeeRecord,
    PayBreakdown,
    PunchRecord,
    PunchStatus,
    UserRole,
)

__all__ = [
    "OVERTIME_MULTIPLIER",
    "PayrollCalculator",
    "worked_minutes",
    "DateRange",
    "pay_period_before",
    "trailing_weeks",
    "week_start_for",
    "week_window",
    "TenantSettings",
    "EmployeeRecord",
    "PayBreakdown",
    "PunchRecord",
    "PunchStatus",
    "UserRole",
]
