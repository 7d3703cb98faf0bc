"""Per-employee pay period summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from timesheet_payroll.calculators.payroll_calculator import PayrollCalculator
from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import ZERO, EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.exceptions import ComputationError, InvalidInputError

logger = logging.getLogger(__name__)

BreakdownProvider = Callable[[PunchRecord], PayBreakdown]


@dataclass
class PeriodSummary:
    """Totals for one employee over one pay period."""

    employee_id: int
    employee_name: str
    has_entries: bool = False
    entry_count: int = 0
    reg_hours: Decimal = ZERO
    ot_hours: Decimal = ZERO
    pto_hours: Decimal = ZERO
    holiday_worked_hours: Decimal = ZERO
    holiday_non_worked_hours: Decimal = ZERO
    misc_hours: Decimal = ZERO
    miles: Decimal = ZERO
    misc_reimbursement: Decimal = ZERO
    reg_pay: Decimal = ZERO
    ot_pay: Decimal = ZERO
    pto_pay: Decimal = ZERO
    holiday_worked_pay: Decimal = ZERO
    holiday_non_worked_pay: Decimal = ZERO
    misc_hours_pay: Decimal = ZERO
    mileage_pay: Decimal = ZERO
    total_pay: Decimal = ZERO
    skipped_punch_ids: list[int] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        """Worked hours (regular + overtime)."""
        return self.reg_hours + self.ot_hours

    @property
    def regular_pay(self) -> Decimal:
        """Regular pay as reported: straight-time plus misc-hours pay."""
        return self.reg_pay + self.misc_hours_pay

    @property
    def holiday_pay(self) -> Decimal:
        return self.holiday_worked_pay + self.holiday_non_worked_pay

    def add(self, breakdown: PayBreakdown, miles: Decimal) -> None:
        self.has_entries = True
        self.entry_count += 1
        self.reg_hours += breakdown.reg_hours
        self.ot_hours += breakdown.ot_hours
        self.pto_hours += breakdown.pto_hours
        self.holiday_worked_hours += breakdown.holiday_worked_hours
        self.holiday_non_worked_hours += breakdown.holiday_non_worked_hours
        self.misc_hours += breakdown.misc_hours
        self.miles += miles
        self.misc_reimbursement += breakdown.misc_reimbursement
        self.reg_pay += breakdown.reg_pay
        self.ot_pay += breakdown.ot_pay
        self.pto_pay += breakdown.pto_pay
        self.holiday_worked_pay += breakdown.holiday_worked_pay
        self.holiday_non_worked_pay += breakdown.holiday_non_worked_pay
        self.misc_hours_pay += breakdown.misc_hours_pay
        self.mileage_pay += breakdown.mileage_pay
        self.total_pay += breakdown.total_pay


class PeriodAggregator:
    """Sums derived punch breakdowns per employee over a date range.

    Every employee passed in gets exactly one summary, in input order, even
    with no punches in range (``has_entries`` stays False). The aggregator is
    range-agnostic: one week or two, it sums whatever falls in
    ``[start, end]`` inclusive.

    Breakdowns come from ``derive`` (for example a cache lookup); by default
    they are computed with ``PayrollCalculator`` from the employee's rate.
    A punch whose breakdown cannot be derived is skipped and logged; it never
    aborts the report.
    """

    def __init__(
        self,
        settings: TenantSettings,
        derive: BreakdownProvider | None = None,
        calculator: PayrollCalculator | None = None,
    ):
        self.settings = settings
        self.calculator = calculator or PayrollCalculator()
        self._derive = derive

    def aggregate(
        self,
        tenant_id: int,
        employees: Sequence[EmployeeRecord],
        punches: Iterable[PunchRecord],
        date_range: DateRange,
    ) -> list[PeriodSummary]:
        summaries: dict[int, PeriodSummary] = {}
        rates: dict[int, Decimal] = {}
        for emp in employees:
            if emp.tenant_id != tenant_id:
                raise InvalidInputError(
                    f"Employee {emp.employee_id} does not belong to tenant {tenant_id}",
                    field="tenant_id",
                    value=emp.tenant_id,
                )
            summaries[emp.employee_id] = PeriodSummary(
                employee_id=emp.employee_id, employee_name=emp.name
            )
            rates[emp.employee_id] = emp.rate

        for punch in punches:
            if punch.tenant_id != tenant_id:
                raise InvalidInputError(
                    f"Punch {punch.punch_id} does not belong to tenant {tenant_id}",
                    field="tenant_id",
                    value=punch.tenant_id,
                )
            summary = summaries.get(punch.employee_id)
            if summary is None or not date_range.contains(punch.work_date):
                continue

            try:
                breakdown = self._breakdown_for(punch, rates[punch.employee_id])
            except (ComputationError, InvalidInputError) as e:
                logger.warning(
                    "Skipping punch %s for employee %s: %s",
                    punch.punch_id,
                    punch.employee_id,
                    e,
                )
                summary.skipped_punch_ids.append(punch.punch_id)
                continue

            summary.add(breakdown, self._miles_for(breakdown))

        return [summaries[emp.employee_id] for emp in employees]

    def _breakdown_for(self, punch: PunchRecord, rate: Decimal) -> PayBreakdown:
        if self._derive is not None:
            return self._derive(punch)
        return self.calculator.compute(punch, rate, self.settings)

    def _miles_for(self, breakdown: PayBreakdown) -> Decimal:
        """Miles driven, recovered from mileage pay when not carried."""
        if breakdown.miles is not None:
            return breakdown.miles
        if self.settings.mileage_rate > 0:
            return breakdown.mileage_pay / self.settings.mileage_rate
        return ZERO
