"""Per-punch pay derivation."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import ZERO, PayBreakdown, PunchRecord
from timesheet_payroll.exceptions import ComputationError, InvalidInputError

OVERTIME_MULTIPLIER = Decimal("1.5")
MINUTES_PER_DAY = 24 * 60


def worked_minutes(time_in: time, time_out: time, lunch_minutes: int) -> Decimal:
    """Minutes worked between two clock times, less lunch.

    A ``time_out`` earlier than ``time_in`` is an overnight shift: 24 hours are
    added before lunch is subtracted.
    """
    anchor = datetime(2000, 1, 1)
    span: timedelta = datetime.combine(anchor, time_out) - datetime.combine(anchor, time_in)
    minutes = Decimal(int(span.total_seconds())) / Decimal(60)
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes - Decimal(lunch_minutes)


class PayrollCalculator:
    """Turns one punch into a pay breakdown.

    Pipeline (stable order):
    1) Validate rate and non-negative quantities
    2) Reject punches with no payable event
    3) Worked hours from the time pair (overnight wrap, less lunch)
    4) Split worked hours at the tenant OT threshold
    5) Price each category, rounding every component to cents
    6) total_pay = sum of the rounded components

    The calculator is pure: no I/O, no clock, same inputs give the same
    breakdown.
    """

    PRECISION = Decimal("0.0001")  # 4 decimal places for hours
    OUTPUT_PRECISION = Decimal("0.01")  # 2 decimal places for money

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(PayrollCalculator.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_hours(hours: Decimal) -> Decimal:
        return hours.quantize(PayrollCalculator.PRECISION, rounding=ROUND_HALF_UP)

    def compute(
        self,
        punch: PunchRecord,
        employee_rate: Decimal,
        settings: TenantSettings,
    ) -> PayBreakdown:
        """Compute the pay breakdown for one punch.

        Raises:
            InvalidInputError: rate <= 0, a negative quantity, or lunch longer
                than the shift.
            ComputationError: no time pair and no PTO/holiday/misc hours.
        """
        self._validate(punch, employee_rate)

        if not punch.is_payable:
            raise ComputationError(
                f"Punch {punch.punch_id} has no time in/out and no PTO, holiday "
                "or misc hours",
                punch_id=punch.punch_id,
            )

        worked = ZERO
        if punch.has_time_pair:
            minutes = worked_minutes(punch.time_in, punch.time_out, punch.lunch_minutes)
            if minutes < 0:
                raise InvalidInputError(
                    f"Lunch of {punch.lunch_minutes} minutes exceeds the shift length",
                    field="lunch_minutes",
                    value=punch.lunch_minutes,
                )
            worked = self.round_hours(minutes / Decimal(60))

        threshold = settings.ot_threshold
        reg_hours = min(worked, threshold)
        ot_hours = max(ZERO, worked - threshold)

        rate = employee_rate
        reg_pay = self.round_to_cents(reg_hours * rate)
        ot_pay = self.round_to_cents(ot_hours * rate * OVERTIME_MULTIPLIER)
        pto_pay = self.round_to_cents(punch.pto_hours * rate)
        holiday_worked_pay = self.round_to_cents(
            punch.holiday_worked_hours * rate * settings.holiday_rate_multiplier
        )
        holiday_non_worked_pay = self.round_to_cents(punch.holiday_non_worked_hours * rate)
        misc_hours_pay = self.round_to_cents(punch.misc_hours * rate)
        mileage_pay = self.round_to_cents(punch.miles * settings.mileage_rate)
        reimbursement = punch.misc_reimbursement

        total_pay = (
            reg_pay
            + ot_pay
            + pto_pay
            + holiday_worked_pay
            + holiday_non_worked_pay
            + misc_hours_pay
            + mileage_pay
            + reimbursement
        )

        return PayBreakdown(
            punch_id=punch.punch_id,
            worked_hours=worked,
            reg_hours=reg_hours,
            ot_hours=ot_hours,
            pto_hours=punch.pto_hours,
            holiday_worked_hours=punch.holiday_worked_hours,
            holiday_non_worked_hours=punch.holiday_non_worked_hours,
            misc_hours=punch.misc_hours,
            reg_pay=reg_pay,
            ot_pay=ot_pay,
            pto_pay=pto_pay,
            holiday_worked_pay=holiday_worked_pay,
            holiday_non_worked_pay=holiday_non_worked_pay,
            misc_hours_pay=misc_hours_pay,
            mileage_pay=mileage_pay,
            misc_reimbursement=reimbursement,
            total_pay=total_pay,
            miles=punch.miles,
        )

    @staticmethod
    def _validate(punch: PunchRecord, employee_rate: Decimal) -> None:
        if employee_rate is None or employee_rate <= 0:
            raise InvalidInputError(
                f"Employee rate must be positive, got {employee_rate}",
                field="rate",
                value=employee_rate,
            )
        quantities = {
            "lunch_minutes": Decimal(punch.lunch_minutes),
            "miles": punch.miles,
            "pto_hours": punch.pto_hours,
            "holiday_worked_hours": punch.holiday_worked_hours,
            "holiday_non_worked_hours": punch.holiday_non_worked_hours,
            "misc_hours": punch.misc_hours,
            "misc_reimbursement": punch.misc_reimbursement,
        }
        for field_name, value in quantities.items():
            if value < 0:
                raise InvalidInputError(
                    f"{field_name} must not be negative, got {value}",
                    field=field_name,
                    value=value,
                )

    @staticmethod
    def compute_inputs_fingerprint(
        punch: PunchRecord, employee_rate: Decimal, settings: TenantSettings
    ) -> str:
        """Fingerprint of everything a breakdown depends on."""
        data = {
            "punch_id": punch.punch_id,
            "time_in": punch.time_in.isoformat() if punch.time_in else None,
            "time_out": punch.time_out.isoformat() if punch.time_out else None,
            "lunch_minutes": punch.lunch_minutes,
            "miles": str(punch.miles),
            "pto_hours": str(punch.pto_hours),
            "holiday_worked_hours": str(punch.holiday_worked_hours),
            "holiday_non_worked_hours": str(punch.holiday_non_worked_hours),
            "misc_hours": str(punch.misc_hours),
            "misc_reimbursement": str(punch.misc_reimbursement),
            "rate": str(employee_rate),
            "settings": settings.to_mapping(),
        }
        json_str = json.dumps(data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
