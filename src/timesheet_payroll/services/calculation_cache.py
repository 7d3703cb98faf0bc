"""Memoized per-punch pay breakdowns."""

from __future__ import annotations

import json
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_payroll.calculators.payroll_calculator import PayrollCalculator
from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.exceptions import InvalidInputError
from timesheet_payroll.models import PayrollCalc, Punch
from timesheet_payroll.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class CalculationCache:
    """Keeps at most one stored breakdown per punch.

    Stored rows carry the canonical JSON of the breakdown, so a cache hit
    returns exactly the Decimals of the first computation. The cache never
    checks whether a row has gone stale: whoever mutates a punch, an
    employee rate or a tenant setting must invalidate the affected rows.
    """

    def __init__(
        self,
        session: AsyncSession,
        store: RecordStore | None = None,
        calculator: PayrollCalculator | None = None,
    ):
        self.session = session
        self.store = store or RecordStore(session)
        self.calculator = calculator or PayrollCalculator()

    async def get_or_compute(self, tenant_id: int, punch_id: int) -> PayBreakdown:
        """Stored breakdown for the punch, computing and storing it on a miss."""
        punch = await self.store.get_punch(tenant_id, punch_id)
        cached = await self._load(punch.id)
        if cached is not None:
            logger.debug("Cache hit for punch %s", punch.id)
            return cached

        employee = await self.store.get_employee(tenant_id, punch.employee_id)
        settings = TenantSettings.from_mapping(await self.store.get_settings(tenant_id))
        return await self._compute_and_store(
            PunchRecord.from_model(punch), EmployeeRecord.from_model(employee), settings
        )

    async def derive(
        self,
        punch: PunchRecord,
        employee: EmployeeRecord,
        settings: TenantSettings,
    ) -> PayBreakdown:
        """Like ``get_or_compute`` for callers that already hold the records."""
        if punch.tenant_id != employee.tenant_id or punch.employee_id != employee.employee_id:
            raise InvalidInputError(
                f"Punch {punch.punch_id} does not belong to employee {employee.employee_id}",
                field="employee_id",
                value=punch.employee_id,
            )
        cached = await self._load(punch.punch_id)
        if cached is not None:
            logger.debug("Cache hit for punch %s", punch.punch_id)
            return cached
        return await self._compute_and_store(punch, employee, settings)

    async def invalidate(self, tenant_id: int, punch_id: int) -> int:
        """Drop the stored breakdown of one punch. Returns rows removed."""
        result = await self.session.execute(
            delete(PayrollCalc)
            .where(
                PayrollCalc.punch_id == punch_id,
                PayrollCalc.punch_id.in_(self._tenant_punch_ids(tenant_id)),
            )
            .execution_options(synchronize_session=False)
        )
        logger.debug("Invalidated breakdown for punch %s (%s rows)", punch_id, result.rowcount)
        return result.rowcount or 0

    async def invalidate_employee(self, tenant_id: int, employee_id: int) -> int:
        """Drop every stored breakdown of one employee's punches."""
        result = await self.session.execute(
            delete(PayrollCalc)
            .where(
                PayrollCalc.punch_id.in_(
                    self._tenant_punch_ids(tenant_id).where(Punch.employee_id == employee_id)
                )
            )
            .execution_options(synchronize_session=False)
        )
        logger.debug(
            "Invalidated %s breakdowns for employee %s", result.rowcount, employee_id
        )
        return result.rowcount or 0

    async def invalidate_tenant(self, tenant_id: int) -> int:
        """Drop every stored breakdown of the tenant."""
        result = await self.session.execute(
            delete(PayrollCalc)
            .where(PayrollCalc.punch_id.in_(self._tenant_punch_ids(tenant_id)))
            .execution_options(synchronize_session=False)
        )
        logger.debug("Invalidated %s breakdowns for tenant %s", result.rowcount, tenant_id)
        return result.rowcount or 0

    async def recompute(self, tenant_id: int, punch_id: int) -> PayBreakdown:
        await self.invalidate(tenant_id, punch_id)
        return await self.get_or_compute(tenant_id, punch_id)

    @staticmethod
    def _tenant_punch_ids(tenant_id: int):
        return select(Punch.id).where(Punch.tenant_id == tenant_id)

    async def _load(self, punch_id: int) -> PayBreakdown | None:
        result = await self.session.execute(
            select(PayrollCalc.breakdown).where(PayrollCalc.punch_id == punch_id)
        )
        raw = result.scalar_one_or_none()
        if raw is None:
            return None
        return PayBreakdown.from_canonical_dict(json.loads(raw))

    async def _compute_and_store(
        self,
        punch: PunchRecord,
        employee: EmployeeRecord,
        settings: TenantSettings,
    ) -> PayBreakdown:
        logger.debug("Cache miss for punch %s", punch.punch_id)
        breakdown = self.calculator.compute(punch, employee.rate, settings)
        fingerprint = self.calculator.compute_inputs_fingerprint(punch, employee.rate, settings)

        self.session.add(
            PayrollCalc(
                punch_id=punch.punch_id,
                reg_hours=breakdown.reg_hours,
                ot_hours=breakdown.ot_hours,
                pto_hours=breakdown.pto_hours,
                holiday_worked_hours=breakdown.holiday_worked_hours,
                holiday_non_worked_hours=breakdown.holiday_non_worked_hours,
                misc_hours=breakdown.misc_hours,
                reg_pay=breakdown.reg_pay,
                ot_pay=breakdown.ot_pay,
                pto_pay=breakdown.pto_pay,
                holiday_worked_pay=breakdown.holiday_worked_pay,
                holiday_non_worked_pay=breakdown.holiday_non_worked_pay,
                misc_hours_pay=breakdown.misc_hours_pay,
                mileage_pay=breakdown.mileage_pay,
                misc_reimbursement=breakdown.misc_reimbursement,
                total_pay=breakdown.total_pay,
                breakdown=json.dumps(breakdown.to_canonical_dict(), sort_keys=True),
                inputs_fingerprint=fingerprint,
            )
        )
        await self.session.flush()
        return breakdown
