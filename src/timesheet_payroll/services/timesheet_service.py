"""Timesheet mutations with their audit trail and cache maintenance."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_payroll.calculators.tenant_settings import TenantSettings
from timesheet_payroll.calculators.types import PayBreakdown
from timesheet_payroll.exceptions import InvalidInputError
from timesheet_payroll.models import Employee, Punch
from timesheet_payroll.services.audit import AuditRecorder, AuditSink, StoreAuditSink
from timesheet_payroll.services.calculation_cache import CalculationCache
from timesheet_payroll.services.record_store import (
    EMPLOYEE_FIELDS,
    PUNCH_FIELDS,
    RecordStore,
)

logger = logging.getLogger(__name__)

EMPLOYEE_TABLE = "employee"
PUNCH_TABLE = "punch"
SETTING_TABLE = "tenant_setting"


class TimesheetService:
    """Applies edits on behalf of one acting user.

    Each mutation is audited field by field and invalidates exactly the
    cached breakdowns it affects:
    - punch update: that punch is recomputed
    - employee rate change: that employee's breakdowns are dropped
    - settings change: every breakdown of the tenant is dropped
    """

    def __init__(
        self,
        session: AsyncSession,
        actor_id: int | None = None,
        sink: AuditSink | None = None,
    ):
        self.session = session
        self.store = RecordStore(session)
        self.cache = CalculationCache(session, self.store)
        self.audit = AuditRecorder(sink or StoreAuditSink(self.store), actor_id)
        self.actor_id = actor_id

    # Employees

    async def create_employee(self, tenant_id: int, values: Mapping[str, Any]) -> Employee:
        await self.store.get_tenant(tenant_id)
        employee = await self.store.create_employee(tenant_id, values)
        await self.audit.created(tenant_id, EMPLOYEE_TABLE, employee.id, employee.to_dict())
        return employee

    async def update_employee(
        self, tenant_id: int, employee_id: int, changes: Mapping[str, Any]
    ) -> Employee:
        employee = await self.store.get_employee(tenant_id, employee_id)
        before = {name: getattr(employee, name) for name in EMPLOYEE_FIELDS}

        employee = await self.store.update_employee(tenant_id, employee_id, changes)
        after = {name: getattr(employee, name) for name in changes}
        changed = await self.audit.changed(tenant_id, EMPLOYEE_TABLE, employee.id, before, after)

        if any(entry.field == "rate" for entry in changed):
            await self.cache.invalidate_employee(tenant_id, employee.id)
        return employee

    async def deactivate_employee(self, tenant_id: int, employee_id: int) -> Employee:
        return await self.update_employee(tenant_id, employee_id, {"active": False})

    # Punches

    async def create_punch(
        self, tenant_id: int, employee_id: int, values: Mapping[str, Any]
    ) -> tuple[Punch, PayBreakdown]:
        punch = await self.store.create_punch(
            tenant_id, employee_id, values, created_by=self.actor_id
        )
        await self.audit.created(tenant_id, PUNCH_TABLE, punch.id, punch.to_dict())
        breakdown = await self.cache.get_or_compute(tenant_id, punch.id)
        return punch, breakdown

    async def update_punch(
        self, tenant_id: int, punch_id: int, changes: Mapping[str, Any]
    ) -> tuple[Punch, PayBreakdown]:
        punch = await self.store.get_punch(tenant_id, punch_id)
        before = {name: getattr(punch, name) for name in PUNCH_FIELDS}

        punch = await self.store.update_punch(tenant_id, punch_id, changes)
        after = {name: getattr(punch, name) for name in changes}
        await self.audit.changed(tenant_id, PUNCH_TABLE, punch.id, before, after)

        breakdown = await self.cache.recompute(tenant_id, punch.id)
        return punch, breakdown

    async def delete_punch(self, tenant_id: int, punch_id: int) -> Punch:
        punch = await self.store.get_punch(tenant_id, punch_id)
        snapshot = punch.to_dict()
        await self.store.delete_punch(tenant_id, punch_id)
        await self.audit.deleted(tenant_id, PUNCH_TABLE, punch_id, snapshot)
        return punch

    async def replace_week(
        self, tenant_id: int, entries: Iterable[Mapping[str, Any]]
    ) -> list[Punch]:
        """Replace one employee's punches over the submitted dates, atomically.

        The employee is taken from the entries, which must all name the same
        one. Blank rows are dropped; an empty batch changes nothing.
        """
        entries = list(entries)
        if not entries:
            return []

        employee_ids = {e.get("employee_id") for e in entries}
        if len(employee_ids) != 1 or None in employee_ids:
            raise InvalidInputError(
                "All batch entries must name the same employee",
                field="employee_id",
            )
        employee_id = employee_ids.pop()

        # Snapshots first: the deleted rows are gone once the batch applies.
        existing = await self.store.list_punches(tenant_id, employee_id=employee_id)
        snapshots = {p.id: p.to_dict() for p in existing}

        deleted, inserted = await self.store.replace_punches(
            tenant_id, employee_id, entries, created_by=self.actor_id
        )
        for punch in deleted:
            await self.audit.deleted(tenant_id, PUNCH_TABLE, punch.id, snapshots[punch.id])
        for punch in inserted:
            await self.audit.created(tenant_id, PUNCH_TABLE, punch.id, punch.to_dict())

        logger.info(
            "Replaced punches for employee %s: %s deleted, %s inserted",
            employee_id,
            len(deleted),
            len(inserted),
        )
        return inserted

    # Settings

    async def get_settings(self, tenant_id: int) -> TenantSettings:
        return TenantSettings.from_mapping(await self.store.get_settings(tenant_id))

    async def update_settings(
        self, tenant_id: int, changes: Mapping[str, Any]
    ) -> TenantSettings:
        """Validate and store setting values; all-or-nothing on bad input."""
        await self.store.get_tenant(tenant_id)
        normalized = {key: TenantSettings.normalize(key, raw) for key, raw in changes.items()}
        effective = (await self.get_settings(tenant_id)).to_mapping()

        changed_any = False
        for key, value in normalized.items():
            old_value = await self.store.set_setting(tenant_id, key, value)
            entries = await self.audit.changed(
                tenant_id,
                SETTING_TABLE,
                tenant_id,
                {key: Decimal(old_value if old_value is not None else effective[key])},
                {key: Decimal(value)},
            )
            if entries:
                changed_any = True
                logger.info("Tenant %s setting %s changed to %s", tenant_id, key, value)

        if changed_any:
            await self.cache.invalidate_tenant(tenant_id)
        return await self.get_settings(tenant_id)
