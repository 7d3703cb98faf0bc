"""Tenant-scoped persistence for employees, punches, settings and audit rows."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import String, cast, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_payroll.calculators.payroll_calculator import worked_minutes
from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.types import PunchStatus, to_decimal
from timesheet_payroll.exceptions import InvalidInputError, NotFoundError
from timesheet_payroll.models import (
    AuditLog,
    Employee,
    PayrollCalc,
    Punch,
    Tenant,
    TenantSetting,
)

EMPLOYEE_FIELDS = ("first_name", "last_name", "rate", "active")

PUNCH_FIELDS = (
    "work_date",
    "time_in",
    "time_out",
    "lunch_minutes",
    "miles",
    "pto_hours",
    "holiday_worked_hours",
    "holiday_non_worked_hours",
    "misc_hours",
    "misc_reimbursement",
    "status",
)

NON_NEGATIVE_PUNCH_FIELDS = (
    "lunch_minutes",
    "miles",
    "pto_hours",
    "holiday_worked_hours",
    "holiday_non_worked_hours",
    "misc_hours",
    "misc_reimbursement",
)

NON_WORKED_HOUR_FIELDS = (
    "pto_hours",
    "holiday_worked_hours",
    "holiday_non_worked_hours",
    "misc_hours",
)

# Only the time pair may be cleared on an existing punch.
NULLABLE_PUNCH_FIELDS = ("time_in", "time_out")


def is_blank_entry(values: Mapping[str, Any]) -> bool:
    """True for a weekly-form row with no time pair and no non-worked hours."""
    if values.get("time_in") is not None and values.get("time_out") is not None:
        return False
    return not any(to_decimal(values.get(f)) > 0 for f in NON_WORKED_HOUR_FIELDS)


def validate_punch_quantities(values: Mapping[str, Any]) -> None:
    """Field checks that apply to every row, blank or not."""
    if values.get("work_date") is None:
        raise InvalidInputError("Punch date is required", field="date")
    for field_name in NON_NEGATIVE_PUNCH_FIELDS:
        value = values.get(field_name)
        if value is not None and to_decimal(value) < 0:
            raise InvalidInputError(
                f"{field_name} must not be negative, got {value}",
                field=field_name,
                value=value,
            )
    status = values.get("status", PunchStatus.PENDING.value)
    if status not in {s.value for s in PunchStatus}:
        raise InvalidInputError(f"Unknown punch status {status!r}", field="status", value=status)
    time_in, time_out = values.get("time_in"), values.get("time_out")
    if time_in is not None and time_out is not None:
        lunch = int(values.get("lunch_minutes") or 0)
        if worked_minutes(time_in, time_out, lunch) < 0:
            raise InvalidInputError(
                f"Lunch of {lunch} minutes exceeds the shift length",
                field="lunch_minutes",
                value=lunch,
            )


def validate_punch_values(values: Mapping[str, Any]) -> None:
    """Check a full set of punch fields before it is written."""
    validate_punch_quantities(values)
    if is_blank_entry(values):
        raise InvalidInputError(
            "A punch without time in/out must carry PTO, holiday or misc hours",
            field="time_in",
        )


def validate_rate(rate: Any) -> None:
    if rate is None or to_decimal(rate) <= 0:
        raise InvalidInputError(f"Rate must be positive, got {rate}", field="rate", value=rate)


def _paginate(stmt, page: int | None, limit: int | None):
    if page is not None and limit is not None:
        if page < 1 or limit < 1:
            raise InvalidInputError("page and limit must be positive", field="page", value=page)
        stmt = stmt.offset((page - 1) * limit).limit(limit)
    return stmt


class RecordStore:
    """Query and write access to the relational store.

    Every method takes the tenant id first and applies it as a filter; a row
    belonging to another tenant is reported exactly like a missing one.
    Methods flush but never commit: the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # Tenants

    async def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    async def create_tenant(self, name: str) -> Tenant:
        tenant = Tenant(name=name)
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def count_tenants(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Tenant))
        return result.scalar_one()

    # Employees

    async def get_employee(self, tenant_id: int, employee_id: int) -> Employee:
        result = await self.session.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.tenant_id == tenant_id,
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id, tenant_id)
        return employee

    async def list_employees(
        self,
        tenant_id: int,
        active: bool | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Employee]:
        stmt = select(Employee).where(Employee.tenant_id == tenant_id)
        if active is not None:
            stmt = stmt.where(Employee.active == active)
        if search:
            full_name = func.lower(Employee.first_name + " " + Employee.last_name)
            stmt = stmt.where(full_name.contains(search.lower(), autoescape=True))
        stmt = stmt.order_by(Employee.last_name, Employee.first_name, Employee.id)
        result = await self.session.execute(_paginate(stmt, page, limit))
        return list(result.scalars().all())

    async def create_employee(self, tenant_id: int, values: Mapping[str, Any]) -> Employee:
        validate_rate(values.get("rate"))
        for name in ("first_name", "last_name"):
            if not values.get(name):
                raise InvalidInputError(f"{name} is required", field=name)
        employee = Employee(
            tenant_id=tenant_id,
            first_name=values["first_name"],
            last_name=values["last_name"],
            rate=to_decimal(values["rate"]),
            active=values.get("active", True),
        )
        self.session.add(employee)
        await self.session.flush()
        return employee

    async def update_employee(
        self, tenant_id: int, employee_id: int, changes: Mapping[str, Any]
    ) -> Employee:
        employee = await self.get_employee(tenant_id, employee_id)
        if "rate" in changes:
            validate_rate(changes["rate"])
        for key, value in changes.items():
            if key not in EMPLOYEE_FIELDS:
                raise InvalidInputError(f"Unknown employee field {key!r}", field=key)
            if value is None or (key in ("first_name", "last_name") and not value):
                raise InvalidInputError(f"{key} is required", field=key)
            setattr(employee, key, to_decimal(value) if key == "rate" else value)
        await self.session.flush()
        return employee

    async def deactivate_employee(self, tenant_id: int, employee_id: int) -> Employee:
        return await self.update_employee(tenant_id, employee_id, {"active": False})

    # Punches

    async def get_punch(self, tenant_id: int, punch_id: int) -> Punch:
        result = await self.session.execute(
            select(Punch).where(
                Punch.id == punch_id,
                Punch.tenant_id == tenant_id,
            )
        )
        punch = result.scalar_one_or_none()
        if punch is None:
            raise NotFoundError("Punch", punch_id, tenant_id)
        return punch

    async def list_punches(
        self,
        tenant_id: int,
        employee_id: int | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        status: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Punch]:
        stmt = select(Punch).where(Punch.tenant_id == tenant_id)
        if employee_id is not None:
            stmt = stmt.where(Punch.employee_id == employee_id)
        if from_date is not None:
            stmt = stmt.where(Punch.work_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(Punch.work_date <= to_date)
        if status is not None:
            stmt = stmt.where(Punch.status == status)
        if search:
            stmt = stmt.where(cast(Punch.work_date, String).contains(search, autoescape=True))
        stmt = stmt.order_by(Punch.work_date.desc(), Punch.id.desc())
        result = await self.session.execute(_paginate(stmt, page, limit))
        return list(result.scalars().all())

    async def list_recent_punches(self, tenant_id: int, limit: int) -> list[Punch]:
        """Most recently created punches first."""
        result = await self.session.execute(
            select(Punch)
            .where(Punch.tenant_id == tenant_id)
            .order_by(Punch.created_at.desc(), Punch.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_punch(
        self,
        tenant_id: int,
        employee_id: int,
        values: Mapping[str, Any],
        created_by: int | None = None,
    ) -> Punch:
        await self.get_employee(tenant_id, employee_id)
        punch = self._build_punch(tenant_id, employee_id, values, created_by)
        self.session.add(punch)
        await self.session.flush()
        return punch

    async def update_punch(
        self, tenant_id: int, punch_id: int, changes: Mapping[str, Any]
    ) -> Punch:
        punch = await self.get_punch(tenant_id, punch_id)
        unknown = set(changes) - set(PUNCH_FIELDS)
        if unknown:
            raise InvalidInputError(
                f"Unknown punch field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        for key, value in changes.items():
            if value is None and key not in NULLABLE_PUNCH_FIELDS:
                raise InvalidInputError(f"{key} may not be null", field=key)
        merged = {name: getattr(punch, name) for name in PUNCH_FIELDS}
        merged.update(changes)
        validate_punch_values(merged)
        for key, value in changes.items():
            setattr(punch, key, value)
        await self.session.flush()
        return punch

    async def delete_punch(self, tenant_id: int, punch_id: int) -> Punch:
        """Delete a punch and its cached breakdown."""
        punch = await self.get_punch(tenant_id, punch_id)
        await self._delete_punch_rows(tenant_id, [punch.id])
        return punch

    async def replace_punches(
        self,
        tenant_id: int,
        employee_id: int,
        entries: Iterable[Mapping[str, Any]],
        created_by: int | None = None,
    ) -> tuple[list[Punch], list[Punch]]:
        """Replace an employee's punches over the dates the entries cover.

        The range runs from the earliest to the latest submitted date. Every
        existing punch in it is deleted and the non-blank entries inserted.
        All entries are validated before anything is written, and any failure
        afterwards rolls the session back, so either the whole batch applies
        or none of it does.

        Returns ``(deleted, inserted)``.
        """
        entries = list(entries)
        if not entries:
            return [], []

        await self.get_employee(tenant_id, employee_id)
        for entry in entries:
            other = entry.get("employee_id")
            if other is not None and other != employee_id:
                raise InvalidInputError(
                    "All batch entries must belong to the same employee",
                    field="employee_id",
                    value=other,
                )
            validate_punch_quantities(entry)

        kept = [e for e in entries if not is_blank_entry(e)]

        dates = [e["work_date"] for e in entries]
        date_range = DateRange(min(dates), max(dates))

        try:
            existing = await self.list_punches(
                tenant_id,
                employee_id=employee_id,
                from_date=date_range.start,
                to_date=date_range.end,
            )
            await self._delete_punch_rows(tenant_id, [p.id for p in existing])

            inserted = [
                self._build_punch(tenant_id, employee_id, entry, created_by) for entry in kept
            ]
            self.session.add_all(inserted)
            await self.session.flush()
        except Exception:
            await self.session.rollback()
            raise

        return existing, inserted

    async def _delete_punch_rows(self, tenant_id: int, punch_ids: list[int]) -> None:
        if not punch_ids:
            return
        # Explicit so the calc rows go even where FK cascades are not enforced.
        await self.session.execute(
            delete(PayrollCalc).where(PayrollCalc.punch_id.in_(punch_ids))
        )
        await self.session.execute(
            delete(Punch).where(
                Punch.id.in_(punch_ids),
                Punch.tenant_id == tenant_id,
            )
        )

    @staticmethod
    def _build_punch(
        tenant_id: int,
        employee_id: int,
        values: Mapping[str, Any],
        created_by: int | None,
    ) -> Punch:
        validate_punch_values(values)
        zero = Decimal("0")
        return Punch(
            tenant_id=tenant_id,
            employee_id=employee_id,
            work_date=values["work_date"],
            time_in=values.get("time_in"),
            time_out=values.get("time_out"),
            lunch_minutes=values.get("lunch_minutes") or 0,
            miles=to_decimal(values.get("miles") or zero),
            pto_hours=to_decimal(values.get("pto_hours") or zero),
            holiday_worked_hours=to_decimal(values.get("holiday_worked_hours") or zero),
            holiday_non_worked_hours=to_decimal(values.get("holiday_non_worked_hours") or zero),
            misc_hours=to_decimal(values.get("misc_hours") or zero),
            misc_reimbursement=to_decimal(values.get("misc_reimbursement") or zero),
            status=values.get("status") or PunchStatus.PENDING.value,
            created_by=created_by,
        )

    # Settings

    async def get_setting(self, tenant_id: int, key: str) -> str | None:
        result = await self.session.execute(
            select(TenantSetting.value).where(
                TenantSetting.tenant_id == tenant_id,
                TenantSetting.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def get_settings(self, tenant_id: int) -> dict[str, str]:
        result = await self.session.execute(
            select(TenantSetting.key, TenantSetting.value).where(
                TenantSetting.tenant_id == tenant_id
            )
        )
        return {key: value for key, value in result.all()}

    async def set_setting(self, tenant_id: int, key: str, value: str) -> str | None:
        """Insert or update one setting. Returns the previous value, if any."""
        result = await self.session.execute(
            select(TenantSetting).where(
                TenantSetting.tenant_id == tenant_id,
                TenantSetting.key == key,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(TenantSetting(tenant_id=tenant_id, key=key, value=value))
            await self.session.flush()
            return None
        old_value = row.value
        row.value = value
        await self.session.flush()
        return old_value

    # Audit

    async def append_audit(
        self,
        tenant_id: int,
        table_name: str,
        row_id: int,
        field: str,
        old_val: str | None,
        new_val: str | None,
        changed_by: int | None,
    ) -> AuditLog:
        entry = AuditLog(
            tenant_id=tenant_id,
            table_name=table_name,
            row_id=row_id,
            field=field,
            old_val=old_val,
            new_val=new_val,
            changed_by=changed_by,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_audit_logs(
        self,
        tenant_id: int,
        table_name: str | None = None,
        row_id: int | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[AuditLog]:
        stmt = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
        if table_name is not None:
            stmt = stmt.where(AuditLog.table_name == table_name)
        if row_id is not None:
            stmt = stmt.where(AuditLog.row_id == row_id)
        stmt = stmt.order_by(AuditLog.changed_at.desc(), AuditLog.id.desc())
        result = await self.session.execute(_paginate(stmt, page, limit))
        return list(result.scalars().all())
