"""Type definitions for the calculation pipeline.

These records are the backend-agnostic contract between the store and the
pure calculators: ORM rows are converted once with ``from_model`` and never
reach the calculators directly.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored numeric value to Decimal (None -> 0).

    Floats go through ``str`` so 0.67 stays 0.67 rather than its binary
    expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class PunchStatus(str, Enum):
    """Punch approval status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    """Roles recognised at the API boundary."""

    ADMIN = "admin"
    CLERK = "clerk"


@dataclass(frozen=True)
class EmployeeRecord:
    """An employee as seen by the calculators."""

    employee_id: int
    tenant_id: int
    first_name: str
    last_name: str
    rate: Decimal
    active: bool = True

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_model(cls, employee: Any) -> EmployeeRecord:
        return cls(
            employee_id=employee.id,
            tenant_id=employee.tenant_id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            rate=to_decimal(employee.rate),
            active=bool(employee.active),
        )


@dataclass(frozen=True)
class PunchRecord:
    """One timesheet record for one employee on one date."""

    punch_id: int
    tenant_id: int
    employee_id: int
    work_date: date
    time_in: time | None = None
    time_out: time | None = None
    lunch_minutes: int = 0
    miles: Decimal = ZERO
    pto_hours: Decimal = ZERO
    holiday_worked_hours: Decimal = ZERO
    holiday_non_worked_hours: Decimal = ZERO
    misc_hours: Decimal = ZERO
    misc_reimbursement: Decimal = ZERO
    status: str = PunchStatus.PENDING.value
    created_at: datetime | None = None

    @property
    def has_time_pair(self) -> bool:
        return self.time_in is not None and self.time_out is not None

    @property
    def has_non_worked_hours(self) -> bool:
        return any(
            h > 0
            for h in (
                self.pto_hours,
                self.holiday_worked_hours,
                self.holiday_non_worked_hours,
                self.misc_hours,
            )
        )

    @property
    def is_payable(self) -> bool:
        """A punch without a time pair must carry PTO, holiday or misc hours."""
        return self.has_time_pair or self.has_non_worked_hours

    @classmethod
    def from_model(cls, punch: Any) -> PunchRecord:
        return cls(
            punch_id=punch.id,
            tenant_id=punch.tenant_id,
            employee_id=punch.employee_id,
            work_date=punch.work_date,
            time_in=punch.time_in,
            time_out=punch.time_out,
            lunch_minutes=punch.lunch_minutes or 0,
            miles=to_decimal(punch.miles),
            pto_hours=to_decimal(punch.pto_hours),
            holiday_worked_hours=to_decimal(punch.holiday_worked_hours),
            holiday_non_worked_hours=to_decimal(punch.holiday_non_worked_hours),
            misc_hours=to_decimal(punch.misc_hours),
            misc_reimbursement=to_decimal(punch.misc_reimbursement),
            status=punch.status,
            created_at=punch.created_at,
        )


@dataclass(frozen=True)
class PayBreakdown:
    """Derived pay components for a single punch.

    ``total_pay`` is always the sum of the seven pay components plus the
    reimbursement; the calculator builds it that way and nothing else
    constructs a breakdown except the canonical round-trip below.
    """

    punch_id: int
    worked_hours: Decimal
    reg_hours: Decimal
    ot_hours: Decimal
    pto_hours: Decimal
    holiday_worked_hours: Decimal
    holiday_non_worked_hours: Decimal
    misc_hours: Decimal
    reg_pay: Decimal
    ot_pay: Decimal
    pto_pay: Decimal
    holiday_worked_pay: Decimal
    holiday_non_worked_pay: Decimal
    misc_hours_pay: Decimal
    mileage_pay: Decimal
    misc_reimbursement: Decimal
    total_pay: Decimal
    miles: Decimal | None = None

    @property
    def hourly_pay(self) -> Decimal:
        """Pay for time (everything except mileage and reimbursement)."""
        return (
            self.reg_pay
            + self.ot_pay
            + self.pto_pay
            + self.holiday_worked_pay
            + self.holiday_non_worked_pay
            + self.misc_hours_pay
        )

    @property
    def holiday_pay(self) -> Decimal:
        return self.holiday_worked_pay + self.holiday_non_worked_pay

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for storage and hashing."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                data[f.name] = str(value)
            else:
                data[f.name] = value
        return data

    @classmethod
    def from_canonical_dict(cls, data: dict[str, Any]) -> PayBreakdown:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "punch_id":
                kwargs[f.name] = int(value)
            elif value is None:
                kwargs[f.name] = None
            else:
                kwargs[f.name] = Decimal(value)
        return cls(**kwargs)
