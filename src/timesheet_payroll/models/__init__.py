"""ORM models."""

from timesheet_payroll.models.audit import AuditLog
from timesheet_payroll.models.base import Base, TimestampMixin
from timesheet_payroll.models.company import Tenant, TenantSetting
from timesheet_payroll.models.employee import Employee
from timesheet_payroll.models.timesheet import PayrollCalc, Punch

__all__ = [
    "AuditLog",
    "Base",
    "TimestampMixin",
    "Tenant",
    "TenantSetting",
    "Employee",
    "PayrollCalc",
    "Punch",
]
