"""API routes."""

from timesheet_payroll.api.routes.audit_logs import router as audit_router
from timesheet_payroll.api.routes.employees import router as employees_router
from timesheet_payroll.api.routes.health import router as health_router
from timesheet_payroll.api.routes.payroll import router as payroll_router
from timesheet_payroll.api.routes.punches import router as punches_router
from timesheet_payroll.api.routes.reports import router as reports_router
from timesheet_payroll.api.routes.settings import router as settings_router

__all__ = [
    "audit_router",
    "employees_router",
    "health_router",
    "payroll_router",
    "punches_router",
    "reports_router",
    "settings_router",
]
