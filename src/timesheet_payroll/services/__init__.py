"""Session-bound services over the record store."""

from timesheet_payroll.services.audit import AuditEntry, AuditRecorder, AuditSink, StoreAuditSink
from timesheet_payroll.services.calculation_cache import CalculationCache
from timesheet_payroll.services.record_store import RecordStore
from timesheet_payroll.services.report_service import ReportService
from timesheet_payroll.services.timesheet_service import TimesheetService

__all__ = [
    "AuditEntry",
    "AuditRecorder",
    "AuditSink",
    "StoreAuditSink",
    "CalculationCache",
    "RecordStore",
    "ReportService",
    "TimesheetService",
]
