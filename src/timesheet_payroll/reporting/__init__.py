"""Aggregation and rendering of derived pay data."""

from timesheet_payroll.reporting.exporter import (
    EXPORT_COLUMNS,
    ReportExporter,
    export_filename,
)
from timesheet_payroll.reporting.period_aggregator import PeriodAggregator, PeriodSummary
from timesheet_payroll.reporting.trend_metrics import (
    TrendMetricsComputer,
    overtime_leaders,
    trend_percentage,
)
from timesheet_payroll.reporting.types import (
    DashboardMetrics,
    DerivedEntry,
    LastPayrollSummary,
    OvertimeLeader,
    TrendMetric,
    WeeklyBucket,
)

__all__ = [
    "EXPORT_COLUMNS",
    "ReportExporter",
    "export_filename",
    "PeriodAggregator",
    "PeriodSummary",
    "TrendMetricsComputer",
    "overtime_leaders",
    "trend_percentage",
    "DashboardMetrics",
    "DerivedEntry",
    "LastPayrollSummary",
    "OvertimeLeader",
    "TrendMetric",
    "WeeklyBucket",
]
