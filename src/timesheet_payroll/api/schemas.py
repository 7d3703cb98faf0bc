"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from timesheet_payroll.calculators.types import EmployeeRecord, PayBreakdown, PunchRecord
from timesheet_payroll.reporting.exporter import DISPLAY_HOUR_PLACES, ReportExporter
from timesheet_payroll.reporting.period_aggregator import PeriodSummary
from timesheet_payroll.reporting.types import (
    DashboardMetrics,
    LastPayrollSummary,
    OvertimeLeader,
    TrendMetric,
    WeeklyBucket,
)

# UI payloads: hours to one decimal, currency to two.
_display = ReportExporter(DISPLAY_HOUR_PLACES)

# Punches expose their work date as "date"; the attribute is ``work_date``.
_DATE_FIELD = dict(
    validation_alias=AliasChoices("date", "work_date"),
    serialization_alias="date",
)


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeCreate(BaseModel):
    """Schema for creating an employee."""

    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    rate: Decimal = Field(gt=0)
    active: bool = True


class EmployeeUpdate(BaseModel):
    """Partial employee update; only fields sent are applied."""

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    rate: Decimal | None = Field(default=None, gt=0)
    active: bool | None = None


class EmployeeResponse(BaseModel):
    """Schema for employee response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    first_name: str
    last_name: str
    full_name: str
    rate: Decimal
    active: bool
    created_at: datetime


# ============================================================================
# Punch schemas
# ============================================================================


class PunchFields(BaseModel):
    """Editable punch fields."""

    model_config = ConfigDict(populate_by_name=True)

    work_date: date = Field(**_DATE_FIELD)
    time_in: time | None = None
    time_out: time | None = None
    lunch_minutes: int = 0
    miles: Decimal = Decimal("0")
    pto_hours: Decimal = Decimal("0")
    holiday_worked_hours: Decimal = Decimal("0")
    holiday_non_worked_hours: Decimal = Decimal("0")
    misc_hours: Decimal = Decimal("0")
    misc_reimbursement: Decimal = Decimal("0")
    status: str = "pending"


class PunchCreate(PunchFields):
    """Schema for creating a punch (also one row of a batch)."""

    employee_id: int


class PunchUpdate(BaseModel):
    """Partial punch update; only fields sent are applied."""

    model_config = ConfigDict(populate_by_name=True)

    work_date: date | None = Field(default=None, **_DATE_FIELD)
    time_in: time | None = None
    time_out: time | None = None
    lunch_minutes: int | None = None
    miles: Decimal | None = None
    pto_hours: Decimal | None = None
    holiday_worked_hours: Decimal | None = None
    holiday_non_worked_hours: Decimal | None = None
    misc_hours: Decimal | None = None
    misc_reimbursement: Decimal | None = None
    status: str | None = None


class PunchBatchRequest(BaseModel):
    """Weekly form submission: replaces the employee's punches over its dates."""

    entries: list[PunchCreate]


class BreakdownResponse(BaseModel):
    """Derived pay components of one punch."""

    model_config = ConfigDict(from_attributes=True)

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


class PunchResponse(PunchFields):
    """Schema for punch response, with its breakdown when available."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    tenant_id: int
    employee_id: int
    created_by: int | None = None
    created_at: datetime | None = None
    payroll: BreakdownResponse | None = None

    @classmethod
    def build(cls, punch: Any, breakdown: PayBreakdown | None = None) -> "PunchResponse":
        response = cls.model_validate(punch)
        if breakdown is not None:
            response.payroll = BreakdownResponse.model_validate(breakdown)
        return response

    @classmethod
    def from_record(
        cls, punch: PunchRecord, breakdown: PayBreakdown | None = None
    ) -> "PunchResponse":
        return cls(
            id=punch.punch_id,
            tenant_id=punch.tenant_id,
            employee_id=punch.employee_id,
            work_date=punch.work_date,
            time_in=punch.time_in,
            time_out=punch.time_out,
            lunch_minutes=punch.lunch_minutes,
            miles=punch.miles,
            pto_hours=punch.pto_hours,
            holiday_worked_hours=punch.holiday_worked_hours,
            holiday_non_worked_hours=punch.holiday_non_worked_hours,
            misc_hours=punch.misc_hours,
            misc_reimbursement=punch.misc_reimbursement,
            status=punch.status,
            created_at=punch.created_at,
            payroll=BreakdownResponse.model_validate(breakdown) if breakdown else None,
        )


class BatchResponse(BaseModel):
    """Result of a batch replace."""

    message: str
    inserted: int


# ============================================================================
# Report schemas
# ============================================================================


class PayrollReportRow(BaseModel):
    """One punch of the payroll report."""

    employee_id: int
    employee_name: str
    punch: PunchResponse


class OvertimeLeaderResponse(BaseModel):
    employee_id: int
    employee_name: str
    total_ot_hours: Decimal
    total_ot_pay: Decimal

    @classmethod
    def from_leader(cls, leader: OvertimeLeader) -> "OvertimeLeaderResponse":
        return cls(
            employee_id=leader.employee.employee_id,
            employee_name=leader.employee.name,
            total_ot_hours=_display.hours(leader.total_ot_hours),
            total_ot_pay=_display.money(leader.total_ot_pay),
        )


class PeriodSummaryResponse(BaseModel):
    """Per-employee period totals; hours at one decimal, currency at two."""

    employee_id: int
    employee_name: str
    has_entries: bool
    entry_count: int
    total_hours: Decimal
    reg_hours: Decimal
    ot_hours: Decimal
    pto_hours: Decimal
    holiday_worked_hours: Decimal
    holiday_non_worked_hours: Decimal
    misc_hours: Decimal
    miles: Decimal
    misc_reimbursement: Decimal
    regular_pay: Decimal
    ot_pay: Decimal
    pto_pay: Decimal
    holiday_pay: Decimal
    mileage_pay: Decimal
    total_pay: Decimal
    skipped_punch_ids: list[int] = []

    @classmethod
    def from_summary(cls, s: PeriodSummary) -> "PeriodSummaryResponse":
        hours, money = _display.hours, _display.money
        return cls(
            employee_id=s.employee_id,
            employee_name=s.employee_name,
            has_entries=s.has_entries,
            entry_count=s.entry_count,
            total_hours=hours(s.total_hours),
            reg_hours=hours(s.reg_hours),
            ot_hours=hours(s.ot_hours),
            pto_hours=hours(s.pto_hours),
            holiday_worked_hours=hours(s.holiday_worked_hours),
            holiday_non_worked_hours=hours(s.holiday_non_worked_hours),
            misc_hours=hours(s.misc_hours),
            miles=hours(s.miles),
            misc_reimbursement=money(s.misc_reimbursement),
            regular_pay=money(s.regular_pay),
            ot_pay=money(s.ot_pay),
            pto_pay=money(s.pto_pay),
            holiday_pay=money(s.holiday_pay),
            mileage_pay=money(s.mileage_pay),
            total_pay=money(s.total_pay),
            skipped_punch_ids=list(s.skipped_punch_ids),
        )


class TrendMetricResponse(BaseModel):
    current: Decimal
    previous: Decimal
    trend: Decimal

    @classmethod
    def from_metric(cls, metric: TrendMetric, places: int) -> "TrendMetricResponse":
        fmt = _display.money if places == 2 else _display.hours
        return cls(
            current=fmt(metric.current),
            previous=fmt(metric.previous),
            trend=_display.hours(metric.trend),
        )


class WeeklyBucketResponse(BaseModel):
    week_start: date
    week_end: date
    regular_pay: Decimal
    overtime_pay: Decimal
    mileage_pay: Decimal
    total_pay: Decimal

    @classmethod
    def from_bucket(cls, b: WeeklyBucket) -> "WeeklyBucketResponse":
        return cls(
            week_start=b.week_start,
            week_end=b.week_end,
            regular_pay=_display.money(b.regular_pay),
            overtime_pay=_display.money(b.overtime_pay),
            mileage_pay=_display.money(b.mileage_pay),
            total_pay=_display.money(b.total_pay),
        )


class RecentEntryResponse(BaseModel):
    employee_name: str | None
    punch: PunchResponse


class LastPayrollResponse(BaseModel):
    start_date: date
    end_date: date
    total_hours: Decimal
    overtime_hours: Decimal
    pto_hours: Decimal
    total_miles: Decimal
    employees_completed: int
    total_employees: int

    @classmethod
    def from_summary(cls, s: LastPayrollSummary) -> "LastPayrollResponse":
        return cls(
            start_date=s.start_date,
            end_date=s.end_date,
            total_hours=_display.hours(s.total_hours),
            overtime_hours=_display.hours(s.overtime_hours),
            pto_hours=_display.hours(s.pto_hours),
            total_miles=_display.hours(s.total_miles),
            employees_completed=s.employees_completed,
            total_employees=s.total_employees,
        )


class DashboardResponse(BaseModel):
    """Trend metrics, weekly series, leaderboard and recent entries."""

    as_of_date: date
    current_start: date
    current_end: date
    previous_start: date
    previous_end: date
    total_payroll: TrendMetricResponse
    overtime_hours: TrendMetricResponse
    total_mileage: TrendMetricResponse
    active_employees: int
    weekly_series: list[WeeklyBucketResponse]
    overtime_leaders: list[OvertimeLeaderResponse]
    recent_entries: list[RecentEntryResponse]
    last_payroll: LastPayrollResponse | None = None

    @classmethod
    def from_metrics(cls, m: DashboardMetrics) -> "DashboardResponse":
        return cls(
            as_of_date=m.as_of_date,
            current_start=m.current_start,
            current_end=m.current_end,
            previous_start=m.previous_start,
            previous_end=m.previous_end,
            total_payroll=TrendMetricResponse.from_metric(m.total_payroll, 2),
            overtime_hours=TrendMetricResponse.from_metric(m.overtime_hours, 1),
            total_mileage=TrendMetricResponse.from_metric(m.total_mileage, 1),
            active_employees=m.active_employees,
            weekly_series=[WeeklyBucketResponse.from_bucket(b) for b in m.weekly_series],
            overtime_leaders=[
                OvertimeLeaderResponse.from_leader(leader) for leader in m.overtime_leaders
            ],
            recent_entries=[
                RecentEntryResponse(
                    employee_name=_name(employee),
                    punch=PunchResponse.from_record(punch, breakdown),
                )
                for punch, employee, breakdown in m.recent_entries
            ],
            last_payroll=(
                LastPayrollResponse.from_summary(m.last_payroll) if m.last_payroll else None
            ),
        )


def _name(employee: EmployeeRecord | None) -> str | None:
    return employee.name if employee is not None else None


# ============================================================================
# Settings and audit schemas
# ============================================================================


class SettingsResponse(BaseModel):
    """Effective tenant settings (stored value or default)."""

    model_config = ConfigDict(from_attributes=True)

    mileage_rate: Decimal
    ot_threshold: Decimal
    holiday_rate_multiplier: Decimal
    work_week_start: int


class SettingsUpdate(BaseModel):
    """Values to store; range checks happen in the settings layer."""

    mileage_rate: Decimal | None = None
    ot_threshold: Decimal | None = None
    holiday_rate_multiplier: Decimal | None = None
    work_week_start: int | None = None


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_name: str
    row_id: int
    field: str
    old_val: str | None = None
    new_val: str | None = None
    changed_by: int | None = None
    changed_at: datetime


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
