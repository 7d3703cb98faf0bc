"""Pay period summaries and the fixed-column CSV export."""

from datetime import date

from fastapi import APIRouter, Response

from timesheet_payroll.api.dependencies import (
    AppSettings,
    CurrentUser,
    DbSession,
    TenantId,
    require_range,
)
from timesheet_payroll.api.routes.reports import csv_response
from timesheet_payroll.api.schemas import ErrorResponse, PeriodSummaryResponse
from timesheet_payroll.reporting.exporter import export_filename
from timesheet_payroll.services.report_service import ReportService

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get(
    "/period",
    response_model=list[PeriodSummaryResponse],
    responses={400: {"model": ErrorResponse}},
)
async def period_summary(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    config: AppSettings,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[PeriodSummaryResponse]:
    """One summary per active employee, including those with no punches."""
    date_range = require_range(start_date, end_date)
    summaries = await ReportService(db, config).period_summaries(tenant_id, date_range)
    await db.commit()
    return [PeriodSummaryResponse.from_summary(s) for s in summaries]


@router.get(
    "/export",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
)
async def export_period(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    config: AppSettings,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Response:
    """Period summaries as CSV; hours and currency at two decimals."""
    date_range = require_range(start_date, end_date)
    body = await ReportService(db, config).export_csv(tenant_id, date_range)
    await db.commit()
    return csv_response(body, export_filename(date_range))
