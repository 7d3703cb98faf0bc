"""Derived payroll reports: per-punch report, overtime leaderboard, dashboard."""

from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Query, Response

from timesheet_payroll.api.dependencies import (
    AppSettings,
    CurrentUser,
    DbSession,
    TenantId,
    require_range,
)
from timesheet_payroll.api.schemas import (
    DashboardResponse,
    ErrorResponse,
    OvertimeLeaderResponse,
    PayrollReportRow,
    PunchResponse,
)
from timesheet_payroll.reporting.exporter import export_filename
from timesheet_payroll.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])

CSV_MEDIA_TYPE = "text/csv"


def csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/payroll",
    response_model=list[PayrollReportRow],
    responses={400: {"model": ErrorResponse}},
)
async def payroll_report(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    config: AppSettings,
    from_date: date | None = None,
    to_date: date | None = None,
    output_format: Annotated[Literal["json", "csv"], Query(alias="format")] = "json",
):
    """Per-punch derived pay over the range, as JSON rows or CSV."""
    date_range = require_range(from_date, to_date)
    service = ReportService(db, config)

    if output_format == "csv":
        body = await service.payroll_report_csv(tenant_id, date_range)
        await db.commit()
        return csv_response(body, export_filename(date_range))

    entries = await service.payroll_report(tenant_id, date_range)
    await db.commit()
    return [
        PayrollReportRow(
            employee_id=e.employee.employee_id,
            employee_name=e.employee.name,
            punch=PunchResponse.from_record(e.punch, e.breakdown),
        )
        for e in entries
    ]


@router.get(
    "/overtime",
    response_model=list[OvertimeLeaderResponse],
    responses={400: {"model": ErrorResponse}},
)
async def overtime_report(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    config: AppSettings,
    from_date: date | None = None,
    to_date: date | None = None,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[OvertimeLeaderResponse]:
    """Employees ranked by overtime hours over the range."""
    date_range = require_range(from_date, to_date)
    leaders = await ReportService(db, config).overtime_report(tenant_id, date_range, limit)
    await db.commit()
    return [OvertimeLeaderResponse.from_leader(leader) for leader in leaders]


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    config: AppSettings,
    as_of: date | None = None,
) -> DashboardResponse:
    """Current-week metrics against the previous week, plus supporting lists."""
    metrics = await ReportService(db, config).dashboard(tenant_id, as_of or date.today())
    await db.commit()
    return DashboardResponse.from_metrics(metrics)
