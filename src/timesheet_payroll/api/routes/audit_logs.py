"""Audit log listing (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Query

from timesheet_payroll.api.dependencies import AdminUser, DbSession, TenantId
from timesheet_payroll.api.schemas import AuditLogResponse, ErrorResponse
from timesheet_payroll.services.record_store import RecordStore

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get(
    "",
    response_model=list[AuditLogResponse],
    responses={403: {"model": ErrorResponse}},
)
async def list_audit_logs(
    db: DbSession,
    tenant_id: TenantId,
    user: AdminUser,
    table: str | None = None,
    row_id: int | None = None,
    page: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[AuditLogResponse]:
    """Newest first."""
    entries = await RecordStore(db).list_audit_logs(
        tenant_id, table_name=table, row_id=row_id, page=page, limit=limit
    )
    return [AuditLogResponse.model_validate(e) for e in entries]
