"""Tenant settings endpoints (admin only)."""

from fastapi import APIRouter

from timesheet_payroll.api.dependencies import AdminUser, DbSession, TenantId
from timesheet_payroll.api.schemas import ErrorResponse, SettingsResponse, SettingsUpdate
from timesheet_payroll.services.timesheet_service import TimesheetService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get(
    "",
    response_model=SettingsResponse,
    responses={403: {"model": ErrorResponse}},
)
async def get_settings(
    db: DbSession,
    tenant_id: TenantId,
    user: AdminUser,
) -> SettingsResponse:
    """Effective settings: stored values, defaults for the rest."""
    settings = await TimesheetService(db, actor_id=user.user_id).get_settings(tenant_id)
    return SettingsResponse.model_validate(settings)


@router.put(
    "",
    response_model=SettingsResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_settings(
    db: DbSession,
    tenant_id: TenantId,
    user: AdminUser,
    payload: SettingsUpdate,
) -> SettingsResponse:
    """Store the given values and drop the tenant's cached breakdowns."""
    service = TimesheetService(db, actor_id=user.user_id)
    settings = await service.update_settings(
        tenant_id, payload.model_dump(exclude_none=True)
    )
    await db.commit()
    return SettingsResponse.model_validate(settings)
