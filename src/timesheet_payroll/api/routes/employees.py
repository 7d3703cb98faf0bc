"""Employee endpoints. Delete deactivates; employees are never removed."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from timesheet_payroll.api.dependencies import CurrentUser, DbSession, TenantId
from timesheet_payroll.api.schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ErrorResponse,
)
from timesheet_payroll.services.record_store import RecordStore
from timesheet_payroll.services.timesheet_service import TimesheetService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeResponse])
async def list_employees(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    active: bool | None = None,
    search: str | None = None,
    page: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[EmployeeResponse]:
    """List employees of the tenant, optionally filtered."""
    employees = await RecordStore(db).list_employees(
        tenant_id, active=active, search=search, page=page, limit=limit
    )
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    employee_id: Annotated[int, Path()],
) -> EmployeeResponse:
    employee = await RecordStore(db).get_employee(tenant_id, employee_id)
    return EmployeeResponse.model_validate(employee)


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_employee(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    payload: EmployeeCreate,
) -> EmployeeResponse:
    service = TimesheetService(db, actor_id=user.user_id)
    employee = await service.create_employee(tenant_id, payload.model_dump())
    await db.commit()
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_employee(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    employee_id: Annotated[int, Path()],
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    service = TimesheetService(db, actor_id=user.user_id)
    employee = await service.update_employee(
        tenant_id, employee_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return EmployeeResponse.model_validate(employee)


@router.delete(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_employee(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    employee_id: Annotated[int, Path()],
) -> EmployeeResponse:
    service = TimesheetService(db, actor_id=user.user_id)
    employee = await service.deactivate_employee(tenant_id, employee_id)
    await db.commit()
    return EmployeeResponse.model_validate(employee)
