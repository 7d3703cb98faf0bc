"""Timesheet punch endpoints, including the weekly batch replace."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query, Response, status

from timesheet_payroll.api.dependencies import CurrentUser, DbSession, TenantId
from timesheet_payroll.api.schemas import (
    BatchResponse,
    ErrorResponse,
    PunchBatchRequest,
    PunchCreate,
    PunchResponse,
    PunchUpdate,
)
from timesheet_payroll.calculators.types import PayBreakdown
from timesheet_payroll.exceptions import ComputationError, InvalidInputError
from timesheet_payroll.services.calculation_cache import CalculationCache
from timesheet_payroll.services.record_store import RecordStore
from timesheet_payroll.services.timesheet_service import TimesheetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/punches", tags=["punches"])


async def _breakdown_or_none(
    cache: CalculationCache, tenant_id: int, punch_id: int
) -> PayBreakdown | None:
    try:
        return await cache.get_or_compute(tenant_id, punch_id)
    except (ComputationError, InvalidInputError) as e:
        logger.warning("No breakdown for punch %s: %s", punch_id, e)
        return None


@router.get("", response_model=list[PunchResponse])
async def list_punches(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    employee_id: int | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    search: str | None = None,
    page: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[PunchResponse]:
    """List punches with their breakdowns, newest date first."""
    store = RecordStore(db)
    cache = CalculationCache(db, store)
    punches = await store.list_punches(
        tenant_id,
        employee_id=employee_id,
        from_date=from_date,
        to_date=to_date,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )
    items = [
        PunchResponse.build(p, await _breakdown_or_none(cache, tenant_id, p.id))
        for p in punches
    ]
    await db.commit()
    return items


@router.get(
    "/{punch_id}",
    response_model=PunchResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_punch(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    punch_id: Annotated[int, Path()],
) -> PunchResponse:
    store = RecordStore(db)
    punch = await store.get_punch(tenant_id, punch_id)
    breakdown = await _breakdown_or_none(CalculationCache(db, store), tenant_id, punch.id)
    await db.commit()
    return PunchResponse.build(punch, breakdown)


@router.post(
    "",
    response_model=PunchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_punch(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    payload: PunchCreate,
) -> PunchResponse:
    service = TimesheetService(db, actor_id=user.user_id)
    values = payload.model_dump(exclude={"employee_id"})
    punch, breakdown = await service.create_punch(tenant_id, payload.employee_id, values)
    await db.commit()
    return PunchResponse.build(punch, breakdown)


@router.post(
    "/batch",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def replace_week(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    payload: PunchBatchRequest,
    response: Response,
) -> BatchResponse:
    """Replace an employee's punches over the submitted dates, all or nothing."""
    if not payload.entries:
        response.status_code = status.HTTP_200_OK
        return BatchResponse(message="No entries to process.", inserted=0)

    service = TimesheetService(db, actor_id=user.user_id)
    inserted = await service.replace_week(tenant_id, [e.model_dump() for e in payload.entries])
    await db.commit()
    return BatchResponse(message="Timesheet submitted successfully.", inserted=len(inserted))


@router.put(
    "/{punch_id}",
    response_model=PunchResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_punch(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    punch_id: Annotated[int, Path()],
    payload: PunchUpdate,
) -> PunchResponse:
    service = TimesheetService(db, actor_id=user.user_id)
    punch, breakdown = await service.update_punch(
        tenant_id, punch_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return PunchResponse.build(punch, breakdown)


@router.delete(
    "/{punch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_punch(
    db: DbSession,
    tenant_id: TenantId,
    user: CurrentUser,
    punch_id: Annotated[int, Path()],
) -> Response:
    service = TimesheetService(db, actor_id=user.user_id)
    await service.delete_punch(tenant_id, punch_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
