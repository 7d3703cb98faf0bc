"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_payroll.calculators.periods import DateRange
from timesheet_payroll.calculators.types import UserRole
from timesheet_payroll.config import Settings, get_settings
from timesheet_payroll.database import init_db
from timesheet_payroll.exceptions import ForbiddenError, InvalidInputError, UnauthorizedError


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted when the request
    fails is rolled back here.
    """
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header()] = None,
) -> int:
    """Extract tenant ID from header."""
    if not x_tenant_id:
        raise InvalidInputError("X-Tenant-ID header is required", field="X-Tenant-ID")
    try:
        return int(x_tenant_id)
    except ValueError:
        raise InvalidInputError(
            "Invalid X-Tenant-ID format", field="X-Tenant-ID", value=x_tenant_id
        )


@dataclass(frozen=True)
class User:
    """Acting user as asserted by the gateway."""

    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> User:
    """Acting user from the X-User-ID / X-User-Role headers."""
    if not x_user_id:
        raise UnauthorizedError("Authentication required")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise UnauthorizedError("Invalid X-User-ID format")
    try:
        role = UserRole((x_user_role or UserRole.CLERK.value).lower())
    except ValueError:
        raise ForbiddenError(f"Unknown role {x_user_role!r}")
    return User(user_id=user_id, role=role)


async def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not user.is_admin:
        raise ForbiddenError("Admin role required")
    return user


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
TenantId = Annotated[int, Depends(get_tenant_id)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def require_range(start: date | None, end: date | None) -> DateRange:
    """Inclusive range from two optional query dates; both are required."""
    if start is None or end is None:
        raise InvalidInputError("Both start and end dates are required", field="date")
    if start > end:
        raise InvalidInputError(
            f"Start date {start} is after end date {end}", field="date", value=str(start)
        )
    return DateRange(start, end)
