"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timesheet_payroll import __version__
from timesheet_payroll.api.routes import (
    audit_router,
    employees_router,
    health_router,
    payroll_router,
    punches_router,
    reports_router,
    settings_router,
)
from timesheet_payroll.config import configure_logging, get_settings
from timesheet_payroll.database import dispose_db, init_db
from timesheet_payroll.exceptions import (
    ComputationError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    PayrollError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PayrollError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ComputationError: 422,
}


def status_for(exc: PayrollError) -> int:
    for exc_type, code in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(get_settings().log_level)

    app = FastAPI(
        title="Timesheet Payroll API",
        description="Multi-tenant timesheet and payroll derivation engine",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Map typed engine errors to their status codes."""
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        employees_router,
        punches_router,
        reports_router,
        payroll_router,
        settings_router,
        audit_router,
    ):
        app.include_router(router, prefix="/api")

    return app


# Default app instance for uvicorn
app = create_app()
