"""Typed exceptions for the timesheet payroll engine.

Every exception carries a machine-readable ``code`` so the API layer can map
it to a status without parsing messages:

    PayrollError
    +-- NotFoundError        (NOT_FOUND)
    +-- InvalidInputError    (VALIDATION_ERROR)
    +-- UnauthorizedError    (UNAUTHORIZED)
    +-- ForbiddenError       (FORBIDDEN)
    +-- ComputationError     (COMPUTATION_ERROR)
"""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all engine errors."""

    code: str = "PAYROLL_ERROR"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PayrollError):
    """A tenant-scoped record does not exist (or belongs to another tenant)."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any, tenant_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        self.tenant_id = tenant_id
        super().__init__(
            f"{entity} {entity_id} not found",
            entity=entity,
            entity_id=entity_id,
        )


class InvalidInputError(PayrollError):
    """Malformed or out-of-range input (negative hours, non-positive rate)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message, field=field, value=value)


class UnauthorizedError(PayrollError):
    """No acting user on the request."""

    code = "UNAUTHORIZED"


class ForbiddenError(PayrollError):
    """Acting user lacks the role required for the operation."""

    code = "FORBIDDEN"


class ComputationError(PayrollError):
    """A pay breakdown could not be derived for a punch."""

    code = "COMPUTATION_ERROR"

    def __init__(self, message: str, punch_id: int | None = None):
        self.punch_id = punch_id
        super().__init__(message, punch_id=punch_id)
