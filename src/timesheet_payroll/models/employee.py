"""Employee model."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from timesheet_payroll.models.company import Tenant
    from timesheet_payroll.models.timesheet import Punch


class Employee(Base, TimestampMixin):
    """Hourly employee. Deactivated, never deleted, to keep payroll history."""

    __tablename__ = "employee"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (CheckConstraint("rate > 0", name="employee_rate_positive"),)

    # Relationships
    tenant: Mapped[Tenant] = relationship(back_populates="employees")
    punches: Mapped[list[Punch]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"
