"""Timesheet punch and derived payroll calculation models."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_payroll.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from timesheet_payroll.models.employee import Employee


class Punch(Base, TimestampMixin):
    """One timesheet record for one employee on one date."""

    __tablename__ = "punch"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee.id"),
        nullable=False,
        index=True,
    )
    work_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    time_in: Mapped[time | None] = mapped_column(Time, nullable=True)
    time_out: Mapped[time | None] = mapped_column(Time, nullable=True)
    lunch_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    miles: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    pto_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    holiday_worked_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    holiday_non_worked_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    misc_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    misc_reimbursement: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="punch_status_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="punches")
    calc: Mapped[PayrollCalc | None] = relationship(
        back_populates="punch",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )


class PayrollCalc(Base):
    """Memoized pay breakdown, at most one per punch.

    Disposable: safe to delete and regenerate from the punch at any time.
    ``breakdown`` holds the canonical JSON the cache serves; the numeric
    columns mirror it for ad-hoc SQL.
    """

    __tablename__ = "payroll_calc"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    punch_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("punch.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    reg_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    ot_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    pto_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    holiday_worked_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    holiday_non_worked_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    misc_hours: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    reg_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    ot_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    pto_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    holiday_worked_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    holiday_non_worked_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    misc_hours_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    mileage_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    misc_reimbursement: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    total_pay: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    breakdown: Mapped[str] = mapped_column(Text, nullable=False)
    inputs_fingerprint: Mapped[str] = mapped_column(String(32), nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Invalidation bulk-deletes rows; ids must not be handed out again.
    __table_args__ = {"sqlite_autoincrement": True}

    punch: Mapped[Punch] = relationship(back_populates="calc")
