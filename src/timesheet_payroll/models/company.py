"""Tenant (company) and tenant-scoped settings models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_payroll.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from timesheet_payroll.models.employee import Employee


class Tenant(Base, TimestampMixin):
    """Company: the isolation boundary for every other record."""

    __tablename__ = "tenant"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="tenant")
    settings: Mapped[list[TenantSetting]] = relationship(back_populates="tenant")


class TenantSetting(Base):
    """One (tenant, key) -> value configuration row."""

    __tablename__ = "tenant_setting"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("tenant_id", "key", name="tenant_setting_key_unique"),)

    tenant: Mapped[Tenant] = relationship(back_populates="settings")
