"""Core HR ORM models: Department, Branch, Shift, Employee.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import UserRole, is_active_status
from hrdesk.database import Base

if TYPE_CHECKING:
    from hrdesk.payroll.models import BankAccount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base):
    """Organisational department with an optional monthly payroll budget."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    manager_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    budget: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(14, 2))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    employees: Mapped[list[Employee]] = relationship(back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Branch
# ═════════════════════════════════════════════════════════════════════


class Branch(Base):
    """Work site with the WiFi network and geofence used for check-in."""

    __tablename__ = "branches"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    wifi_ssid: Mapped[Optional[str]] = mapped_column(sa.String(100))
    geofence_radius: Mapped[int] = mapped_column(sa.Integer, default=100)
    geofencing_enabled: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    latitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    longitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    employees: Mapped[list[Employee]] = relationship(back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Shift
# ═════════════════════════════════════════════════════════════════════


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    grace_period: Mapped[int] = mapped_column(sa.Integer, default=15)
    is_overnight: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Shift {self.name!r} {self.start_time}-{self.end_time}>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """Core employee record: central entity for the HR platform."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )

    # ── Identity ────────────────────────────────────────────────────
    auth_id: Mapped[Optional[str]] = mapped_column(sa.String(255), unique=True)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), unique=True)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    avatar_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    device_id: Mapped[Optional[str]] = mapped_column(sa.String(100))

    # ── Org association ─────────────────────────────────────────────
    job_title: Mapped[Optional[str]] = mapped_column(sa.String(200))
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    branch_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("branches.id"),
    )
    shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shifts.id"),
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )

    # ── Employment ──────────────────────────────────────────────────
    basic_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=0)
    hire_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    status: Mapped[Optional[str]] = mapped_column(sa.String(20), default="ACTIVE")
    role: Mapped[str] = mapped_column(
        sa.String(20), default=UserRole.employee.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    department: Mapped[Optional[Department]] = relationship(back_populates="employees")
    branch: Mapped[Optional[Branch]] = relationship(back_populates="employees")
    shift: Mapped[Optional[Shift]] = relationship()
    manager: Mapped[Optional[Employee]] = relationship(remote_side=[id])
    bank_accounts: Mapped[list["BankAccount"]] = relationship(
        back_populates="employee",
    )

    # ── Helpers ─────────────────────────────────────────────────────

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    @property
    def is_active(self) -> bool:
        return is_active_status(self.status)

    def __repr__(self) -> str:
        return f"<Employee {self.email} {self.display_name}>"
