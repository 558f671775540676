"""Employee request ORM models: Leave, Mission, Loan."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import LeaveStatus, LoanStatus, MissionStatus
from hrdesk.core_hr.models import Employee
from hrdesk.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Leave(Base):
    __tablename__ = "leaves"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(sa.String(20), default=LeaveStatus.PENDING.value)
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id])


class Mission(Base):
    """Off-site assignment with its own geofence."""

    __tablename__ = "missions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    destination: Mapped[Optional[str]] = mapped_column(sa.String(255))
    mission_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    location_lat: Mapped[Optional[float]] = mapped_column(sa.Float)
    location_lng: Mapped[Optional[float]] = mapped_column(sa.Float)
    geofence_radius: Mapped[int] = mapped_column(sa.Integer, default=100)
    status: Mapped[str] = mapped_column(sa.String(20), default=MissionStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    employee: Mapped[Employee] = relationship()


class Loan(Base):
    """Salary advance repaid by monthly installments deducted from payroll."""

    __tablename__ = "loans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    monthly_installment: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    status: Mapped[str] = mapped_column(sa.String(20), default=LoanStatus.ACTIVE.value)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    employee: Mapped[Employee] = relationship()
