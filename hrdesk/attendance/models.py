"""Attendance ORM model: AttendanceLog."""

from __future__ import annotations

import uuid
from datetime import datetime, time, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import ATTENDANCE_PRESENT
from hrdesk.core_hr.models import Employee
from hrdesk.database import Base


class AttendanceLog(Base):
    """One synced check-in or check-out."""

    __tablename__ = "attendance_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    reference: Mapped[Optional[str]] = mapped_column(sa.String(20))
    check_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    status: Mapped[str] = mapped_column(sa.String(20), default=ATTENDANCE_PRESENT)
    timestamp: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    shift_start: Mapped[Optional[time]] = mapped_column(sa.Time)
    shift_end: Mapped[Optional[time]] = mapped_column(sa.Time)
    location_verified: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    employee: Mapped[Employee] = relationship()
