"""Integrity ORM model: one current score row per employee."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.core_hr.models import Employee
from hrdesk.database import Base


class IntegrityScore(Base):
    __tablename__ = "integrity_scores"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, unique=True,
    )
    score: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    violations: Mapped[int] = mapped_column(sa.Integer, default=0)
    tier: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    assessed_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    employee: Mapped[Employee] = relationship()
