"""Payroll ORM models: PayrollBatch, PayrollRecord, BankAccount.

SQLAlchemy 2.0 async-compatible models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import BatchStatus, PaymentStatus
from hrdesk.core_hr.models import Employee
from hrdesk.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PayrollBatch(Base):
    """One payroll run; owns its payroll lines."""

    __tablename__ = "payroll_batches"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(sa.Numeric(14, 2), default=0)
    employee_count: Mapped[int] = mapped_column(sa.Integer, default=0)
    status: Mapped[str] = mapped_column(sa.String(20), default=BatchStatus.DRAFT.value)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    records: Mapped[list[PayrollRecord]] = relationship(
        back_populates="batch", passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<PayrollBatch {self.name!r} {self.status}>"


class PayrollRecord(Base):
    """A payroll line: one employee in one batch."""

    __tablename__ = "payroll_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    batch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("payroll_batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    basic_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=0)
    total_allowances: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=0)
    total_deductions: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=0)
    net_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=0)
    payment_status: Mapped[str] = mapped_column(
        sa.String(20), default=PaymentStatus.PENDING.value,
    )
    # {"bank_name", "account_number", "account_holder"} captured at build time
    bank_snapshot: Mapped[Optional[dict]] = mapped_column(JSONB)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    batch: Mapped[PayrollBatch] = relationship(back_populates="records")
    employee: Mapped[Employee] = relationship()


class BankAccount(Base):
    """Employee bank account; one logical account per employee."""

    __tablename__ = "employee_bank_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, unique=True,
    )
    iban: Mapped[str] = mapped_column(sa.String(34), nullable=False)
    bank_name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    account_number: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    account_holder: Mapped[Optional[str]] = mapped_column(sa.String(200))
    swift_code: Mapped[Optional[str]] = mapped_column(sa.String(20))
    branch_code: Mapped[Optional[str]] = mapped_column(sa.String(20))
    is_default: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    employee: Mapped[Employee] = relationship(back_populates="bank_accounts")

    def snapshot(self) -> dict:
        return {
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "account_holder": self.account_holder,
        }
