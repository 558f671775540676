"""Payroll Pydantic v2 schemas: batches, lines, transfers, bank accounts."""


import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrdesk.common.constants import BatchStatus, TransferStatus


# ── Bank accounts ───────────────────────────────────────────────────

class BankAccountIn(BaseModel):
    # Presence and format are checked by the service so all field errors
    # come back together.
    iban: str = ""
    bank_name: str = ""
    account_number: str = ""
    account_holder: Optional[str] = None
    swift_code: Optional[str] = None
    branch_code: Optional[str] = None
    is_default: bool = True


class BankAccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    iban: str
    bank_name: str
    account_number: str
    account_holder: Optional[str] = None
    swift_code: Optional[str] = None
    branch_code: Optional[str] = None
    is_default: bool


# ── Batches ─────────────────────────────────────────────────────────

class BatchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class BatchStatusUpdate(BaseModel):
    status: BatchStatus


class BatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    total_amount: Decimal
    employee_count: int
    status: str
    created_at: datetime


class PayrollRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    batch_id: uuid.UUID
    employee_id: uuid.UUID
    basic_salary: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    payment_status: str
    bank_snapshot: Optional[dict] = None


class BatchDetail(BatchOut):
    records: list[PayrollRecordOut] = []


class ChunkResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    index: int
    size: int
    applied: int
    error: Optional[str] = None


class BuildOutcomeOut(BaseModel):
    batch: BatchOut
    chunks: list[ChunkResultOut]
    warning: Optional[str] = None


# ── Transfers ───────────────────────────────────────────────────────

class TransferLineOut(BaseModel):
    id: uuid.UUID
    batch_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    amount: Decimal
    account_number: str
    bank: str
    payment_status: str
    status: TransferStatus
    created_at: datetime


class DeleteAllRequest(BaseModel):
    """Both confirmations must be true."""

    confirm: bool = False
    confirm_again: bool = False


class DeleteAllResult(BaseModel):
    records_deleted: int
    batches_deleted: int
