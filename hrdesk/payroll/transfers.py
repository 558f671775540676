"""Bank transfer reconciler.

Reads the most recent payroll lines with their bank snapshot, hides lines of
employees outside the loaded active set, and classifies each payment.
"""

from __future__ import annotations

import logging
import uuid
from typing import AbstractSet, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import PaymentStatus, TransferStatus
from hrdesk.common.exceptions import BackendError, ValidationException
from hrdesk.common.export import rows_to_csv
from hrdesk.config import settings
from hrdesk.core_hr.models import Employee
from hrdesk.payroll.models import PayrollBatch, PayrollRecord
from hrdesk.payroll.procedures import recalculate_batch_deductions
from hrdesk.payroll.schemas import DeleteAllResult, TransferLineOut

logger = logging.getLogger(__name__)

ACCOUNT_PLACEHOLDER = "----"
BANK_PLACEHOLDER = "Bank"

TRANSFER_HEADERS = ["Employee", "Account Number", "Bank", "Amount", "Status", "Batch ID"]


def classify_payment(payment_status: Optional[str]) -> TransferStatus:
    if payment_status == PaymentStatus.PAID.value:
        return TransferStatus.Success
    if payment_status == PaymentStatus.PENDING.value:
        return TransferStatus.Pending
    return TransferStatus.Failed


def _to_line(record: PayrollRecord, employee_name: str) -> TransferLineOut:
    snapshot = record.bank_snapshot or {}
    return TransferLineOut(
        id=record.id,
        batch_id=record.batch_id,
        employee_id=record.employee_id,
        employee_name=employee_name,
        amount=record.net_salary,
        account_number=snapshot.get("account_number") or ACCOUNT_PLACEHOLDER,
        bank=snapshot.get("bank_name") or BANK_PLACEHOLDER,
        payment_status=record.payment_status,
        status=classify_payment(record.payment_status),
        created_at=record.created_at,
    )


async def list_transfers(
    db: AsyncSession,
    active_employee_ids: AbstractSet[uuid.UUID],
    *,
    limit: Optional[int] = None,
) -> list[TransferLineOut]:
    """Latest lines first; stale-employee lines are hidden, not deleted."""
    result = await db.execute(
        select(PayrollRecord, Employee.first_name, Employee.last_name)
        .join(Employee, Employee.id == PayrollRecord.employee_id)
        .order_by(PayrollRecord.created_at.desc())
        .limit(limit or settings.TRANSFER_LIST_LIMIT)
    )
    lines = []
    for record, first_name, last_name in result.all():
        if record.employee_id not in active_employee_ids:
            continue
        lines.append(_to_line(record, f"{first_name} {last_name or ''}".strip()))
    return lines


async def recompute(
    db: AsyncSession,
    batch_id: uuid.UUID,
    active_employee_ids: AbstractSet[uuid.UUID],
) -> list[TransferLineOut]:
    """Run the deduction procedure for a batch, then re-read the list."""
    try:
        await recalculate_batch_deductions(db, batch_id)
    except SQLAlchemyError as exc:
        logger.error("Deduction recalculation failed for %s: %s", batch_id, exc)
        raise BackendError.from_db_error(exc)
    return await list_transfers(db, active_employee_ids)


async def delete_all(db: AsyncSession, *, confirm: bool, confirm_again: bool) -> DeleteAllResult:
    """Delete every payroll line, then every batch.

    The two deletes are committed separately; a failure in the second leaves
    the first in place.
    """
    if not (confirm and confirm_again):
        raise ValidationException(
            {"confirm": ["Deleting all payroll data requires two confirmations."]}
        )

    try:
        records = await db.execute(delete(PayrollRecord))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Deleting payroll lines failed: %s", exc)
        raise BackendError.from_db_error(exc)
    logger.warning("Deleted %d payroll lines", records.rowcount)

    try:
        batches = await db.execute(delete(PayrollBatch))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Deleting payroll batches failed after lines were removed: %s", exc)
        raise BackendError.from_db_error(exc)
    logger.warning("Deleted %d payroll batches", batches.rowcount)

    return DeleteAllResult(
        records_deleted=records.rowcount, batches_deleted=batches.rowcount,
    )


def transfers_csv(lines: list[TransferLineOut]) -> bytes:
    return rows_to_csv(
        TRANSFER_HEADERS,
        [
            [l.employee_name, l.account_number, l.bank, l.amount, l.status.value, str(l.batch_id)]
            for l in lines
        ],
    )
