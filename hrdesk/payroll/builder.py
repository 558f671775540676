"""Payroll batch builder.

Creates a DRAFT batch, fans out one line per active employee in fixed-size
chunks, then patches the batch with totals read back from what was actually
persisted.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, Sequence

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import BatchStatus, PaymentStatus
from hrdesk.config import settings
from hrdesk.core_hr.models import Employee
from hrdesk.core_hr.service import EmployeeService, active_employee_clause
from hrdesk.payroll.bank_accounts import BankAccountService
from hrdesk.payroll.chunks import ChunkResult, apply_in_chunks, summarize_failures
from hrdesk.payroll.models import BankAccount, PayrollBatch, PayrollRecord

logger = logging.getLogger(__name__)

LineRow = dict[str, Any]
ChunkInserter = Callable[[Sequence[LineRow]], Awaitable[int]]


@dataclass
class BuildOutcome:
    batch: PayrollBatch
    chunks: list[ChunkResult]
    warning: Optional[str] = None


def build_line(
    batch_id: uuid.UUID, employee: Employee, account: Optional[BankAccount],
) -> LineRow:
    basic = Decimal(employee.basic_salary or 0)
    return {
        "id": uuid.uuid4(),
        "batch_id": batch_id,
        "employee_id": employee.id,
        "basic_salary": basic,
        "total_allowances": Decimal("0"),
        "total_deductions": Decimal("0"),
        "net_salary": basic,
        "payment_status": PaymentStatus.PENDING.value,
        "bank_snapshot": account.snapshot() if account is not None else None,
    }


def line_inserter(db: AsyncSession) -> ChunkInserter:
    """Insert one chunk inside its own savepoint."""

    async def _insert(chunk: Sequence[LineRow]) -> int:
        async with db.begin_nested():
            await db.execute(insert(PayrollRecord), list(chunk))
        return len(chunk)

    return _insert


async def persisted_totals(db: AsyncSession, batch_id: uuid.UUID) -> tuple[int, Decimal]:
    """(line count, summed basic salary of active employees with a line)."""
    count = (
        await db.execute(
            select(func.count(PayrollRecord.id)).where(PayrollRecord.batch_id == batch_id)
        )
    ).scalar_one()

    total = (
        await db.execute(
            select(func.coalesce(func.sum(Employee.basic_salary), 0))
            .where(
                active_employee_clause(),
                Employee.id.in_(
                    select(PayrollRecord.employee_id).where(PayrollRecord.batch_id == batch_id)
                ),
            )
        )
    ).scalar_one()
    return int(count), Decimal(total or 0)


async def build_batch(
    db: AsyncSession,
    name: str,
    *,
    chunk_size: Optional[int] = None,
    insert_chunk: Optional[ChunkInserter] = None,
) -> BuildOutcome:
    employees = await EmployeeService.all_employees(db)

    # Provisional count covers every employee; corrected after insertion
    batch = PayrollBatch(
        name=name,
        status=BatchStatus.DRAFT.value,
        total_amount=Decimal("0"),
        employee_count=len(employees),
    )
    db.add(batch)
    await db.flush()
    batch_id = batch.id

    active = [e for e in employees if e.is_active]
    accounts = await BankAccountService.default_accounts(db, [e.id for e in active])
    rows = [build_line(batch_id, e, accounts.get(e.id)) for e in active]

    results = await apply_in_chunks(
        rows,
        chunk_size or settings.PAYROLL_CHUNK_SIZE,
        insert_chunk or line_inserter(db),
    )
    warning = summarize_failures(results)
    if warning:
        logger.warning("Payroll batch %s built with failures: %s", batch_id, warning)

    count, total = await persisted_totals(db, batch_id)
    batch.employee_count = count
    batch.total_amount = total
    await db.flush()

    logger.info(
        "Payroll batch %s (%s): %d lines, total %s", batch_id, name, count, total,
    )
    return BuildOutcome(batch=batch, chunks=results, warning=warning)
