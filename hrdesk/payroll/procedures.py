"""Persistence-side payroll procedures.

``recalculate_batch_deductions`` is the stored procedure the transfer view
triggers; callers only invoke it and re-read, they never reimplement it.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import LoanStatus
from hrdesk.common.exceptions import NotFoundException
from hrdesk.payroll.models import PayrollBatch, PayrollRecord
from hrdesk.requests.models import Loan

logger = logging.getLogger(__name__)


async def recalculate_batch_deductions(db: AsyncSession, batch_id: uuid.UUID) -> PayrollBatch:
    """Deductions := active loan installments; net := basic + allowances − deductions."""
    batch = await db.get(PayrollBatch, batch_id)
    if batch is None:
        raise NotFoundException("Payroll batch", batch_id)

    installments = dict(
        (
            await db.execute(
                select(Loan.employee_id, func.sum(Loan.monthly_installment))
                .where(Loan.status == LoanStatus.ACTIVE.value)
                .group_by(Loan.employee_id)
            )
        ).all()
    )

    records = (
        await db.execute(select(PayrollRecord).where(PayrollRecord.batch_id == batch_id))
    ).scalars().all()

    total = Decimal("0")
    for record in records:
        deductions = Decimal(installments.get(record.employee_id) or 0)
        record.total_deductions = deductions
        record.net_salary = (
            Decimal(record.basic_salary or 0)
            + Decimal(record.total_allowances or 0)
            - deductions
        )
        total += record.net_salary

    batch.total_amount = total
    await db.flush()
    logger.info("Recalculated deductions for batch %s (%d lines)", batch_id, len(records))
    return batch
