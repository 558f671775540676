"""Payroll batch service: listing, status changes, deletion, notification, export."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrdesk.common.constants import BatchStatus, NotificationType, PaymentStatus
from hrdesk.common.exceptions import NotFoundException, ValidationException
from hrdesk.common.export import rows_to_csv
from hrdesk.feeds.service import NotificationService
from hrdesk.payroll.models import PayrollBatch, PayrollRecord

logger = logging.getLogger(__name__)

BATCH_EXPORT_HEADERS = ["Batch ID", "Name", "Total Amount", "Employees", "Status", "Created At"]

# Forward only: a paid batch is final.
BATCH_TRANSITIONS: dict[BatchStatus, set[BatchStatus]] = {
    BatchStatus.DRAFT: {BatchStatus.PROCESSING, BatchStatus.PAID},
    BatchStatus.PROCESSING: {BatchStatus.PAID},
    BatchStatus.PAID: set(),
}


class PayrollService:
    """Business logic for payroll batches after they are built."""

    @staticmethod
    async def list_batches(
        db: AsyncSession, search: Optional[str] = None,
    ) -> Sequence[PayrollBatch]:
        query = select(PayrollBatch).order_by(PayrollBatch.created_at.desc())
        if search:
            query = query.where(func.lower(PayrollBatch.name).like(f"%{search.lower()}%"))
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def get_batch(
        db: AsyncSession, batch_id: uuid.UUID, *, with_records: bool = False,
    ) -> PayrollBatch:
        query = select(PayrollBatch).where(PayrollBatch.id == batch_id)
        if with_records:
            query = query.options(selectinload(PayrollBatch.records))
        batch = (await db.execute(query)).scalars().first()
        if batch is None:
            raise NotFoundException("Payroll batch", batch_id)
        return batch

    @staticmethod
    async def update_status(
        db: AsyncSession, batch_id: uuid.UUID, status: BatchStatus,
    ) -> PayrollBatch:
        """Set the batch status; PAID also settles every line in the batch."""
        batch = await PayrollService.get_batch(db, batch_id)
        current = BatchStatus(batch.status)
        if status not in BATCH_TRANSITIONS[current]:
            raise ValidationException(
                {"status": [f"Cannot move a payroll batch from {current.value} to {status.value}."]}
            )
        batch.status = status.value
        if status is BatchStatus.PAID:
            await db.execute(
                update(PayrollRecord)
                .where(PayrollRecord.batch_id == batch_id)
                .values(payment_status=PaymentStatus.PAID.value)
            )
        await db.flush()
        logger.info("Payroll batch %s → %s", batch_id, status.value)
        return batch

    @staticmethod
    async def delete_batch(db: AsyncSession, batch_id: uuid.UUID) -> None:
        batch = await PayrollService.get_batch(db, batch_id)
        await db.execute(delete(PayrollRecord).where(PayrollRecord.batch_id == batch_id))
        await db.delete(batch)
        await db.flush()
        logger.warning("Deleted payroll batch %s", batch_id)

    @staticmethod
    async def notify_batch(db: AsyncSession, batch_id: uuid.UUID) -> int:
        """Send one payroll notification per line in the batch."""
        batch = await PayrollService.get_batch(db, batch_id)
        records = (
            await db.execute(
                select(PayrollRecord.employee_id, PayrollRecord.net_salary)
                .where(PayrollRecord.batch_id == batch_id)
            )
        ).all()

        sent = 0
        for employee_id, net in records:
            await NotificationService.create_notification(
                db,
                recipient_id=employee_id,
                type=NotificationType.payroll,
                title="Salary processed",
                message=f"Your salary of {net} for {batch.name} has been processed.",
                entity_type="payroll_batch",
                entity_id=batch_id,
            )
            sent += 1
        return sent

    @staticmethod
    def batches_csv(batches: Sequence[PayrollBatch]) -> bytes:
        return rows_to_csv(
            BATCH_EXPORT_HEADERS,
            [
                [
                    str(b.id), b.name, b.total_amount, b.employee_count, b.status,
                    b.created_at.isoformat() if b.created_at else None,
                ]
                for b in batches
            ],
        )
