"""Payroll router: batches, transfers, bank accounts.

All endpoints require the **admin** role except reading one's own bank account.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user, require_admin
from hrdesk.common.export import file_response
from hrdesk.core_hr.models import Employee
from hrdesk.dashboard.state import AppState
from hrdesk.database import get_db
from hrdesk.dependencies import get_app_state
from hrdesk.payroll import transfers
from hrdesk.payroll.bank_accounts import BankAccountService
from hrdesk.payroll.builder import build_batch
from hrdesk.payroll.schemas import (
    BankAccountIn,
    BankAccountOut,
    BatchCreate,
    BatchDetail,
    BatchOut,
    BatchStatusUpdate,
    BuildOutcomeOut,
    ChunkResultOut,
    DeleteAllRequest,
    DeleteAllResult,
    TransferLineOut,
)
from hrdesk.payroll.service import PayrollService

router = APIRouter(prefix="", tags=["payroll"])
bank_accounts_router = APIRouter(prefix="", tags=["bank-accounts"])


# ═════════════════════════════════════════════════════════════════════
# Batches
# ═════════════════════════════════════════════════════════════════════


@router.post("/batches", response_model=BuildOutcomeOut, status_code=201)
async def create_batch(
    body: BatchCreate,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Build a batch with one line per active employee.

    Failed chunks are reported in ``warning``; the batch is still created.
    """
    outcome = await build_batch(db, body.name)
    return BuildOutcomeOut(
        batch=BatchOut.model_validate(outcome.batch),
        chunks=[ChunkResultOut.model_validate(c) for c in outcome.chunks],
        warning=outcome.warning,
    )


@router.get("/batches", response_model=list[BatchOut])
async def list_batches(
    search: Optional[str] = Query(None),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.list_batches(db, search)


@router.get("/batches/export")
async def export_batches(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    batches = await PayrollService.list_batches(db)
    return file_response(PayrollService.batches_csv(batches), "payroll_batches.csv")


@router.get("/batches/{batch_id}", response_model=BatchDetail)
async def get_batch(
    batch_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.get_batch(db, batch_id, with_records=True)


@router.put("/batches/{batch_id}/status", response_model=BatchOut)
async def update_batch_status(
    batch_id: uuid.UUID,
    body: BatchStatusUpdate,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.update_status(db, batch_id, body.status)


@router.post("/batches/{batch_id}/notify")
async def notify_batch(
    batch_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    sent = await PayrollService.notify_batch(db, batch_id)
    return {"message": "Employees notified.", "data": {"count": sent}}


@router.delete("/batches/{batch_id}", status_code=204)
async def delete_batch(
    batch_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await PayrollService.delete_batch(db, batch_id)


# ═════════════════════════════════════════════════════════════════════
# Transfers
# ═════════════════════════════════════════════════════════════════════


@router.get("/transfers", response_model=list[TransferLineOut])
async def list_transfers(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    state: AppState = Depends(get_app_state),
):
    snapshot = await state.current(db)
    return await transfers.list_transfers(db, snapshot.active_employee_ids)


@router.get("/transfers/export")
async def export_transfers(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    state: AppState = Depends(get_app_state),
):
    snapshot = await state.current(db)
    lines = await transfers.list_transfers(db, snapshot.active_employee_ids)
    return file_response(transfers.transfers_csv(lines), "bank_transfers.csv")


@router.post("/transfers/recompute/{batch_id}", response_model=list[TransferLineOut])
async def recompute_transfers(
    batch_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    state: AppState = Depends(get_app_state),
):
    snapshot = await state.current(db)
    return await transfers.recompute(db, batch_id, snapshot.active_employee_ids)


@router.post("/delete-all", response_model=DeleteAllResult)
async def delete_all_payroll(
    body: DeleteAllRequest,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Irreversibly delete all payroll lines and batches."""
    return await transfers.delete_all(
        db, confirm=body.confirm, confirm_again=body.confirm_again,
    )


# ═════════════════════════════════════════════════════════════════════
# Bank accounts
# ═════════════════════════════════════════════════════════════════════


@bank_accounts_router.get("", response_model=list[BankAccountOut])
async def list_bank_accounts(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await BankAccountService.list_accounts(db)


@bank_accounts_router.get("/me", response_model=BankAccountOut)
async def my_bank_account(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BankAccountService.get_for_employee(db, employee.id)


@bank_accounts_router.get("/{employee_id}", response_model=BankAccountOut)
async def get_bank_account(
    employee_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await BankAccountService.get_for_employee(db, employee_id)


@bank_accounts_router.put("/{employee_id}", response_model=BankAccountOut)
async def save_bank_account(
    employee_id: uuid.UUID,
    body: BankAccountIn,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the employee's bank account."""
    return await BankAccountService.upsert(db, employee_id, body)
