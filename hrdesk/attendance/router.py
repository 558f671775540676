"""Attendance router: trust check, check-in/out action, device log, admin log."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.attendance.models import AttendanceLog
from hrdesk.attendance.recorder import DeviceLogRegistry, record_action
from hrdesk.attendance.schemas import (
    ActionRequest,
    AttendanceLogOut,
    LocalRecordOut,
    SignalsIn,
    VerdictOut,
)
from hrdesk.attendance.trust import evaluate_trust, signals_from_geolocation
from hrdesk.auth.dependencies import get_current_user, require_admin
from hrdesk.common.pagination import PaginationParams, paginate
from hrdesk.core_hr.models import Employee
from hrdesk.database import get_db
from hrdesk.dependencies import get_device_logs

router = APIRouter(prefix="", tags=["attendance"])


def _signals(body: SignalsIn):
    signals = body.to_signals()
    if body.geolocation_ok is not None:
        signals = signals_from_geolocation(body.geolocation_ok, signals)
    return signals


# ── POST /trust ─────────────────────────────────────────────────────

@router.post("/trust", response_model=VerdictOut)
async def check_trust(
    body: SignalsIn,
    employee: Employee = Depends(get_current_user),
):
    """Evaluate the current device signals without recording anything."""
    verdict = evaluate_trust(_signals(body))
    return VerdictOut(status=verdict.status, message=verdict.message)


# ── POST /action ────────────────────────────────────────────────────

@router.post("/action", response_model=LocalRecordOut, status_code=201)
async def attendance_action(
    body: ActionRequest,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    device_logs: DeviceLogRegistry = Depends(get_device_logs),
):
    """Check in or out; the type alternates with the device log length."""
    return await record_action(
        db,
        employee,
        _signals(body.signals),
        online=body.online,
        device_log=device_logs.for_employee(employee.id),
    )


# ── GET /device-log ─────────────────────────────────────────────────

@router.get("/device-log", response_model=list[LocalRecordOut])
async def device_log(
    employee: Employee = Depends(get_current_user),
    device_logs: DeviceLogRegistry = Depends(get_device_logs),
):
    return device_logs.for_employee(employee.id).records


# ── GET /logs ───────────────────────────────────────────────────────

@router.get("/logs")
async def list_logs(
    employee_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    current_user: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Synced attendance rows, newest first."""
    query = select(AttendanceLog).order_by(AttendanceLog.timestamp.desc())
    if employee_id:
        query = query.where(AttendanceLog.employee_id == employee_id)
    items, meta = await paginate(db, query, pagination)
    return {
        "data": [AttendanceLogOut.model_validate(i).model_dump(mode="json") for i in items],
        "meta": meta.model_dump(),
    }
