"""Leave, mission and loan endpoints."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user, require_admin, require_manager
from hrdesk.common.constants import LeaveStatus, MissionStatus, UserRole
from hrdesk.core_hr.models import Employee
from hrdesk.core_hr.service import EmployeeService
from hrdesk.database import get_db
from hrdesk.requests.schemas import (
    LeaveCreate,
    LeaveDecision,
    LeaveOut,
    LoanCreate,
    LoanDecision,
    LoanOut,
    LoanSummary,
    MissionCreate,
    MissionOut,
    MissionStatusUpdate,
)
from hrdesk.requests.service import LeaveService, LoanService, MissionService

leaves_router = APIRouter(prefix="", tags=["leaves"])
missions_router = APIRouter(prefix="", tags=["missions"])
loans_router = APIRouter(prefix="", tags=["loans"])


# ═════════════════════════════════════════════════════════════════════
# Leaves
# ═════════════════════════════════════════════════════════════════════


@leaves_router.get("", response_model=list[LeaveOut])
async def list_leaves(
    request: Request,
    status: Optional[LeaveStatus] = Query(None),
    mine: bool = Query(False),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Employees see their own leaves, managers their team's, admins all."""
    role: UserRole = request.state.user_role
    if mine or role == UserRole.employee:
        return await LeaveService.list_leaves(db, status=status, employee_id=employee.id)
    if role == UserRole.manager:
        return await LeaveService.list_leaves(db, status=status, manager_id=employee.id)
    return await LeaveService.list_leaves(db, status=status)


@leaves_router.post("", response_model=LeaveOut, status_code=201)
async def request_leave(
    body: LeaveCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.request_leave(db, employee, body)
    out = LeaveOut.model_validate(leave)
    out.employee_name = employee.display_name
    return out


@leaves_router.put("/{leave_id}/decision")
async def decide_leave(
    leave_id: uuid.UUID,
    body: LeaveDecision,
    employee: Employee = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.decide(db, leave_id, employee, body.status)
    return {"data": {"id": str(leave.id), "status": leave.status}, "message": "Leave updated"}


# ═════════════════════════════════════════════════════════════════════
# Missions
# ═════════════════════════════════════════════════════════════════════


@missions_router.get("", response_model=list[MissionOut])
async def list_missions(
    request: Request,
    status: Optional[MissionStatus] = Query(None),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if request.state.user_role == UserRole.employee:
        return await MissionService.list_missions(db, status=status, employee_id=employee.id)
    return await MissionService.list_missions(db, status=status)


@missions_router.post("", response_model=MissionOut, status_code=201)
async def create_mission(
    body: MissionCreate,
    employee: Employee = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    target_id = body.employee_id or employee.id
    mission = await MissionService.create_mission(db, target_id, body)
    target = await EmployeeService.get_employee(db, target_id)
    out = MissionOut.model_validate(mission)
    out.employee_name = target.display_name
    return out


@missions_router.put("/{mission_id}/status")
async def update_mission_status(
    mission_id: uuid.UUID,
    body: MissionStatusUpdate,
    employee: Employee = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    mission = await MissionService.update_status(db, mission_id, body.status)
    return {"data": {"id": str(mission.id), "status": mission.status}, "message": "Mission updated"}


# ═════════════════════════════════════════════════════════════════════
# Loans
# ═════════════════════════════════════════════════════════════════════


@loans_router.get("", response_model=list[LoanOut])
async def list_loans(
    search: Optional[str] = Query(None, max_length=100),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await LoanService.list_loans(db, search=search)


@loans_router.get("/summary", response_model=LoanSummary)
async def loan_summary(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await LoanService.summary(db)


@loans_router.post("", response_model=LoanOut, status_code=201)
async def create_loan(
    body: LoanCreate,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    target_id = body.employee_id or employee.id
    loan = await LoanService.create_loan(db, target_id, body)
    target = await EmployeeService.get_employee(db, target_id)
    out = LoanOut.model_validate(loan)
    out.employee_name = target.display_name
    return out


@loans_router.put("/{loan_id}/decision")
async def decide_loan(
    loan_id: uuid.UUID,
    body: LoanDecision,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService.decide(db, loan_id, body.approve)
    return {"data": {"id": str(loan.id), "status": loan.status}, "message": "Loan updated"}
