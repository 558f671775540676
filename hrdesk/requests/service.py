"""Leave, mission and loan services."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import LeaveStatus, LoanStatus, MissionStatus
from hrdesk.common.exceptions import NotFoundException, ValidationException
from hrdesk.core_hr.models import Employee
from hrdesk.core_hr.service import EmployeeService
from hrdesk.requests.models import Leave, Loan, Mission
from hrdesk.requests.schemas import (
    LeaveCreate,
    LeaveOut,
    LoanCreate,
    LoanOut,
    LoanSummary,
    MissionCreate,
    MissionOut,
)

logger = logging.getLogger(__name__)

# Allowed next states for a mission
MISSION_TRANSITIONS: dict[MissionStatus, set[MissionStatus]] = {
    MissionStatus.PENDING: {MissionStatus.APPROVED, MissionStatus.REJECTED},
    MissionStatus.APPROVED: {MissionStatus.IN_PROGRESS},
    MissionStatus.IN_PROGRESS: {MissionStatus.COMPLETED},
    MissionStatus.REJECTED: set(),
    MissionStatus.COMPLETED: set(),
}


def _display(first: Optional[str], last: Optional[str]) -> str:
    if first is None:
        return "Unknown"
    return f"{first} {last or ''}".strip()


async def _named(db: AsyncSession, query, out):
    """Run a ``select(model, first_name, last_name)`` query into ``out`` schemas."""
    result = await db.execute(query)
    items = []
    for row, first, last in result.all():
        item = out.model_validate(row)
        item.employee_name = _display(first, last)
        items.append(item)
    return items


def _select_named(model):
    return (
        select(model, Employee.first_name, Employee.last_name)
        .outerjoin(Employee, Employee.id == model.employee_id)
        .order_by(model.created_at.desc())
    )


# ═════════════════════════════════════════════════════════════════════
# Leaves
# ═════════════════════════════════════════════════════════════════════


class LeaveService:

    @staticmethod
    async def request_leave(
        db: AsyncSession, employee: Employee, data: LeaveCreate,
    ) -> Leave:
        leave = Leave(employee_id=employee.id, **data.model_dump())
        db.add(leave)
        await db.flush()
        return leave

    @staticmethod
    async def list_leaves(
        db: AsyncSession,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[uuid.UUID] = None,
        manager_id: Optional[uuid.UUID] = None,
    ) -> list[LeaveOut]:
        query = _select_named(Leave)
        if status is not None:
            query = query.where(Leave.status == status.value)
        if employee_id is not None:
            query = query.where(Leave.employee_id == employee_id)
        if manager_id is not None:
            query = query.where(Employee.manager_id == manager_id)
        return await _named(db, query, LeaveOut)

    @staticmethod
    async def decide(
        db: AsyncSession, leave_id: uuid.UUID, reviewer: Employee, status: LeaveStatus,
    ) -> Leave:
        if status is LeaveStatus.PENDING:
            raise ValidationException({"status": ["A decision must approve or reject."]})
        leave = await db.get(Leave, leave_id)
        if leave is None:
            raise NotFoundException("Leave", leave_id)
        if leave.status != LeaveStatus.PENDING.value:
            raise ValidationException({"status": [f"Leave is already {leave.status}."]})

        leave.status = status.value
        leave.reviewed_by_id = reviewer.id
        leave.reviewed_at = datetime.now(timezone.utc)
        await db.flush()
        return leave


# ═════════════════════════════════════════════════════════════════════
# Missions
# ═════════════════════════════════════════════════════════════════════


class MissionService:

    @staticmethod
    async def create_mission(
        db: AsyncSession, employee_id: uuid.UUID, data: MissionCreate,
    ) -> Mission:
        await EmployeeService.get_employee(db, employee_id)
        mission = Mission(employee_id=employee_id, **data.model_dump(exclude={"employee_id"}))
        db.add(mission)
        await db.flush()
        return mission

    @staticmethod
    async def list_missions(
        db: AsyncSession,
        *,
        status: Optional[MissionStatus] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> list[MissionOut]:
        query = _select_named(Mission)
        if status is not None:
            query = query.where(Mission.status == status.value)
        if employee_id is not None:
            query = query.where(Mission.employee_id == employee_id)
        return await _named(db, query, MissionOut)

    @staticmethod
    async def update_status(
        db: AsyncSession, mission_id: uuid.UUID, status: MissionStatus,
    ) -> Mission:
        mission = await db.get(Mission, mission_id)
        if mission is None:
            raise NotFoundException("Mission", mission_id)
        current = MissionStatus(mission.status)
        if status not in MISSION_TRANSITIONS[current]:
            raise ValidationException(
                {"status": [f"Cannot move a mission from {current.value} to {status.value}."]}
            )
        mission.status = status.value
        await db.flush()
        return mission


# ═════════════════════════════════════════════════════════════════════
# Loans
# ═════════════════════════════════════════════════════════════════════


class LoanService:

    @staticmethod
    async def create_loan(
        db: AsyncSession, employee_id: uuid.UUID, data: LoanCreate,
    ) -> Loan:
        errors: dict[str, list[str]] = {}
        if data.total_amount <= 0:
            errors["total_amount"] = ["Amount must be greater than zero."]
        if data.monthly_installment <= 0:
            errors["monthly_installment"] = ["Installment must be greater than zero."]
        if errors:
            raise ValidationException(errors)

        await EmployeeService.get_employee(db, employee_id)
        loan = Loan(
            employee_id=employee_id,
            total_amount=data.total_amount,
            monthly_installment=data.monthly_installment,
            remaining_amount=data.total_amount,
            start_date=data.start_date or datetime.now(timezone.utc).date(),
            status=LoanStatus.ACTIVE.value,
            reason=data.reason,
        )
        db.add(loan)
        await db.flush()
        logger.info("Loan of %s created for %s", data.total_amount, employee_id)
        return loan

    @staticmethod
    async def list_loans(
        db: AsyncSession, *, search: Optional[str] = None,
    ) -> list[LoanOut]:
        query = _select_named(Loan)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                func.lower(Employee.first_name + " " + Employee.last_name).like(pattern)
            )
        return await _named(db, query, LoanOut)

    @staticmethod
    async def decide(db: AsyncSession, loan_id: uuid.UUID, approve: bool) -> Loan:
        loan = await db.get(Loan, loan_id)
        if loan is None:
            raise NotFoundException("Loan", loan_id)
        loan.status = (LoanStatus.ACTIVE if approve else LoanStatus.REJECTED).value
        await db.flush()
        return loan

    @staticmethod
    async def summary(db: AsyncSession) -> LoanSummary:
        row = (
            await db.execute(
                select(
                    func.coalesce(func.sum(Loan.total_amount), 0),
                    func.coalesce(func.sum(Loan.remaining_amount), 0),
                    func.count(Loan.id).filter(Loan.status == LoanStatus.ACTIVE.value),
                )
            )
        ).one()
        return LoanSummary(
            total_loaned=Decimal(row[0]),
            total_remaining=Decimal(row[1]),
            active_count=int(row[2] or 0),
        )
