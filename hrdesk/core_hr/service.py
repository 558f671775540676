"""Core HR service layer: async CRUD for employees and org structure."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import ACTIVE_EMPLOYEE_STATUSES
from hrdesk.common.exceptions import ConflictError, NotFoundException
from hrdesk.common.pagination import PaginationMeta, PaginationParams, paginate
from hrdesk.core_hr.models import Branch, Department, Employee, Shift
from hrdesk.core_hr.schemas import (
    BranchCreate,
    DepartmentCreate,
    EmployeeCreate,
    EmployeeUpdate,
    ShiftCreate,
)

logger = logging.getLogger(__name__)


def active_employee_clause():
    """SQL twin of ``is_active_status``: unset, ``Active`` or ``ACTIVE``."""
    return or_(
        Employee.status.is_(None),
        Employee.status == "",
        Employee.status.in_(ACTIVE_EMPLOYEE_STATUSES),
    )


def _raise_conflict(exc: IntegrityError, email: Optional[str]) -> None:
    if "email" in str(exc.orig):
        raise ConflictError("email", email)


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees. Employees are never hard-deleted."""

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        status: Optional[str] = None,
        department_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Employee], PaginationMeta]:
        query = select(Employee).order_by(Employee.first_name, Employee.last_name)

        if status:
            query = query.where(Employee.status == status)
        if department_id:
            query = query.where(Employee.department_id == department_id)
        if branch_id:
            query = query.where(Employee.branch_id == branch_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Employee.first_name).like(pattern),
                    func.lower(Employee.last_name).like(pattern),
                    func.lower(Employee.email).like(pattern),
                )
            )

        return await paginate(db, query, pagination)

    @staticmethod
    async def all_employees(db: AsyncSession) -> Sequence[Employee]:
        result = await db.execute(
            select(Employee).order_by(Employee.first_name, Employee.last_name)
        )
        return result.scalars().all()

    @staticmethod
    async def active_employees(db: AsyncSession) -> Sequence[Employee]:
        result = await db.execute(
            select(Employee)
            .where(active_employee_clause())
            .order_by(Employee.first_name, Employee.last_name)
        )
        return result.scalars().all()

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def get_by_auth_id(db: AsyncSession, auth_id: str) -> Optional[Employee]:
        """Resolve the employee linked to an authentication identity."""
        result = await db.execute(
            select(Employee).where(Employee.auth_id == auth_id).limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def create_employee(db: AsyncSession, data: EmployeeCreate) -> Employee:
        employee = Employee(**data.model_dump())
        db.add(employee)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            _raise_conflict(exc, data.email)
            raise
        logger.info("Created employee %s (%s)", employee.id, employee.email)
        return employee

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, employee_id)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(employee, field, value)

        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            _raise_conflict(exc, changes.get("email"))
            raise
        return employee


# ═════════════════════════════════════════════════════════════════════
# Org structure
# ═════════════════════════════════════════════════════════════════════


class OrgService:
    """Departments, branches and shifts."""

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[tuple[Department, int]]:
        """Departments with their employee headcount."""
        count_sq = (
            select(Employee.department_id, func.count(Employee.id).label("n"))
            .group_by(Employee.department_id)
            .subquery()
        )
        result = await db.execute(
            select(Department, func.coalesce(count_sq.c.n, 0))
            .outerjoin(count_sq, count_sq.c.department_id == Department.id)
            .order_by(Department.name)
        )
        return [(dept, int(n)) for dept, n in result.all()]

    @staticmethod
    async def create_department(db: AsyncSession, data: DepartmentCreate) -> Department:
        dept = Department(**data.model_dump())
        db.add(dept)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        return dept

    @staticmethod
    async def list_branches(db: AsyncSession) -> Sequence[Branch]:
        result = await db.execute(select(Branch).order_by(Branch.name))
        return result.scalars().all()

    @staticmethod
    async def create_branch(db: AsyncSession, data: BranchCreate) -> Branch:
        branch = Branch(**data.model_dump())
        db.add(branch)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        return branch

    @staticmethod
    async def list_shifts(db: AsyncSession) -> Sequence[Shift]:
        result = await db.execute(select(Shift).order_by(Shift.start_time))
        return result.scalars().all()

    @staticmethod
    async def create_shift(db: AsyncSession, data: ShiftCreate) -> Shift:
        shift = Shift(**data.model_dump())
        db.add(shift)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)
        return shift
