"""Core HR router: Employee, Department, Branch and Shift API endpoints.

Routes:
    /employees                        List, create employees
    /employees/export                 CSV / XLSX snapshot
    /employees/import                 Spreadsheet import
    /employees/import/template        Blank import template
    /employees/import/pending         Imports waiting on a duplicate decision
    /employees/import/pending/{id}    Resolve a pending decision
    /employees/{id}                   Get, update employee
    /departments, /branches, /shifts  List, create
"""


import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user, require_admin
from hrdesk.common.exceptions import ValidationException
from hrdesk.common.export import file_response, rows_to_csv, rows_to_xlsx
from hrdesk.common.pagination import PaginationParams
from hrdesk.common.rate_limit import limiter
from hrdesk.config import settings
from hrdesk.core_hr import importer
from hrdesk.core_hr.importer import PendingImportRegistry
from hrdesk.core_hr.models import Employee
from hrdesk.core_hr.schemas import (
    BranchCreate,
    BranchResponse,
    DepartmentCreate,
    DepartmentResponse,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ImportDecision,
    PendingImportOut,
    ShiftCreate,
    ShiftResponse,
)
from hrdesk.core_hr.service import EmployeeService, OrgService
from hrdesk.database import get_db
from hrdesk.dependencies import get_import_registry


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
departments_router = APIRouter(prefix="", tags=["departments"])
branches_router = APIRouter(prefix="", tags=["branches"])
shifts_router = APIRouter(prefix="", tags=["shifts"])

EXPORT_HEADERS = [
    "ID", "First Name", "Last Name", "Email", "Phone", "Job Title",
    "Department ID", "Branch ID", "Basic Salary", "Hire Date", "Status",
]


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees: List employees ─────────────────────────────────

@employees_router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name or email"),
    status: Optional[str] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    branch_id: Optional[uuid.UUID] = Query(None),
):
    """List employees with pagination, search, and filtering."""
    items, meta = await EmployeeService.list_employees(
        db,
        pagination,
        search=search,
        status=status,
        department_id=department_id,
        branch_id=branch_id,
    )
    return {
        "data": [EmployeeResponse.model_validate(e).model_dump(mode="json") for e in items],
        "meta": meta.model_dump(),
    }


# ── GET /employees/export: Snapshot export ─────────────────────────
# NOTE: static paths are declared before /{employee_id}.

@employees_router.get("/export")
async def export_employees(
    fmt: Literal["csv", "xlsx"] = Query("csv", alias="format"),
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    employees = await EmployeeService.all_employees(db)
    rows = [
        [
            str(e.id), e.first_name, e.last_name, e.email, e.phone, e.job_title,
            str(e.department_id) if e.department_id else None,
            str(e.branch_id) if e.branch_id else None,
            e.basic_salary,
            e.hire_date.isoformat() if e.hire_date else None,
            e.status,
        ]
        for e in employees
    ]
    if fmt == "xlsx":
        return file_response(
            rows_to_xlsx(EXPORT_HEADERS, rows, sheet_title="Employees"), "employees.xlsx",
        )
    return file_response(rows_to_csv(EXPORT_HEADERS, rows), "employees.csv")


# ── Import ──────────────────────────────────────────────────────────

@employees_router.get("/import/template")
async def import_template(
    current_user: Employee = Depends(require_admin),
):
    return file_response(importer.build_template(), "employees_template.xlsx")


@employees_router.post("/import")
@limiter.limit(settings.RATE_LIMIT_IMPORT)
async def import_employees(
    request: Request,
    file: UploadFile = File(...),
    on_duplicate: Literal["ask", "overwrite", "skip"] = Query("ask"),
    db: AsyncSession = Depends(get_db),
    registry: PendingImportRegistry = Depends(get_import_registry),
    current_user: Employee = Depends(require_admin),
):
    """Import employees from a spreadsheet.

    With ``on_duplicate=ask`` the request stays open until the duplicate
    decision is posted to ``/import/pending/{id}`` or the wait times out.
    """
    filename = file.filename or ""
    if not filename.lower().endswith((".xlsx", ".csv")):
        raise ValidationException({"file": ["Only .xlsx and .csv files are accepted."]})

    rows = importer.read_rows(await file.read(), filename)
    if on_duplicate == "ask":
        confirm = registry.asking(settings.IMPORT_CONFIRM_TIMEOUT_SECONDS)
    else:
        confirm = importer.fixed_decision(on_duplicate == "overwrite")

    result = await importer.import_employees(db, rows, confirm)
    return {
        "data": result.model_dump(),
        "message": "Employee import finished.",
    }


@employees_router.get("/import/pending", response_model=list[PendingImportOut])
async def list_pending_imports(
    registry: PendingImportRegistry = Depends(get_import_registry),
    current_user: Employee = Depends(require_admin),
):
    return [
        PendingImportOut(
            id=c.id, duplicate_emails=c.duplicate_emails, created_at=c.created_at,
        )
        for c in registry.pending()
    ]


@employees_router.post("/import/pending/{checkpoint_id}")
async def decide_pending_import(
    checkpoint_id: uuid.UUID,
    body: ImportDecision,
    registry: PendingImportRegistry = Depends(get_import_registry),
    current_user: Employee = Depends(require_admin),
):
    registry.resolve(checkpoint_id, body.overwrite)
    return {"message": "Decision recorded."}


# ── GET /employees/{id} ─────────────────────────────────────────────

@employees_router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    employee = await EmployeeService.get_employee(db, employee_id)
    return {
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
        "message": "Employee retrieved successfully.",
    }


# ── POST /employees: Create employee ──────────────────────────────

@employees_router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Create a new employee record. Requires **admin**."""
    employee = await EmployeeService.create_employee(db, body)
    return {
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
        "message": "Employee created successfully.",
    }


# ── PUT /employees/{id}: Update employee ──────────────────────────

@employees_router.put("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Partial update. Requires **admin**."""
    employee = await EmployeeService.update_employee(db, employee_id, body)
    return {
        "data": EmployeeResponse.model_validate(employee).model_dump(mode="json"),
        "message": "Employee updated successfully.",
    }


# ═════════════════════════════════════════════════════════════════════
# Departments / Branches / Shifts
# ═════════════════════════════════════════════════════════════════════


@departments_router.get("")
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    rows = await OrgService.list_departments(db)
    data = []
    for dept, count in rows:
        item = DepartmentResponse.model_validate(dept)
        item.employee_count = count
        data.append(item.model_dump(mode="json"))
    return {"data": data}


@departments_router.post("", status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    dept = await OrgService.create_department(db, body)
    return {"data": DepartmentResponse.model_validate(dept).model_dump(mode="json")}


@branches_router.get("", response_model=list[BranchResponse])
async def list_branches(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return await OrgService.list_branches(db)


@branches_router.post("", status_code=201, response_model=BranchResponse)
async def create_branch(
    body: BranchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    return await OrgService.create_branch(db, body)


@shifts_router.get("", response_model=list[ShiftResponse])
async def list_shifts(
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return await OrgService.list_shifts(db)


@shifts_router.post("", status_code=201, response_model=ShiftResponse)
async def create_shift(
    body: ShiftCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    return await OrgService.create_shift(db, body)
