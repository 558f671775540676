"""Dashboard Pydantic v2 schemas: KPI summary, financial reports, state refresh."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


# ═════════════════════════════════════════════════════════════════════
# GET /summary
# ═════════════════════════════════════════════════════════════════════


class DashboardSummaryResponse(BaseModel):
    """Top-level KPI cards for the admin dashboard."""

    total_employees: int = Field(..., description="All employee records")
    active_employees: int = Field(..., description="Employees whose status counts as active")
    present_today: int = Field(..., description="Employees with a check-in today")
    pending_leaves: int = Field(..., description="Leave requests awaiting a decision")
    unresolved_alerts: int = Field(..., description="Security alerts not yet resolved")
    latest_batch_total: Decimal = Field(
        Decimal("0"), description="Total of the most recent payroll batch",
    )


# ═════════════════════════════════════════════════════════════════════
# GET /reports/*
# ═════════════════════════════════════════════════════════════════════


class PayrollReportItem(BaseModel):
    """One payroll batch rolled up from its lines."""

    batch_id: uuid.UUID
    batch_name: str
    created_at: datetime
    total_amount: Decimal
    employee_count: int
    avg_salary: Decimal
    max_salary: Decimal
    min_salary: Decimal
    deductions: Decimal
    allowances: Decimal
    status: str


class TaxReportItem(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    gross_salary: Decimal
    taxable_income: Decimal
    tax_amount: Decimal
    tax_rate: float = Field(..., description="Percent")
    from_payroll: bool = Field(..., description="False when estimated from basic salary")


class BudgetAnalysisItem(BaseModel):
    department_id: uuid.UUID
    department_name: str
    budgeted: Decimal
    spent: Decimal
    variance: Decimal
    variance_percent: float
    status: str


# ═════════════════════════════════════════════════════════════════════
# POST /refresh
# ═════════════════════════════════════════════════════════════════════


class StateRefreshResponse(BaseModel):
    taken_at: Optional[datetime] = None
    employees: int = 0
    active_employees: int = 0
    departments: int = 0
    branches: int = 0
    unresolved_alerts: int = 0
