"""Dashboard router: KPI summary, financial reports, state refresh.

The summary is visible to any authenticated employee. Financial reports
and the manual state refresh are admin-only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user, require_admin
from hrdesk.core_hr.models import Employee
from hrdesk.dashboard.schemas import (
    BudgetAnalysisItem,
    DashboardSummaryResponse,
    PayrollReportItem,
    StateRefreshResponse,
    TaxReportItem,
)
from hrdesk.dashboard.service import REPORT_BATCH_LIMIT, DashboardService
from hrdesk.dashboard.state import AppState
from hrdesk.database import get_db
from hrdesk.dependencies import get_app_state

router = APIRouter()


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=DashboardSummaryResponse)
async def dashboard_summary(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Employee counts, present today, pending leaves, open alerts, last batch total."""
    return await DashboardService.get_summary(db)


# ── GET /reports/* ──────────────────────────────────────────────────

@router.get("/reports/payroll", response_model=list[PayrollReportItem])
async def payroll_report(
    limit: int = Query(REPORT_BATCH_LIMIT, ge=1, le=50),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.payroll_report(db, limit=limit)


@router.get("/reports/tax", response_model=list[TaxReportItem])
async def tax_report(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.tax_report(db)


@router.get("/reports/budget", response_model=list[BudgetAnalysisItem])
async def budget_analysis(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.budget_analysis(db)


# ── POST /refresh ───────────────────────────────────────────────────

@router.post("/refresh", response_model=StateRefreshResponse)
async def refresh_state(
    employee: Employee = Depends(require_admin),
    state: AppState = Depends(get_app_state),
    db: AsyncSession = Depends(get_db),
):
    """Reload the shared reference data now instead of waiting for the poller."""
    snapshot = await state.refresh(db)
    return DashboardService.describe_snapshot(snapshot)
