"""Dashboard service: KPI summary and financial reports.

All methods are static async, following the project convention.
Counts run at DB level; per-line rollups are done in Python over a single
query each.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.attendance.models import AttendanceLog
from hrdesk.common.constants import TIMEZONE, CheckType, LeaveStatus
from hrdesk.config import settings
from hrdesk.core_hr.models import Department, Employee
from hrdesk.core_hr.service import active_employee_clause
from hrdesk.dashboard.schemas import (
    BudgetAnalysisItem,
    DashboardSummaryResponse,
    PayrollReportItem,
    StateRefreshResponse,
    TaxReportItem,
)
from hrdesk.dashboard.state import AppSnapshot
from hrdesk.feeds.models import SecurityAlert
from hrdesk.payroll.models import PayrollBatch, PayrollRecord
from hrdesk.requests.models import Leave

REPORT_BATCH_LIMIT = 12

# Budget status thresholds on variance percent
BUDGET_OK_ABOVE = 5.0
BUDGET_WARNING_ABOVE = 0.0


def _today() -> date:
    """Current date in the company timezone."""
    return datetime.now(ZoneInfo(TIMEZONE)).date()


def _start_of_today() -> datetime:
    return datetime.combine(_today(), time.min, tzinfo=ZoneInfo(TIMEZONE)).astimezone(timezone.utc)


def _whole(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def tax_for(gross: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(taxable_income, tax_amount)`` for a monthly gross."""
    exemption = Decimal(str(settings.TAX_EXEMPTION_AMOUNT))
    taxable = max(Decimal("0"), gross - exemption)
    return taxable, _whole(taxable * Decimal(str(settings.TAX_RATE)))


def budget_status(variance_percent: float) -> str:
    if variance_percent > BUDGET_OK_ABOVE:
        return "OK"
    if variance_percent > BUDGET_WARNING_ABOVE:
        return "WARNING"
    return "EXCEEDED"


async def _latest_lines(db: AsyncSession) -> dict[uuid.UUID, PayrollRecord]:
    """Most recent payroll line per employee."""
    result = await db.execute(
        select(PayrollRecord)
        .join(PayrollBatch, PayrollBatch.id == PayrollRecord.batch_id)
        .order_by(PayrollRecord.created_at.desc(), PayrollBatch.created_at.desc())
    )
    latest: dict[uuid.UUID, PayrollRecord] = {}
    for line in result.scalars().all():
        latest.setdefault(line.employee_id, line)
    return latest


class DashboardService:
    """Async dashboard aggregation queries."""

    # ═════════════════════════════════════════════════════════════════
    # GET /summary
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_summary(db: AsyncSession) -> DashboardSummaryResponse:
        total_q = select(func.count(Employee.id))
        active_q = select(func.count(Employee.id)).where(active_employee_clause())
        present_q = select(func.count(distinct(AttendanceLog.employee_id))).where(
            AttendanceLog.check_type == CheckType.CHECK_IN.value,
            AttendanceLog.timestamp >= _start_of_today(),
        )
        pending_q = select(func.count(Leave.id)).where(
            Leave.status == LeaveStatus.PENDING.value,
        )
        alerts_q = select(func.count(SecurityAlert.id)).where(
            SecurityAlert.is_resolved.is_(False),
        )
        latest_q = (
            select(PayrollBatch.total_amount)
            .order_by(PayrollBatch.created_at.desc())
            .limit(1)
        )

        results = await _multi_scalar(db, total_q, active_q, present_q, pending_q, alerts_q, latest_q)

        return DashboardSummaryResponse(
            total_employees=results[0] or 0,
            active_employees=results[1] or 0,
            present_today=results[2] or 0,
            pending_leaves=results[3] or 0,
            unresolved_alerts=results[4] or 0,
            latest_batch_total=Decimal(results[5] or 0),
        )

    # ═════════════════════════════════════════════════════════════════
    # GET /reports/payroll
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def payroll_report(
        db: AsyncSession, limit: int = REPORT_BATCH_LIMIT,
    ) -> list[PayrollReportItem]:
        """Rollup of the most recent batches; batches without lines are skipped."""
        batches = (
            await db.execute(
                select(PayrollBatch).order_by(PayrollBatch.created_at.desc()).limit(limit)
            )
        ).scalars().all()
        if not batches:
            return []

        lines = (
            await db.execute(
                select(PayrollRecord).where(
                    PayrollRecord.batch_id.in_([b.id for b in batches])
                )
            )
        ).scalars().all()
        by_batch: dict[uuid.UUID, list[PayrollRecord]] = defaultdict(list)
        for line in lines:
            by_batch[line.batch_id].append(line)

        items: list[PayrollReportItem] = []
        for batch in batches:
            records = by_batch.get(batch.id)
            if not records:
                continue
            salaries = [Decimal(r.basic_salary or 0) for r in records]
            items.append(PayrollReportItem(
                batch_id=batch.id,
                batch_name=batch.name,
                created_at=batch.created_at,
                total_amount=sum((Decimal(r.net_salary or 0) for r in records), Decimal("0")),
                employee_count=len(records),
                avg_salary=_whole(sum(salaries, Decimal("0")) / len(salaries)),
                max_salary=max(salaries),
                min_salary=min(salaries),
                deductions=sum((Decimal(r.total_deductions or 0) for r in records), Decimal("0")),
                allowances=sum((Decimal(r.total_allowances or 0) for r in records), Decimal("0")),
                status=batch.status,
            ))
        return items

    # ═════════════════════════════════════════════════════════════════
    # GET /reports/tax
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def tax_report(db: AsyncSession) -> list[TaxReportItem]:
        """Tax per employee from the latest paid line, else estimated from basic salary."""
        latest = await _latest_lines(db)
        employees = (
            await db.execute(select(Employee).order_by(Employee.first_name))
        ).scalars().all()

        rate = round(settings.TAX_RATE * 100, 2)
        items: list[TaxReportItem] = []
        for emp in employees:
            line = latest.get(emp.id)
            gross = Decimal((line.basic_salary if line else emp.basic_salary) or 0)
            taxable, tax = tax_for(gross)
            items.append(TaxReportItem(
                employee_id=emp.id,
                employee_name=emp.display_name,
                gross_salary=gross,
                taxable_income=taxable,
                tax_amount=tax,
                tax_rate=rate,
                from_payroll=line is not None,
            ))
        return items

    # ═════════════════════════════════════════════════════════════════
    # GET /reports/budget
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def budget_analysis(db: AsyncSession) -> list[BudgetAnalysisItem]:
        """Spend per department against its budget.

        Spent is the latest net salary of each employee, summed by
        department. A department without a budget is measured against the
        basic salaries of its employees.
        """
        latest = await _latest_lines(db)
        departments = (
            await db.execute(select(Department).order_by(Department.name))
        ).scalars().all()
        employees = (
            await db.execute(select(Employee).where(Employee.department_id.isnot(None)))
        ).scalars().all()

        spent: dict[uuid.UUID, Decimal] = defaultdict(Decimal)
        salaries: dict[uuid.UUID, Decimal] = defaultdict(Decimal)
        for emp in employees:
            salaries[emp.department_id] += Decimal(emp.basic_salary or 0)
            line = latest.get(emp.id)
            if line is not None:
                spent[emp.department_id] += Decimal(line.net_salary or 0)

        items: list[BudgetAnalysisItem] = []
        for dept in departments:
            budgeted = Decimal(dept.budget) if dept.budget is not None else salaries[dept.id]
            dept_spent = spent[dept.id]
            variance = budgeted - dept_spent
            percent = float(variance / budgeted * 100) if budgeted else 0.0
            percent = round(percent, 2)
            items.append(BudgetAnalysisItem(
                department_id=dept.id,
                department_name=dept.name,
                budgeted=budgeted,
                spent=dept_spent,
                variance=variance,
                variance_percent=percent,
                status=budget_status(percent),
            ))
        return items

    # ═════════════════════════════════════════════════════════════════
    # POST /refresh
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    def describe_snapshot(snapshot: AppSnapshot) -> StateRefreshResponse:
        return StateRefreshResponse(
            taken_at=snapshot.taken_at,
            employees=len(snapshot.employees),
            active_employees=len(snapshot.active_employee_ids),
            departments=len(snapshot.departments),
            branches=len(snapshot.branches),
            unresolved_alerts=len(snapshot.alerts),
        )


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


async def _multi_scalar(db: AsyncSession, *stmts) -> list[Optional[object]]:
    """Execute multiple scalar queries and return their results in order."""
    results = []
    for stmt in stmts:
        result = await db.execute(stmt)
        results.append(result.scalar())
    return results
