"""Dashboard test suite: KPI summary, payroll/tax/budget reports, and the
shared application state refresh.

Tests exercise both the service layer (direct DB) and the HTTP API.
Uses the shared conftest.py pattern with in-memory SQLite.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from hrdesk.attendance.models import AttendanceLog
from hrdesk.dashboard.service import DashboardService, budget_status, tax_for
from hrdesk.dashboard.state import AppState
from hrdesk.payroll.models import PayrollBatch, PayrollRecord
from hrdesk.requests.models import Leave
from tests.conftest import TestSessionFactory


# ── Helpers ─────────────────────────────────────────────────────────


async def _batch(db, name, lines, *, created_at=None, status="DRAFT"):
    """Persist a batch with ``lines`` as (employee, basic, net) tuples."""
    batch = PayrollBatch(
        id=uuid.uuid4(),
        name=name,
        total_amount=sum((Decimal(net) for _, _, net in lines), Decimal("0")),
        employee_count=len(lines),
        status=status,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(batch)
    await db.flush()
    for emp, basic, net in lines:
        db.add(PayrollRecord(
            batch_id=batch.id,
            employee_id=emp.id,
            basic_salary=Decimal(basic),
            net_salary=Decimal(net),
            total_allowances=Decimal("100"),
            total_deductions=Decimal("50"),
            created_at=batch.created_at,
        ))
    await db.commit()
    return batch


# ═════════════════════════════════════════════════════════════════════
# 1. SUMMARY
# ═════════════════════════════════════════════════════════════════════


class TestSummary:

    async def test_counts(self, db, make_employee, make_alert):
        present = await make_employee("Nour", "Hassan")
        yesterday_only = await make_employee("Ali", "Samir")
        await make_employee("Former", "Staff", status="Terminated")
        await make_employee("Legacy", "Row", status=None)

        now = datetime.now(timezone.utc)
        db.add_all([
            AttendanceLog(employee_id=present.id, check_type="CHECK_IN", timestamp=now),
            AttendanceLog(employee_id=present.id, check_type="CHECK_IN", timestamp=now),
            AttendanceLog(employee_id=present.id, check_type="CHECK_OUT", timestamp=now),
            AttendanceLog(
                employee_id=yesterday_only.id, check_type="CHECK_IN",
                timestamp=now - timedelta(days=2),
            ),
            Leave(employee_id=present.id, type="Annual",
                  start_date=now.date(), end_date=now.date()),
            Leave(employee_id=present.id, type="Annual", status="APPROVED",
                  start_date=now.date(), end_date=now.date()),
        ])
        await db.commit()
        await make_alert(present)
        await make_alert(present, is_resolved=True)
        await _batch(db, "Old run", [(present, 1000, 1000)], created_at=now - timedelta(days=30))
        await _batch(db, "New run", [(present, 1200, 1250)])

        summary = await DashboardService.get_summary(db)
        assert summary.total_employees == 4
        assert summary.active_employees == 3
        assert summary.present_today == 1
        assert summary.pending_leaves == 1
        assert summary.unresolved_alerts == 1
        assert summary.latest_batch_total == Decimal("1250")

    async def test_empty_database(self, db):
        summary = await DashboardService.get_summary(db)
        assert summary.total_employees == 0
        assert summary.latest_batch_total == 0

    async def test_endpoint_for_any_employee(self, client, staff_headers):
        resp = await client.get("/api/v1/dashboard/summary", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json()["total_employees"] == 1

    async def test_requires_auth(self, client):
        resp = await client.get("/api/v1/dashboard/summary")
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 2. PAYROLL REPORT
# ═════════════════════════════════════════════════════════════════════


class TestPayrollReport:

    async def test_rollup_skips_empty_batches(self, db, make_employee):
        a = await make_employee("Amr", "Zaki")
        b = await make_employee("Dina", "Fahmy")
        now = datetime.now(timezone.utc)
        full = await _batch(
            db, "October", [(a, 1000, 1050), (b, 3000, 3050)], created_at=now - timedelta(days=1),
        )
        await _batch(db, "Empty", [], created_at=now)

        report = await DashboardService.payroll_report(db)
        assert [item.batch_id for item in report] == [full.id]
        item = report[0]
        assert item.total_amount == Decimal("4100")
        assert item.employee_count == 2
        assert item.avg_salary == Decimal("2000")
        assert item.max_salary == Decimal("3000")
        assert item.min_salary == Decimal("1000")
        assert item.allowances == Decimal("200")
        assert item.deductions == Decimal("100")

    async def test_newest_first_with_limit(self, db, make_employee):
        emp = await make_employee()
        now = datetime.now(timezone.utc)
        for i in range(3):
            await _batch(db, f"Run {i}", [(emp, 1000, 1000)], created_at=now - timedelta(days=3 - i))

        report = await DashboardService.payroll_report(db, limit=2)
        assert [item.batch_name for item in report] == ["Run 2", "Run 1"]

    async def test_admin_only(self, client, staff_headers, admin_headers):
        denied = await client.get("/api/v1/dashboard/reports/payroll", headers=staff_headers)
        assert denied.status_code == 403
        resp = await client.get("/api/v1/dashboard/reports/payroll", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == []


# ═════════════════════════════════════════════════════════════════════
# 3. TAX REPORT
# ═════════════════════════════════════════════════════════════════════


class TestTaxReport:

    @pytest.mark.parametrize(
        "gross, taxable, tax",
        [
            (Decimal("2500"), Decimal("500"), Decimal("50")),
            (Decimal("2000"), Decimal("0"), Decimal("0")),
            (Decimal("1500"), Decimal("0"), Decimal("0")),
            (Decimal("2005"), Decimal("5"), Decimal("1")),
        ],
    )
    def test_tax_for(self, gross, taxable, tax):
        assert tax_for(gross) == (taxable, tax)

    async def test_prefers_latest_payroll_line(self, db, make_employee):
        paid = await make_employee("Paid", "Person", salary=2500)
        await make_employee("Quiet", "Person", salary=2500)
        now = datetime.now(timezone.utc)
        await _batch(db, "Old", [(paid, 2200, 2200)], created_at=now - timedelta(days=40))
        await _batch(db, "New", [(paid, 3000, 3000)], created_at=now)

        items = {i.employee_name: i for i in await DashboardService.tax_report(db)}

        assert items["Paid Person"].gross_salary == Decimal("3000")
        assert items["Paid Person"].tax_amount == Decimal("100")
        assert items["Paid Person"].from_payroll is True

        assert items["Quiet Person"].taxable_income == Decimal("500")
        assert items["Quiet Person"].tax_amount == Decimal("50")
        assert items["Quiet Person"].from_payroll is False
        assert items["Quiet Person"].tax_rate == 10.0


# ═════════════════════════════════════════════════════════════════════
# 4. BUDGET ANALYSIS
# ═════════════════════════════════════════════════════════════════════


class TestBudgetAnalysis:

    @pytest.mark.parametrize(
        "percent, status",
        [(50.0, "OK"), (5.01, "OK"), (5.0, "WARNING"), (0.5, "WARNING"), (0.0, "EXCEEDED"), (-3.0, "EXCEEDED")],
    )
    def test_status_thresholds(self, percent, status):
        assert budget_status(percent) == status

    async def test_departments(self, db, make_department, make_employee):
        ops = await make_department("Operations", budget=Decimal("10000"))
        sales = await make_department("Sales", budget=Decimal("1000"))
        legal = await make_department("Legal", budget=Decimal("1000"))
        zero = await make_department("Zero", budget=Decimal("0"))
        plain = await make_department("Plain")

        o = await make_employee("Ops", "One", department_id=ops.id)
        s = await make_employee("Sales", "One", department_id=sales.id)
        lg = await make_employee("Legal", "One", department_id=legal.id)
        await make_employee("Plain", "One", salary=2000, department_id=plain.id)
        await make_employee("Zero", "One", department_id=zero.id)

        await _batch(db, "Run", [(o, 5000, 5000), (s, 980, 980), (lg, 1200, 1200)])

        items = {i.department_name: i for i in await DashboardService.budget_analysis(db)}

        assert items["Operations"].variance == Decimal("5000")
        assert items["Operations"].variance_percent == 50.0
        assert items["Operations"].status == "OK"

        assert items["Sales"].variance_percent == 2.0
        assert items["Sales"].status == "WARNING"

        assert items["Legal"].variance == Decimal("-200")
        assert items["Legal"].status == "EXCEEDED"

        assert items["Zero"].variance_percent == 0.0
        assert items["Zero"].status == "EXCEEDED"

        # No budget: measured against basic salaries, nothing spent yet
        assert items["Plain"].budgeted == Decimal("2000")
        assert items["Plain"].spent == Decimal("0")
        assert items["Plain"].status == "OK"


# ═════════════════════════════════════════════════════════════════════
# 5. APPLICATION STATE
# ═════════════════════════════════════════════════════════════════════


class TestAppState:

    async def test_refresh_builds_snapshot(self, db, make_employee, make_department, make_alert):
        dept = await make_department()
        emp = await make_employee(department_id=dept.id)
        await make_employee("Gone", "Away", status="Resigned")
        await make_alert(emp)

        state = AppState()
        assert not state.snapshot.loaded
        snapshot = await state.refresh(db)

        assert snapshot.loaded
        assert len(snapshot.employees) == 2
        assert snapshot.active_employee_ids == frozenset({emp.id})
        assert [d.name for d in snapshot.departments] == ["Engineering"]
        assert len(snapshot.alerts) == 1

    async def test_current_loads_once(self, db, make_employee):
        await make_employee()
        state = AppState()
        first = await state.current(db)
        await make_employee("Late", "Joiner")
        assert await state.current(db) is first

    async def test_failed_background_refresh_keeps_snapshot(self, db, make_employee):
        await make_employee()
        state = AppState()
        before = await state.refresh(db)

        with patch(
            "hrdesk.dashboard.state.EmployeeService.all_employees",
            new=AsyncMock(side_effect=RuntimeError("store offline")),
        ):
            await state.refresh_in_background(TestSessionFactory)

        assert state.snapshot is before

    async def test_refresh_endpoint(self, app, client, admin_headers, make_alert, admin):
        await make_alert(admin)
        resp = await client.post("/api/v1/dashboard/refresh", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["employees"] == 1
        assert body["active_employees"] == 1
        assert body["unresolved_alerts"] == 1
        assert body["taken_at"] is not None
        assert app.state.app_state.snapshot.loaded

    async def test_refresh_endpoint_admin_only(self, client, staff_headers):
        resp = await client.post("/api/v1/dashboard/refresh", headers=staff_headers)
        assert resp.status_code == 403

