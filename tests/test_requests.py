"""Leave, mission and loan tests."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest

from hrdesk.common.constants import LeaveStatus, MissionStatus, UserRole
from hrdesk.common.exceptions import ValidationException
from hrdesk.requests.schemas import LeaveCreate, LoanCreate, MissionCreate
from hrdesk.requests.service import LeaveService, LoanService, MissionService
from tests.conftest import headers_for

LEAVE = {"type": "Annual", "start_date": "2026-11-02", "end_date": "2026-11-05"}


# ═════════════════════════════════════════════════════════════════════
# 1. LEAVES
# ═════════════════════════════════════════════════════════════════════


class TestLeaves:

    async def test_request_and_list_own(self, client, staff_headers):
        resp = await client.post("/api/v1/leaves", json=LEAVE, headers=staff_headers)
        assert resp.status_code == 201
        assert resp.json()["status"] == "PENDING"
        assert resp.json()["employee_name"] == "Sara Ali"

        listed = await client.get("/api/v1/leaves", headers=staff_headers)
        assert len(listed.json()) == 1

    async def test_end_before_start_rejected(self, client, staff_headers):
        resp = await client.post(
            "/api/v1/leaves",
            json={**LEAVE, "end_date": "2026-11-01"},
            headers=staff_headers,
        )
        assert resp.status_code == 422

    async def test_scope_by_role(self, client, make_employee, admin_headers):
        manager = await make_employee("Mona", "Said", role=UserRole.manager)
        report = await make_employee("Karim", "Nabil", manager_id=manager.id)
        outsider = await make_employee("Hany", "Fouad")

        await client.post("/api/v1/leaves", json=LEAVE, headers=headers_for(report))
        await client.post("/api/v1/leaves", json=LEAVE, headers=headers_for(outsider))

        team = await client.get("/api/v1/leaves", headers=headers_for(manager))
        assert [row["employee_name"] for row in team.json()] == ["Karim Nabil"]

        own = await client.get("/api/v1/leaves", headers=headers_for(outsider))
        assert [row["employee_name"] for row in own.json()] == ["Hany Fouad"]

        everyone = await client.get("/api/v1/leaves", headers=admin_headers)
        assert len(everyone.json()) == 2

    async def test_decide_only_from_pending(self, db, staff, admin):
        leave = await LeaveService.request_leave(
            db, staff, LeaveCreate(type="Sick", start_date=date(2026, 11, 2), end_date=date(2026, 11, 2)),
        )
        decided = await LeaveService.decide(db, leave.id, admin, LeaveStatus.APPROVED)
        assert decided.status == "APPROVED"
        assert decided.reviewed_by_id == admin.id
        assert decided.reviewed_at is not None

        with pytest.raises(ValidationException):
            await LeaveService.decide(db, leave.id, admin, LeaveStatus.REJECTED)

    async def test_pending_is_not_a_decision(self, db, staff, admin):
        leave = await LeaveService.request_leave(
            db, staff, LeaveCreate(type="Sick", start_date=date(2026, 11, 2), end_date=date(2026, 11, 2)),
        )
        with pytest.raises(ValidationException):
            await LeaveService.decide(db, leave.id, admin, LeaveStatus.PENDING)

    async def test_decision_endpoint_requires_manager(
        self, client, staff_headers, admin_headers,
    ):
        created = await client.post("/api/v1/leaves", json=LEAVE, headers=staff_headers)
        leave_id = created.json()["id"]

        denied = await client.put(
            f"/api/v1/leaves/{leave_id}/decision",
            json={"status": "APPROVED"},
            headers=staff_headers,
        )
        assert denied.status_code == 403

        resp = await client.put(
            f"/api/v1/leaves/{leave_id}/decision",
            json={"status": "REJECTED"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "REJECTED"

        filtered = await client.get(
            "/api/v1/leaves", params={"status": "PENDING"}, headers=admin_headers,
        )
        assert filtered.json() == []


# ═════════════════════════════════════════════════════════════════════
# 2. MISSIONS
# ═════════════════════════════════════════════════════════════════════


class TestMissions:

    async def _mission(self, db, employee):
        return await MissionService.create_mission(
            db, employee.id, MissionCreate(title="Client visit", mission_date=date(2026, 11, 3)),
        )

    async def test_full_lifecycle(self, db, staff):
        mission = await self._mission(db, staff)
        assert mission.status == "PENDING"
        for step in (MissionStatus.APPROVED, MissionStatus.IN_PROGRESS, MissionStatus.COMPLETED):
            mission = await MissionService.update_status(db, mission.id, step)
        assert mission.status == "COMPLETED"

    @pytest.mark.parametrize("target", [MissionStatus.IN_PROGRESS, MissionStatus.COMPLETED])
    async def test_pending_cannot_skip_ahead(self, db, staff, target):
        mission = await self._mission(db, staff)
        with pytest.raises(ValidationException):
            await MissionService.update_status(db, mission.id, target)

    async def test_rejected_is_final(self, db, staff):
        mission = await self._mission(db, staff)
        await MissionService.update_status(db, mission.id, MissionStatus.REJECTED)
        with pytest.raises(ValidationException):
            await MissionService.update_status(db, mission.id, MissionStatus.APPROVED)

    async def test_create_for_employee_and_list(self, client, staff, staff_headers, admin_headers):
        resp = await client.post(
            "/api/v1/missions",
            json={
                "employee_id": str(staff.id),
                "title": "Site audit",
                "destination": "Alexandria",
                "mission_date": "2026-11-10",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["employee_name"] == "Sara Ali"
        assert resp.json()["geofence_radius"] == 100

        # Self-assigned admin mission is hidden from staff
        await client.post(
            "/api/v1/missions",
            json={"title": "Board meeting", "mission_date": "2026-11-11"},
            headers=admin_headers,
        )
        mine = await client.get("/api/v1/missions", headers=staff_headers)
        assert [m["title"] for m in mine.json()] == ["Site audit"]

        everyone = await client.get("/api/v1/missions", headers=admin_headers)
        assert len(everyone.json()) == 2

    async def test_bad_transition_endpoint(self, client, staff, admin_headers):
        created = await client.post(
            "/api/v1/missions",
            json={"employee_id": str(staff.id), "title": "Trip", "mission_date": "2026-11-10"},
            headers=admin_headers,
        )
        resp = await client.put(
            f"/api/v1/missions/{created.json()['id']}/status",
            json={"status": "COMPLETED"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_unknown_employee(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/missions",
            json={"employee_id": str(uuid.uuid4()), "title": "Trip", "mission_date": "2026-11-10"},
            headers=admin_headers,
        )
        assert resp.status_code == 404


# ═════════════════════════════════════════════════════════════════════
# 3. LOANS
# ═════════════════════════════════════════════════════════════════════


class TestLoans:

    async def test_create_sets_remaining(self, db, staff):
        loan = await LoanService.create_loan(
            db, staff.id, LoanCreate(total_amount=Decimal("3000"), monthly_installment=Decimal("500")),
        )
        assert loan.remaining_amount == Decimal("3000")
        assert loan.status == "ACTIVE"
        assert loan.start_date is not None

    async def test_non_positive_amounts_reported_together(self, db, staff):
        with pytest.raises(ValidationException) as exc_info:
            await LoanService.create_loan(
                db, staff.id, LoanCreate(total_amount=Decimal("0"), monthly_installment=Decimal("-1")),
            )
        assert set(exc_info.value.errors) == {"total_amount", "monthly_installment"}

    async def test_summary(self, db, staff, admin):
        await LoanService.create_loan(
            db, staff.id, LoanCreate(total_amount=Decimal("3000"), monthly_installment=Decimal("500")),
        )
        second = await LoanService.create_loan(
            db, admin.id, LoanCreate(total_amount=Decimal("1000"), monthly_installment=Decimal("100")),
        )
        await LoanService.decide(db, second.id, approve=False)
        await db.commit()

        summary = await LoanService.summary(db)
        assert summary.total_loaned == Decimal("4000")
        assert summary.total_remaining == Decimal("4000")
        assert summary.active_count == 1

    async def test_summary_empty(self, db):
        summary = await LoanService.summary(db)
        assert summary.total_loaned == 0
        assert summary.active_count == 0

    async def test_endpoints(self, client, staff, admin_headers, staff_headers):
        denied = await client.get("/api/v1/loans", headers=staff_headers)
        assert denied.status_code == 403

        created = await client.post(
            "/api/v1/loans",
            json={"employee_id": str(staff.id), "total_amount": "1200", "monthly_installment": "200"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["employee_name"] == "Sara Ali"

        found = await client.get("/api/v1/loans", params={"search": "sara"}, headers=admin_headers)
        assert len(found.json()) == 1
        missing = await client.get("/api/v1/loans", params={"search": "zzz"}, headers=admin_headers)
        assert missing.json() == []

        decided = await client.put(
            f"/api/v1/loans/{created.json()['id']}/decision",
            json={"approve": False},
            headers=admin_headers,
        )
        assert decided.json()["data"]["status"] == "REJECTED"

        summary = await client.get("/api/v1/loans/summary", headers=admin_headers)
        assert Decimal(summary.json()["total_loaned"]) == Decimal("1200")
        assert summary.json()["active_count"] == 0

    async def test_invalid_amount_endpoint(self, client, staff, admin_headers):
        resp = await client.post(
            "/api/v1/loans",
            json={"employee_id": str(staff.id), "total_amount": "-5", "monthly_installment": "10"},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert "total_amount" in resp.json()["errors"]
