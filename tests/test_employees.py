"""Core HR test suite: employee CRUD, org structure, exports, and the
spreadsheet import with its duplicate-email checkpoint.

Uses the shared conftest.py pattern with in-memory SQLite.
"""

from __future__ import annotations

import asyncio
import csv
import io
import uuid
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook
from sqlalchemy import func, select

from hrdesk.common.exceptions import NotFoundException, ValidationException
from hrdesk.core_hr import importer
from hrdesk.core_hr.importer import PendingImportRegistry, fixed_decision, import_employees
from hrdesk.core_hr.models import Employee
from tests.conftest import TestSessionFactory, create_access_token


def _xlsx(headers, *rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _csv(headers, *rows) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8-sig")


# ═════════════════════════════════════════════════════════════════════
# 1. EMPLOYEE CRUD
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeCRUD:

    async def test_create_and_get(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Youssef", "last_name": "Kamal", "email": "y.kamal@hrdesk.test",
                  "basic_salary": "4200"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["display_name"] == "Youssef Kamal"
        assert data["is_active"] is True

        got = await client.get(f"/api/v1/employees/{data['id']}", headers=admin_headers)
        assert got.status_code == 200
        assert got.json()["data"]["email"] == "y.kamal@hrdesk.test"

    async def test_created_employee_visible_to_new_session(self, client, admin_headers, admin):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Mariam", "last_name": "Farid"},
            headers=admin_headers,
        )
        assert resp.status_code == 201

        async with TestSessionFactory() as check:
            names = (await check.execute(select(Employee.first_name))).scalars().all()
        assert sorted(names) == ["Admin", "Mariam"]

    async def test_duplicate_email_conflicts(self, client, admin_headers, make_employee):
        await make_employee("Taken", email="taken@hrdesk.test")
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Other", "email": "taken@hrdesk.test"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_staff_cannot_create(self, client, staff_headers):
        resp = await client.post(
            "/api/v1/employees", json={"first_name": "X"}, headers=staff_headers,
        )
        assert resp.status_code == 403

    async def test_update_partial(self, client, admin_headers, staff):
        resp = await client.put(
            f"/api/v1/employees/{staff.id}",
            json={"job_title": "Accountant", "status": "INACTIVE"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["job_title"] == "Accountant"
        assert data["first_name"] == "Sara"
        assert data["is_active"] is False

    async def test_list_search_and_paginate(self, client, admin_headers, make_employee):
        await make_employee("Karim", "Fathy")
        await make_employee("Laila", "Nabil")

        resp = await client.get(
            "/api/v1/employees", params={"search": "lai"}, headers=admin_headers,
        )
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["first_name"] == "Laila"

        page = await client.get(
            "/api/v1/employees", params={"page": 1, "page_size": 2}, headers=admin_headers,
        )
        assert page.json()["meta"]["total"] == 3
        assert page.json()["meta"]["has_next"] is True

    async def test_page_totals_span_every_page(self, client, admin_headers, make_employee):
        for first in ("Amal", "Bassem", "Dalia", "Emad"):
            await make_employee(first, "Tester")

        first_page = await client.get(
            "/api/v1/employees", params={"page": 1, "page_size": 2}, headers=admin_headers,
        )
        meta = first_page.json()["meta"]
        assert meta["total"] == 5
        assert meta["total_pages"] == 3
        assert meta["has_next"] is True
        assert meta["has_prev"] is False
        assert len(first_page.json()["data"]) == 2

        last_page = await client.get(
            "/api/v1/employees", params={"page": 3, "page_size": 2}, headers=admin_headers,
        )
        meta = last_page.json()["meta"]
        assert meta["total"] == 5
        assert meta["has_next"] is False
        assert meta["has_prev"] is True
        assert len(last_page.json()["data"]) == 1

    async def test_missing_employee_is_404(self, client, admin_headers):
        resp = await client.get(
            "/api/v1/employees/00000000-0000-0000-0000-000000000000", headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")

    async def test_bad_body_is_problem_with_field_errors(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Rana", "basic_salary": "-10"},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"] == "https://hrdesk.local/errors/validation-error"
        assert body["detail"] == "Request validation failed."
        assert body["instance"] == "/api/v1/employees"
        assert list(body["errors"]) == ["basic_salary"]


class TestAuth:

    async def test_missing_token(self, client):
        resp = await client.get("/api/v1/employees")
        assert resp.status_code == 401

    async def test_expired_token(self, client, staff):
        token = create_access_token(staff.auth_id, expired=True)
        resp = await client.get("/api/v1/employees", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_unknown_identity(self, client):
        token = create_access_token("auth-nobody")
        resp = await client.get("/api/v1/employees", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 2. ORG STRUCTURE
# ═════════════════════════════════════════════════════════════════════


class TestOrgStructure:

    async def test_departments_with_headcount(self, client, admin_headers, make_department, make_employee):
        dept = await make_department("Finance", budget=Decimal("10000"))
        await make_employee("A", department_id=dept.id)
        await make_employee("B", department_id=dept.id)
        await make_department("Empty")

        resp = await client.get("/api/v1/departments", headers=admin_headers)
        counts = {d["name"]: d["employee_count"] for d in resp.json()["data"]}
        assert counts == {"Empty": 0, "Finance": 2}

    async def test_duplicate_department_name(self, client, admin_headers, make_department):
        await make_department("Sales")
        resp = await client.post(
            "/api/v1/departments", json={"name": "Sales"}, headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_create_branch_and_shift(self, client, admin_headers):
        branch = await client.post(
            "/api/v1/branches",
            json={"name": "Alexandria", "wifi_ssid": "ALX-Office"},
            headers=admin_headers,
        )
        shift = await client.post(
            "/api/v1/shifts",
            json={"name": "Night", "start_time": "22:00:00", "end_time": "06:00:00",
                  "is_overnight": True},
            headers=admin_headers,
        )
        assert branch.status_code == 201
        assert shift.status_code == 201

        shifts = await client.get("/api/v1/shifts", headers=admin_headers)
        assert [s["name"] for s in shifts.json()] == ["Night"]


# ═════════════════════════════════════════════════════════════════════
# 3. EXPORT
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeExport:

    async def test_csv_export(self, client, admin_headers, staff):
        resp = await client.get("/api/v1/employees/export", headers=admin_headers)
        assert resp.status_code == 200
        rows = list(csv.reader(io.StringIO(resp.content.decode("utf-8-sig"))))
        assert rows[0][:3] == ["ID", "First Name", "Last Name"]
        assert {r[1] for r in rows[1:]} == {"Admin", "Sara"}

    async def test_xlsx_export(self, client, admin_headers):
        resp = await client.get(
            "/api/v1/employees/export", params={"format": "xlsx"}, headers=admin_headers,
        )
        wb = load_workbook(io.BytesIO(resp.content))
        ws = wb.active
        assert ws.title == "Employees"
        assert ws.max_row == 2

    async def test_template_has_arabic_headers(self, client, admin_headers):
        resp = await client.get("/api/v1/employees/import/template", headers=admin_headers)
        ws = load_workbook(io.BytesIO(resp.content)).active
        assert [c.value for c in ws[1]] == importer.TEMPLATE_HEADERS


# ═════════════════════════════════════════════════════════════════════
# 4. IMPORT
# ═════════════════════════════════════════════════════════════════════


class TestImportParsing:

    def test_reads_first_sheet_and_skips_blank_rows(self):
        content = _xlsx(
            ["الاسم الأول", "البريد الإلكتروني"],
            ["Ahmed", "ahmed@hrdesk.test"],
            [None, None],
            ["Mariam", "mariam@hrdesk.test"],
        )
        rows = importer.read_rows(content, "staff.xlsx")
        assert [r["الاسم الأول"] for r in rows] == ["Ahmed", "Mariam"]

    def test_reads_csv(self):
        rows = importer.read_rows(_csv(["First Name", "Email"], ["Ahmed", "a@x.test"]), "s.csv")
        assert rows == [{"First Name": "Ahmed", "Email": "a@x.test"}]

    def test_map_row_defaults(self):
        lookups = importer._Lookups([], [], [])
        record = importer.map_row(
            {"First Name": " Ahmed ", "Email": " Ahmed@HRDesk.test ", "Basic Salary": "abc"},
            lookups,
        )
        assert record["first_name"] == "Ahmed"
        assert record["email"] == "ahmed@hrdesk.test"
        assert record["basic_salary"] == Decimal("0")
        assert isinstance(record["hire_date"], date)
        assert record["status"] == "ACTIVE"
        assert record["role"] == "employee"

    def test_lookups_by_name_or_id_column(self):
        class Named:
            def __init__(self, name):
                self.id = uuid.uuid4()
                self.name = name

        sales = Named("Sales")
        lookups = importer._Lookups([sales], [], [])
        assert lookups.resolve("department", {"القسم": "Sales"}) == sales.id
        assert lookups.resolve("department", {"Department ID": str(sales.id)}) == sales.id
        assert lookups.resolve("department", {"Department": "Unknown"}) is None


class TestImportWorkflow:

    async def test_inserts_new_rows(self, db, make_department):
        dept = await make_department("Support")
        rows = [
            {"First Name": "Ahmed", "Email": "ahmed@hrdesk.test", "Department": "Support",
             "Basic Salary": 3000, "Hire Date": "2025-02-01"},
            {"First Name": "Mariam", "Email": "mariam@hrdesk.test"},
        ]
        result = await import_employees(db, rows, fixed_decision(False))
        await db.commit()

        assert (result.inserted, result.updated, result.skipped) == (2, 0, 0)
        ahmed = (
            await db.execute(select(Employee).where(Employee.email == "ahmed@hrdesk.test"))
        ).scalar_one()
        assert ahmed.department_id == dept.id
        assert ahmed.basic_salary == Decimal("3000")
        assert ahmed.hire_date == date(2025, 2, 1)

    async def test_empty_file_rejected(self, db):
        with pytest.raises(ValidationException):
            await import_employees(db, [], fixed_decision(False))

    async def test_missing_first_name_lists_rows(self, db):
        rows = [{"First Name": "Ok"}, {"Email": "x@hrdesk.test"}, {"First Name": ""}]
        with pytest.raises(ValidationException) as exc_info:
            await import_employees(db, rows, fixed_decision(False))
        assert exc_info.value.errors["first_name"] == ["Missing on rows: 3, 4"]
        count = (await db.execute(select(func.count(Employee.id)))).scalar_one()
        assert count == 0

    async def test_duplicates_overwritten_on_yes(self, db, make_employee):
        await make_employee("Old", email="dup@hrdesk.test", salary=1000)
        asked = []

        async def confirm(emails):
            asked.append(emails)
            return True

        rows = [
            {"First Name": "New", "Email": "DUP@hrdesk.test", "Basic Salary": "2500"},
            {"First Name": "Fresh", "Email": "fresh@hrdesk.test"},
        ]
        result = await import_employees(db, rows, confirm)
        await db.commit()

        assert asked == [["dup@hrdesk.test"]]
        assert (result.inserted, result.updated, result.skipped) == (1, 1, 0)
        async with TestSessionFactory() as fresh:
            dup = (
                await fresh.execute(select(Employee).where(Employee.email == "dup@hrdesk.test"))
            ).scalar_one()
            assert dup.first_name == "New"
            assert dup.basic_salary == Decimal("2500")

    async def test_duplicates_skipped_on_no(self, db, make_employee):
        await make_employee("Old", email="dup@hrdesk.test")
        rows = [{"First Name": "New", "Email": "dup@hrdesk.test"}]

        result = await import_employees(db, rows, fixed_decision(False))

        assert (result.inserted, result.updated, result.skipped) == (0, 0, 1)

    async def test_no_question_without_duplicates(self, db):
        async def confirm(emails):
            raise AssertionError("should not ask")

        result = await import_employees(db, [{"First Name": "Solo"}], confirm)
        assert result.inserted == 1


class TestConfirmationCheckpoint:

    async def test_pending_until_resolved(self):
        registry = PendingImportRegistry()
        confirm = registry.asking(timeout=5)

        task = asyncio.create_task(confirm(["a@hrdesk.test"]))
        await asyncio.sleep(0)

        [checkpoint] = registry.pending()
        assert checkpoint.duplicate_emails == ["a@hrdesk.test"]
        registry.resolve(checkpoint.id, True)

        assert await task is True
        assert registry.pending() == []

    async def test_timeout_means_skip(self):
        registry = PendingImportRegistry()
        confirm = registry.asking(timeout=0.01)
        assert await confirm(["a@hrdesk.test"]) is False
        assert registry.pending() == []

    async def test_decided_only_once(self):
        registry = PendingImportRegistry()
        checkpoint = registry.open(["a@hrdesk.test"])
        registry.resolve(checkpoint.id, False)
        with pytest.raises(ValidationException):
            registry.resolve(checkpoint.id, True)

    async def test_unknown_checkpoint(self):
        with pytest.raises(NotFoundException):
            PendingImportRegistry().resolve(uuid.uuid4(), True)


class TestImportEndpoint:

    async def test_upload_with_overwrite(self, client, admin_headers, make_employee):
        await make_employee("Old", email="dup@hrdesk.test")
        content = _csv(
            ["الاسم الأول", "البريد الإلكتروني"],
            ["Updated", "dup@hrdesk.test"],
            ["Brand", "brand.new@hrdesk.test"],
        )
        resp = await client.post(
            "/api/v1/employees/import",
            params={"on_duplicate": "overwrite"},
            files={"file": ("staff.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"inserted": 1, "updated": 1, "skipped": 0}

    async def test_rejects_other_file_types(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/employees/import",
            params={"on_duplicate": "skip"},
            files={"file": ("staff.txt", b"x", "text/plain")},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_pending_list_and_decision(self, client, app, admin_headers):
        registry = app.state.import_registry
        checkpoint = registry.open(["dup@hrdesk.test"])

        listed = await client.get("/api/v1/employees/import/pending", headers=admin_headers)
        assert [p["id"] for p in listed.json()] == [str(checkpoint.id)]

        decided = await client.post(
            f"/api/v1/employees/import/pending/{checkpoint.id}",
            json={"overwrite": True},
            headers=admin_headers,
        )
        assert decided.status_code == 200
        assert await checkpoint.wait(1) is True
