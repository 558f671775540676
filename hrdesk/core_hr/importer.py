"""Employee spreadsheet import.

Rows come from the first sheet of an XLSX workbook (or a CSV file) using the
bilingual Arabic/English header set. New emails are inserted straight away;
rows whose email already exists wait on a confirmation checkpoint and are
either overwritten or skipped depending on the operator's answer.
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

from openpyxl import load_workbook
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.exceptions import BackendError, NotFoundException, ValidationException
from hrdesk.common.export import rows_to_xlsx
from hrdesk.core_hr.models import Branch, Department, Employee, Shift
from hrdesk.core_hr.schemas import ImportResult

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = [
    "الاسم الأول", "اسم العائلة", "البريد الإلكتروني", "رقم الهاتف",
    "المسمى الوظيفي", "القسم", "الفرع", "الوردية",
    "الراتب الأساسي", "تاريخ التعيين",
]

# field → accepted headers, Arabic first
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "first_name": ("الاسم الأول", "First Name"),
    "last_name": ("اسم العائلة", "Last Name"),
    "email": ("البريد الإلكتروني", "Email"),
    "phone": ("رقم الهاتف", "Phone"),
    "job_title": ("المسمى الوظيفي", "Job Title", "Position"),
    "department": ("القسم", "Department"),
    "branch": ("الفرع", "Branch"),
    "shift": ("الوردية", "Shift"),
    "basic_salary": ("الراتب الأساسي", "Basic Salary"),
    "hire_date": ("تاريخ التعيين", "Hire Date"),
}

ConfirmCallback = Callable[[list[str]], Awaitable[bool]]


# ═════════════════════════════════════════════════════════════════════
# Parsing
# ═════════════════════════════════════════════════════════════════════


def read_rows(content: bytes, filename: str) -> list[dict[str, Any]]:
    """Return the data rows of the first sheet as header → value dicts."""
    if filename.lower().endswith(".csv"):
        text = content.decode("utf-8-sig")
        return [dict(row) for row in csv.DictReader(io.StringIO(text))]

    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [str(h).strip() if h is not None else "" for h in header]
        records = []
        for values in rows:
            if all(v is None or v == "" for v in values):
                continue
            records.append(dict(zip(keys, values)))
        return records
    finally:
        wb.close()


def _pick(row: dict[str, Any], field: str) -> Any:
    for header in HEADER_ALIASES[field]:
        value = row.get(header)
        if value is not None and value != "":
            return value.strip() if isinstance(value, str) else value
    return None


def _parse_salary(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    return datetime.now(timezone.utc).date()


class _Lookups:
    """Name/id lookups for departments, branches and shifts."""

    def __init__(self, departments, branches, shifts) -> None:
        self._maps = {}
        for key, items in (("department", departments), ("branch", branches), ("shift", shifts)):
            by_key: dict[str, uuid.UUID] = {}
            for item in items:
                by_key[item.name] = item.id
                by_key[str(item.id)] = item.id
            self._maps[key] = by_key

    def resolve(self, kind: str, row: dict[str, Any]) -> Optional[uuid.UUID]:
        by_key = self._maps[kind]
        name = _pick(row, kind)
        if name is not None and str(name) in by_key:
            return by_key[str(name)]
        explicit = row.get(f"{kind.capitalize()} ID")
        if explicit is not None and str(explicit) in by_key:
            return by_key[str(explicit)]
        return None


def map_row(row: dict[str, Any], lookups: _Lookups) -> dict[str, Any]:
    email = _pick(row, "email")
    phone = _pick(row, "phone")
    return {
        "first_name": _pick(row, "first_name"),
        "last_name": _pick(row, "last_name") or "",
        "email": str(email).strip().lower() if email else None,
        "phone": str(phone) if phone is not None else None,
        "job_title": _pick(row, "job_title"),
        "basic_salary": _parse_salary(_pick(row, "basic_salary")),
        "hire_date": _parse_date(_pick(row, "hire_date")),
        "department_id": lookups.resolve("department", row),
        "branch_id": lookups.resolve("branch", row),
        "shift_id": lookups.resolve("shift", row),
        "status": "ACTIVE",
        "role": "employee",
    }


def build_template() -> bytes:
    return rows_to_xlsx(TEMPLATE_HEADERS, [], sheet_title="نموذج الموظفين")


# ═════════════════════════════════════════════════════════════════════
# Confirmation checkpoint
# ═════════════════════════════════════════════════════════════════════


class ConfirmationCheckpoint:
    """Single-shot boolean decision awaited by an in-flight import."""

    def __init__(self, duplicate_emails: list[str]) -> None:
        self.id = uuid.uuid4()
        self.duplicate_emails = duplicate_emails
        self.created_at = datetime.now(timezone.utc)
        self._future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._future.done()

    def resolve(self, overwrite: bool) -> None:
        if self._future.done():
            raise ValidationException(
                {"decision": ["This import has already been decided."]}
            )
        self._future.set_result(overwrite)

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until resolved; a timeout counts as "skip"."""
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            logger.warning("Import decision %s timed out; skipping duplicates", self.id)
            return False


class PendingImportRegistry:
    """Open checkpoints, looked up by id from the decision endpoint."""

    def __init__(self) -> None:
        self._pending: dict[uuid.UUID, ConfirmationCheckpoint] = {}

    def open(self, duplicate_emails: list[str]) -> ConfirmationCheckpoint:
        checkpoint = ConfirmationCheckpoint(duplicate_emails)
        self._pending[checkpoint.id] = checkpoint
        return checkpoint

    def close(self, checkpoint_id: uuid.UUID) -> None:
        self._pending.pop(checkpoint_id, None)

    def pending(self) -> list[ConfirmationCheckpoint]:
        return [c for c in self._pending.values() if not c.resolved]

    def resolve(self, checkpoint_id: uuid.UUID, overwrite: bool) -> None:
        checkpoint = self._pending.get(checkpoint_id)
        if checkpoint is None:
            raise NotFoundException("Pending import", checkpoint_id)
        checkpoint.resolve(overwrite)

    def asking(self, timeout: Optional[float]) -> ConfirmCallback:
        """Confirm callback that parks the decision in this registry."""

        async def _confirm(emails: list[str]) -> bool:
            checkpoint = self.open(emails)
            try:
                return await checkpoint.wait(timeout)
            finally:
                self.close(checkpoint.id)

        return _confirm


def fixed_decision(overwrite: bool) -> ConfirmCallback:
    async def _confirm(emails: list[str]) -> bool:
        return overwrite

    return _confirm


# ═════════════════════════════════════════════════════════════════════
# Import workflow
# ═════════════════════════════════════════════════════════════════════


async def import_employees(
    db: AsyncSession,
    rows: list[dict[str, Any]],
    confirm: ConfirmCallback,
) -> ImportResult:
    if not rows:
        raise ValidationException({"file": ["The file is empty or has no valid rows."]})

    lookups = _Lookups(
        (await db.execute(select(Department))).scalars().all(),
        (await db.execute(select(Branch))).scalars().all(),
        (await db.execute(select(Shift))).scalars().all(),
    )
    records = [map_row(row, lookups) for row in rows]

    missing = [str(i + 2) for i, rec in enumerate(records) if not rec["first_name"]]
    if missing:
        raise ValidationException({"first_name": [f"Missing on rows: {', '.join(missing)}"]})

    emails = [rec["email"] for rec in records if rec["email"]]
    try:
        existing = set(
            (
                await db.execute(select(Employee.email).where(Employee.email.in_(emails)))
            ).scalars().all()
        ) if emails else set()

        new_records = [rec for rec in records if not rec["email"] or rec["email"] not in existing]
        duplicates = [rec for rec in records if rec["email"] and rec["email"] in existing]

        result = ImportResult()
        if new_records:
            db.add_all([Employee(**rec) for rec in new_records])
            await db.flush()
            result.inserted = len(new_records)
    except SQLAlchemyError as exc:
        logger.error("Employee import insert failed: %s", exc)
        raise BackendError.from_db_error(exc)

    if duplicates:
        overwrite = await confirm(sorted({rec["email"] for rec in duplicates}))
        if overwrite:
            try:
                await _overwrite_by_email(db, duplicates)
            except SQLAlchemyError as exc:
                logger.error("Employee import update failed: %s", exc)
                raise BackendError.from_db_error(exc)
            result.updated = len(duplicates)
        else:
            result.skipped = len(duplicates)

    logger.info(
        "Employee import: %d inserted, %d updated, %d skipped",
        result.inserted, result.updated, result.skipped,
    )
    return result


async def _overwrite_by_email(db: AsyncSession, records: list[dict[str, Any]]) -> None:
    by_email = {rec["email"]: rec for rec in records}
    result = await db.execute(select(Employee).where(Employee.email.in_(by_email)))
    for employee in result.scalars().all():
        for field, value in by_email[employee.email].items():
            setattr(employee, field, value)
    await db.flush()
