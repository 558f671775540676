"""Employee bank accounts: IBAN checks and upsert-by-employee."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.exceptions import NotFoundException, ValidationException
from hrdesk.core_hr.service import EmployeeService
from hrdesk.payroll.models import BankAccount
from hrdesk.payroll.schemas import BankAccountIn

logger = logging.getLogger(__name__)

# Egyptian IBAN: EG + 2 check digits + 29 alphanumerics
IBAN_PATTERN = re.compile(r"^EG\d{2}[A-Z0-9]{29}$")


def normalize_iban(value: str) -> str:
    return re.sub(r"\s+", "", value).upper()


def validate_iban(value: str) -> bool:
    """Match the raw value; callers normalize first."""
    return bool(IBAN_PATTERN.match(value))


def _check(data: BankAccountIn) -> str:
    errors: dict[str, list[str]] = {}
    for field in ("iban", "bank_name", "account_number"):
        if not (getattr(data, field) or "").strip():
            errors[field] = ["This field is required."]
    if errors:
        raise ValidationException(errors)

    iban = normalize_iban(data.iban)
    if not validate_iban(iban):
        raise ValidationException(
            {"iban": ["IBAN must start with EG followed by 2 digits and 29 letters/digits."]}
        )
    return iban


class BankAccountService:

    @staticmethod
    async def list_accounts(db: AsyncSession) -> Sequence[BankAccount]:
        """Default accounts first."""
        result = await db.execute(
            select(BankAccount).order_by(BankAccount.is_default.desc(), BankAccount.created_at)
        )
        return result.scalars().all()

    @staticmethod
    async def for_employee(db: AsyncSession, employee_id: uuid.UUID) -> Optional[BankAccount]:
        result = await db.execute(
            select(BankAccount).where(BankAccount.employee_id == employee_id).limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def get_for_employee(db: AsyncSession, employee_id: uuid.UUID) -> BankAccount:
        account = await BankAccountService.for_employee(db, employee_id)
        if account is None:
            raise NotFoundException("Bank account for employee", employee_id)
        return account

    @staticmethod
    async def default_accounts(
        db: AsyncSession, employee_ids: Sequence[uuid.UUID],
    ) -> dict[uuid.UUID, BankAccount]:
        if not employee_ids:
            return {}
        result = await db.execute(
            select(BankAccount).where(
                BankAccount.employee_id.in_(employee_ids),
                BankAccount.is_default.is_(True),
            )
        )
        return {a.employee_id: a for a in result.scalars().all()}

    @staticmethod
    async def upsert(
        db: AsyncSession, employee_id: uuid.UUID, data: BankAccountIn,
    ) -> BankAccount:
        """Insert when the employee has no account, otherwise overwrite it."""
        iban = _check(data)
        employee = await EmployeeService.get_employee(db, employee_id)

        values = data.model_dump()
        values["iban"] = iban
        if not values.get("account_holder"):
            values["account_holder"] = employee.display_name

        account = await BankAccountService.for_employee(db, employee_id)
        if account is None:
            account = BankAccount(employee_id=employee_id, **values)
            db.add(account)
        else:
            for field, value in values.items():
                setattr(account, field, value)
        await db.flush()
        logger.info("Saved bank account for employee %s", employee_id)
        return account
