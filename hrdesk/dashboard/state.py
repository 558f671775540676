"""Application state: the shared reference data every view reads from.

``AppState`` holds the latest immutable ``AppSnapshot``. Refreshes replace
the snapshot wholesale; readers never see a half-updated one. A background
poller refreshes on a fixed interval and a manual refresh is exposed over
HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrdesk.core_hr.models import Branch, Department, Employee
from hrdesk.core_hr.service import EmployeeService, OrgService
from hrdesk.feeds.models import SecurityAlert
from hrdesk.feeds.service import AlertService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeRef:
    id: uuid.UUID
    display_name: str
    status: Optional[str]
    is_active: bool
    department_id: Optional[uuid.UUID]
    branch_id: Optional[uuid.UUID]
    basic_salary: Decimal

    @classmethod
    def of(cls, e: Employee) -> "EmployeeRef":
        return cls(
            id=e.id,
            display_name=e.display_name,
            status=e.status,
            is_active=e.is_active,
            department_id=e.department_id,
            branch_id=e.branch_id,
            basic_salary=Decimal(e.basic_salary or 0),
        )


@dataclass(frozen=True)
class DepartmentRef:
    id: uuid.UUID
    name: str
    budget: Optional[Decimal]

    @classmethod
    def of(cls, d: Department) -> "DepartmentRef":
        return cls(id=d.id, name=d.name, budget=d.budget)


@dataclass(frozen=True)
class BranchRef:
    id: uuid.UUID
    name: str

    @classmethod
    def of(cls, b: Branch) -> "BranchRef":
        return cls(id=b.id, name=b.name)


@dataclass(frozen=True)
class AlertRef:
    id: uuid.UUID
    employee_id: Optional[uuid.UUID]
    employee_name: Optional[str]
    type: str
    severity: str

    @classmethod
    def of(cls, a: SecurityAlert) -> "AlertRef":
        return cls(
            id=a.id,
            employee_id=a.employee_id,
            employee_name=a.employee_name,
            type=a.type,
            severity=a.severity,
        )


@dataclass(frozen=True)
class AppSnapshot:
    employees: tuple[EmployeeRef, ...] = ()
    departments: tuple[DepartmentRef, ...] = ()
    branches: tuple[BranchRef, ...] = ()
    alerts: tuple[AlertRef, ...] = ()
    taken_at: Optional[datetime] = None
    active_employee_ids: frozenset[uuid.UUID] = field(default=frozenset())

    @property
    def loaded(self) -> bool:
        return self.taken_at is not None


class AppState:
    def __init__(self) -> None:
        self._snapshot = AppSnapshot()
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> AppSnapshot:
        return self._snapshot

    async def refresh(self, db: AsyncSession) -> AppSnapshot:
        async with self._lock:
            employees = await EmployeeService.all_employees(db)
            departments = [d for d, _ in await OrgService.list_departments(db)]
            branches = await OrgService.list_branches(db)
            alerts = await AlertService.unresolved(db)

            refs = tuple(EmployeeRef.of(e) for e in employees)
            self._snapshot = AppSnapshot(
                employees=refs,
                departments=tuple(DepartmentRef.of(d) for d in departments),
                branches=tuple(BranchRef.of(b) for b in branches),
                alerts=tuple(AlertRef.of(a) for a in alerts),
                taken_at=datetime.now(timezone.utc),
                active_employee_ids=frozenset(r.id for r in refs if r.is_active),
            )
        logger.debug(
            "State refreshed: %d employees, %d alerts",
            len(self._snapshot.employees), len(self._snapshot.alerts),
        )
        return self._snapshot

    async def current(self, db: AsyncSession) -> AppSnapshot:
        """The loaded snapshot, loading it on first use."""
        if not self._snapshot.loaded:
            return await self.refresh(db)
        return self._snapshot

    async def refresh_in_background(self, session_factory: async_sessionmaker) -> None:
        """Poller step: failures are logged and the previous snapshot stays."""
        try:
            async with session_factory() as session:
                await self.refresh(session)
        except Exception:
            logger.exception("State refresh failed; keeping snapshot from %s", self._snapshot.taken_at)

    async def poll(self, session_factory: async_sessionmaker, interval: float) -> None:
        while True:
            await self.refresh_in_background(session_factory)
            await asyncio.sleep(interval)
