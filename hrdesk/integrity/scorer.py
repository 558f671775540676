"""Integrity scorer: per-employee risk score from security alert counts.

Alerts are matched to employees by id by default. Setting
``INTEGRITY_MATCH_BY=name`` matches on the alert's employee display name
instead, which miscounts when two employees share a name.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import IntegrityTier
from hrdesk.common.export import rows_to_csv
from hrdesk.config import settings
from hrdesk.core_hr.models import Department, Employee
from hrdesk.core_hr.service import EmployeeService
from hrdesk.feeds.models import SecurityAlert
from hrdesk.integrity.models import IntegrityScore

logger = logging.getLogger(__name__)

PENALTY_PER_VIOLATION = 10

EXPORT_HEADERS = ["Employee", "Department", "Score", "Violations", "Tier"]


def score_for(violations: int) -> int:
    return max(0, 100 - PENALTY_PER_VIOLATION * violations)


def tier_for(score: int) -> IntegrityTier:
    if score >= 90:
        return IntegrityTier.Excellent
    if score >= 70:
        return IntegrityTier.Good
    return IntegrityTier.Risk


@dataclass(frozen=True)
class IntegrityResult:
    employee_id: uuid.UUID
    employee_name: str
    department: Optional[str]
    violations: int
    score: int
    tier: IntegrityTier


def count_violations(
    employees: Sequence[Employee],
    alerts: Sequence[SecurityAlert],
    match_by: str,
) -> dict[uuid.UUID, int]:
    if match_by == "name":
        by_name = Counter(a.employee_name for a in alerts if a.employee_name)
        return {e.id: by_name.get(e.display_name, 0) for e in employees}
    by_id = Counter(a.employee_id for a in alerts if a.employee_id is not None)
    return {e.id: by_id.get(e.id, 0) for e in employees}


async def compute_scores(
    db: AsyncSession, *, match_by: Optional[str] = None,
) -> list[IntegrityResult]:
    """Derive scores without writing anything."""
    employees = await EmployeeService.all_employees(db)
    alerts = (await db.execute(select(SecurityAlert))).scalars().all()
    departments = dict(
        (await db.execute(select(Department.id, Department.name))).all()
    )

    counts = count_violations(employees, alerts, match_by or settings.INTEGRITY_MATCH_BY)
    results = []
    for e in employees:
        violations = counts[e.id]
        score = score_for(violations)
        results.append(
            IntegrityResult(
                employee_id=e.id,
                employee_name=e.display_name,
                department=departments.get(e.department_id),
                violations=violations,
                score=score,
                tier=tier_for(score),
            )
        )
    return results


async def save_scores(db: AsyncSession, results: Sequence[IntegrityResult]) -> int:
    """Upsert keyed on employee id; prior values are overwritten.

    Rows whose score, violations and tier are unchanged keep their
    ``assessed_at``. Returns the number of rows inserted or changed.
    """
    existing = {
        s.employee_id: s
        for s in (await db.execute(select(IntegrityScore))).scalars().all()
    }
    now = datetime.now(timezone.utc)
    written = 0
    for r in results:
        row = existing.get(r.employee_id)
        if row is None:
            db.add(
                IntegrityScore(
                    employee_id=r.employee_id,
                    score=r.score,
                    violations=r.violations,
                    tier=r.tier.value,
                    assessed_at=now,
                )
            )
        elif (row.score, row.violations, row.tier) == (r.score, r.violations, r.tier.value):
            continue
        else:
            row.score = r.score
            row.violations = r.violations
            row.tier = r.tier.value
            row.assessed_at = now
        written += 1
    await db.flush()
    logger.info("Saved integrity scores for %d employees (%d changed)", len(results), written)
    return written


async def recalculate(db: AsyncSession) -> list[IntegrityResult]:
    results = await compute_scores(db)
    await save_scores(db, results)
    return results


async def saved_scores(db: AsyncSession) -> list[tuple[IntegrityScore, str]]:
    result = await db.execute(
        select(IntegrityScore, Employee.first_name, Employee.last_name)
        .join(Employee, Employee.id == IntegrityScore.employee_id)
        .order_by(IntegrityScore.score.asc())
    )
    return [
        (score, f"{first} {last or ''}".strip()) for score, first, last in result.all()
    ]


def scores_csv(results: Sequence[IntegrityResult]) -> bytes:
    return rows_to_csv(
        EXPORT_HEADERS,
        [[r.employee_name, r.department, r.score, r.violations, r.tier.value] for r in results],
    )
