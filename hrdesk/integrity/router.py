"""Integrity router: compute, recalculate-and-save, saved scores, export."""


from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import require_admin
from hrdesk.common.export import file_response
from hrdesk.core_hr.models import Employee
from hrdesk.database import get_db
from hrdesk.integrity import scorer
from hrdesk.integrity.schemas import IntegrityResultOut, SavedScoreOut

router = APIRouter(prefix="", tags=["integrity"])


def _out(results):
    return [IntegrityResultOut(**r.__dict__) for r in results]


@router.get("", response_model=list[IntegrityResultOut])
async def compute(
    match_by: Optional[Literal["id", "name"]] = Query(None),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Current scores derived from alerts; nothing is saved."""
    return _out(await scorer.compute_scores(db, match_by=match_by))


@router.post("/recalculate", response_model=list[IntegrityResultOut])
async def recalculate(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return _out(await scorer.recalculate(db))


@router.get("/saved", response_model=list[SavedScoreOut])
async def saved(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return [
        SavedScoreOut(
            employee_id=s.employee_id,
            employee_name=name,
            score=s.score,
            violations=s.violations,
            tier=s.tier,
            assessed_at=s.assessed_at,
        )
        for s, name in await scorer.saved_scores(db)
    ]


@router.get("/export")
async def export(
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    results = await scorer.compute_scores(db)
    return file_response(scorer.scores_csv(results), "integrity_scores.csv")
