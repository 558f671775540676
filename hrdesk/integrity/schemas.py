"""Integrity schemas."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from hrdesk.common.constants import IntegrityTier


class IntegrityResultOut(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    department: Optional[str] = None
    violations: int
    score: int
    tier: IntegrityTier


class SavedScoreOut(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    score: int
    violations: int
    tier: str
    assessed_at: datetime
