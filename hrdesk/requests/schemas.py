"""Leave, mission and loan schemas."""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hrdesk.common.constants import LeaveStatus, MissionStatus


# ── Leaves ──────────────────────────────────────────────────────────

class LeaveCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LeaveDecision(BaseModel):
    status: LeaveStatus


class LeaveOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str = ""
    type: str
    start_date: date
    end_date: date
    reason: Optional[str] = None
    status: str
    reviewed_by_id: Optional[uuid.UUID] = None
    created_at: datetime


# ── Missions ────────────────────────────────────────────────────────

class MissionCreate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    title: str = Field(..., min_length=1, max_length=200)
    destination: Optional[str] = None
    mission_date: date
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    geofence_radius: int = Field(100, ge=0)


class MissionStatusUpdate(BaseModel):
    status: MissionStatus


class MissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str = ""
    title: str
    destination: Optional[str] = None
    mission_date: date
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    geofence_radius: int
    status: str
    created_at: datetime


# ── Loans ───────────────────────────────────────────────────────────

class LoanCreate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    # Positivity is checked by the service so both amounts report together
    total_amount: Decimal
    monthly_installment: Decimal
    start_date: Optional[date] = None
    reason: Optional[str] = None


class LoanDecision(BaseModel):
    approve: bool


class LoanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str = ""
    total_amount: Decimal
    monthly_installment: Decimal
    remaining_amount: Decimal
    start_date: Optional[date] = None
    status: str
    reason: Optional[str] = None
    created_at: datetime


class LoanSummary(BaseModel):
    total_loaned: Decimal
    total_remaining: Decimal
    active_count: int
