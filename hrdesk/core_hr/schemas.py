"""Core HR Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response / *Detail → response bodies (read)
"""


import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ═════════════════════════════════════════════════════════════════════
# Department / Branch / Shift
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    manager_name: Optional[str] = None
    budget: Optional[Decimal] = Field(None, ge=0)


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    manager_name: Optional[str] = None
    budget: Optional[Decimal] = None
    employee_count: int = 0


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    address: Optional[str] = None
    phone: Optional[str] = None
    wifi_ssid: Optional[str] = None
    geofence_radius: int = Field(100, ge=0)
    geofencing_enabled: bool = True
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class BranchResponse(BranchCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


class ShiftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_time: time
    end_time: time
    grace_period: int = Field(15, ge=0)
    is_overnight: bool = False


class ShiftResponse(ShiftCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for creating a new employee."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None
    job_title: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    branch_id: Optional[uuid.UUID] = None
    shift_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    basic_salary: Decimal = Field(Decimal("0"), ge=0)
    hire_date: Optional[date] = None
    status: Optional[str] = "ACTIVE"
    role: str = "employee"
    auth_id: Optional[str] = None


class EmployeeUpdate(BaseModel):
    """Partial update: only provided fields are applied."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    branch_id: Optional[uuid.UUID] = None
    shift_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    basic_salary: Optional[Decimal] = Field(None, ge=0)
    hire_date: Optional[date] = None
    status: Optional[str] = None
    role: Optional[str] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    display_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    branch_id: Optional[uuid.UUID] = None
    shift_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    basic_salary: Decimal = Decimal("0")
    hire_date: Optional[date] = None
    status: Optional[str] = None
    role: str
    is_active: bool
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class ImportResult(BaseModel):
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


class PendingImportOut(BaseModel):
    id: uuid.UUID
    duplicate_emails: list[str]
    created_at: datetime


class ImportDecision(BaseModel):
    overwrite: bool
