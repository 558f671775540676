"""Enums and constants for HR Desk: values match the stored column strings."""

from __future__ import annotations

import enum


# ── Employee / Core HR ──────────────────────────────────────────────

ACTIVE_EMPLOYEE_STATUSES = frozenset({"Active", "ACTIVE"})


def is_active_status(status: str | None) -> bool:
    """An employee with no status, ``Active`` or ``ACTIVE`` counts as active."""
    return status is None or status == "" or status in ACTIVE_EMPLOYEE_STATUSES


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    """Trust verdict for a check-in attempt."""

    READY = "READY"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    WRONG_WIFI = "WRONG_WIFI"
    SECURITY_BREACH = "SECURITY_BREACH"
    ATTESTATION_FAILED = "ATTESTATION_FAILED"


class CheckType(str, enum.Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"


ATTENDANCE_PRESENT = "PRESENT"
OFFLINE_FLAG = "OFFLINE_ENCRYPTED_LOG"
ONLINE_FLAGS = ("HARDWARE_BACKED_AUTH", "ATTESTATION_SUCCESS")


# ── Payroll ─────────────────────────────────────────────────────────

class BatchStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PROCESSING = "PROCESSING"
    PAID = "PAID"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class TransferStatus(str, enum.Enum):
    Success = "Success"
    Pending = "Pending"
    Failed = "Failed"


# ── Integrity ───────────────────────────────────────────────────────

class IntegrityTier(str, enum.Enum):
    Excellent = "Excellent"
    Good = "Good"
    Risk = "Risk"


# ── Feeds ───────────────────────────────────────────────────────────

class AlertSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AnnouncementPriority(str, enum.Enum):
    NORMAL = "NORMAL"
    URGENT = "URGENT"


class NotificationType(str, enum.Enum):
    info = "info"
    payroll = "payroll"
    alert = "alert"
    reminder = "reminder"


# ── Tasks ───────────────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# ── Leaves / Missions / Loans ───────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class LoanStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


# ── Misc constants ──────────────────────────────────────────────────

TIMEZONE = "Africa/Cairo"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
