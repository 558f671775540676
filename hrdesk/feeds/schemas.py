"""Feed schemas: announcements, security alerts, failed logins, notifications."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrdesk.common.constants import AlertSeverity, AnnouncementPriority, NotificationType
from hrdesk.common.pagination import PaginationMeta


# ── Announcements ───────────────────────────────────────────────────

class AnnouncementCreate(BaseModel):
    content: str = Field(..., min_length=1)
    is_active: bool = True
    expires_at: Optional[datetime] = None
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL


class AnnouncementUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    priority: Optional[AnnouncementPriority] = None


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    content: str
    is_active: bool
    expires_at: Optional[datetime] = None
    priority: str
    created_at: datetime


# ── Security alerts ─────────────────────────────────────────────────

class SecurityAlertCreate(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    employee_name: Optional[str] = None
    type: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    severity: AlertSeverity = AlertSeverity.MEDIUM


class SecurityAlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    employee_name: Optional[str] = None
    type: str
    description: Optional[str] = None
    severity: str
    is_read: bool
    is_resolved: bool
    created_at: datetime


class FailedLoginResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: Optional[str] = None
    ip_address: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime


# ── Notifications ───────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    entity_type: Optional[str] = None
    entity_id: Optional[uuid.UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListMeta(PaginationMeta):
    """Pagination meta plus the unread badge count."""

    unread: int = 0


class NotificationListResponse(BaseModel):
    data: list[NotificationResponse]
    meta: NotificationListMeta
