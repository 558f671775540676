"""Feed endpoints: announcements, security alerts, failed logins, notifications."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user, require_admin
from hrdesk.common.pagination import PaginationParams
from hrdesk.core_hr.models import Employee
from hrdesk.database import get_db
from hrdesk.feeds.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    FailedLoginResponse,
    NotificationListResponse,
    NotificationResponse,
    SecurityAlertCreate,
    SecurityAlertResponse,
)
from hrdesk.feeds.service import AlertService, AnnouncementService, NotificationService

announcements_router = APIRouter(prefix="", tags=["announcements"])
alerts_router = APIRouter(prefix="", tags=["security"])
notifications_router = APIRouter(prefix="", tags=["notifications"])


# ═════════════════════════════════════════════════════════════════════
# Announcements
# ═════════════════════════════════════════════════════════════════════


@announcements_router.get("", response_model=list[AnnouncementResponse])
async def list_announcements(
    active_only: bool = Query(True),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if active_only:
        return await AnnouncementService.list_active(db)
    return await AnnouncementService.list_all(db)


@announcements_router.post("", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.create(db, body)


@announcements_router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: uuid.UUID,
    body: AnnouncementUpdate,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.update(db, announcement_id, body)


@announcements_router.post("/{announcement_id}/toggle", response_model=AnnouncementResponse)
async def toggle_announcement(
    announcement_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.toggle(db, announcement_id)


@announcements_router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await AnnouncementService.delete(db, announcement_id)


# ═════════════════════════════════════════════════════════════════════
# Security alerts
# ═════════════════════════════════════════════════════════════════════


@alerts_router.get("/alerts")
async def list_alerts(
    resolved: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items, meta = await AlertService.list_alerts(db, pagination, resolved=resolved)
    return {
        "data": [SecurityAlertResponse.model_validate(a).model_dump(mode="json") for a in items],
        "meta": meta.model_dump(),
    }


@alerts_router.post("/alerts", response_model=SecurityAlertResponse, status_code=201)
async def create_alert(
    body: SecurityAlertCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AlertService.create(db, body)


@alerts_router.put("/alerts/{alert_id}/read", response_model=SecurityAlertResponse)
async def mark_alert_read(
    alert_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AlertService.mark_read(db, alert_id)


@alerts_router.put("/alerts/{alert_id}/resolve", response_model=SecurityAlertResponse)
async def resolve_alert(
    alert_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AlertService.resolve(db, alert_id)


@alerts_router.delete("/alerts/{alert_id}", status_code=204)
async def delete_alert(
    alert_id: uuid.UUID,
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await AlertService.delete(db, alert_id)


@alerts_router.get("/failed-logins")
async def list_failed_logins(
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items, meta = await AlertService.failed_logins(db, pagination)
    return {
        "data": [FailedLoginResponse.model_validate(f).model_dump(mode="json") for f in items],
        "meta": meta.model_dump(),
    }


# ═════════════════════════════════════════════════════════════════════
# Notifications
# ═════════════════════════════════════════════════════════════════════


@notifications_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: Optional[bool] = Query(default=None, description="Filter by read status"),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List notifications for the authenticated user (paginated)."""
    return await NotificationService.get_notifications(
        db, employee.id, pagination, is_read=is_read,
    )


# NOTE: registered before /{notification_id}/read so "read-all" is not parsed as a UUID.

@notifications_router.put("/read-all")
async def mark_all_read(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService.mark_all_read(db, employee.id)
    return {"message": "All notifications marked as read", "data": {"count": count}}


@notifications_router.put("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService.mark_read(db, notification_id, employee.id)
    return {
        "message": "Notification marked as read",
        "data": NotificationResponse.model_validate(notification).model_dump(mode="json"),
    }


@notifications_router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService.delete(db, notification_id, employee.id)
