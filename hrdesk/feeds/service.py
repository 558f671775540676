"""Feed services: announcements, security alerts, failed logins, notifications."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import NotificationType
from hrdesk.common.exceptions import ForbiddenException, NotFoundException
from hrdesk.common.pagination import PaginationParams, paginate
from hrdesk.feeds.models import Announcement, FailedLogin, Notification, SecurityAlert
from hrdesk.feeds.schemas import (
    AnnouncementCreate,
    AnnouncementUpdate,
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
    SecurityAlertCreate,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# Announcements
# ═════════════════════════════════════════════════════════════════════


class AnnouncementService:

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[Announcement]:
        result = await db.execute(
            select(Announcement).order_by(Announcement.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_active(db: AsyncSession) -> Sequence[Announcement]:
        """Active and not yet expired."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            select(Announcement)
            .where(
                Announcement.is_active.is_(True),
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
            )
            .order_by(Announcement.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get(db: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
        announcement = await db.get(Announcement, announcement_id)
        if announcement is None:
            raise NotFoundException("Announcement", announcement_id)
        return announcement

    @staticmethod
    async def create(db: AsyncSession, data: AnnouncementCreate) -> Announcement:
        announcement = Announcement(
            content=data.content,
            is_active=data.is_active,
            expires_at=data.expires_at,
            priority=data.priority.value,
        )
        db.add(announcement)
        await db.flush()
        return announcement

    @staticmethod
    async def update(
        db: AsyncSession, announcement_id: uuid.UUID, data: AnnouncementUpdate,
    ) -> Announcement:
        announcement = await AnnouncementService.get(db, announcement_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "priority" and value is not None:
                value = value.value
            setattr(announcement, field, value)
        await db.flush()
        return announcement

    @staticmethod
    async def toggle(db: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
        announcement = await AnnouncementService.get(db, announcement_id)
        announcement.is_active = not announcement.is_active
        await db.flush()
        return announcement

    @staticmethod
    async def delete(db: AsyncSession, announcement_id: uuid.UUID) -> None:
        announcement = await AnnouncementService.get(db, announcement_id)
        await db.delete(announcement)
        await db.flush()


# ═════════════════════════════════════════════════════════════════════
# Security alerts
# ═════════════════════════════════════════════════════════════════════


class AlertService:

    @staticmethod
    async def list_alerts(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        resolved: Optional[bool] = None,
    ):
        """Unresolved first, then newest first."""
        query = select(SecurityAlert).order_by(
            SecurityAlert.is_resolved.asc(), SecurityAlert.created_at.desc(),
        )
        if resolved is not None:
            query = query.where(SecurityAlert.is_resolved.is_(resolved))
        return await paginate(db, query, pagination)

    @staticmethod
    async def unresolved(db: AsyncSession) -> Sequence[SecurityAlert]:
        result = await db.execute(
            select(SecurityAlert)
            .where(SecurityAlert.is_resolved.is_(False))
            .order_by(SecurityAlert.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def create(db: AsyncSession, data: SecurityAlertCreate) -> SecurityAlert:
        alert = SecurityAlert(
            employee_id=data.employee_id,
            employee_name=data.employee_name,
            type=data.type,
            description=data.description,
            severity=data.severity.value,
        )
        db.add(alert)
        await db.flush()
        logger.warning("Security alert %s (%s) for %s", alert.type, alert.severity, alert.employee_name)
        return alert

    @staticmethod
    async def _get(db: AsyncSession, alert_id: uuid.UUID) -> SecurityAlert:
        alert = await db.get(SecurityAlert, alert_id)
        if alert is None:
            raise NotFoundException("Security alert", alert_id)
        return alert

    @staticmethod
    async def mark_read(db: AsyncSession, alert_id: uuid.UUID) -> SecurityAlert:
        alert = await AlertService._get(db, alert_id)
        alert.is_read = True
        await db.flush()
        return alert

    @staticmethod
    async def resolve(db: AsyncSession, alert_id: uuid.UUID) -> SecurityAlert:
        alert = await AlertService._get(db, alert_id)
        alert.is_resolved = True
        alert.is_read = True
        await db.flush()
        return alert

    @staticmethod
    async def delete(db: AsyncSession, alert_id: uuid.UUID) -> None:
        alert = await AlertService._get(db, alert_id)
        await db.delete(alert)
        await db.flush()

    @staticmethod
    async def failed_logins(db: AsyncSession, pagination: PaginationParams):
        query = select(FailedLogin).order_by(FailedLogin.created_at.desc())
        return await paginate(db, query, pagination)


# ═════════════════════════════════════════════════════════════════════
# Notifications
# ═════════════════════════════════════════════════════════════════════


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            type=type.value,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        employee_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for an employee, newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == employee_id)
            .order_by(Notification.created_at.desc())
        )
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)

        rows, meta = await paginate(db, query, pagination)

        # Unread count (always unfiltered, for the badge)
        unread = await NotificationService.get_unread_count(db, employee_id)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundException("Notification", notification_id)
        if notification.recipient_id != employee_id:
            raise ForbiddenException("You can only mark your own notifications as read.")

        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, employee_id: uuid.UUID) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == employee_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def delete(
        db: AsyncSession, notification_id: uuid.UUID, employee_id: uuid.UUID,
    ) -> None:
        result = await db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == employee_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundException("Notification", notification_id)

    @staticmethod
    async def get_unread_count(db: AsyncSession, employee_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == employee_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()
