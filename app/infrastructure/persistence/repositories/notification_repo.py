"""Notification repository: write on job completion, read/mark/delete per user."""

from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.notification import NotificationResult
from app.domain.enums import NotificationType
from app.infrastructure.persistence.models.notification import Notification
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc


def _to_result(n: Notification) -> NotificationResult:
    """Map Notification ORM to NotificationResult DTO."""
    return NotificationResult(
        id=n.id,
        user_id=n.user_id,
        type=NotificationType(n.type),
        title=n.title,
        message=n.message,
        related_job_id=n.related_job_id,
        action_url=n.action_url,
        is_read=n.is_read,
        created_at=ensure_utc(n.created_at),
    )


class NotificationRepository(BaseRepository[Notification]):
    """Notification repository. Implements INotificationRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Notification)

    async def save(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_job_id: str | None = None,
        action_url: str | None = None,
    ) -> NotificationResult:
        """Create an unread notification."""
        notification = Notification(
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            related_job_id=related_job_id,
            action_url=action_url,
            is_read=False,
        )
        return _to_result(await self.create(notification))

    async def list_for_user(
        self, user_id: str, *, unread_only: bool = False, limit: int = 50
    ) -> list[NotificationResult]:
        """Return the user's notifications, newest first."""
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [_to_result(n) for n in result.scalars().all()]

    async def count_unread(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return int(result.scalar_one())

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """Mark one of the user's notifications read; False when not found."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete(self, notification_id: str, user_id: str) -> bool:
        """Delete one of the user's notifications; False when not found."""
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
