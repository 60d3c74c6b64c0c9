"""
Repository for Notification database operations.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.notification import Notification


class NotificationRepository:
    """Repository for Notification operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        message: str,
        type: str,
        user_id: str,
        task_id: Optional[str] = None,
    ) -> Notification:
        """Create a new notification."""
        notification = Notification(
            message=message,
            type=type,
            user_id=user_id,
            task_id=task_id,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.id == notification_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        """Get the most recent notifications for a user, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_as_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        """
        Mark one notification as read.

        Ownership is part of the UPDATE predicate, so another user's id
        matches no row and None is returned.
        """
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(notification_id)

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read. Returns the count."""
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_unread_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
        )
        return result.scalar_one()

    async def delete_read_before(self, cutoff: datetime) -> int:
        """Delete read notifications created before the cutoff."""
        result = await self.db.execute(
            delete(Notification).where(
                Notification.created_at < cutoff,
                Notification.read.is_(True),
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount
