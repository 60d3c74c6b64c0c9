"""
Notification business logic service.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.models.notification import Notification
from taskhub.repositories.notification_repository import NotificationRepository
from taskhub.utils.time import days_ago

logger = logging.getLogger(__name__)


class NotificationService:
    """Persists notifications and manages their read state."""

    def __init__(self, db: AsyncSession):
        self.repository = NotificationRepository(db)

    async def create(
        self,
        message: str,
        type: str,
        user_id: str,
        task_id: Optional[str] = None,
    ) -> Notification:
        """Store a notification for a user. No delivery happens here."""
        notification = await self.repository.create(message, type, user_id, task_id)
        logger.info("Notification %s (%s) created for user %s", notification.id, type, user_id)
        return notification

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Newest notifications first, capped at NOTIFICATION_LIST_LIMIT."""
        return await self.repository.find_by_user(
            user_id,
            unread_only=unread_only,
            limit=settings.NOTIFICATION_LIST_LIMIT,
        )

    async def mark_as_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        """Mark a notification read if it belongs to the user, else None."""
        return await self.repository.mark_as_read(notification_id, user_id)

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification read. Returns how many changed."""
        return await self.repository.mark_all_as_read(user_id)

    async def unread_count(self, user_id: str) -> int:
        return await self.repository.get_unread_count(user_id)

    async def prune_old(self, days_old: int = 30) -> int:
        """
        Delete read notifications older than `days_old` days.

        Maintenance only; see workers.notification_cleanup.
        """
        deleted = await self.repository.delete_read_before(days_ago(days_old))
        logger.info("Pruned %d read notifications older than %d days", deleted, days_old)
        return deleted
