"""
Notification Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional

from taskhub.schemas.base import CamelModel


class NotificationRead(CamelModel):
    """Schema for reading a notification (API response)."""

    id: str
    message: str
    type: str
    read: bool
    created_at: datetime
    user_id: str
    task_id: Optional[str] = None


class NotificationData(CamelModel):
    notification: NotificationRead


class NotificationsData(CamelModel):
    notifications: List[NotificationRead]


class CountData(CamelModel):
    count: int
