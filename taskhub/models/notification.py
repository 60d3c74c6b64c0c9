"""
Notification model.

Per-user messages about task events. Only the read flag changes after insert.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.models.base_model import IdentifiedModel


class NotificationType:
    """Known notification type tags."""
    TASK_ASSIGNED = "TASK_ASSIGNED"


class Notification(IdentifiedModel):
    """Notification table."""

    __tablename__ = "notifications"

    message: Mapped[str] = mapped_column(Text, nullable=False)

    type: Mapped[str] = mapped_column(String(50), nullable=False)

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Recipient
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )

    task_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )
