"""
Notification router - the current user's notifications.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.dependencies import get_current_user
from taskhub.db.session import get_db
from taskhub.errors import NotFoundError
from taskhub.models.user import User
from taskhub.schemas.base import ApiResponse
from taskhub.schemas.notification import (
    CountData,
    NotificationData,
    NotificationRead,
    NotificationsData,
)
from taskhub.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[NotificationsData])
async def list_notifications(
    unread: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest notifications first; ?unread=true for unread only."""
    notifications = await NotificationService(db).list_for_user(current_user.id, unread_only=unread)
    return ApiResponse[NotificationsData](
        data=NotificationsData(
            notifications=[NotificationRead.model_validate(n) for n in notifications]
        )
    )


@router.get("/count", response_model=ApiResponse[CountData])
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).unread_count(current_user.id)
    return ApiResponse[CountData](data=CountData(count=count))


@router.put("/read-all", response_model=ApiResponse[CountData])
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).mark_all_as_read(current_user.id)
    await db.commit()
    return ApiResponse[CountData](
        data=CountData(count=count),
        message=f"{count} notifications marked as read",
    )


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationData])
async def mark_as_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark one of the current user's notifications as read."""
    notification = await NotificationService(db).mark_as_read(notification_id, current_user.id)
    if not notification:
        raise NotFoundError("Notification not found")
    await db.commit()

    return ApiResponse[NotificationData](
        data=NotificationData(notification=NotificationRead.model_validate(notification))
    )
