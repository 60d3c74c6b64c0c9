"""
Task router - API endpoints for tasks.

Mutations commit first and only then fan out realtime events, so clients
never hear about a change that was rolled back.
"""

import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.dependencies import get_current_user, get_hub
from taskhub.db.session import get_db
from taskhub.errors import NotFoundError
from taskhub.models.task import Priority, Status
from taskhub.models.user import User
from taskhub.realtime.hub import RealtimeHub
from taskhub.schemas.base import ApiResponse, MessageResponse
from taskhub.schemas.events import (
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskDeletedPayload,
    TaskUpdatedEvent,
    TaskUpdatedPayload,
)
from taskhub.schemas.task import (
    AuditLogRead,
    AuditLogsData,
    DashboardData,
    DashboardStats,
    TaskCreate,
    TaskData,
    TaskFilterParams,
    TaskPage,
    TaskRead,
    TaskSortField,
    TaskUpdate,
)
from taskhub.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=ApiResponse[TaskData], status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
):
    """Create a new task owned by the current user."""
    service = TaskService(db)
    result = await service.create_task(data, creator_id=current_user.id)
    task = TaskRead.model_validate(result.task)
    await db.commit()

    await hub.broadcast(TaskCreatedEvent(data=task))
    if result.notification:
        await hub.notify(result.notification)

    return ApiResponse[TaskData](data=TaskData(task=task), message="Task created successfully")


@router.get("", response_model=ApiResponse[TaskPage])
async def list_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    assigned_to_id: Optional[str] = Query(None, alias="assignedToId"),
    creator_id: Optional[str] = Query(None, alias="creatorId"),
    sort_by: TaskSortField = Query(TaskSortField.CREATED_AT, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    overdue: bool = False,
):
    """
    List tasks with pagination and filters.

    Filters: status, priority, assignedToId, creatorId, overdue.
    Sort: sortBy (dueDate, createdAt, priority, status) and sortOrder.
    """
    params = TaskFilterParams(
        page=page,
        limit=limit,
        status=status,
        priority=priority,
        assigned_to_id=assigned_to_id,
        creator_id=creator_id,
        sort_by=sort_by,
        sort_order=sort_order,
        overdue=overdue,
    )
    tasks, total = await TaskService(db).list_tasks(params)

    return ApiResponse[TaskPage](
        data=TaskPage(
            tasks=[TaskRead.model_validate(t) for t in tasks],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )
    )


@router.get("/dashboard", response_model=ApiResponse[DashboardData])
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Counts and task lists for the current user's dashboard."""
    service = TaskService(db)
    stats = await service.get_dashboard_stats(current_user.id)
    assigned = await service.get_assigned_tasks(current_user.id)
    created = await service.get_created_tasks(current_user.id)
    overdue = await service.get_overdue_tasks(current_user.id)

    return ApiResponse[DashboardData](
        data=DashboardData(
            stats=DashboardStats(**stats),
            assigned=[TaskRead.model_validate(t) for t in assigned],
            created=[TaskRead.model_validate(t) for t in created],
            overdue=[TaskRead.model_validate(t) for t in overdue],
        )
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskData])
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a task by ID."""
    task = await TaskService(db).get_task(task_id)
    if not task:
        raise NotFoundError("Task not found")

    return ApiResponse[TaskData](data=TaskData(task=TaskRead.model_validate(task)))


@router.put("/{task_id}", response_model=ApiResponse[TaskData])
async def update_task(
    task_id: str,
    data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
):
    """Partially update a task. Any authenticated user may edit."""
    service = TaskService(db)
    result = await service.update_task(task_id, data, actor_id=current_user.id)
    task = TaskRead.model_validate(result.task)
    await db.commit()

    await hub.broadcast(TaskUpdatedEvent(data=TaskUpdatedPayload(task=task, changes=result.changes)))
    if result.notification:
        await hub.notify(result.notification)

    return ApiResponse[TaskData](data=TaskData(task=task), message="Task updated successfully")


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
):
    """Delete a task. Only its creator may do this."""
    await TaskService(db).delete_task(task_id, actor_id=current_user.id)
    await db.commit()

    await hub.broadcast(TaskDeletedEvent(data=TaskDeletedPayload(task_id=task_id)))
    return MessageResponse(message="Task deleted successfully")


@router.get("/{task_id}/audit", response_model=ApiResponse[AuditLogsData])
async def get_task_audit_logs(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Audit trail of a task, newest first."""
    logs = await TaskService(db).get_task_audit_logs(task_id)
    return ApiResponse[AuditLogsData](
        data=AuditLogsData(logs=[AuditLogRead.model_validate(log) for log in logs])
    )
