"""
Task business logic service.

All mutations share the caller's session: the task write, its audit
entries and any assignment notification commit or roll back together.
Realtime fan-out is left to the caller, after commit.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from taskhub.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    field_errors_from_pydantic,
)
from taskhub.models.audit_log import AuditAction, AuditLog
from taskhub.models.notification import Notification, NotificationType
from taskhub.models.task import Task
from taskhub.repositories.audit_log_repository import AuditLogRepository
from taskhub.repositories.task_repository import TaskRepository
from taskhub.repositories.user_repository import UserRepository
from taskhub.schemas.task import (
    TRACKED_FIELDS,
    FieldError,
    TaskChange,
    TaskCreate,
    TaskFilterParams,
    TaskUpdate,
)
from taskhub.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


def assignment_message(title: str) -> str:
    return f'You have been assigned to task: "{title}"'


def render_value(field_name: str, value: Any) -> str:
    """Stringify a tracked field value for change records and audit rows."""
    if value is None:
        return UNASSIGNED if field_name == "assigned_to_id" else ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def compute_changes(task: Task, patch: Dict[str, Any]) -> List[TaskChange]:
    """
    Diff the tracked fields present in `patch` against the stored task.

    Fields are evaluated in TRACKED_FIELDS order regardless of patch order.
    Absent fields are skipped; for assigned_to_id an explicit None counts
    as present (unassign).
    """
    changes = []
    for name in TRACKED_FIELDS:
        if name not in patch:
            continue
        old, new = getattr(task, name), patch[name]
        if new == old:
            continue
        changes.append(
            TaskChange(
                field=to_camel(name),
                old_value=render_value(name, old),
                new_value=render_value(name, new),
            )
        )
    return changes


@dataclass
class TaskCreateResult:
    task: Task
    notification: Optional[Notification] = None


@dataclass
class TaskUpdateResult:
    task: Task
    changes: List[TaskChange]
    assignee_changed: bool = False
    new_assignee_id: Optional[str] = None
    notification: Optional[Notification] = None


@dataclass
class TaskValidationResult:
    is_valid: bool
    errors: List[FieldError] = field(default_factory=list)


class TaskService:
    """Service for task business logic."""

    def __init__(self, db: AsyncSession):
        self.repository = TaskRepository(db)
        self.audit_repository = AuditLogRepository(db)
        self.user_repository = UserRepository(db)
        self.notifications = NotificationService(db)

    async def create_task(self, data: TaskCreate, creator_id: str) -> TaskCreateResult:
        """
        Create a task owned by `creator_id`.

        Always writes one CREATE audit entry. Assigning someone other than
        the creator also stores a TASK_ASSIGNED notification for them.
        """
        if data.assigned_to_id:
            await self._ensure_assignee_exists(data.assigned_to_id)

        task = await self.repository.create({
            "title": data.title,
            "description": data.description,
            "due_date": data.due_date,
            "priority": data.priority,
            "status": data.status,
            "creator_id": creator_id,
            "assigned_to_id": data.assigned_to_id,
        })

        await self.audit_repository.create(
            action=AuditAction.CREATE,
            task_id=task.id,
            user_id=creator_id,
        )

        notification = None
        if data.assigned_to_id and data.assigned_to_id != creator_id:
            notification = await self.notifications.create(
                message=assignment_message(task.title),
                type=NotificationType.TASK_ASSIGNED,
                user_id=data.assigned_to_id,
                task_id=task.id,
            )

        logger.info("Task %s created by %s", task.id, creator_id)
        return TaskCreateResult(task=task, notification=notification)

    async def update_task(self, task_id: str, data: TaskUpdate, actor_id: str) -> TaskUpdateResult:
        """
        Apply a partial update and audit every tracked change.

        Raises:
            NotFoundError: unknown task id
            ConflictError: the task changed since it was read
        """
        existing = await self.repository.get_by_id(task_id)
        if not existing:
            raise NotFoundError("Task not found")

        patch = data.patch_fields()
        changes = compute_changes(existing, patch)

        assignee_changed, new_assignee_id = self._assignee_transition(existing, patch)
        if new_assignee_id and assignee_changed:
            await self._ensure_assignee_exists(new_assignee_id)

        task = existing
        if patch:
            try:
                task = await self.repository.update(existing, patch)
            except StaleDataError as exc:
                raise ConflictError("Task was modified by another request, please retry") from exc

        for change in changes:
            await self.audit_repository.create(
                action=AuditAction.STATUS_CHANGE if change.field == "status" else AuditAction.UPDATE,
                field=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                task_id=task_id,
                user_id=actor_id,
            )

        notification = None
        if assignee_changed and new_assignee_id and new_assignee_id != actor_id:
            notification = await self.notifications.create(
                message=assignment_message(task.title),
                type=NotificationType.TASK_ASSIGNED,
                user_id=new_assignee_id,
                task_id=task_id,
            )

        logger.info("Task %s updated by %s (%d changes)", task_id, actor_id, len(changes))
        return TaskUpdateResult(
            task=task,
            changes=changes,
            assignee_changed=assignee_changed,
            new_assignee_id=new_assignee_id,
            notification=notification,
        )

    async def delete_task(self, task_id: str, actor_id: str) -> None:
        """
        Delete a task and its audit trail. Only the creator may delete.

        Raises:
            NotFoundError: unknown task id
            AuthorizationError: actor is not the creator
            ConflictError: the task changed since it was loaded
        """
        task = await self.repository.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")

        if task.creator_id != actor_id:
            raise AuthorizationError("Only the task creator can delete this task")

        try:
            removed = await self.audit_repository.delete_for_task(task_id)
            await self.repository.delete(task)
        except StaleDataError as exc:
            raise ConflictError("Task was modified by another request, please retry") from exc
        logger.info("Task %s deleted by %s (%d audit entries removed)", task_id, actor_id, removed)

    async def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID."""
        return await self.repository.get_by_id(task_id)

    async def list_tasks(self, params: TaskFilterParams) -> Tuple[List[Task], int]:
        """List tasks with filters. Returns the page and the total match count."""
        return await self.repository.list(params)

    async def get_assigned_tasks(self, user_id: str) -> List[Task]:
        return await self.repository.find_by_assignee(user_id)

    async def get_created_tasks(self, user_id: str) -> List[Task]:
        return await self.repository.find_by_creator(user_id)

    async def get_overdue_tasks(self, user_id: str) -> List[Task]:
        return await self.repository.find_overdue(user_id)

    async def get_dashboard_stats(self, user_id: str) -> Dict[str, int]:
        return await self.repository.get_dashboard_stats(user_id)

    async def get_task_audit_logs(self, task_id: str) -> List[AuditLog]:
        """Audit trail of a task, newest first."""
        if not await self.repository.get_by_id(task_id):
            raise NotFoundError("Task not found")
        return await self.audit_repository.find_by_task(task_id)

    def validate_task_creation(self, data: Dict[str, Any]) -> TaskValidationResult:
        """
        Run the task creation rules without touching the database.

        Same contract the request boundary applies to POST /tasks.
        """
        try:
            TaskCreate.model_validate(data)
        except PydanticValidationError as exc:
            errors = [FieldError(**e) for e in field_errors_from_pydantic(exc.errors())]
            return TaskValidationResult(is_valid=False, errors=errors)
        return TaskValidationResult(is_valid=True)

    @staticmethod
    def _assignee_transition(task: Task, patch: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        if "assigned_to_id" not in patch:
            return False, None
        new_assignee_id = patch["assigned_to_id"]
        if new_assignee_id == task.assigned_to_id:
            return False, None
        return True, new_assignee_id or None

    async def _ensure_assignee_exists(self, user_id: str) -> None:
        if not await self.user_repository.get_by_id(user_id):
            raise ValidationError(
                "Validation failed",
                errors=[{"field": "assignedToId", "message": "Assigned user not found"}],
            )
