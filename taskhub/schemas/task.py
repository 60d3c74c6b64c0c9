"""
Task Pydantic schemas.

TaskCreate carries the validation contract shared by the request boundary
and TaskService.validate_task_creation.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from taskhub.models.audit_log import AuditAction
from taskhub.models.task import Priority, Status
from taskhub.schemas.base import CamelModel, TimestampedRead
from taskhub.schemas.user import UserSummary
from taskhub.utils.time import ensure_utc

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 5000

# Fields whose changes are diffed and audited, in evaluation order
TRACKED_FIELDS = ("title", "status", "priority", "assigned_to_id")


def _check_text(value: Any, label: str, max_length: int) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", f"{label} is required")
    if isinstance(value, str) and len(value) > max_length:
        raise PydanticCustomError(
            "too_long", f"{label} must be less than {max_length} characters"
        )
    return value


def _parse_due_date(value: Any) -> datetime:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", "Due date is required")
    if isinstance(value, (datetime, date)):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            pass
    raise PydanticCustomError("invalid_date", "Invalid date format")


def _blank_to_none(value: Any) -> Any:
    # An empty assignee from a form select means "nobody"
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TaskCreate(CamelModel):
    """Schema for creating a new task."""

    title: str = Field(default=None, validate_default=True)
    description: str = Field(default=None, validate_default=True)
    due_date: datetime = Field(default=None, validate_default=True)
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    assigned_to_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> Any:
        return _check_text(value, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, value: Any) -> Any:
        return _check_text(value, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("due_date", mode="before")
    @classmethod
    def check_due_date(cls, value: Any) -> datetime:
        return _parse_due_date(value)

    @field_validator("assigned_to_id", mode="before")
    @classmethod
    def check_assignee(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TaskUpdate(CamelModel):
    """
    Schema for a partial task update.

    Only fields present in the request are applied. An explicit null
    assignedToId unassigns the task; leaving it out keeps the assignee.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assigned_to_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> Any:
        return _check_text(value, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, value: Any) -> Any:
        return _check_text(value, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("due_date", mode="before")
    @classmethod
    def check_due_date(cls, value: Any) -> datetime:
        return _parse_due_date(value)

    @field_validator("priority", "status", mode="before")
    @classmethod
    def reject_null(cls, value: Any, info) -> Any:
        if value is None:
            raise PydanticCustomError("null_not_allowed", f"{info.field_name.capitalize()} cannot be null")
        return value

    @field_validator("assigned_to_id", mode="before")
    @classmethod
    def check_assignee(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def patch_fields(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskRead(TimestampedRead):
    """Schema for reading a task with its creator and assignee."""

    title: str
    description: str
    due_date: datetime
    priority: Priority
    status: Status
    creator_id: str
    assigned_to_id: Optional[str] = None
    creator: UserSummary
    assigned_to: Optional[UserSummary] = None


class TaskChange(CamelModel):
    """One detected field change, values rendered as strings."""

    field: str
    old_value: str
    new_value: str


class TaskSortField(str, Enum):
    DUE_DATE = "dueDate"
    CREATED_AT = "createdAt"
    PRIORITY = "priority"
    STATUS = "status"


class TaskFilterParams(CamelModel):
    """Filter, sort and pagination options for listing tasks."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    assigned_to_id: Optional[str] = None
    creator_id: Optional[str] = None
    sort_by: TaskSortField = TaskSortField.CREATED_AT
    sort_order: Literal["asc", "desc"] = "desc"
    overdue: bool = False


class TaskPage(CamelModel):
    tasks: List[TaskRead]
    total: int
    page: int
    limit: int
    total_pages: int


class DashboardStats(CamelModel):
    assigned: int
    created: int
    overdue: int
    completed: int
    in_progress: int


class DashboardData(CamelModel):
    stats: DashboardStats
    assigned: List[TaskRead]
    created: List[TaskRead]
    overdue: List[TaskRead]


class AuditActor(CamelModel):
    name: str
    email: str


class AuditLogRead(CamelModel):
    """Schema for reading an audit entry with its actor."""

    id: str
    action: AuditAction
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    task_id: str
    user_id: str
    created_at: datetime
    user: AuditActor


class TaskData(CamelModel):
    task: TaskRead


class AuditLogsData(CamelModel):
    logs: List[AuditLogRead]


class FieldError(CamelModel):
    field: str
    message: str
