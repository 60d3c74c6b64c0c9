"""
AuditLog model.

Append-only trail of task changes. One row per created task and one row
per detected field change on update.
"""

import enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base_model import IdentifiedModel

if TYPE_CHECKING:
    from taskhub.models.user import User


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ASSIGN = "ASSIGN"
    STATUS_CHANGE = "STATUS_CHANGE"


class AuditLog(IdentifiedModel):
    """Immutable record of one change applied to a task."""

    __tablename__ = "audit_logs"

    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=20, name="audit_action"),
        nullable=False,
    )

    # Field name for UPDATE / STATUS_CHANGE rows, empty for CREATE
    field: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Rows are deleted explicitly before their task; see TaskRepository.delete
    task_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tasks.id"),
        nullable=False,
    )

    # Actor who made the change
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", lazy="selectin")

    __table_args__ = (
        Index("ix_audit_logs_task_created", "task_id", "created_at"),
    )
