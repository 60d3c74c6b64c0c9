"""
Task model.

Represents a unit of trackable work with a creator and an optional assignee.
"""

import enum
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base_model import TimestampedModel

if TYPE_CHECKING:
    from taskhub.models.user import User


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Status(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    COMPLETED = "COMPLETED"


class Task(TimestampedModel):
    """
    Task table.

    creator_id is set once on insert and never updated. The version column
    is bumped by the ORM on every UPDATE and checked in its WHERE clause,
    so a write based on a stale read fails instead of overwriting.
    """

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    due_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, native_enum=False, length=20, name="task_priority"),
        nullable=False,
        default=Priority.MEDIUM,
    )

    status: Mapped[Status] = mapped_column(
        Enum(Status, native_enum=False, length=20, name="task_status"),
        nullable=False,
        default=Status.TODO,
        index=True,
    )

    creator_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    assigned_to_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    creator: Mapped["User"] = relationship(
        "User",
        foreign_keys=[creator_id],
        lazy="selectin",
    )

    assigned_to: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[assigned_to_id],
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}
