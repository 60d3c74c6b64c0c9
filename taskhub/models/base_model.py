"""
Base model with common fields.

Tables inherit from this to get:
- id (UUID text primary key)
- created_at (when the record was created)
- updated_at (when the record was last modified)
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.db.base import Base
from taskhub.utils.time import utc_now


def new_id() -> str:
    return str(uuid.uuid4())


class IdentifiedModel(Base):
    """Abstract base with a string primary key and a creation timestamp."""

    __abstract__ = True

    # Ids are opaque strings; UUID4 text unless the caller supplies one
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )

    # Python-side default keeps microsecond ordering on every backend
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class TimestampedModel(IdentifiedModel):
    """Abstract base for mutable rows that also track their last update."""

    __abstract__ = True

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )
