"""
User model for authentication and task ownership.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.models.base_model import TimestampedModel


class User(TimestampedModel):
    """
    User table - people who create, receive and work on tasks.

    Tasks, audit entries and notifications reference users by id only.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
