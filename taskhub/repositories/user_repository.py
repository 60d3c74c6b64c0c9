"""
User repository - database operations for User.
"""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.user import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        if not email or not email.strip():
            return None
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create(self, email: str, name: str, hashed_password: str, user_id: Optional[str] = None) -> User:
        """Create a new user. The password must already be hashed."""
        user = User(
            email=email.strip().lower(),
            name=name,
            hashed_password=hashed_password,
        )
        if user_id:
            user.id = user_id
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def list_all(self) -> list[User]:
        """Get all users, for the assignee picker."""
        result = await self.db.execute(select(User).order_by(User.name.asc()))
        return list(result.scalars().all())

    async def update(self, user: User, data: dict) -> User:
        """Apply changed profile fields to a user."""
        for field, value in data.items():
            setattr(user, field, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def is_email_taken(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        """Check whether another user already uses this email."""
        query = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None
