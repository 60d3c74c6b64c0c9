"""
Authentication service for registration, login and profile management.
"""

import logging
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.jwt import create_access_token
from taskhub.core.security import hash_password, verify_password
from taskhub.errors import AuthenticationError, ConflictError, ValidationError
from taskhub.models.user import User
from taskhub.repositories.user_repository import UserRepository
from taskhub.schemas.user import LoginRequest, RegisterRequest, UpdateProfileRequest

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.user_repository = UserRepository(db)

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """
        Register a new user.

        Returns:
            The created user and an access token for it

        Raises:
            ConflictError: email already registered
        """
        if await self.user_repository.get_by_email(data.email):
            raise ConflictError("Email already registered")

        user = await self.user_repository.create(
            email=data.email,
            name=data.name,
            hashed_password=hash_password(data.password),
        )
        logger.info("Registered user %s", user.id)
        return user, self.create_token_for_user(user)

    async def login(self, credentials: LoginRequest) -> Tuple[User, str]:
        """
        Authenticate by email and password.

        Raises:
            AuthenticationError: unknown email or wrong password
        """
        user = await self.user_repository.get_by_email(credentials.email)
        if not user or not verify_password(credentials.password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")

        return user, self.create_token_for_user(user)

    async def update_profile(self, user: User, data: UpdateProfileRequest) -> User:
        """Update name and/or email. Raises ConflictError if the email is taken."""
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in update_data:
            update_data["email"] = update_data["email"].strip().lower()
            if await self.user_repository.is_email_taken(update_data["email"], exclude_user_id=user.id):
                raise ConflictError("Email already in use")

        return await self.user_repository.update(user, update_data)

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")

        await self.user_repository.update(user, {"hashed_password": hash_password(new_password)})
        logger.info("Password changed for user %s", user.id)

    async def list_users(self) -> List[User]:
        return await self.user_repository.list_all()

    def create_token_for_user(self, user: User) -> str:
        """Create a JWT access token carrying the user's identity."""
        return create_access_token({
            "sub": user.id,
            "email": user.email,
            "name": user.name,
        })
