"""
User Pydantic schemas.
"""

import re
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from taskhub.schemas.base import CamelModel, TimestampedRead

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
_PASSWORD_RULE = "Password must contain at least one uppercase letter, one lowercase letter, and one number"


def _check_password_strength(value: str) -> str:
    if not _PASSWORD_PATTERN.match(value):
        raise ValueError(_PASSWORD_RULE)
    return value


class UserSummary(TimestampedRead):
    """Public view of a user. Never carries the password hash."""

    email: str
    name: str


class RegisterRequest(CamelModel):
    """Schema for user registration."""

    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=2, max_length=100)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password_strength(value)


class LoginRequest(CamelModel):
    """Schema for login request."""

    email: EmailStr
    password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    """Schema for updating the current user's profile."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(CamelModel):
    """Schema for changing the current user's password."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, value: str) -> str:
        return _check_password_strength(value)


class AuthData(CamelModel):
    """Payload returned by register and login."""

    user: UserSummary
    token: str


class UserData(CamelModel):
    user: UserSummary


class UsersData(CamelModel):
    users: List[UserSummary]
