"""
Authentication router - register, login and the current user's profile.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.core.dependencies import get_current_user
from taskhub.db.session import get_db
from taskhub.models.user import User
from taskhub.schemas.base import ApiResponse, MessageResponse
from taskhub.schemas.user import (
    AuthData,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserData,
    UsersData,
    UserSummary,
)
from taskhub.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_HOURS * 3600,
    )


@router.post("/register", response_model=ApiResponse[AuthData], status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create an account and sign in."""
    service = AuthService(db)
    user, token = await service.register(data)
    await db.commit()

    set_auth_cookie(response, token)
    return ApiResponse[AuthData](
        data=AuthData(user=UserSummary.model_validate(user), token=token),
        message="Registration successful",
    )


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Login with email and password.

    Returns the user and a JWT; the token is also set as an HTTP-only cookie.
    """
    service = AuthService(db)
    user, token = await service.login(credentials)

    set_auth_cookie(response, token)
    return ApiResponse[AuthData](
        data=AuthData(user=UserSummary.model_validate(user), token=token),
        message="Login successful",
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserData])
async def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse[UserData](data=UserData(user=UserSummary.model_validate(current_user)))


@router.put("/me", response_model=ApiResponse[UserData])
async def update_me(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the current user's name and/or email."""
    service = AuthService(db)
    user = await service.update_profile(current_user, data)
    await db.commit()

    return ApiResponse[UserData](
        data=UserData(user=UserSummary.model_validate(user)),
        message="Profile updated successfully",
    )


@router.put("/password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = AuthService(db)
    await service.change_password(current_user, data.current_password, data.new_password)
    await db.commit()
    return MessageResponse(message="Password changed successfully")


@router.get("/users", response_model=ApiResponse[UsersData])
async def list_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All users, for choosing an assignee."""
    users = await AuthService(db).list_users()
    return ApiResponse[UsersData](
        data=UsersData(users=[UserSummary.model_validate(u) for u in users])
    )
