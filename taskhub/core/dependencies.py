"""
FastAPI dependencies for the application.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.core.jwt import verify_token
from taskhub.db.session import get_db
from taskhub.errors import AuthenticationError
from taskhub.models.user import User
from taskhub.realtime.hub import RealtimeHub
from taskhub.repositories.user_repository import UserRepository

# Security scheme for JWT bearer tokens; the auth cookie is the fallback
security = HTTPBearer(auto_error=False)


def get_request_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Bearer token if present, otherwise the auth cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the JWT.

    Raises:
        AuthenticationError: no token, a bad or expired token, or the
            user no longer exists
    """
    token = get_request_token(request, credentials)
    if not token:
        raise AuthenticationError("Access denied. No token provided.")

    token_user = verify_token(token)
    if token_user is None:
        raise AuthenticationError("Invalid or expired token.")

    user = await UserRepository(db).get_by_id(token_user.id)
    if not user:
        raise AuthenticationError("Invalid or expired token.")

    return user


def get_hub(request: Request) -> RealtimeHub:
    """The application's realtime hub."""
    return request.app.state.hub
