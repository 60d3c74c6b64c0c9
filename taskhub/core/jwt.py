"""
JWT access token helpers.

The same decode contract is used by the HTTP dependencies and by the
realtime hub handshake.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from taskhub.core.config import settings
from taskhub.utils.time import utc_now


@dataclass(frozen=True)
class TokenUser:
    """Identity carried inside a verified access token."""

    id: str
    email: str
    name: str


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT.

    Args:
        data: Claims to embed (must include "sub")
        expires_delta: Lifetime override, defaults to ACCESS_TOKEN_EXPIRE_HOURS

    Returns:
        Encoded JWT string
    """
    to_encode = dict(data)
    expire = utc_now() + (expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def token_user_from_payload(payload: Optional[Dict[str, Any]]) -> Optional[TokenUser]:
    """Extract the identity claims from a decoded payload."""
    if not payload or not payload.get("sub"):
        return None
    return TokenUser(
        id=str(payload["sub"]),
        email=payload.get("email", ""),
        name=payload.get("name", ""),
    )


def verify_token(token: str) -> Optional[TokenUser]:
    """Decode a token and return its user, or None when it does not verify."""
    return token_user_from_payload(decode_access_token(token))
