"""FastAPI dependencies for database sessions and authentication."""

import logging
from typing import Optional

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError

from .config import settings
from .database import get_db
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[dict]:
    """
    Authentication dependency that validates Bearer tokens.

    Identity is optional unless ``settings.auth_required`` is set; a header
    that is present but invalid is always rejected.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token, or None when anonymous

    Raises:
        AuthenticationError: If token is invalid, or missing while required
    """
    if not authorization:
        if settings.auth_required:
            raise AuthenticationError(detail="Authorization header missing")
        return None

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        logger.warning(
            "Bearer token rejected",
            extra={"error": str(e)}
        )
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError(detail="Invalid token payload")

    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError(detail="Token subject must be a user id")

    return {
        "user_id": user_id,
        "username": payload.get("username"),
        "email": payload.get("email"),
    }


def actor_id(user: Optional[dict]) -> Optional[int]:
    """Return the authenticated user's id, or None for anonymous callers."""
    return user["user_id"] if user else None


CurrentUser = Depends(get_current_user)
DatabaseSession = Depends(get_db)
