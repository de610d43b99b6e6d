"""
Authentication Middleware for FastAPI.

Provides dependency injection for protected routes.
"""

from typing import Optional
from fastapi import Header, HTTPException, status
from ...auth.supabase_client import verify_token
import logging

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract token from "Bearer <token>", or None if malformed."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_current_user(authorization: str = Header(None)) -> str:
    """
    Dependency to get current authenticated user from JWT token.

    Used for protected routes that require authentication.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        User ID (UUID string)

    Raises:
        HTTPException: 401 if token is missing or invalid
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_info = verify_token(token)

    if not user_info:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_info["id"]


async def get_optional_user(authorization: str = Header(None)) -> Optional[str]:
    """
    Dependency to optionally get current user from JWT token.

    Used for routes that work both with and without authentication.

    Returns:
        User ID (UUID string) if authenticated, None otherwise
    """
    token = _bearer_token(authorization)
    if token is None:
        return None

    user_info = verify_token(token)
    if not user_info:
        logger.warning("Invalid auth token provided")
        return None

    return user_info["id"]
