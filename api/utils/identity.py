"""
Caller identity resolution.

Callers identify themselves with a ``User-Id`` header holding the identity
token issued when their user was created.
"""

from typing import Any, Dict, Optional

from fastapi import Header, status

from api.models.errors import ApiError
from inbox_desk.storage.user_repository import UserRepository


async def get_optional_user(
    user_id: Optional[str] = Header(default=None, alias="User-Id")
) -> Optional[Dict[str, Any]]:
    """Resolve the caller if a known identity token was sent."""
    return await UserRepository.get_user_by_identity_token(user_id)


async def require_user(
    user_id: Optional[str] = Header(default=None, alias="User-Id")
) -> Dict[str, Any]:
    """Resolve the caller or respond 404 ``{"error": "User not found"}``."""
    user = await UserRepository.get_user_by_identity_token(user_id)
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    return user
