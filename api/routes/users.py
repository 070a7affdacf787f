"""
User API Routes

CRUD endpoints for users. Creating a user issues its identity token and a
first API key.
"""

import logging

from fastapi import APIRouter, Path, status

from api.models.errors import ApiError
from api.models.users import (
    CreatedUserResponse,
    MessageResponse,
    UserListResponse,
    UserPayload,
    UserResponse,
)
from inbox_desk.storage.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=CreatedUserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user"
)
async def create_user(payload: UserPayload):
    """Create a user; 409 when the email is already registered."""
    try:
        user = await UserRepository.create_user(payload.email, payload.name)
    except ValueError:
        raise ApiError(status.HTTP_409_CONFLICT, "Email already exists")
    return {"user": user}


@router.get("", response_model=UserListResponse, summary="List users")
async def list_users():
    return {"users": await UserRepository.list_users()}


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: int = Path(..., description="User id")):
    user = await UserRepository.get_user_by_id(user_id)
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    return {"user": user}


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(payload: UserPayload, user_id: int = Path(..., description="User id")):
    """Update email and name; 409 when another user has the email."""
    try:
        user = await UserRepository.update_user(user_id, payload.email, payload.name)
    except ValueError:
        raise ApiError(status.HTTP_409_CONFLICT, "Email already exists")
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    return {"user": user}


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(user_id: int = Path(..., description="User id")):
    if not await UserRepository.delete_user(user_id):
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    logger.info(f"User {user_id} deleted")
    return {"message": "User deleted successfully"}
