"""
User Data Models

Request and response models for the users resource.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class UserPayload(BaseModel):
    """Body for creating or updating a user."""
    email: EmailStr = Field(..., description="User email address (unique)")
    name: str = Field(..., min_length=1, description="Display name")


class UserOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    identity_token: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CreatedUserOut(UserOut):
    """Newly created user, including the API key issued for it."""
    api_key: str


class UserResponse(BaseModel):
    user: UserOut


class CreatedUserResponse(BaseModel):
    user: CreatedUserOut


class UserListResponse(BaseModel):
    users: List[UserOut] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str
