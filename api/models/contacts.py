"""
Contact and Note Data Models

Request and response models for the contacts resource and its notes.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class ContactPayload(BaseModel):
    """Body for creating or updating a contact."""
    name: str = Field(..., min_length=1, description="Contact name")
    email: Optional[EmailStr] = Field(default=None, description="Contact email address")
    phone: Optional[str] = Field(default=None, description="Phone number")
    profession: Optional[str] = Field(default=None, description="Profession")
    interests: Optional[str] = Field(default=None, description="Free-text interests")


class NotePayload(BaseModel):
    """Body for adding a note to a contact."""
    title: Optional[str] = Field(default=None, description="Optional note title")
    content: str = Field(..., min_length=1, description="Note text")


class ContactOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    profession: Optional[str] = None
    interests: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class NoteOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    contact_id: int
    title: Optional[str] = None
    content: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContactResponse(BaseModel):
    contact: ContactOut


class ContactDetailResponse(BaseModel):
    contact: ContactOut
    notes: List[NoteOut] = Field(default_factory=list)


class ContactListResponse(BaseModel):
    contacts: List[ContactOut] = Field(default_factory=list)


class NoteResponse(BaseModel):
    note: NoteOut
