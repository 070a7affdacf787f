"""
Contact API Routes

Endpoints for the caller's contacts and the notes attached to them. All
operations are scoped to the user resolved from the ``User-Id`` header.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, status

from api.models.contacts import (
    ContactDetailResponse,
    ContactListResponse,
    ContactPayload,
    ContactResponse,
    NotePayload,
    NoteResponse,
)
from api.models.errors import ApiError
from api.models.users import MessageResponse
from api.utils.identity import require_user
from inbox_desk.storage.contact_repository import ContactRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Contacts"])


def _contact_not_found() -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, "Contact not found")


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a contact"
)
async def create_contact(payload: ContactPayload, user: Dict[str, Any] = Depends(require_user)):
    contact = await ContactRepository.create_contact(user["id"], payload.model_dump())
    return {"contact": contact}


@router.get("", response_model=ContactListResponse, summary="List the caller's contacts")
async def list_contacts(user: Dict[str, Any] = Depends(require_user)):
    return {"contacts": await ContactRepository.list_contacts(user["id"])}


@router.get("/{contact_id}", response_model=ContactDetailResponse, summary="Get a contact with its notes")
async def get_contact(
    contact_id: int = Path(..., description="Contact id"),
    user: Dict[str, Any] = Depends(require_user)
):
    result = await ContactRepository.get_contact(user["id"], contact_id)
    if not result:
        raise _contact_not_found()
    return result


@router.put("/{contact_id}", response_model=ContactResponse, summary="Update a contact")
async def update_contact(
    payload: ContactPayload,
    contact_id: int = Path(..., description="Contact id"),
    user: Dict[str, Any] = Depends(require_user)
):
    contact = await ContactRepository.update_contact(user["id"], contact_id, payload.model_dump(exclude_unset=True))
    if not contact:
        raise _contact_not_found()
    return {"contact": contact}


@router.delete("/{contact_id}", response_model=MessageResponse, summary="Delete a contact and its notes")
async def delete_contact(
    contact_id: int = Path(..., description="Contact id"),
    user: Dict[str, Any] = Depends(require_user)
):
    if not await ContactRepository.delete_contact(user["id"], contact_id):
        raise _contact_not_found()
    return {"message": "Contact deleted successfully"}


@router.post(
    "/{contact_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a note to a contact"
)
async def add_note(
    payload: NotePayload,
    contact_id: int = Path(..., description="Contact id"),
    user: Dict[str, Any] = Depends(require_user)
):
    note = await ContactRepository.add_note(user["id"], contact_id, payload.title, payload.content)
    if not note:
        raise _contact_not_found()
    return {"note": note}


@router.delete(
    "/{contact_id}/notes/{note_id}",
    response_model=MessageResponse,
    summary="Delete a note"
)
async def delete_note(
    contact_id: int = Path(..., description="Contact id"),
    note_id: int = Path(..., description="Note id"),
    user: Dict[str, Any] = Depends(require_user)
):
    if not await ContactRepository.delete_note(user["id"], contact_id, note_id):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Note not found")
    return {"message": "Note deleted successfully"}
