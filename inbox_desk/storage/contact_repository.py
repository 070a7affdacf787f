"""
Contact and Note Repository

Data access for a user's contacts and the notes attached to them. Every
query is scoped to the owning user id.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from inbox_desk.storage.database import get_db_session
from inbox_desk.storage.models import Contact, Note

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "phone", "profession", "interests")


class ContactRepository:
    """Repository for contacts and notes. Returns dictionaries only."""

    @staticmethod
    async def create_contact(user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        with get_db_session() as session:
            contact = Contact(user_id=user_id, **{k: data.get(k) for k in CONTACT_FIELDS})
            session.add(contact)
            session.flush()
            logger.info(f"Created contact {contact.id} for user {user_id}")
            return contact.to_dict()

    @staticmethod
    async def list_contacts(user_id: int) -> List[Dict[str, Any]]:
        with get_db_session() as session:
            contacts = session.query(Contact).filter(Contact.user_id == user_id).order_by(Contact.id).all()
            return [contact.to_dict() for contact in contacts]

    @staticmethod
    async def get_contact(user_id: int, contact_id: int) -> Optional[Dict[str, Any]]:
        """Return the contact with its notes, or None when not owned by ``user_id``."""
        with get_db_session() as session:
            contact = session.query(Contact).filter(
                Contact.id == contact_id, Contact.user_id == user_id
            ).first()
            if not contact:
                return None
            notes = session.query(Note).filter(
                Note.contact_id == contact_id, Note.user_id == user_id
            ).order_by(Note.id).all()
            return {"contact": contact.to_dict(), "notes": [note.to_dict() for note in notes]}

    @staticmethod
    async def update_contact(user_id: int, contact_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with get_db_session() as session:
            contact = session.query(Contact).filter(
                Contact.id == contact_id, Contact.user_id == user_id
            ).first()
            if not contact:
                return None
            for field in CONTACT_FIELDS:
                if field in data:
                    setattr(contact, field, data[field])
            contact.updated_at = datetime.utcnow()
            session.flush()
            return contact.to_dict()

    @staticmethod
    async def delete_contact(user_id: int, contact_id: int) -> bool:
        """Delete a contact after removing its notes."""
        with get_db_session() as session:
            contact = session.query(Contact).filter(
                Contact.id == contact_id, Contact.user_id == user_id
            ).first()
            if not contact:
                return False
            session.query(Note).filter(
                Note.contact_id == contact_id, Note.user_id == user_id
            ).delete(synchronize_session=False)
            session.delete(contact)
            logger.info(f"Deleted contact {contact_id} for user {user_id}")
            return True

    @staticmethod
    async def add_note(user_id: int, contact_id: int, title: Optional[str], content: str) -> Optional[Dict[str, Any]]:
        """Attach a note; None when the contact is not owned by ``user_id``."""
        with get_db_session() as session:
            contact = session.query(Contact).filter(
                Contact.id == contact_id, Contact.user_id == user_id
            ).first()
            if not contact:
                return None
            note = Note(user_id=user_id, contact_id=contact_id, title=title, content=content)
            session.add(note)
            session.flush()
            return note.to_dict()

    @staticmethod
    async def delete_note(user_id: int, contact_id: int, note_id: int) -> bool:
        with get_db_session() as session:
            deleted = session.query(Note).filter(
                Note.id == note_id,
                Note.contact_id == contact_id,
                Note.user_id == user_id,
            ).delete(synchronize_session=False)
            return deleted > 0
