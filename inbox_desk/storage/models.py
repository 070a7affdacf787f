"""
Database Models for the CRUD Surface

Defines the relational models behind users, API keys, contacts, notes and
the outbound email log, plus the key-value table backing the triage cache.

Design Considerations:
- Integer autoincrement keys, timestamps on every row
- Per-user ownership through ``user_id`` foreign keys
- Unique email and identity token per user
- Cache rows carry their own expiry
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _iso(value: datetime) -> Any:
    return value.isoformat() if value else None


class User(Base):
    """
    Account owning contacts, notes and logged emails.

    ``identity_token`` is the opaque value callers send in the ``User-Id``
    header to act as this user.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    identity_token = Column(String(64), unique=True, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    api_keys = relationship("ApiKey", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to dictionary representation for API responses."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "identity_token": self.identity_token,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class ApiKey(Base):
    """API key issued to a user on creation."""
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    key = Column(String(64), unique=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="api_keys")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "key": self.key,
            "created_at": _iso(self.created_at),
        }


class Contact(Base):
    """A person in a user's address book."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True, index=True)
    profession = Column(String(255), nullable=True)
    interests = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "profession": self.profession,
            "interests": self.interests,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Note(Base):
    """Free-text note attached to a contact."""
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("user_contact_id_idx", "user_id", "contact_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "contact_id": self.contact_id,
            "title": self.title,
            "content": self.content,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Email(Base):
    """Log entry for an email sent through the API."""
    __tablename__ = "emails"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    from_address = Column(String(255), nullable=False)
    to_address = Column(String(255), nullable=False)
    subject = Column(String(998), nullable=False)
    body = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "from_address": self.from_address,
            "to_address": self.to_address,
            "subject": self.subject,
            "body": self.body,
            "created_at": _iso(self.created_at),
        }


class CacheEntry(Base):
    """Key-value cache row with absolute expiry (UTC)."""
    __tablename__ = "cache_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
