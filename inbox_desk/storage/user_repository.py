"""
User Repository Implementation

Database operations for users and their API keys.

Design Considerations:
- Repository pattern for data access abstraction
- Methods return dictionaries, never ORM objects, so nothing is touched after the session closes
- Duplicate emails surface as ValueError; callers map them to conflicts
"""

import logging
import secrets
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from inbox_desk.storage.database import get_db_session
from inbox_desk.storage.models import ApiKey, User

logger = logging.getLogger(__name__)


def generate_api_key() -> str:
    """Generate a random API key."""
    return str(uuid.uuid4())


def generate_identity_token() -> str:
    """Generate the opaque token a caller presents as ``User-Id``."""
    return secrets.token_hex(16)


class UserRepository:
    """
    Repository for user management database operations.

    All methods return dictionaries rather than ORM objects to prevent
    session-related issues when objects are accessed after the session closes.
    """

    @staticmethod
    async def create_user(
        email: str,
        name: Optional[str] = None,
        identity_token: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a user together with an identity token and a first API key.

        Args:
            email: User email address (unique)
            name: Optional display name
            identity_token: Token issued elsewhere; generated when omitted

        Returns:
            Dictionary containing user data plus ``api_key``

        Raises:
            ValueError: If a user with this email already exists
        """
        with get_db_session() as session:
            existing_user = session.query(User).filter(User.email == email).first()
            if existing_user:
                logger.warning(f"Attempted to create duplicate user with email: {email}")
                raise ValueError("User with this email already exists")

            user = User(
                email=email,
                name=name,
                identity_token=identity_token or generate_identity_token(),
                created_at=datetime.utcnow(),
            )
            session.add(user)
            session.flush()

            api_key = ApiKey(user_id=user.id, key=generate_api_key())
            session.add(api_key)
            session.flush()

            # Convert before the session closes
            user_dict = user.to_dict()
            user_dict["api_key"] = api_key.key

            logger.info(f"Created new user {user.id}")
            return user_dict

    @staticmethod
    async def list_users() -> List[Dict[str, Any]]:
        """Return every user, oldest first."""
        with get_db_session() as session:
            return [user.to_dict() for user in session.query(User).order_by(User.id).all()]

    @staticmethod
    async def get_user_by_id(user_id: int) -> Optional[Dict[str, Any]]:
        """
        Retrieve a user by primary key.

        Returns:
            Dictionary containing user data if found, None otherwise
        """
        with get_db_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            return user.to_dict() if user else None

    @staticmethod
    async def get_user_by_identity_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Resolve the ``User-Id`` header value to a user.

        Returns:
            Dictionary containing user data if found, None for a missing or unknown token
        """
        if not token:
            return None
        with get_db_session() as session:
            user = session.query(User).filter(User.identity_token == token).first()
            return user.to_dict() if user else None

    @staticmethod
    async def update_user(user_id: int, email: str, name: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Update a user's email and name.

        Returns:
            Updated user data, or None when the user does not exist

        Raises:
            ValueError: If another user already has ``email``
        """
        with get_db_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            if not user:
                logger.warning(f"Attempted to update non-existent user: {user_id}")
                return None

            clash = session.query(User).filter(User.email == email, User.id != user_id).first()
            if clash:
                raise ValueError("Email already exists")

            user.email = email
            user.name = name
            user.updated_at = datetime.utcnow()
            session.flush()
            return user.to_dict()

    @staticmethod
    async def delete_user(user_id: int) -> bool:
        """
        Delete a user and its API keys.

        Returns:
            True when a user was deleted
        """
        with get_db_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            if not user:
                return False
            session.delete(user)
            logger.info(f"Deleted user {user_id}")
            return True
