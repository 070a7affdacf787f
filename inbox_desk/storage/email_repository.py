"""
Email Log Repository

Records emails sent through the API and lists them per user.
"""

import logging
from typing import Any, Dict, List, Optional

from inbox_desk.storage.database import get_db_session
from inbox_desk.storage.models import Email

logger = logging.getLogger(__name__)


class EmailRepository:
    """Repository for the outbound email log."""

    @staticmethod
    async def record_email(
        user_id: Optional[int],
        from_address: str,
        to_address: str,
        subject: str,
        body: str
    ) -> Dict[str, Any]:
        """
        Store a sent email.

        Args:
            user_id: Owning user, None for anonymous sends
            from_address: Sender as shown in the From header
            to_address: Recipient address
            subject: Subject line
            body: Body as sent (HTML or text)

        Returns:
            Dictionary containing the stored row
        """
        with get_db_session() as session:
            email = Email(
                user_id=user_id,
                from_address=from_address,
                to_address=to_address,
                subject=subject,
                body=body,
            )
            session.add(email)
            session.flush()
            logger.info(f"Recorded sent email {email.id}")
            return email.to_dict()

    @staticmethod
    async def list_emails(user_id: int) -> List[Dict[str, Any]]:
        """Return the user's sent emails, newest first."""
        with get_db_session() as session:
            emails = session.query(Email).filter(Email.user_id == user_id).order_by(Email.id.desc()).all()
            return [email.to_dict() for email in emails]
