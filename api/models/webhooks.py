"""
Webhook request and response models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the identity provider."""
    success: bool
    message: str


class WebhookEmailAddress(BaseModel):
    email_address: str


class WebhookUserData(BaseModel):
    """The ``data`` object of a ``user.created`` event; unknown fields are ignored."""
    id: str = Field(..., description="Identity provider user id, stored as the identity token")
    email_addresses: List[WebhookEmailAddress] = Field(default_factory=list)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def primary_email(self) -> Optional[str]:
        return self.email_addresses[0].email_address if self.email_addresses else None

    @property
    def display_name(self) -> Optional[str]:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or None
