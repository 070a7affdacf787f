"""
Email Data Models

Request and response models for outbound email and AI composition.

Design Considerations:
- Recipient addresses validated as email addresses
- Non-empty names, subjects and instructions
- Camel-case field names accepted for compatibility with existing clients
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SendEmailRequest(BaseModel):
    """Templated greeting email request."""
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(
        ...,
        description="Recipient address"
    )
    first_name: str = Field(
        ...,
        min_length=1,
        alias="firstName",
        description="Recipient first name used in the greeting"
    )
    subject: str = Field(
        ...,
        min_length=1,
        description="Subject line"
    )


class ComposeEmailRequest(BaseModel):
    """AI-composed email request."""
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(
        ...,
        description="Recipient address"
    )
    instructions: str = Field(
        ...,
        min_length=1,
        description="What the email should say"
    )
    from_name: Optional[str] = Field(
        default=None,
        min_length=1,
        alias="fromName",
        description="Sender display name and persona"
    )
    language: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Language to write in"
    )
    gender: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Gender of the sender persona"
    )


class ComposedEmailResponse(BaseModel):
    """Result of composing and sending an HTML email."""
    message: str = Field(..., description="Confirmation message")
    subject: str = Field(..., description="Generated subject")
    html: str = Field(..., description="Generated HTML body")
    data: Dict[str, Any] = Field(default_factory=dict, description="Delivery details")


class MarkdownEmailResponse(BaseModel):
    """Generated markdown draft; nothing is sent."""
    subject: str = Field(..., description="Generated subject")
    markdown_content: str = Field(..., description="Generated markdown body")


class EmailLogEntry(BaseModel):
    """A logged outbound email."""
    id: int
    user_id: Optional[int] = None
    from_address: str
    to_address: str
    subject: str
    body: str
    created_at: Optional[str] = None


class EmailLogResponse(BaseModel):
    emails: List[EmailLogEntry] = Field(default_factory=list)
