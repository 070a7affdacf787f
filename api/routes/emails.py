"""
Outbound Email API Routes

Endpoints for sending the templated greeting email, composing emails with
the AI composer, and reading the caller's email log.

Design Considerations:
- Composition and delivery failures return 500 with the underlying message
- Sends are logged only when the caller is a known user
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status

from api.models.emails import (
    ComposeEmailRequest,
    ComposedEmailResponse,
    EmailLogResponse,
    MarkdownEmailResponse,
    SendEmailRequest,
)
from api.models.errors import ApiError
from api.services.email_service import EmailService, get_email_service
from api.utils.identity import get_optional_user, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["Emails"])


def _internal_error(e: Exception) -> ApiError:
    message = getattr(e, "message", None) or str(e)
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", message=message)


@router.post("", summary="Send the templated greeting email")
async def send_email(
    payload: SendEmailRequest,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    email_service: EmailService = Depends(get_email_service)
):
    """Send the greeting template to ``payload.email``."""
    try:
        return await email_service.send_greeting(user, payload.email, payload.first_name, payload.subject)
    except Exception as e:
        logger.error(f"Error sending email: {str(e)}")
        raise _internal_error(e)


@router.post("/compose", response_model=ComposedEmailResponse, summary="Compose an email with AI and send it")
async def compose_email(
    payload: ComposeEmailRequest,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    email_service: EmailService = Depends(get_email_service)
):
    try:
        return await email_service.compose_and_send(
            user,
            payload.email,
            payload.instructions,
            from_name=payload.from_name,
            gender=payload.gender,
            language=payload.language,
        )
    except Exception as e:
        logger.error(f"Error composing email: {str(e)}")
        raise _internal_error(e)


@router.post("/compose/md", response_model=MarkdownEmailResponse, summary="Compose a markdown email draft")
async def compose_markdown_email(
    payload: ComposeEmailRequest,
    email_service: EmailService = Depends(get_email_service)
):
    """Generate a markdown draft; nothing is sent."""
    try:
        draft = await email_service.compose_markdown(
            payload.instructions,
            from_name=payload.from_name,
            gender=payload.gender,
            language=payload.language,
        )
    except Exception as e:
        logger.error(f"Error composing markdown email: {str(e)}")
        raise _internal_error(e)
    return {"subject": draft.subject, "markdown_content": draft.markdown_content}


@router.get("", response_model=EmailLogResponse, summary="List emails sent by the caller")
async def list_emails(
    user: Dict[str, Any] = Depends(require_user),
    email_service: EmailService = Depends(get_email_service)
):
    return {"emails": await email_service.list_emails(user)}
