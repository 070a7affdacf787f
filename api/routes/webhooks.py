"""
Webhook API Routes

Receives signed identity-provider events delivered through svix. A
``user.created`` event registers the user, with the provider's user id as
identity token, and issues a first API key.

Design Considerations:
- The raw body is verified before it is parsed
- Missing svix headers and bad signatures return 400 with ``{"success", "message"}``
- Repeated ``user.created`` deliveries are acknowledged without creating a second user
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from svix.webhooks import Webhook, WebhookVerificationError

from api.config import APISettings, get_settings
from api.models.errors import ApiError
from api.models.webhooks import WebhookResponse, WebhookUserData
from inbox_desk.storage.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def rejected(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("", response_model=WebhookResponse, summary="Receive an identity provider event")
async def receive_webhook(
    request: Request,
    svix_id: Optional[str] = Header(None),
    svix_timestamp: Optional[str] = Header(None),
    svix_signature: Optional[str] = Header(None),
    settings: APISettings = Depends(get_settings)
):
    """
    Verify and handle one webhook delivery.

    Events other than ``user.created`` are logged and acknowledged.
    """
    signing_secret = settings.secret(settings.SIGNING_SECRET)
    if not signing_secret:
        logger.error("Webhook received but SIGNING_SECRET is not configured")
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Webhook signing secret is not configured")

    if not svix_id or not svix_timestamp or not svix_signature:
        return rejected("Error: Missing svix headers")

    body = await request.body()
    try:
        event = Webhook(signing_secret).verify(body, {
            "svix-id": svix_id,
            "svix-timestamp": svix_timestamp,
            "svix-signature": svix_signature,
        })
    except WebhookVerificationError as e:
        logger.warning(f"Error: Could not verify webhook: {e}")
        return rejected(str(e))

    event_type = event.get("type")
    logger.info(f"Received webhook {svix_id} with event type {event_type}")

    if event_type == "user.created":
        try:
            data = WebhookUserData.model_validate(event.get("data") or {})
        except ValidationError as e:
            logger.warning(f"Malformed user.created payload: {e}")
            return rejected("Invalid user payload")
        return await connect_user(data)

    return {"success": True, "message": "Webhook received"}


async def connect_user(data: WebhookUserData):
    """Create the user for a provider id unless it is already registered."""
    if await UserRepository.get_user_by_identity_token(data.id):
        logger.info(f"Webhook user {data.id} already connected")
        return {"success": True, "message": "User connected"}

    if not data.primary_email:
        return rejected("Webhook user has no email address")

    try:
        user = await UserRepository.create_user(data.primary_email, data.display_name, identity_token=data.id)
    except ValueError:
        return rejected("Email already exists", status.HTTP_409_CONFLICT)

    logger.info(f"Webhook user {data.id} registered as user {user['id']}")
    return {"success": True, "message": "User connected"}
