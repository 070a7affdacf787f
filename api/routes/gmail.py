"""
Gmail Triage API Routes

Endpoints for the inbox triage pipeline: JSON analysis, the HTML
analyzed-emails page, and moving a message to trash.

Design Considerations:
- Only the literal query value ``refresh=true`` forces a refresh
- Analysis failures return 500 with ``{"error", "details"}``
- Trash failures are mapped to 404/403/500 by error kind
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import HTMLResponse

from api.config import get_settings
from api.models.errors import ApiError
from api.models.users import MessageResponse
from api.services.triage_service import TriageService, get_triage_service
from api.utils.error_handlers import status_for_kind
from api.utils.html_views import render_analyzed_emails_page, render_error_page, render_no_emails_page
from inbox_desk.triage.errors import TriageError
from inbox_desk.triage.models import TriageOutput
from inbox_desk.triage.ranking import sort_for_display

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gmail", tags=["Gmail Triage"])


def is_forced_refresh(refresh: Optional[str]) -> bool:
    """Only the exact string ``true`` forces a refresh."""
    return refresh == "true"


@router.get(
    "/analyze-emails",
    response_model=TriageOutput,
    summary="Triage unread emails"
)
async def analyze_emails(
    refresh: Optional[str] = Query(None, description="Pass 'true' to bypass the cache"),
    triage_service: TriageService = Depends(get_triage_service)
):
    """
    Fetch, classify and rank unread emails.

    Returns the needs-response list, the text report and every analyzed
    email, including verdicts that matched no fetched email.
    """
    try:
        return await triage_service.analyze(is_forced_refresh(refresh))
    except TriageError as e:
        logger.error(f"Error in /analyze-emails route: {e.message}")
        raise ApiError(status_for_kind(e.kind), "Failed to analyze emails.", details=e.message)
    except Exception as e:
        logger.error(f"Error in /analyze-emails route: {str(e)}", exc_info=True)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to analyze emails.", details=str(e))


@router.get(
    "/analyze-emails-html",
    response_class=HTMLResponse,
    summary="Analyzed emails as an HTML page"
)
async def analyze_emails_html(
    refresh: Optional[str] = Query(None, description="Pass 'true' to bypass the cache"),
    triage_service: TriageService = Depends(get_triage_service)
):
    try:
        rows, email_count = await triage_service.display_rows(is_forced_refresh(refresh))
    except Exception as e:
        message = e.message if isinstance(e, TriageError) else str(e)
        logger.error(f"Error in /analyze-emails-html route: {message}")
        return HTMLResponse(render_error_page(message), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if email_count == 0:
        return HTMLResponse(render_no_emails_page(get_settings().UNREAD_WINDOW_HOURS))
    return HTMLResponse(render_analyzed_emails_page(sort_for_display(rows)))


@router.post(
    "/delete/{email_id}",
    response_model=MessageResponse,
    summary="Move an email to trash"
)
async def delete_email(
    email_id: str = Path(..., min_length=1, description="Gmail message id"),
    triage_service: TriageService = Depends(get_triage_service)
):
    """
    Trash the message and remove it from the triage cache.

    Provider errors propagate as TriageError and are mapped by kind.
    """
    message = await triage_service.delete_email(email_id)
    return {"message": message}
