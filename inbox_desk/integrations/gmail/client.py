"""
Gmail Mail Source Adapter

Translates Gmail API payloads into the triage value types and exposes the
mailbox operations the rest of the system needs: list unread mail, list
recently sent mail, move a message to trash and send a message.

Design Considerations:
- Provider payloads never leave this module; callers see InboundEmail / SentEmailSummary
- Blocking Google API calls run in a worker thread
- Per-message fetches are sequential
- A failed list or get aborts the whole fetch with FetchError; nothing is retried
- Trash and send failures keep the provider status as an error kind
"""

import asyncio
import base64
import logging
import re
from datetime import datetime, timedelta, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, getaddresses, parsedate_to_datetime
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup
from googleapiclient.errors import HttpError

from inbox_desk.config import TRIAGE_CONFIG
from inbox_desk.triage.errors import ConfigurationError, FetchError, ProviderActionError
from inbox_desk.triage.models import EmailHeader, InboundEmail, SentEmailSummary

logger = logging.getLogger(__name__)

_SOURCE_CONFIG = TRIAGE_CONFIG["mail_source"]

_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")
_WHITESPACE = re.compile(r"\s+")


def mask_email(email: str) -> str:
    """
    Mask an email address for logging.

    Keeps the first and last character of the local part and the first
    character of the domain label.
    """
    if not email or '@' not in email:
        return email

    username, domain = email.split('@', 1)
    if len(username) <= 2:
        masked_username = '*' * len(username)
    else:
        masked_username = username[0] + '*' * (len(username) - 2) + username[-1]

    domain_parts = domain.split('.')
    if not domain_parts[0]:
        return f"{masked_username}@***"
    masked_domain = domain_parts[0][0] + '*' * (len(domain_parts[0]) - 1)
    return '.'.join([f"{masked_username}@{masked_domain}"] + domain_parts[1:])


def html_to_text(markup: str) -> str:
    """Strip markup and collapse whitespace runs to single spaces."""
    text = BeautifulSoup(markup, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def decode_body(encoded_data: str) -> str:
    """Decode Gmail's URL-safe base64 body data (padding optional)."""
    if not encoded_data:
        return ''
    padded = encoded_data + '=' * (-len(encoded_data) % 4)
    return base64.urlsafe_b64decode(padded).decode('utf-8', errors='replace')


def get_header(headers: List[Dict], name: str, default: str = '') -> str:
    """Return the first header value named ``name`` (case-insensitive)."""
    lowered = name.lower()
    return next((h.get('value', '') for h in headers if (h.get('name') or '').lower() == lowered), default)


def parse_address_list(value: str) -> List[str]:
    """Parse a To/Cc header into bare addresses."""
    if not value:
        return []
    return [address for _, address in getaddresses([value]) if address]


def parse_sent_recipients(to_header: str) -> List[str]:
    """
    Split a sent message's To header into lowercased recipients.

    Each comma-separated entry yields the address inside ``<...>`` when
    present, else the trimmed entry. Empty entries are dropped.
    """
    recipients = []
    for entry in (to_header or '').split(','):
        match = _ANGLE_ADDRESS.search(entry)
        address = match.group(1) if match else entry.strip()
        if address:
            recipients.append(address.lower())
    return recipients


def parse_date(value: str, fallback: datetime) -> datetime:
    """Parse an RFC 2822 date header; naive values are taken as UTC."""
    if not value:
        return fallback
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return fallback
    if parsed is None:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_body(payload: Dict) -> str:
    """
    Extract a plain-text body from a Gmail message payload.

    Multipart: the first ``text/plain`` part with data, else the first
    ``text/html`` part stripped to text. Single part: the payload body,
    stripped when the payload itself is HTML.
    """
    parts = payload.get('parts')
    if parts:
        for part in parts:
            data = (part.get('body') or {}).get('data')
            if part.get('mimeType') == 'text/plain' and data:
                return decode_body(data).strip()
        for part in parts:
            data = (part.get('body') or {}).get('data')
            if part.get('mimeType') == 'text/html' and data:
                return html_to_text(decode_body(data))
        return ''

    data = (payload.get('body') or {}).get('data')
    if not data:
        return ''
    body = decode_body(data)
    if payload.get('mimeType') == 'text/html':
        return html_to_text(body)
    return body.strip()


class GmailMailSource:
    """
    Gmail-backed mail source.

    Attributes:
        service_factory: Zero-argument callable returning a Gmail API service
        unread_page_size: maxResults for the unread listing
        sent_page_size: maxResults for the sent listing
        user_id: Gmail user id, normally ``me``
    """

    def __init__(self,
                 service_factory: Callable[[], Any],
                 unread_page_size: int = _SOURCE_CONFIG["unread_page_size"],
                 sent_page_size: int = _SOURCE_CONFIG["sent_page_size"],
                 user_id: str = _SOURCE_CONFIG["user_id"]):
        self.service_factory = service_factory
        self.unread_page_size = unread_page_size
        self.sent_page_size = sent_page_size
        self.user_id = user_id
        self._service = None
        self._sender_address: Optional[str] = None

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = self.service_factory()
        return self._service

    async def _execute(self, request_builder: Callable[[Any], Any]) -> Dict:
        """Build a request against the service and execute it off the event loop."""
        service = self._get_service()
        return await asyncio.to_thread(lambda: request_builder(service).execute())

    async def fetch_unread(self, window_hours: int = 24) -> List[InboundEmail]:
        """
        Fetch unread inbox messages received within the last ``window_hours``.

        Raises:
            ConfigurationError: Google credentials are not configured
            FetchError: Listing or fetching any message failed
        """
        after = datetime.now(timezone.utc) - timedelta(hours=window_hours)
        query = f"is:unread in:inbox after:{int(after.timestamp())}"

        try:
            listing = await self._execute(lambda s: s.users().messages().list(
                userId=self.user_id, q=query, maxResults=self.unread_page_size))
            messages = listing.get('messages') or []
            if not messages:
                logger.info("No new messages found")
                return []

            emails = []
            for message in messages:
                if not message.get('id'):
                    continue
                full = await self._execute(lambda s, message_id=message['id']: s.users().messages().get(
                    userId=self.user_id, id=message_id, format='full'))
                email = self._to_inbound_email(full)
                if email is not None:
                    emails.append(email)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Error fetching emails: {e}")
            raise FetchError("Failed to fetch emails from Gmail.", details=str(e)) from e

        logger.info(f"Fetched {len(emails)} unread emails")
        return emails

    def _to_inbound_email(self, msg: Dict) -> Optional[InboundEmail]:
        if not msg.get('id') or not msg.get('threadId'):
            logger.warning(f"Skipping message without id or thread id: {msg.get('id')!r}")
            return None

        payload = msg.get('payload') or {}
        raw_headers = [h for h in (payload.get('headers') or [])
                       if isinstance(h.get('name'), str) and isinstance(h.get('value'), str)]

        return InboundEmail(
            id=msg['id'],
            message_id=get_header(raw_headers, 'Message-ID'),
            thread_id=msg['threadId'],
            subject=get_header(raw_headers, 'Subject') or 'No Subject',
            sender=get_header(raw_headers, 'From') or 'Unknown Sender',
            to=parse_address_list(get_header(raw_headers, 'To')),
            cc=parse_address_list(get_header(raw_headers, 'Cc')),
            received_at=parse_date(get_header(raw_headers, 'Date'), datetime.now(timezone.utc)),
            body=extract_body(payload),
            snippet=msg.get('snippet') or '',
            headers=[EmailHeader(name=h['name'], value=h['value']) for h in raw_headers],
        )

    async def fetch_sent(self, window_days: int = 7) -> List[SentEmailSummary]:
        """
        Fetch header summaries of mail sent within the last ``window_days``.

        Raises:
            ConfigurationError: Google credentials are not configured
            FetchError: Listing or fetching any message failed
        """
        after = datetime.now(timezone.utc) - timedelta(days=window_days)
        query = f"in:sent after:{after.strftime('%Y-%m-%d')}"

        try:
            listing = await self._execute(lambda s: s.users().messages().list(
                userId=self.user_id, q=query, maxResults=self.sent_page_size))
            messages = listing.get('messages') or []

            summaries = []
            for message in messages:
                if not message.get('id'):
                    continue
                msg = await self._execute(lambda s, message_id=message['id']: s.users().messages().get(
                    userId=self.user_id, id=message_id, format='metadata',
                    metadataHeaders=['Subject', 'To', 'Date']))
                if not msg.get('id'):
                    continue
                headers = (msg.get('payload') or {}).get('headers') or []
                summaries.append(SentEmailSummary(
                    id=msg['id'],
                    subject=get_header(headers, 'Subject'),
                    recipients=parse_sent_recipients(get_header(headers, 'To')),
                    sent_at=parse_date(get_header(headers, 'Date'), datetime.now(timezone.utc)),
                ))
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Error fetching sent emails: {e}")
            raise FetchError("Failed to fetch sent emails from Gmail.", details=str(e)) from e

        logger.info(f"Fetched {len(summaries)} sent email summaries")
        return summaries

    async def trash_message(self, message_id: str) -> None:
        """
        Move a message to trash.

        Raises:
            ConfigurationError: Google credentials are not configured
            ProviderActionError: NOT_FOUND, PERMISSION_DENIED or PROVIDER_ERROR
        """
        try:
            await self._execute(lambda s: s.users().messages().trash(userId=self.user_id, id=message_id))
        except ConfigurationError:
            raise
        except HttpError as e:
            status = _http_status(e)
            logger.error(f"Error trashing email with ID {message_id}: {e}")
            raise ProviderActionError.from_status(status, _trash_message_for(status), details=str(e)) from e
        except Exception as e:
            logger.error(f"Error trashing email with ID {message_id}: {e}")
            raise ProviderActionError("Failed to trash email.", details=str(e)) from e

    async def get_sender_address(self) -> str:
        """Address of the authenticated mailbox, fetched once."""
        if self._sender_address is None:
            profile = await self._execute(lambda s: s.users().getProfile(userId=self.user_id))
            self._sender_address = profile.get('emailAddress', '')
        return self._sender_address

    async def send_message(self,
                           to: str,
                           subject: str,
                           html: Optional[str] = None,
                           text: Optional[str] = None,
                           from_name: Optional[str] = None) -> str:
        """
        Send a message from the authenticated mailbox.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body
            text: Plain-text body; sent alongside ``html`` as an alternative when both are given
            from_name: Display name for the From header

        Returns:
            Gmail id of the sent message

        Raises:
            ConfigurationError: Google credentials are not configured
            ProviderActionError: The provider rejected the send
        """
        if html and text:
            message = MIMEMultipart('alternative')
            message.attach(MIMEText(text, 'plain', 'utf-8'))
            message.attach(MIMEText(html, 'html', 'utf-8'))
        elif html:
            message = MIMEText(html, 'html', 'utf-8')
        else:
            message = MIMEText(text or '', 'plain', 'utf-8')
        message['to'] = to
        message['subject'] = subject

        try:
            if from_name:
                message['from'] = formataddr((from_name, await self.get_sender_address()))
            raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode('utf-8')

            logger.info(f"Sending email to {mask_email(to)} with subject: {subject}")
            result = await self._execute(lambda s: s.users().messages().send(
                userId=self.user_id, body={'raw': raw_message}))
        except ConfigurationError:
            raise
        except HttpError as e:
            logger.error(f"Failed to send email to {mask_email(to)}: {e}")
            raise ProviderActionError.from_status(_http_status(e), "Failed to send email.", details=str(e)) from e
        except Exception as e:
            logger.error(f"Failed to send email to {mask_email(to)}: {e}")
            raise ProviderActionError("Failed to send email.", details=str(e)) from e

        message_id = result.get('id', '')
        logger.info(f"Email sent successfully, message_id: {message_id}")
        return message_id


def _http_status(error: HttpError) -> Optional[int]:
    status = getattr(error, 'status_code', None)
    if status is None and getattr(error, 'resp', None) is not None:
        status = getattr(error.resp, 'status', None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _trash_message_for(status: Optional[int]) -> str:
    if status == 404:
        return "Email not found."
    if status == 403:
        return "Permission denied. Ensure the correct Gmail API scopes are granted (e.g., gmail.modify)."
    return "Failed to trash email."
