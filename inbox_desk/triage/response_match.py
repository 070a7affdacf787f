"""
Response-Match Filter

Decides whether an unread email has already been answered by comparing its
sender and subject against recently sent mail. Pure functions, no I/O.
"""

import re
from typing import Iterable

from .models import InboundEmail, SentEmailSummary

_ANGLE_ADDRESS = re.compile(r"<(.+?)>")
_REPLY_PREFIX = re.compile(r"^(?:re|fwd):\s*", re.IGNORECASE)


def extract_sender_address(from_field: str) -> str:
    """Return the address inside ``<...>`` lowercased, else the whole field lowercased."""
    match = _ANGLE_ADDRESS.search(from_field or "")
    if match:
        return match.group(1).lower()
    return (from_field or "").lower()


def normalize_subject(subject: str) -> str:
    """Lowercase a subject and strip a single leading ``re:``/``fwd:`` prefix."""
    return _REPLY_PREFIX.sub("", (subject or "").lower(), count=1)


def is_already_responded(email: InboundEmail, sent_summaries: Iterable[SentEmailSummary]) -> bool:
    """
    Check whether a sent message looks like a reply to ``email``.

    A sent summary matches when the email's sender is among its recipients
    and the normalised subjects are equal or one contains the other. An empty
    sent subject therefore matches any subject.
    """
    sender = extract_sender_address(email.sender)
    if not sender:
        return False

    subject = normalize_subject(email.subject)
    for sent in sent_summaries:
        if sender not in sent.recipients:
            continue
        sent_subject = normalize_subject(sent.subject)
        if subject == sent_subject or sent_subject in subject or subject in sent_subject:
            return True
    return False
