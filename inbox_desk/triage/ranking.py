"""
Triage ranking and report rendering.

Orders the needs-response entries, orders the display rows for the HTML
view, and renders the plain-text report.
"""

from datetime import datetime
from typing import List

from inbox_desk.config import TRIAGE_CONFIG

from .models import DisplayEntry, TriageEntry

_REPORT_CONFIG = TRIAGE_CONFIG["report"]

BANNER = "=" * 50
DIVIDER = "-" * 50
EMPTY_REPORT_LINE = "No emails requiring immediate response were found."


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, appending ``...`` only when something was cut."""
    text = text or ""
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def rank_needs_response(entries: List[TriageEntry]) -> List[TriageEntry]:
    """
    Order entries for the report.

    Not-yet-responded first, then time-sensitive first, then by importance
    (high, medium, low). The sort is stable, so ties keep their input order.
    """
    return sorted(
        entries,
        key=lambda entry: (
            entry.already_responded,
            not entry.analysis.time_sensitive,
            entry.analysis.importance.severity,
        ),
    )


def sort_for_display(entries: List[DisplayEntry]) -> List[DisplayEntry]:
    """Order display rows by importance, then time-sensitive first."""
    return sorted(entries, key=lambda entry: (entry.importance.severity, not entry.time_sensitive))


def render_report(entries: List[TriageEntry], generated_at: datetime) -> str:
    """Render ranked entries as the plain-text triage report."""
    report = f"{BANNER}\nEMAILS REQUIRING RESPONSE\nGenerated on: {generated_at.isoformat()}\n{BANNER}\n\n"

    if not entries:
        return report + f"{EMPTY_REPORT_LINE}\n\n"

    for entry in entries:
        verdict = entry.analysis
        report += f"Subject: {entry.subject}\n"
        report += f"From: {entry.sender}\n"
        report += f"Received: {entry.received_at.isoformat()}\n"
        report += f"Importance: {verdict.importance.value.upper()}\n"
        report += f"Time Sensitive: {'YES' if verdict.time_sensitive else 'No'}\n"
        report += f"Topics: {', '.join(verdict.topics)}\n"
        report += f"Reason: {verdict.reason}\n"
        if entry.already_responded:
            report += "STATUS: ALREADY RESPONDED\n"
        report += f"Preview: {entry.body[:_REPORT_CONFIG['preview_chars']]}...\n\n"
        report += f"{DIVIDER}\n\n"
    return report
