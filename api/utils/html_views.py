"""
HTML views for the analyzed-emails page.

Every interpolated value is escaped; row ids reach the delete script via a
data attribute rather than inline script text.
"""

from html import escape
from typing import List

from inbox_desk.triage.models import DisplayEntry

STYLES = """
    <style>
      body { font-family: sans-serif; margin: 20px; background-color: #f4f4f9; color: #333; }
      h1 { color: #333; border-bottom: 2px solid #ccc; padding-bottom: 10px; }
      table { width: 100%; border-collapse: collapse; margin-top: 20px; box-shadow: 0 2px 3px rgba(0,0,0,0.1); }
      th, td { border: 1px solid #ddd; padding: 10px; text-align: left; }
      th { background-color: #e9e9e9; color: #333; }
      tr:nth-child(even) { background-color: #f9f9f9; }
      tr:hover { background-color: #f1f1f1; }
      tr.orphan { color: #888; font-style: italic; }
      .button-delete { background-color: #f44336; color: white; padding: 5px 10px; border: none;
                       border-radius: 4px; cursor: pointer; font-size: 14px; }
      .button-delete:hover { background-color: #da190b; }
      .topics-list { list-style-type: disc; padding-left: 20px; margin: 0; }
      .topics-list li { margin-bottom: 4px; }
      .button-refresh { background-color: #4CAF50; color: white; padding: 10px 15px; margin-bottom: 20px;
                        border: none; border-radius: 4px; cursor: pointer; font-size: 16px; }
      .button-refresh:hover { background-color: #45a049; }
    </style>
"""

DELETE_SCRIPT = """
    <script>
      async function deleteEmail(emailId) {
        if (!confirm('Are you sure you want to delete email ' + emailId + '? This action cannot be undone.')) {
          return;
        }
        try {
          const response = await fetch('/gmail/delete/' + encodeURIComponent(emailId), { method: 'POST' });
          if (response.ok) {
            const row = document.getElementById('email-row-' + emailId);
            if (row) {
              row.remove();
            }
            const emailCountElement = document.getElementById('email-count');
            if (emailCountElement) {
              const currentCount = parseInt(emailCountElement.innerText, 10);
              if (!isNaN(currentCount)) {
                emailCountElement.innerText = (currentCount - 1).toString();
              }
            }
          } else {
            const errorResult = await response.json();
            alert('Failed to delete email: ' + (errorResult.details || response.statusText));
          }
        } catch (error) {
          console.error('Error deleting email:', error);
          alert('An error occurred while trying to delete the email.');
        }
      }
    </script>
"""

REFRESH_BUTTON = """<button class="button-refresh" onclick="window.location.href='?refresh=true'">Refresh Data</button>"""


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _topics_cell(topics: List[str]) -> str:
    if not topics:
        return "N/A"
    items = "".join(f"<li>{escape(topic)}</li>" for topic in topics)
    return f'<ul class="topics-list">{items}</ul>'


def _row(entry: DisplayEntry) -> str:
    email_id = escape(entry.id)
    row_class = ' class="orphan"' if entry.orphan else ""
    return (
        f'<tr id="email-row-{email_id}"{row_class}>'
        f"<td>{email_id}</td>"
        f"<td>{escape(entry.sender)}</td>"
        f"<td>{escape(entry.subject)}</td>"
        f"<td>{escape(entry.importance.value.upper())}</td>"
        f"<td>{escape(entry.reason)}</td>"
        f"<td>{_yes_no(entry.needs_response)}</td>"
        f"<td>{_yes_no(entry.time_sensitive)}</td>"
        f"<td>{_topics_cell(entry.topics)}</td>"
        f'<td><button class="button-delete" data-email-id="{email_id}" '
        f'onclick="deleteEmail(this.dataset.emailId)">Delete</button></td>'
        "</tr>"
    )


def render_analyzed_emails_page(entries: List[DisplayEntry]) -> str:
    """Table of analyzed emails with per-row delete buttons."""
    rows = "\n".join(_row(entry) for entry in entries)
    empty_note = "<p>No emails matching criteria to display.</p>" if not entries else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Analyzed Emails</title>
  {STYLES}
  {DELETE_SCRIPT}
</head>
<body>
  {REFRESH_BUTTON}
  <h1>Analyzed Emails (<span id="email-count">{len(entries)}</span>)</h1>
  <table>
    <thead>
      <tr>
        <th>ID</th><th>From</th><th>Subject</th><th>Importance</th><th>Reason</th>
        <th>Needs Response</th><th>Time Sensitive</th><th>Topics</th><th>Actions</th>
      </tr>
    </thead>
    <tbody>
{rows}
    </tbody>
  </table>
  {empty_note}
</body>
</html>"""


def render_no_emails_page(window_hours: int = 24) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><title>Analyzed Emails</title>{STYLES}</head>
<body>
  {REFRESH_BUTTON}
  <h1>No Emails Found</h1>
  <p>No emails were found in your inbox for the last {window_hours} hours, or the cache is empty. Try refreshing the data.</p>
</body>
</html>"""


def render_error_page(message: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Error</title>
  <style>
    body {{ font-family: sans-serif; margin: 20px; background-color: #fdd; color: #900; }}
    h1 {{ color: #c00; }}
    pre {{ background-color: #fff0f0; border: 1px solid #ffaaaa; padding: 10px; white-space: pre-wrap; word-wrap: break-word; }}
  </style>
</head>
<body>
  <h1>Error Analyzing Emails</h1>
  <p>Sorry, something went wrong while analyzing the emails:</p>
  <pre>{escape(message)}</pre>
  <p><a href="/gmail/analyze-emails-html">Try again</a></p>
</body>
</html>"""
