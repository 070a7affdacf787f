"""
API endpoint tests for the Inbox Desk API.

These tests verify the users, contacts, emails, webhooks and Gmail triage endpoints
through FastAPI's TestClient. Triage and outbound email services are
replaced with mocks through dependency overrides; the CRUD endpoints run
against an in-memory database.

Testing Strategy:
- Verify CRUD flows and their error bodies
- Confirm caller identity through the User-Id header
- Test triage error mapping by error kind
- Validate the HTML analyzed-emails page
"""

import json
import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from svix.webhooks import Webhook
from unittest.mock import AsyncMock, MagicMock

from api.config import APISettings, get_settings
from api.main import app
from api.routes.gmail import is_forced_refresh
from api.services.email_service import get_email_service
from api.services.triage_service import get_triage_service
from inbox_desk.composer import CompositionError, MarkdownDraft
from inbox_desk.triage.errors import ClassificationError, ConfigurationError, FetchError, ProviderActionError
from inbox_desk.triage.models import DisplayEntry, Importance, TriageOutput
from tests.factories import make_verdict

# Create test client
client = TestClient(app)


@pytest.fixture
def mock_triage_service():
    """
    Replace the triage service dependency with a mock.

    The mock returns an empty triage result unless a test configures it.
    """
    service = MagicMock()
    service.analyze = AsyncMock(return_value=TriageOutput(
        last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc),
        report="No emails fetched to analyze.",
    ))
    service.display_rows = AsyncMock(return_value=([], 0))
    service.delete_email = AsyncMock(
        side_effect=lambda email_id: f"Email with ID: {email_id} successfully moved to trash. Cache updated.")

    app.dependency_overrides[get_triage_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_triage_service, None)


@pytest.fixture
def mock_email_service():
    """Replace the outbound email service dependency with a mock."""
    service = MagicMock()
    service.send_greeting = AsyncMock(return_value={"id": "gmail-1"})
    service.compose_and_send = AsyncMock(return_value={
        "message": "Email sent successfully",
        "subject": "Lunch?",
        "html": "<div>Hi</div>",
        "data": {"id": "gmail-2"},
    })
    service.compose_markdown = AsyncMock(return_value=MarkdownDraft(subject="Lunch?", markdown_content="# Lunch"))
    service.list_emails = AsyncMock(return_value=[])

    app.dependency_overrides[get_email_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture
def created_user(test_db):
    """Create a user through the API and return its payload."""
    response = client.post("/users", json={"email": "owner@example.com", "name": "Owner"})
    assert response.status_code == 201
    return response.json()["user"]


def identity(user):
    return {"User-Id": user["identity_token"]}


# Monitoring

def test_root_greeting():
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello, welcome to the Inbox Desk API!"


def test_health_check():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_unknown_route_uses_error_response():
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error_code"] == "HTTP_404"


# Users

class TestUserEndpoints:
    """Tests for /users."""

    def test_create_user(self, created_user):
        assert created_user["email"] == "owner@example.com"
        assert created_user["identity_token"]
        assert created_user["api_key"]

    def test_create_duplicate_user(self, created_user):
        response = client.post("/users", json={"email": "owner@example.com", "name": "Again"})

        assert response.status_code == 409
        assert response.json() == {"error": "Email already exists"}

    def test_create_user_validation(self, test_db):
        response = client.post("/users", json={"email": "not-an-email", "name": ""})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_list_and_get(self, created_user):
        listed = client.get("/users").json()["users"]
        fetched = client.get(f"/users/{created_user['id']}")

        assert [u["id"] for u in listed] == [created_user["id"]]
        assert fetched.status_code == 200
        assert fetched.json()["user"]["email"] == "owner@example.com"

    def test_get_missing_user(self, test_db):
        response = client.get("/users/999")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_update_user(self, created_user):
        response = client.put(f"/users/{created_user['id']}", json={"email": "new@example.com", "name": "New"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "new@example.com"

    def test_update_user_email_clash(self, created_user):
        other = client.post("/users", json={"email": "other@example.com", "name": "Other"}).json()["user"]

        response = client.put(f"/users/{other['id']}", json={"email": "owner@example.com", "name": "Other"})

        assert response.status_code == 409
        assert response.json() == {"error": "Email already exists"}

    def test_update_missing_user(self, test_db):
        response = client.put("/users/999", json={"email": "x@example.com", "name": "X"})

        assert response.status_code == 404

    def test_delete_user(self, created_user):
        response = client.delete(f"/users/{created_user['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        assert client.delete(f"/users/{created_user['id']}").status_code == 404


# Contacts and notes

class TestContactEndpoints:
    """Tests for /contacts."""

    def test_requires_known_user(self, test_db):
        missing = client.get("/contacts")
        unknown = client.get("/contacts", headers={"User-Id": "nope"})

        assert missing.status_code == 404
        assert missing.json() == {"error": "User not found"}
        assert unknown.status_code == 404

    def test_contact_lifecycle(self, created_user):
        headers = identity(created_user)

        created = client.post("/contacts", json={"name": "Bob", "email": "bob@example.com"}, headers=headers)
        assert created.status_code == 201
        contact_id = created.json()["contact"]["id"]

        listed = client.get("/contacts", headers=headers)
        assert [c["id"] for c in listed.json()["contacts"]] == [contact_id]

        updated = client.put(f"/contacts/{contact_id}", json={"name": "Robert"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["contact"]["name"] == "Robert"
        assert updated.json()["contact"]["email"] == "bob@example.com"

        note = client.post(f"/contacts/{contact_id}/notes", json={"title": "Met", "content": "At the fair"},
                           headers=headers)
        assert note.status_code == 201
        note_id = note.json()["note"]["id"]

        detail = client.get(f"/contacts/{contact_id}", headers=headers).json()
        assert detail["contact"]["name"] == "Robert"
        assert [n["id"] for n in detail["notes"]] == [note_id]

        deleted_note = client.delete(f"/contacts/{contact_id}/notes/{note_id}", headers=headers)
        assert deleted_note.json() == {"message": "Note deleted successfully"}

        deleted = client.delete(f"/contacts/{contact_id}", headers=headers)
        assert deleted.json() == {"message": "Contact deleted successfully"}
        assert client.get(f"/contacts/{contact_id}", headers=headers).status_code == 404

    def test_contacts_are_private(self, created_user):
        other = client.post("/users", json={"email": "other@example.com", "name": "Other"}).json()["user"]
        contact_id = client.post("/contacts", json={"name": "Bob"}, headers=identity(created_user)).json()["contact"]["id"]

        response = client.get(f"/contacts/{contact_id}", headers=identity(other))

        assert response.status_code == 404
        assert response.json() == {"error": "Contact not found"}

    def test_note_on_missing_contact(self, created_user):
        response = client.post("/contacts/999/notes", json={"content": "x"}, headers=identity(created_user))

        assert response.status_code == 404
        assert response.json() == {"error": "Contact not found"}

    def test_delete_missing_note(self, created_user):
        contact_id = client.post("/contacts", json={"name": "Bob"}, headers=identity(created_user)).json()["contact"]["id"]

        response = client.delete(f"/contacts/{contact_id}/notes/999", headers=identity(created_user))

        assert response.status_code == 404
        assert response.json() == {"error": "Note not found"}


# Outbound email

class TestEmailEndpoints:
    """Tests for /emails."""

    def test_send_greeting(self, mock_email_service, test_db):
        response = client.post("/emails", json={"email": "to@example.com", "firstName": "Ana", "subject": "Hi"})

        assert response.status_code == 200
        assert response.json() == {"id": "gmail-1"}
        user, to, first_name, subject = mock_email_service.send_greeting.await_args.args
        assert user is None
        assert (to, first_name, subject) == ("to@example.com", "Ana", "Hi")

    def test_send_greeting_failure(self, mock_email_service, test_db):
        mock_email_service.send_greeting.side_effect = ProviderActionError("Failed to send email.")

        response = client.post("/emails", json={"email": "to@example.com", "firstName": "Ana", "subject": "Hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "Failed to send email."}

    def test_compose(self, mock_email_service, created_user):
        response = client.post(
            "/emails/compose",
            json={"email": "to@example.com", "instructions": "Invite to lunch", "fromName": "Claire"},
            headers=identity(created_user),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Email sent successfully"
        args = mock_email_service.compose_and_send.await_args
        assert args.args[0]["id"] == created_user["id"]
        assert args.kwargs["from_name"] == "Claire"

    def test_compose_failure(self, mock_email_service, test_db):
        mock_email_service.compose_and_send.side_effect = CompositionError("model unavailable")

        response = client.post("/emails/compose", json={"email": "to@example.com", "instructions": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "model unavailable"}

    def test_compose_markdown(self, mock_email_service, test_db):
        response = client.post("/emails/compose/md", json={"email": "to@example.com", "instructions": "x"})

        assert response.status_code == 200
        assert response.json() == {"subject": "Lunch?", "markdown_content": "# Lunch"}

    def test_email_log_requires_user(self, mock_email_service, test_db):
        assert client.get("/emails").status_code == 404

    def test_email_log(self, mock_email_service, created_user):
        response = client.get("/emails", headers=identity(created_user))

        assert response.status_code == 200
        assert response.json() == {"emails": []}


# Gmail triage

@pytest.mark.parametrize("value,expected", [
    ("true", True),
    ("True", False),
    ("1", False),
    ("", False),
    (None, False),
])
def test_only_literal_true_forces_refresh(value, expected):
    assert is_forced_refresh(value) is expected


class TestTriageEndpoints:
    """Tests for /gmail."""

    def test_analyze_emails(self, mock_triage_service):
        response = client.get("/gmail/analyze-emails")

        assert response.status_code == 200
        body = response.json()
        assert body["report"] == "No emails fetched to analyze."
        assert body["num_emails"] == 0
        mock_triage_service.analyze.assert_awaited_once_with(False)

    def test_analyze_emails_refresh(self, mock_triage_service):
        client.get("/gmail/analyze-emails?refresh=true")
        client.get("/gmail/analyze-emails?refresh=TRUE")

        assert [c.args for c in mock_triage_service.analyze.await_args_list] == [(True,), (False,)]

    def test_analyze_emails_serialises_sender_as_from(self, mock_triage_service):
        row = DisplayEntry.from_verdict(make_verdict("ghost"))
        mock_triage_service.analyze.return_value = TriageOutput(
            last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc),
            report="",
            analyzed_emails=[row],
            num_emails=1,
        )

        body = client.get("/gmail/analyze-emails").json()

        assert body["analyzed_emails"][0]["from"] == "Unknown (AI Mismatch)"

    @pytest.mark.parametrize("error", [
        FetchError("Failed to fetch emails from Gmail."),
        ClassificationError("AI generation failed: bad json"),
        ConfigurationError("Configuration error: GROQ_API_KEY is not set. AI analysis cannot proceed."),
    ])
    def test_analyze_emails_failure(self, mock_triage_service, error):
        mock_triage_service.analyze.side_effect = error

        response = client.get("/gmail/analyze-emails")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze emails.", "details": error.message}

    def test_analyze_html_no_emails(self, mock_triage_service):
        response = client.get("/gmail/analyze-emails-html")

        assert response.status_code == 200
        assert "No Emails Found" in response.text

    def test_analyze_html_rows(self, mock_triage_service):
        rows = [
            DisplayEntry.from_verdict(make_verdict("low", importance=Importance.LOW)),
            DisplayEntry.from_verdict(make_verdict("high", importance=Importance.HIGH, reason="<b>urgent</b>")),
        ]
        mock_triage_service.display_rows.return_value = (rows, 2)

        response = client.get("/gmail/analyze-emails-html?refresh=true")

        assert response.status_code == 200
        html = response.text
        assert 'id="email-count">2<' in html
        assert html.index("email-row-high") < html.index("email-row-low")
        assert "&lt;b&gt;urgent&lt;/b&gt;" in html
        assert "/gmail/delete/" in html
        mock_triage_service.display_rows.assert_awaited_once_with(True)

    def test_analyze_html_error_page(self, mock_triage_service):
        mock_triage_service.display_rows.side_effect = FetchError("Failed to fetch emails from Gmail.")

        response = client.get("/gmail/analyze-emails-html")

        assert response.status_code == 500
        assert "Error Analyzing Emails" in response.text
        assert "Failed to fetch emails from Gmail." in response.text

    def test_delete_email(self, mock_triage_service):
        response = client.post("/gmail/delete/m1")

        assert response.status_code == 200
        assert response.json() == {"message": "Email with ID: m1 successfully moved to trash. Cache updated."}

    @pytest.mark.parametrize("status_code", [404, 403, 500])
    def test_delete_email_provider_errors(self, mock_triage_service, status_code):
        error = ProviderActionError.from_status(status_code, "Trash failed.", details="provider said no")
        mock_triage_service.delete_email.side_effect = error

        response = client.post("/gmail/delete/m1")

        assert response.status_code == status_code
        assert response.json() == {"error": "Trash failed.", "details": "provider said no"}


# Webhooks

WEBHOOK_SECRET = "whsec_MfKQ9r8GKYqrTwjUPD8ILPZIo2LaLaSw"


@pytest.fixture
def webhook_settings():
    """Configure the svix signing secret for the webhook route."""
    app.dependency_overrides[get_settings] = lambda: APISettings(SIGNING_SECRET=WEBHOOK_SECRET)
    yield
    app.dependency_overrides.pop(get_settings, None)


def user_created_event(user_id="user_2abc", email="clerk@example.com"):
    return json.dumps({
        "type": "user.created",
        "data": {
            "id": user_id,
            "email_addresses": [{"id": "idn_1", "email_address": email}],
            "first_name": "Ada",
            "last_name": "Lovelace",
        },
    })


def signed_headers(body, msg_id="msg_1", secret=WEBHOOK_SECRET):
    timestamp = datetime.now(timezone.utc)
    return {
        "svix-id": msg_id,
        "svix-timestamp": str(int(timestamp.timestamp())),
        "svix-signature": Webhook(secret).sign(msg_id, timestamp, body),
        "Content-Type": "application/json",
    }


class TestWebhookEndpoints:
    """Tests for /webhooks."""

    def test_missing_svix_headers(self, webhook_settings, test_db):
        response = client.post("/webhooks", content=user_created_event())

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Error: Missing svix headers"}

    def test_bad_signature(self, webhook_settings, test_db):
        body = user_created_event()
        headers = signed_headers(body, secret="whsec_" + "QUJDREVGR0hJSktMTU5PUFFSU1RVVldY")

        response = client.post("/webhooks", content=body, headers=headers)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert client.get("/users").json()["users"] == []

    def test_tampered_body(self, webhook_settings, test_db):
        headers = signed_headers(user_created_event())

        response = client.post("/webhooks", content=user_created_event(email="other@example.com"), headers=headers)

        assert response.status_code == 400

    def test_user_created_registers_user(self, webhook_settings, test_db):
        body = user_created_event()

        response = client.post("/webhooks", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User connected"}
        users = client.get("/users").json()["users"]
        assert len(users) == 1
        assert users[0]["email"] == "clerk@example.com"
        assert users[0]["name"] == "Ada Lovelace"
        assert users[0]["identity_token"] == "user_2abc"

        # The issued identity token authenticates the User-Id header
        contacts = client.get("/contacts", headers={"User-Id": "user_2abc"})
        assert contacts.status_code == 200

    def test_user_created_is_idempotent(self, webhook_settings, test_db):
        body = user_created_event()
        client.post("/webhooks", content=body, headers=signed_headers(body, msg_id="msg_1"))

        response = client.post("/webhooks", content=body, headers=signed_headers(body, msg_id="msg_2"))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User connected"}
        assert len(client.get("/users").json()["users"]) == 1

    def test_other_events_are_acknowledged(self, webhook_settings, test_db):
        body = json.dumps({"type": "session.created", "data": {"id": "sess_1"}})

        response = client.post("/webhooks", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Webhook received"}
        assert client.get("/users").json()["users"] == []

    def test_missing_signing_secret(self, test_db):
        app.dependency_overrides[get_settings] = lambda: APISettings(SIGNING_SECRET=None)
        try:
            body = user_created_event()
            response = client.post("/webhooks", content=body, headers=signed_headers(body))
        finally:
            app.dependency_overrides.pop(get_settings, None)

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook signing secret is not configured"}
