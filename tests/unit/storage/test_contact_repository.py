"""
Unit tests for the contact, note and email log repositories.
"""

import pytest
import pytest_asyncio

from inbox_desk.storage.contact_repository import ContactRepository
from inbox_desk.storage.email_repository import EmailRepository
from inbox_desk.storage.models import Note
from inbox_desk.storage.user_repository import UserRepository


@pytest_asyncio.fixture
async def owner(test_db):
    return await UserRepository.create_user("owner@example.com", "Owner")


@pytest_asyncio.fixture
async def stranger(test_db):
    return await UserRepository.create_user("stranger@example.com", "Stranger")


@pytest.mark.asyncio
class TestContactRepository:
    """Test suite for ContactRepository."""

    async def test_create_and_list(self, owner, stranger):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob", "email": "bob@example.com"})
        await ContactRepository.create_contact(stranger["id"], {"name": "Eve"})

        contacts = await ContactRepository.list_contacts(owner["id"])

        assert [c["id"] for c in contacts] == [contact["id"]]
        assert contacts[0]["email"] == "bob@example.com"

    async def test_get_contact_is_scoped_to_owner(self, owner, stranger):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob"})

        assert await ContactRepository.get_contact(stranger["id"], contact["id"]) is None

        result = await ContactRepository.get_contact(owner["id"], contact["id"])
        assert result["contact"]["name"] == "Bob"
        assert result["notes"] == []

    async def test_update_only_given_fields(self, owner):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob", "phone": "123"})

        updated = await ContactRepository.update_contact(owner["id"], contact["id"], {"name": "Robert"})

        assert updated["name"] == "Robert"
        assert updated["phone"] == "123"

    async def test_update_not_owned(self, owner, stranger):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob"})

        assert await ContactRepository.update_contact(stranger["id"], contact["id"], {"name": "X"}) is None

    async def test_notes(self, owner, stranger):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob"})

        note = await ContactRepository.add_note(owner["id"], contact["id"], "Met at", "Conference")
        assert await ContactRepository.add_note(stranger["id"], contact["id"], None, "Sneaky") is None

        result = await ContactRepository.get_contact(owner["id"], contact["id"])
        assert [n["id"] for n in result["notes"]] == [note["id"]]

        assert await ContactRepository.delete_note(stranger["id"], contact["id"], note["id"]) is False
        assert await ContactRepository.delete_note(owner["id"], contact["id"], note["id"]) is True
        assert await ContactRepository.delete_note(owner["id"], contact["id"], note["id"]) is False

    async def test_delete_contact_removes_notes(self, owner, test_db):
        contact = await ContactRepository.create_contact(owner["id"], {"name": "Bob"})
        await ContactRepository.add_note(owner["id"], contact["id"], None, "First")
        await ContactRepository.add_note(owner["id"], contact["id"], None, "Second")

        assert await ContactRepository.delete_contact(owner["id"], contact["id"]) is True

        with test_db() as session:
            assert session.query(Note).count() == 0
        assert await ContactRepository.get_contact(owner["id"], contact["id"]) is None
        assert await ContactRepository.delete_contact(owner["id"], contact["id"]) is False


@pytest.mark.asyncio
class TestEmailRepository:
    """Test suite for EmailRepository."""

    async def test_record_and_list_newest_first(self, owner):
        first = await EmailRepository.record_email(owner["id"], "Owner", "a@example.com", "One", "<div>1</div>")
        second = await EmailRepository.record_email(owner["id"], "Owner", "b@example.com", "Two", "<div>2</div>")
        await EmailRepository.record_email(None, "Anon", "c@example.com", "Three", "<div>3</div>")

        emails = await EmailRepository.list_emails(owner["id"])

        assert [e["id"] for e in emails] == [second["id"], first["id"]]
        assert emails[0]["to_address"] == "b@example.com"
