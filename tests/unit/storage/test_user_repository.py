"""
Unit tests for user repository functionality.

These tests validate user creation, lookup by id and identity token,
updates and deletion against an in-memory database.
"""

import pytest
from unittest.mock import patch, MagicMock

from inbox_desk.storage.models import ApiKey, User
from inbox_desk.storage.user_repository import UserRepository, generate_identity_token


@pytest.mark.asyncio
class TestUserRepository:
    """Test suite for UserRepository class."""

    async def test_create_user_success(self, test_db):
        """Test successful user creation."""
        user = await UserRepository.create_user("new@example.com", "New User")

        assert user["id"] is not None
        assert user["email"] == "new@example.com"
        assert user["name"] == "New User"
        assert len(user["identity_token"]) == 32
        assert user["api_key"]

        with test_db() as session:
            key = session.query(ApiKey).filter(ApiKey.user_id == user["id"]).one()
            assert key.key == user["api_key"]

    async def test_create_user_duplicate_email(self, test_db):
        """Test creating a user with an email that already exists."""
        await UserRepository.create_user("dup@example.com", "First")

        with pytest.raises(ValueError) as excinfo:
            await UserRepository.create_user("dup@example.com", "Second")

        assert "already exists" in str(excinfo.value)

    async def test_create_user_with_supplied_identity_token(self, test_db):
        user = await UserRepository.create_user("hook@example.com", "Hook", identity_token="user_2abc")

        assert user["identity_token"] == "user_2abc"
        assert user["api_key"]
        assert (await UserRepository.get_user_by_identity_token("user_2abc"))["id"] == user["id"]

    async def test_list_users(self, test_db):
        await UserRepository.create_user("a@example.com", "A")
        await UserRepository.create_user("b@example.com", "B")

        users = await UserRepository.list_users()

        assert [u["email"] for u in users] == ["a@example.com", "b@example.com"]

    async def test_get_user_by_id(self, test_db):
        created = await UserRepository.create_user("a@example.com", "A")

        user = await UserRepository.get_user_by_id(created["id"])

        assert user["email"] == "a@example.com"
        assert "api_key" not in user
        assert await UserRepository.get_user_by_id(999) is None

    async def test_get_user_by_identity_token(self, test_db):
        created = await UserRepository.create_user("a@example.com", "A")

        user = await UserRepository.get_user_by_identity_token(created["identity_token"])

        assert user["id"] == created["id"]
        assert await UserRepository.get_user_by_identity_token("unknown") is None

    @patch('inbox_desk.storage.user_repository.get_db_session')
    async def test_empty_identity_token_skips_query(self, mock_get_db_session):
        """A missing header never reaches the database."""
        assert await UserRepository.get_user_by_identity_token(None) is None
        assert await UserRepository.get_user_by_identity_token("") is None
        mock_get_db_session.assert_not_called()

    async def test_update_user(self, test_db):
        created = await UserRepository.create_user("a@example.com", "A")

        updated = await UserRepository.update_user(created["id"], "renamed@example.com", "Renamed")

        assert updated["email"] == "renamed@example.com"
        assert updated["name"] == "Renamed"

    async def test_update_user_not_found(self, test_db):
        assert await UserRepository.update_user(42, "x@example.com", "X") is None

    async def test_update_user_email_clash(self, test_db):
        await UserRepository.create_user("taken@example.com", "Taken")
        other = await UserRepository.create_user("other@example.com", "Other")

        with pytest.raises(ValueError) as excinfo:
            await UserRepository.update_user(other["id"], "taken@example.com", "Other")

        assert str(excinfo.value) == "Email already exists"

    async def test_update_user_keeps_own_email(self, test_db):
        created = await UserRepository.create_user("a@example.com", "A")

        updated = await UserRepository.update_user(created["id"], "a@example.com", "New Name")

        assert updated["name"] == "New Name"

    async def test_delete_user(self, test_db):
        created = await UserRepository.create_user("a@example.com", "A")

        assert await UserRepository.delete_user(created["id"]) is True
        assert await UserRepository.delete_user(created["id"]) is False

        with test_db() as session:
            assert session.query(User).count() == 0
            assert session.query(ApiKey).count() == 0

    @patch('inbox_desk.storage.user_repository.get_db_session')
    async def test_database_errors_propagate(self, mock_get_db_session):
        """Test that session errors are not swallowed."""
        mock_session = MagicMock()
        mock_session.query.side_effect = RuntimeError("Database error")
        mock_get_db_session.return_value.__enter__.return_value = mock_session

        with pytest.raises(RuntimeError):
            await UserRepository.list_users()


def test_identity_tokens_are_unique():
    assert generate_identity_token() != generate_identity_token()
