"""
Shared test fixtures.

Provides an in-memory SQLite database wired into the storage layer.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inbox_desk.storage.models import Base


@pytest.fixture
def test_db():
    """Fresh in-memory database; every get_db_session() call uses it."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with patch("inbox_desk.storage.database.SessionLocal", testing_session):
        yield testing_session

    Base.metadata.drop_all(bind=engine)
    engine.dispose()
