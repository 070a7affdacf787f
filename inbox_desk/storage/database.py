"""
Database Configuration and Connection Management

Provides engine setup and session management for the CRUD surface and the
database-backed triage cache.

Design Considerations:
- Connection pooling for file-backed databases
- SQLAlchemy session lifecycle: commit on success, rollback on error, always close
- SQLite by default, any SQLAlchemy URL via DATABASE_URL
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from inbox_desk.storage.models import Base

logger = logging.getLogger(__name__)

# Database configuration
DB_PATH = os.getenv("DATABASE_URL", "sqlite:///data/inbox_desk.db")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))

_pool_options = {} if ":memory:" in DB_PATH else {
    "pool_size": DB_POOL_SIZE,
    "max_overflow": DB_MAX_OVERFLOW,
    "pool_timeout": DB_POOL_TIMEOUT,
}

engine = create_engine(
    DB_PATH,
    **_pool_options,
    connect_args={"check_same_thread": False} if DB_PATH.startswith("sqlite") else {},
    echo=os.getenv("SQL_ECHO", "False").lower() == "true"
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _ensure_sqlite_directory(url: str) -> None:
    prefix = "sqlite:///"
    if url.startswith(prefix) and ":memory:" not in url:
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


def init_db() -> None:
    """
    Create all tables that do not exist yet.

    Raises:
        RuntimeError: If schema creation fails
    """
    try:
        logger.info("Initializing database schema")
        _ensure_sqlite_directory(DB_PATH)
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise RuntimeError(f"Failed to initialize database: {str(e)}") from e


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Provide a database session with commit/rollback and guaranteed cleanup.

    Yields:
        SQLAlchemy session for database operations

    Raises:
        Exception: Re-raises any exception raised while the session is in use
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database session error: {str(e)}")
        raise
    finally:
        session.close()
