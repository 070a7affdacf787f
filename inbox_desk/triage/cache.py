"""
Triage Cache

Key-value storage for the two triage cache slots (fetched emails and
classifier verdicts) behind an injectable store interface.

Design Considerations:
- Stores raise CacheError; TriageCache logs it and behaves as a miss or no-op
- Every write re-applies the full TTL
- Slot values are full JSON arrays, rewritten as a whole
- Entries that fail to deserialise are treated as misses
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pydantic import TypeAdapter, ValidationError

from inbox_desk.config import TRIAGE_CONFIG
from inbox_desk.storage.database import get_db_session
from inbox_desk.storage.models import CacheEntry

from .errors import CacheError
from .models import ClassificationVerdict, InboundEmail

logger = logging.getLogger(__name__)

_CACHE_CONFIG = TRIAGE_CONFIG["cache"]

EMAILS_KEY = _CACHE_CONFIG["emails_key"]
VERDICTS_KEY = _CACHE_CONFIG["verdicts_key"]

_emails_adapter = TypeAdapter(List[InboundEmail])
_verdicts_adapter = TypeAdapter(List[ClassificationVerdict])


class CacheStore(Protocol):
    """Minimal async key-value store with per-write TTL."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class InMemoryCacheStore:
    """Process-local store with monotonic-clock expiry."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class DatabaseCacheStore:
    """
    Store backed by the ``cache_entries`` table.

    Session work is blocking and runs in a worker thread. Expired rows read
    as misses and are removed on read.
    """

    async def get(self, key: str) -> Optional[Any]:
        return await self._run(self._get_sync, key)

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._run(self._put_sync, key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._run(self._delete_sync, key)

    @staticmethod
    async def _run(func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            raise CacheError(f"Cache operation failed: {e}") from e

    @staticmethod
    def _get_sync(key: str) -> Optional[Any]:
        with get_db_session() as session:
            entry = session.get(CacheEntry, key)
            if entry is None:
                return None
            if entry.expires_at <= datetime.utcnow():
                session.delete(entry)
                return None
            return entry.value

    @staticmethod
    def _put_sync(key: str, value: Any, ttl_seconds: int) -> None:
        expires_at = datetime.utcnow() + timedelta(seconds=ttl_seconds)
        with get_db_session() as session:
            entry = session.get(CacheEntry, key)
            if entry is None:
                session.add(CacheEntry(key=key, value=value, expires_at=expires_at))
            else:
                entry.value = value
                entry.expires_at = expires_at

    @staticmethod
    def _delete_sync(key: str) -> None:
        with get_db_session() as session:
            session.query(CacheEntry).filter(CacheEntry.key == key).delete(synchronize_session=False)


class TriageCache:
    """
    Typed access to the fetched-email and verdict slots.

    Attributes:
        store: Underlying CacheStore
        ttl_seconds: TTL applied on every write
    """

    def __init__(self, store: CacheStore, ttl_seconds: int = _CACHE_CONFIG["ttl_seconds"]):
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def get_emails(self) -> Optional[List[InboundEmail]]:
        """Read the email slot; None on miss, store failure or bad payload."""
        return await self._read(EMAILS_KEY, _emails_adapter)

    async def put_emails(self, emails: List[InboundEmail]) -> bool:
        payload = _emails_adapter.dump_python(emails, mode="json", by_alias=True)
        return await self._write(EMAILS_KEY, payload)

    async def get_verdicts(self) -> Optional[List[ClassificationVerdict]]:
        """Read the verdict slot; None on miss, store failure or bad payload."""
        return await self._read(VERDICTS_KEY, _verdicts_adapter)

    async def put_verdicts(self, verdicts: List[ClassificationVerdict]) -> bool:
        payload = _verdicts_adapter.dump_python(verdicts, mode="json")
        return await self._write(VERDICTS_KEY, payload)

    async def clear_verdicts(self) -> bool:
        """Drop the verdict slot; False when the store failed."""
        try:
            await self.store.delete(VERDICTS_KEY)
        except CacheError as e:
            logger.error(f"Error clearing '{VERDICTS_KEY}' from cache: {e}")
            return False
        logger.info(f"Cleared cache '{VERDICTS_KEY}'")
        return True

    async def _read(self, key: str, adapter: TypeAdapter) -> Optional[list]:
        try:
            raw = await self.store.get(key)
        except CacheError as e:
            logger.error(f"Error reading '{key}' from cache: {e}")
            return None

        if raw is None:
            logger.info(f"No data found in cache for '{key}' or cache expired")
            return None

        try:
            value = adapter.validate_python(raw)
        except ValidationError as e:
            logger.error(f"Discarding malformed cache entry '{key}': {e}")
            return None

        logger.info(f"Loaded {len(value)} items from cache '{key}'")
        return value

    async def _write(self, key: str, payload: list) -> bool:
        try:
            await self.store.put(key, payload, self.ttl_seconds)
        except CacheError as e:
            logger.error(f"Error writing '{key}' to cache: {e}")
            return False
        logger.info(f"Stored {len(payload)} items in cache '{key}' (TTL {self.ttl_seconds}s)")
        return True
