"""
In-process KeyValueStore with TTL support.

Serves both as the single-process fallback backend (STORE_BACKEND=memory)
and as the store behind the test suite. Expired keys are dropped lazily on
access; a background task sweeps whatever nobody touched.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from pollchat.exceptions import StoreUnavailable
from pollchat.store.base import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: Optional[float] = None


def _lrange_slice(items: list, start: int, end: int) -> list:
    size = len(items)
    if start < 0:
        start = max(size + start, 0)
    if end < 0:
        end = size + end
    if start > end or start >= size:
        return []
    return items[start:end + 1]


class MemoryStore(KeyValueStore):
    """
    Single-lock dictionary store.

    Storage structure: {key: _Entry(value, expires_at)} where value is a str,
    set, list (head first, like a Redis list) or dict.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._data[key]
            return None
        return entry

    def _typed(self, key: str, kind: type) -> Optional[_Entry]:
        entry = self._live(key)
        if entry is not None and not isinstance(entry.value, kind):
            raise StoreUnavailable(
                f"WRONGTYPE operation against {key} holding {type(entry.value).__name__}"
            )
        return entry

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return self._clock() + ttl if ttl else None

    def _touch(self, entry: _Entry, ttl: Optional[int]) -> None:
        if ttl:
            entry.expires_at = self._expiry(ttl)

    def _drop_if_empty(self, key: str, entry: _Entry) -> None:
        if not entry.value:
            del self._data[key]

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._typed(key, str)
            return entry.value if entry else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        async with self._lock:
            self._data[key] = _Entry(str(value), self._expiry(ttl))

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                if self._live(key) is not None:
                    del self._data[key]
                    removed += 1
            return removed

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._live(key) is not None

    async def expire(self, key: str, ttl: int) -> bool:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return False
            entry.expires_at = self._expiry(ttl)
            return True

    async def sadd(self, key: str, *members: str, ttl: Optional[int] = None) -> int:
        async with self._lock:
            entry = self._typed(key, set)
            if entry is None:
                entry = self._data[key] = _Entry(set())
            before = len(entry.value)
            entry.value.update(members)
            self._touch(entry, ttl)
            return len(entry.value) - before

    async def smembers(self, key: str) -> Set[str]:
        async with self._lock:
            entry = self._typed(key, set)
            return set(entry.value) if entry else set()

    async def lpush(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> int:
        async with self._lock:
            entry = self._typed(key, list)
            if entry is None:
                entry = self._data[key] = _Entry([])
            entry.value.insert(0, value)
            length = len(entry.value)
            if max_length:
                del entry.value[max_length:]
            self._touch(entry, ttl)
            return length

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        async with self._lock:
            entry = self._typed(key, list)
            return list(_lrange_slice(entry.value, start, end)) if entry else []

    async def hset(self, key: str, field: str, value: str, ttl: Optional[int] = None) -> None:
        async with self._lock:
            entry = self._typed(key, dict)
            if entry is None:
                entry = self._data[key] = _Entry({})
            entry.value[field] = str(value)
            self._touch(entry, ttl)

    async def hdel(self, key: str, *fields: str) -> int:
        async with self._lock:
            entry = self._typed(key, dict)
            if entry is None:
                return 0
            removed = 0
            for field in fields:
                if entry.value.pop(field, None) is not None:
                    removed += 1
            self._drop_if_empty(key, entry)
            return removed

    async def hgetall(self, key: str) -> dict[str, str]:
        async with self._lock:
            entry = self._typed(key, dict)
            return dict(entry.value) if entry else {}

    async def next_sequence(self, key: str, floor: int, ttl: int) -> int:
        async with self._lock:
            entry = self._typed(key, str)
            current = int(entry.value) if entry else 0
            nxt = max(current + 1, floor)
            self._data[key] = _Entry(str(nxt), self._expiry(ttl))
            return nxt

    async def ping(self) -> bool:
        return True

    async def purge_expired(self) -> int:
        """Drop every expired key. Returns how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._data.items()
                if entry.expires_at is not None and now >= entry.expires_at
            ]
            for key in expired:
                del self._data[key]
            return len(expired)

    def start_cleanup_task(self, interval: float = 300) -> None:
        """Start the background TTL sweep."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))
            logger.info("Started memory store TTL cleanup task")

    def stop_cleanup_task(self) -> None:
        """Stop the background TTL sweep."""
        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            logger.info("Stopped memory store TTL cleanup task")

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            cleaned = await self.purge_expired()
            if cleaned:
                logger.debug(f"Memory store cleanup removed {cleaned} expired keys")

    async def close(self) -> None:
        self.stop_cleanup_task()
