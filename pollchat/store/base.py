from abc import ABC, abstractmethod
from typing import Optional, Set


class KeyValueStore(ABC):
    """
    Expiring key-value store used by every cache service.

    The surface mirrors the Redis commands the chat needs: plain strings,
    sets, lists and hashes, each key carrying its own TTL. Every method is a
    bounded request; implementations raise StoreUnavailable when the backing
    service cannot answer. Single-key operations are atomic, nothing spans
    keys.
    """

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the string stored at key, None if missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store a string, replacing any previous value and TTL."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys, returning how many existed."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True iff key holds a live value."""

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """Reset the TTL of an existing key. False if the key does not exist."""

    @abstractmethod
    async def sadd(self, key: str, *members: str, ttl: Optional[int] = None) -> int:
        """Add members to a set, optionally refreshing its TTL in the same call."""

    @abstractmethod
    async def smembers(self, key: str) -> Set[str]:
        """Return all members of a set, empty if missing."""

    @abstractmethod
    async def lpush(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> int:
        """Push onto the head of a list, optionally trimming it and refreshing its TTL."""

    @abstractmethod
    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        """Return a list slice with Redis LRANGE semantics (inclusive end, negatives allowed)."""

    @abstractmethod
    async def hset(self, key: str, field: str, value: str, ttl: Optional[int] = None) -> None:
        """Set a hash field, optionally refreshing the TTL of the whole hash."""

    @abstractmethod
    async def hdel(self, key: str, *fields: str) -> int:
        """Remove hash fields, returning how many existed."""

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """Return the whole hash, empty if missing."""

    @abstractmethod
    async def next_sequence(self, key: str, floor: int, ttl: int) -> int:
        """
        Atomically advance a counter to max(current + 1, floor) and return it.

        Used to hand out strictly increasing message ids per chat pair even
        when the wall clock stalls or steps backwards.
        """

    @abstractmethod
    async def ping(self) -> bool:
        """Round-trip check against the backing service."""

    async def close(self) -> None:
        """Release connections. No-op by default."""
        return None
