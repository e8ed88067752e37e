from pollchat.cache.keys import RedisKeys
from pollchat.store.base import KeyValueStore


class PresenceCacheService:
    """Service for user liveness records with a sliding TTL."""

    def __init__(self, store: KeyValueStore, ttl: int):
        self._store = store
        self._ttl = ttl

    async def register(self, user_id: str, now_ms: int) -> None:
        """Create or refresh a user's presence record."""
        await self._store.set(RedisKeys.user(user_id), str(now_ms), ttl=self._ttl)

    async def exists(self, user_id: str) -> bool:
        """Check if a user has a live presence record."""
        return await self._store.exists(RedisKeys.user(user_id))
