import asyncio

from pollchat.cache.keys import RedisKeys
from pollchat.store.base import KeyValueStore


class RelationshipCacheService:
    """Service for the per-user sets of chat partners."""

    def __init__(self, store: KeyValueStore, ttl: int):
        self._store = store
        self._ttl = ttl

    async def link(self, user_a: str, user_b: str) -> None:
        """
        Add each user to the other's partner set and refresh both TTLs.

        Both writes are attempted even if one fails; the first failure is
        re-raised afterwards. A half-written pair is left in place and healed by
        the next successful link.
        """
        results = await asyncio.gather(
            self._store.sadd(RedisKeys.chats(user_a), user_b, ttl=self._ttl),
            self._store.sadd(RedisKeys.chats(user_b), user_a, ttl=self._ttl),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def partners(self, user_id: str) -> set[str]:
        """Get a user's live partner set."""
        return await self._store.smembers(RedisKeys.chats(user_id))
