from pollchat.cache.keys import RedisKeys
from pollchat.store.base import KeyValueStore


class TypingCacheService:
    """
    Service for per-pair typing maps: {user_id: last typing ping in ms}.

    The map as a whole expires after map_ttl seconds without a ping. An entry
    counts as active while it is younger than stale_ms; older entries are
    ignored by readers and disappear with the map.
    """

    def __init__(self, store: KeyValueStore, map_ttl: int, stale_ms: int):
        self._store = store
        self._map_ttl = map_ttl
        self._stale_ms = stale_ms

    async def start(self, user_id: str, partner_id: str, now_ms: int) -> None:
        """Record a typing ping from user_id."""
        key = RedisKeys.typing(RedisKeys.pair(user_id, partner_id))
        await self._store.hset(key, user_id, str(now_ms), ttl=self._map_ttl)

    async def stop(self, user_id: str, partner_id: str) -> None:
        """Remove user_id's typing entry."""
        key = RedisKeys.typing(RedisKeys.pair(user_id, partner_id))
        await self._store.hdel(key, user_id)

    async def active(self, requester_id: str, partner_id: str, now_ms: int) -> list[str]:
        """Get users other than the requester with a fresh ping, sorted. Unreadable entries are skipped."""
        entries = await self._store.hgetall(RedisKeys.typing(RedisKeys.pair(requester_id, partner_id)))
        cutoff = now_ms - self._stale_ms
        typers = []
        for user_id, raw in entries.items():
            if user_id == requester_id:
                continue
            try:
                pinged_at = int(raw)
            except (TypeError, ValueError):
                continue
            if pinged_at > cutoff:
                typers.append(user_id)
        return sorted(typers)
