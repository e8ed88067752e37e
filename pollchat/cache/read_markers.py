from typing import Iterable

from pollchat.cache.keys import RedisKeys
from pollchat.models.chat import Message
from pollchat.store.base import KeyValueStore


def count_unread(reader_id: str, messages: Iterable[Message], last_seen: int) -> int:
    """Count messages not written by the reader whose id is past the reader's marker."""
    return sum(
        1 for message in messages
        if message.sender_id != reader_id and message.id > last_seen
    )


class ReadMarkerCacheService:
    """Service for directional last-seen markers, expressed in message-id units."""

    def __init__(self, store: KeyValueStore, ttl: int):
        self._store = store
        self._ttl = ttl

    async def mark_read(self, reader_id: str, partner_id: str, position: int) -> None:
        """Move the reader's marker on a partner to position."""
        await self._store.set(
            RedisKeys.last_seen(reader_id, partner_id), str(position), ttl=self._ttl
        )

    async def last_seen(self, reader_id: str, partner_id: str) -> int:
        """Get the reader's marker, 0 if never set, expired or unreadable."""
        raw = await self._store.get(RedisKeys.last_seen(reader_id, partner_id))
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            return 0
