from typing import Optional

from pollchat.cache.keys import RedisKeys
from pollchat.models.chat import Message, timestamp_from_ms
from pollchat.store.base import KeyValueStore


class MessageLogCacheService:
    """
    Service for per-pair message logs.

    Logs are Redis lists with the newest record at the head. Ids come from a
    per-pair counter that never hands out the same or a smaller value twice,
    so reads sort by id to give a total, oldest-first order even when two
    appends race between taking an id and pushing.
    """

    def __init__(self, store: KeyValueStore, ttl: int, max_length: Optional[int] = None):
        self._store = store
        self._ttl = ttl
        self._max_length = max_length

    async def append(self, sender_id: str, recipient_id: str, body: str, now_ms: int) -> Message:
        """Assign the next id in the pair and push the message onto its log."""
        pair_key = RedisKeys.pair(sender_id, recipient_id)
        message_id = await self._store.next_sequence(
            RedisKeys.message_sequence(pair_key), floor=now_ms, ttl=self._ttl
        )
        message = Message(
            id=message_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            body=body,
            sent_at=timestamp_from_ms(now_ms),
        )
        await self._store.lpush(
            RedisKeys.messages(pair_key),
            message.to_record(),
            ttl=self._ttl,
            max_length=self._max_length,
        )
        return message

    async def history(self, pair_key: str, limit: Optional[int] = None) -> list[Message]:
        """
        Get a pair's messages oldest-first.

        With a limit only the most recent `limit` records are read. Records
        that fail to parse are skipped.
        """
        messages, _ = await self.recent(pair_key, limit)
        return messages

    async def recent(self, pair_key: str, limit: Optional[int] = None) -> tuple[list[Message], int]:
        """Like history, also returning how many raw records were read, corrupt ones included."""
        end = limit - 1 if limit else -1
        raw_records = await self._store.lrange(RedisKeys.messages(pair_key), 0, end)
        messages = [
            message for message in (Message.from_record(raw) for raw in raw_records)
            if message is not None
        ]
        messages.sort(key=lambda m: m.id)
        return messages, len(raw_records)

    async def checkpoint(self, pair_key: str, now_ms: int) -> int:
        """
        Take a position from the pair's counter.

        Every message already in the log has a smaller id and every message
        appended afterwards a larger one.
        """
        return await self._store.next_sequence(
            RedisKeys.message_sequence(pair_key), floor=now_ms, ttl=self._ttl
        )
