import asyncio
import time
from typing import Callable, Optional

from pollchat.cache import (
    RedisKeys,
    RelationshipCacheService,
    MessageLogCacheService,
    ReadMarkerCacheService,
    count_unread,
)
from pollchat.exceptions import require_identity
from pollchat.services.base import BaseService
from pollchat.store.base import KeyValueStore
from pollchat.utils.config import TimingSettings
from pollchat.utils.logs import ErrorLogger
from pollchat.views.chat import ChatSummary


def sort_summaries(summaries: list[ChatSummary]) -> list[ChatSummary]:
    """
    Unread chats first, then newest last message first, chats without messages last.

    Recency is the send time; ids only break ties, since a burst in one pair
    pushes its ids ahead of the clock.
    """
    return sorted(
        summaries,
        key=lambda s: (
            not s.has_unread,
            s.last_message_at is None,
            -(s.last_message_at.timestamp() if s.last_message_at else 0),
            -(s.last_message_id or 0),
        ),
    )


class ChatListService(BaseService):
    """
    Builds a user's chat list.

    Every partner is summarized concurrently under its own timeout. A partner
    whose summary fails or times out is reported with zero values and
    degraded=True; only a failure to read the partner set itself fails the
    whole call.
    """

    def __init__(
        self,
        store: KeyValueStore,
        timing: Optional[TimingSettings] = None,
        logger: Optional[ErrorLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(store, timing, logger, clock)
        ttl = self.timing.presence_ttl
        self._relationships = RelationshipCacheService(store, ttl)
        self._messages = MessageLogCacheService(store, ttl, self.timing.message_log_max_length)
        self._read_markers = ReadMarkerCacheService(store, ttl)

    async def list_chats(self, user_id: str) -> list[ChatSummary]:
        """Get a summary per chat partner, sorted for display."""
        require_identity(user_id, "user_id")
        partners = await self._relationships.partners(user_id)
        if not partners:
            return []

        summaries = await asyncio.gather(
            *(self._summarize_with_timeout(user_id, partner_id) for partner_id in sorted(partners))
        )
        return sort_summaries(list(summaries))

    async def _summarize_with_timeout(self, user_id: str, partner_id: str) -> ChatSummary:
        try:
            return await asyncio.wait_for(
                self.summarize(user_id, partner_id),
                timeout=self.timing.chat_fetch_timeout,
            )
        except Exception as e:
            await self.log_degraded("chat summary", e, user_id=user_id, partner_id=partner_id)
            return ChatSummary.empty(partner_id, degraded=True)

    async def summarize(self, user_id: str, partner_id: str) -> ChatSummary:
        """
        Summarize one conversation from the reader's point of view.

        Reads the most recent chat_window records. When the window is full and
        its oldest message is still past the reader's marker, older unread
        messages may lie beyond it, so the full log is counted instead.
        """
        pair_key = RedisKeys.pair(user_id, partner_id)
        window = self.timing.chat_window
        (recent, fetched), last_seen = await asyncio.gather(
            self._messages.recent(pair_key, window),
            self._read_markers.last_seen(user_id, partner_id),
        )
        if fetched == window and (not recent or recent[0].id > last_seen):
            recent = await self._messages.history(pair_key)
        if not recent:
            return ChatSummary.empty(partner_id)

        unread = count_unread(user_id, recent, last_seen)
        latest = recent[-1]
        return ChatSummary(
            partner_id=partner_id,
            last_message_body=latest.body,
            last_message_at=latest.sent_at,
            last_message_id=latest.id,
            unread_count=unread,
            has_unread=unread > 0,
        )
