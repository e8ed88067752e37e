import time
from typing import Callable, Optional

from pollchat.cache import (
    RedisKeys,
    PresenceCacheService,
    RelationshipCacheService,
    MessageLogCacheService,
    ReadMarkerCacheService,
    TypingCacheService,
)
from pollchat.exceptions import InvalidArgument, require_identity
from pollchat.models.chat import Message
from pollchat.services.base import BaseService
from pollchat.store.base import KeyValueStore
from pollchat.utils.config import TimingSettings
from pollchat.utils.logs import ErrorLogger
from pollchat.views.chat import TypingStatus


class ChatService(BaseService):
    """
    Presence, relationships, messages, read markers and typing state.

    Mutations (register, search, send, mark_read) and message listing let
    StoreUnavailable propagate. Typing is advisory: its store failures are
    logged and turned into safe defaults so they never block messaging.
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
        self._presence = PresenceCacheService(store, ttl)
        self._relationships = RelationshipCacheService(store, ttl)
        self._messages = MessageLogCacheService(store, ttl, self.timing.message_log_max_length)
        self._read_markers = ReadMarkerCacheService(store, ttl)
        self._typing = TypingCacheService(
            store, self.timing.typing_map_ttl, self.timing.typing_stale_ms
        )

    async def register(self, user_id: str) -> int:
        """Create or extend a user's presence. Returns the registration time in ms."""
        require_identity(user_id, "user_id")
        now = self.now_ms()
        await self._presence.register(user_id, now)
        await self.log_info("User registered", user_id=user_id)
        return now

    async def exists(self, user_id: str) -> bool:
        """Check whether a user currently has a live presence record."""
        require_identity(user_id, "user_id")
        return await self._presence.exists(user_id)

    async def search(self, requester_id: str, target_id: str) -> bool:
        """
        Look up target_id and, if it is live and not the requester, link the two users.

        Returns whether the target exists. Linking is a set insert on both
        sides, so repeated searches never duplicate a partner.
        """
        require_identity(requester_id, "user_id")
        require_identity(target_id, "search_id")
        found = await self._presence.exists(target_id)
        if found and requester_id != target_id:
            await self._relationships.link(requester_id, target_id)
            await self.log_info("Chat relationship created", user_id=requester_id, partner_id=target_id)
        return found

    async def partners(self, user_id: str) -> set[str]:
        """Get a user's chat partners."""
        require_identity(user_id, "user_id")
        return await self._relationships.partners(user_id)

    async def send(self, sender_id: str, recipient_id: str, body: str) -> Message:
        """Append a message to the pair's log, refresh both edges and end the sender's typing."""
        require_identity(sender_id, "from")
        require_identity(recipient_id, "to")
        if not isinstance(body, str) or not body.strip():
            raise InvalidArgument("body must be a non-empty string", field="body")
        if sender_id == recipient_id:
            raise InvalidArgument("cannot send a message to yourself", field="to")

        message = await self._messages.append(sender_id, recipient_id, body, self.now_ms())
        await self._relationships.link(sender_id, recipient_id)

        try:
            await self._typing.stop(sender_id, recipient_id)
        except Exception as e:
            await self.log_degraded("clear typing on send", e, user_id=sender_id, partner_id=recipient_id)

        await self.log_info("Message sent", sender_id=sender_id, recipient_id=recipient_id, message_id=message.id)
        return message

    async def list_messages(self, user_id: str, partner_id: str, limit: Optional[int] = None) -> list[Message]:
        """Get the conversation with partner_id oldest-first, optionally only the last `limit` messages."""
        require_identity(user_id, "user_id")
        require_identity(partner_id, "chat_with")
        if limit is not None and limit < 1:
            raise InvalidArgument("limit must be at least 1", field="limit")
        return await self._messages.history(RedisKeys.pair(user_id, partner_id), limit)

    async def mark_read(self, reader_id: str, partner_id: str) -> int:
        """
        Move the reader's marker on partner_id to now.

        The marker is in message-id units and is taken from the pair's id
        counter, so it lies strictly between the messages that existed when
        it was set and any sent later, even within the same millisecond.
        """
        require_identity(reader_id, "user_id")
        require_identity(partner_id, "chat_with")
        position = await self._messages.checkpoint(RedisKeys.pair(reader_id, partner_id), self.now_ms())
        await self._read_markers.mark_read(reader_id, partner_id, position)
        return position

    async def set_typing(self, user_id: str, partner_id: str, is_typing: bool) -> bool:
        """
        Start or stop user_id's typing indicator towards partner_id.

        Repeated starts just refresh the timestamp. Returns False, instead of
        raising, when the store could not be updated.
        """
        require_identity(user_id, "user_id")
        require_identity(partner_id, "chat_with")
        try:
            if is_typing:
                await self._typing.start(user_id, partner_id, self.now_ms())
            else:
                await self._typing.stop(user_id, partner_id)
        except Exception as e:
            await self.log_degraded("set typing", e, user_id=user_id, partner_id=partner_id)
            return False
        return True

    async def is_typing(self, requester_id: str, partner_id: str) -> TypingStatus:
        """
        Report who, other than the requester, is typing in the conversation.

        Any store failure yields an inactive status.
        """
        require_identity(requester_id, "user_id")
        require_identity(partner_id, "chat_with")
        try:
            typers = await self._typing.active(requester_id, partner_id, self.now_ms())
        except Exception as e:
            await self.log_degraded("typing status", e, user_id=requester_id, partner_id=partner_id)
            return TypingStatus()
        return TypingStatus.from_users(typers)
