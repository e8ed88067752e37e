from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pollchat.views.base import BaseView


# Server -> Client (no validation needed, hence python native dataclass)

@dataclass(slots=True)
class ChatSummary(BaseView):
    """One row of a user's chat list."""
    partner_id: str
    last_message_body: str = ""
    last_message_at: Optional[datetime] = None
    last_message_id: Optional[int] = None
    unread_count: int = 0
    has_unread: bool = False
    degraded: bool = False

    @classmethod
    def empty(cls, partner_id: str, degraded: bool = False) -> "ChatSummary":
        """Zero-value summary for a partner with no readable messages."""
        return cls(partner_id=partner_id, degraded=degraded)


@dataclass(slots=True)
class TypingStatus(BaseView):
    """Who, other than the requester, is typing in a conversation."""
    active: bool = False
    users: List[str] = field(default_factory=list)

    @classmethod
    def from_users(cls, users: List[str]) -> "TypingStatus":
        return cls(active=bool(users), users=list(users))


@dataclass(slots=True)
class SearchResult(BaseView):
    """Outcome of looking up another user."""
    found: bool
    user_id: str


@dataclass(slots=True)
class RegisterResult(BaseView):
    """Acknowledgment of a presence registration."""
    user_id: str
    registered_at: int
    expires_in: int


@dataclass(slots=True)
class ReadMarkerResult(BaseView):
    """Acknowledgment of a mark_read call."""
    chat_with: str
    last_seen: int


@dataclass(slots=True)
class TypingAck(BaseView):
    """Acknowledgment of a typing update; applied is False when the store refused it."""
    chat_with: str
    is_typing: bool
    applied: bool


@dataclass(slots=True)
class MessageList(BaseView):
    """Messages of one conversation, oldest first."""
    chat_with: str
    messages: List[dict] = field(default_factory=list)
    count: int = 0


@dataclass(slots=True)
class ChatList(BaseView):
    """A user's chat list, unread conversations first."""
    chats: List[ChatSummary] = field(default_factory=list)
    count: int = 0
