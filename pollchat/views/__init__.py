from pollchat.views.base import BaseView
from pollchat.views.chat import (
    ChatSummary,
    TypingStatus,
    SearchResult,
    RegisterResult,
    ReadMarkerResult,
    TypingAck,
    MessageList,
    ChatList,
)

__all__ = [
    "BaseView",
    "ChatSummary",
    "TypingStatus",
    "SearchResult",
    "RegisterResult",
    "ReadMarkerResult",
    "TypingAck",
    "MessageList",
    "ChatList",
]
