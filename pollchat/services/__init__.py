from pollchat.services.base import BaseService
from pollchat.services.chat import ChatService
from pollchat.services.chat_list import ChatListService, sort_summaries

__all__ = [
    "BaseService",
    "ChatService",
    "ChatListService",
    "sort_summaries",
]
