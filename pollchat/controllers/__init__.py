from pollchat.controllers.base import BaseController
from pollchat.controllers.chat import ChatController, router as chat_router
from pollchat.controllers.errors import register_exception_handlers

__all__ = [
    "BaseController",
    "ChatController",
    "chat_router",
    "register_exception_handlers",
]
