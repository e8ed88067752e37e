from typing import Annotated

from fastapi import Depends
from fastapi.requests import Request

from pollchat.services import ChatService, ChatListService
from pollchat.store.base import KeyValueStore
from pollchat.utils.logs import ErrorLoggerDep


async def get_store(request: Request) -> KeyValueStore:
    """Get the key-value store from app state."""
    return request.app.state.store


async def get_chat_service(request: Request, logger: ErrorLoggerDep) -> ChatService:
    """Build a request-scoped ChatService over the shared store."""
    state = request.app.state
    return ChatService(state.store, state.timing, logger, state.clock)


async def get_chat_list_service(request: Request, logger: ErrorLoggerDep) -> ChatListService:
    """Build a request-scoped ChatListService over the shared store."""
    state = request.app.state
    return ChatListService(state.store, state.timing, logger, state.clock)


StoreDep = Annotated[KeyValueStore, Depends(get_store)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
ChatListServiceDep = Annotated[ChatListService, Depends(get_chat_list_service)]
