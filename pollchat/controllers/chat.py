from typing import Annotated, Awaitable, Optional, TypeVar

from fastapi import APIRouter, Body, HTTPException, Query

from pollchat.controllers.base import BaseController
from pollchat.dependencies.store import ChatServiceDep, ChatListServiceDep
from pollchat.models.chat import (
    ChatActionUnion,
    MAX_IDENTITY_LENGTH,
    RegisterAction, SearchAction, SendAction, MarkReadAction, TypingAction,
)
from pollchat.services import ChatService, ChatListService
from pollchat.utils.logs import ErrorLogger
from pollchat.views.chat import (
    ChatList,
    MessageList,
    ReadMarkerResult,
    RegisterResult,
    SearchResult,
    TypingAck,
    TypingStatus,
)
from pollchat.views.responses import APIResponse

T = TypeVar("T")


class ChatController(BaseController):
    """Controller for chat actions and polling queries."""

    def __init__(
        self,
        chat_service: ChatService,
        chat_list_service: Optional[ChatListService] = None,
        logger: Optional[ErrorLogger] = None,
    ):
        super().__init__(logger)
        self._chat_service = chat_service
        self._chat_list_service = chat_list_service

    async def _guard(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except HTTPException:
            raise
        except Exception as e:
            raise await self.to_http_exception(operation, e)

    async def register(self, user_id: str) -> RegisterResult:
        """Register or refresh a user's presence."""
        registered_at = await self._guard("register", self._chat_service.register(user_id))
        return RegisterResult(
            user_id=user_id,
            registered_at=registered_at,
            expires_in=self._chat_service.timing.presence_ttl,
        )

    async def search(self, user_id: str, search_id: str) -> SearchResult:
        """Look up another user, linking the two on success."""
        found = await self._guard("search", self._chat_service.search(user_id, search_id))
        return SearchResult(found=found, user_id=search_id)

    async def send(self, sender_id: str, recipient_id: str, body: str) -> dict:
        """Send a message."""
        message = await self._guard("send message", self._chat_service.send(sender_id, recipient_id, body))
        return message.model_dump()

    async def mark_read(self, user_id: str, chat_with: str) -> ReadMarkerResult:
        """Mark a conversation as read up to now."""
        position = await self._guard("mark as read", self._chat_service.mark_read(user_id, chat_with))
        return ReadMarkerResult(chat_with=chat_with, last_seen=position)

    async def set_typing(self, user_id: str, chat_with: str, is_typing: bool) -> TypingAck:
        """Start or stop the typing indicator."""
        applied = await self._guard(
            "update typing status", self._chat_service.set_typing(user_id, chat_with, is_typing)
        )
        return TypingAck(chat_with=chat_with, is_typing=is_typing, applied=applied)

    async def get_typing(self, user_id: str, chat_with: str) -> TypingStatus:
        """Get the typing status of a conversation."""
        return await self._guard("get typing status", self._chat_service.is_typing(user_id, chat_with))

    async def get_messages(self, user_id: str, chat_with: str, limit: Optional[int] = None) -> MessageList:
        """Get a conversation's messages oldest-first."""
        messages = await self._guard(
            "get messages", self._chat_service.list_messages(user_id, chat_with, limit)
        )
        return MessageList(
            chat_with=chat_with,
            messages=[message.model_dump() for message in messages],
            count=len(messages),
        )

    async def get_chats(self, user_id: str) -> ChatList:
        """Get the user's chat list."""
        chats = await self._guard("get chats", self._chat_list_service.list_chats(user_id))
        return ChatList(chats=chats, count=len(chats))

    async def dispatch(self, action: ChatActionUnion) -> APIResponse:
        """Route a validated action envelope to its handler."""
        handlers = {
            RegisterAction: self._handle_register,
            SearchAction: self._handle_search,
            SendAction: self._handle_send,
            MarkReadAction: self._handle_mark_read,
            TypingAction: self._handle_typing,
        }
        return await handlers[type(action)](action)

    async def _handle_register(self, action: RegisterAction) -> APIResponse:
        result = await self.register(action.user_id)
        return APIResponse(data=result, message="User registered")

    async def _handle_search(self, action: SearchAction) -> APIResponse:
        result = await self.search(action.user_id, action.data.search_id)
        return APIResponse(data=result, message="User found" if result.found else "User not found")

    async def _handle_send(self, action: SendAction) -> APIResponse:
        result = await self.send(action.user_id, action.data.to, action.data.body)
        return APIResponse(data=result, message="Message sent")

    async def _handle_mark_read(self, action: MarkReadAction) -> APIResponse:
        result = await self.mark_read(action.user_id, action.data.chat_with)
        return APIResponse(data=result, message="Marked as read")

    async def _handle_typing(self, action: TypingAction) -> APIResponse:
        result = await self.set_typing(action.user_id, action.data.chat_with, action.data.is_typing)
        return APIResponse(
            success=result.applied,
            data=result,
            message="Typing status updated" if result.applied else "Typing status not updated",
        )


router = APIRouter(prefix="/api/v1/chat", tags=["Chat"])


@router.post(
    "",
    summary="Perform a chat action",
    description="Single entry point for register, search, send, mark_read and typing actions."
)
async def perform_action(
    request: Annotated[ChatActionUnion, Body(discriminator="action")],
    chat_service: ChatServiceDep,
):
    """
    Perform one action, selected by the `action` field:

    - **register**: `{action, user_id}` creates or extends the user's presence for one hour
    - **search**: `{action, user_id, data: {search_id}}` looks up a user and opens a chat with them
    - **send**: `{action, user_id, data: {to, body}}` sends a message from user_id
    - **mark_read**: `{action, user_id, data: {chat_with}}` marks the conversation read up to now
    - **typing**: `{action, user_id, data: {chat_with, is_typing}}` starts or stops the typing indicator

    Typing failures are reported with `success: false` but never as an HTTP error.
    """
    controller = ChatController(chat_service, logger=chat_service.logger)
    return await controller.dispatch(request)


@router.get(
    "",
    summary="Poll chat state",
    description="Query dispatch kept compatible with polling clients: chat list, messages or typing status."
)
async def poll(
    chat_service: ChatServiceDep,
    chat_list_service: ChatListServiceDep,
    user_id: str = Query(..., max_length=MAX_IDENTITY_LENGTH, description="Polling user"),
    chat_with: Optional[str] = Query(default=None, max_length=MAX_IDENTITY_LENGTH, description="Conversation partner"),
    get_typing: bool = Query(default=False, description="Return typing status instead of messages"),
    limit: Optional[int] = Query(default=None, ge=1, description="Only the most recent N messages"),
):
    """
    - `user_id` only: the chat list
    - `user_id` + `chat_with`: the conversation's messages
    - `user_id` + `chat_with` + `get_typing=true`: the conversation's typing status
    """
    controller = ChatController(chat_service, chat_list_service, chat_service.logger)
    if chat_with is not None and get_typing:
        return APIResponse(data=await controller.get_typing(user_id, chat_with))
    if chat_with is not None:
        return APIResponse(data=await controller.get_messages(user_id, chat_with, limit))
    return APIResponse(data=await controller.get_chats(user_id))


@router.get(
    "/chats",
    summary="Get chat list",
    description="Get every chat partner with last message preview and unread count."
)
async def get_chats(
    chat_service: ChatServiceDep,
    chat_list_service: ChatListServiceDep,
    user_id: str = Query(..., max_length=MAX_IDENTITY_LENGTH),
):
    """
    Get all chat partners of the user, ordered with unread conversations first,
    then by most recent message, conversations without messages last. Each entry has:
    - **partner_id**
    - **last_message_body** / **last_message_at** / **last_message_id**
    - **unread_count** / **has_unread**
    - **degraded**: true when the partner's data could not be fetched in time
    """
    controller = ChatController(chat_service, chat_list_service, chat_service.logger)
    return APIResponse(data=await controller.get_chats(user_id))


@router.get(
    "/messages",
    summary="Get conversation",
    description="Get the messages exchanged with a partner, oldest first."
)
async def get_messages(
    chat_service: ChatServiceDep,
    user_id: str = Query(..., max_length=MAX_IDENTITY_LENGTH),
    chat_with: str = Query(..., max_length=MAX_IDENTITY_LENGTH),
    limit: Optional[int] = Query(default=None, ge=1, description="Only the most recent N messages"),
):
    """
    - **chat_with**: the other user in the conversation
    - **limit**: optional, return only the most recent N messages (still oldest first)
    """
    controller = ChatController(chat_service, logger=chat_service.logger)
    return APIResponse(data=await controller.get_messages(user_id, chat_with, limit))


@router.get(
    "/typing",
    summary="Get typing status",
    description="Get which users, other than the caller, are typing in a conversation."
)
async def get_typing(
    chat_service: ChatServiceDep,
    user_id: str = Query(..., max_length=MAX_IDENTITY_LENGTH),
    chat_with: str = Query(..., max_length=MAX_IDENTITY_LENGTH),
):
    """Never fails on store errors: an unreachable store reports nobody typing."""
    controller = ChatController(chat_service, logger=chat_service.logger)
    return APIResponse(data=await controller.get_typing(user_id, chat_with))
