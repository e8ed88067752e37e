from pollchat.models.base import BaseModelSchema, BaseRecordSchema
from pollchat.models.chat import (
    Message,
    SearchPayload, SendPayload, MarkReadPayload, TypingPayload,
    RegisterAction, SearchAction, SendAction, MarkReadAction, TypingAction,
    ChatActionUnion,
    timestamp_from_ms,
)

__all__ = [
    "BaseModelSchema",
    "BaseRecordSchema",
    "Message",
    "SearchPayload",
    "SendPayload",
    "MarkReadPayload",
    "TypingPayload",
    "RegisterAction",
    "SearchAction",
    "SendAction",
    "MarkReadAction",
    "TypingAction",
    "ChatActionUnion",
    "timestamp_from_ms",
]
