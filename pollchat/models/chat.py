from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

import orjson
from pydantic import AfterValidator, Field, StrictBool, ValidationError

from pollchat.models.base import BaseModelSchema, BaseRecordSchema

MAX_BODY_LENGTH = 10000
MAX_IDENTITY_LENGTH = 255


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# Identities are used as given; only empty or whitespace-only values are refused.
UserId = Annotated[str, Field(min_length=1, max_length=MAX_IDENTITY_LENGTH), AfterValidator(_not_blank)]


# Stored records

class Message(BaseRecordSchema):
    """Immutable chat message as kept in a pair's message log."""
    id: int = Field(..., ge=0)
    sender_id: str = Field(..., min_length=1)
    recipient_id: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    sent_at: datetime
    sent: bool = True

    def to_record(self) -> str:
        """Serialize for storage."""
        return orjson.dumps(self.model_dump(mode="json")).decode()

    @classmethod
    def from_record(cls, raw: str) -> Optional["Message"]:
        """Parse a stored record, None if it is corrupt."""
        try:
            return cls.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError, TypeError):
            return None


def timestamp_from_ms(ms: int) -> datetime:
    """UTC datetime for an epoch-milliseconds value."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


# Client -> Server action envelope
#
# The POST body is a closed, tagged union on "action"; each variant carries
# its own payload schema so validation happens once, here.

class SearchPayload(BaseModelSchema):
    """Payload for the search action."""
    search_id: UserId


class SendPayload(BaseModelSchema):
    """Payload for the send action."""
    to: UserId
    body: Annotated[str, Field(min_length=1, max_length=MAX_BODY_LENGTH), AfterValidator(_not_blank)]


class MarkReadPayload(BaseModelSchema):
    """Payload for the mark_read action."""
    chat_with: UserId


class TypingPayload(BaseModelSchema):
    """Payload for the typing action."""
    chat_with: UserId
    is_typing: StrictBool


class RegisterAction(BaseModelSchema):
    action: Literal["register"]
    user_id: UserId


class SearchAction(BaseModelSchema):
    action: Literal["search"]
    user_id: UserId
    data: SearchPayload


class SendAction(BaseModelSchema):
    action: Literal["send"]
    user_id: UserId
    data: SendPayload


class MarkReadAction(BaseModelSchema):
    action: Literal["mark_read"]
    user_id: UserId
    data: MarkReadPayload


class TypingAction(BaseModelSchema):
    action: Literal["typing"]
    user_id: UserId
    data: TypingPayload


ChatActionUnion = Union[RegisterAction, SearchAction, SendAction, MarkReadAction, TypingAction]
