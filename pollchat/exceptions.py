from typing import Optional


class ChatError(Exception):
    """Base class for chat domain errors."""

    code: str = "CHAT_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidArgument(ChatError):
    """A required field is missing, empty or otherwise unusable."""

    code = "INVALID_ARGUMENT"


class StoreUnavailable(ChatError):
    """The key-value store could not be reached or returned an error."""

    code = "STORE_UNAVAILABLE"


def require_identity(value: Optional[str], field: str) -> str:
    """Return value unchanged, or raise InvalidArgument if it is empty or whitespace only."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{field} must be a non-empty string", field=field)
    return value
