"""
Standard API response classes with orjson serialization support.

All API endpoints return one of these envelopes:
- APIResponse: success wrapper around a payload
- ErrorResponse: error conditions

Both carry the id LoggingMiddleware assigned to the request so a client
report can be matched with server log lines.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

import orjson
from starlette.responses import JSONResponse

from pollchat.utils.logs import get_request_id


class OrjsonResponse(JSONResponse):
    """High-performance JSON response using orjson with native dataclass support."""
    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return orjson.dumps(
            content,
            option=orjson.OPT_UTC_Z | orjson.OPT_SERIALIZE_DATACLASS
        )


def _now() -> str:
    """Generate current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class APIResponse:
    """Standard API response wrapper.

    Usage:
        return APIResponse(data=message, message="Message sent")
    """
    success: bool = True
    data: Any = None
    message: Optional[str] = None
    request_id: Optional[str] = field(default_factory=get_request_id)
    timestamp: str = field(default_factory=_now)


@dataclass(slots=True)
class ErrorDetail:
    """Individual field-level error detail."""
    code: str
    message: str
    field: Optional[str] = None


@dataclass(slots=True)
class ErrorBody:
    """Structured error information."""
    code: str
    message: str
    details: Optional[List[ErrorDetail]] = None
    path: Optional[str] = None
    method: Optional[str] = None


@dataclass(slots=True)
class ErrorResponse:
    """Standard error response wrapper.

    Usage:
        return ErrorResponse(
            error=ErrorBody(code="INVALID_ARGUMENT", message="user_id must be a non-empty string")
        )
    """
    error: ErrorBody
    success: bool = False
    request_id: Optional[str] = field(default_factory=get_request_id)
    timestamp: str = field(default_factory=_now)
