"""
Exception handlers rendering every failure as an ErrorResponse envelope.

- HTTPException raised by controllers: detail dict carries code/message/field
- RequestValidationError: malformed action envelopes and query strings, 400 INVALID_ARGUMENT
- anything else: 500 INTERNAL_ERROR, logged with traceback
"""
import logging
from typing import List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pollchat.views.responses import ErrorBody, ErrorDetail, ErrorResponse, OrjsonResponse

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "INVALID_ARGUMENT",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_503_SERVICE_UNAVAILABLE: "STORE_UNAVAILABLE",
}


def _render(request: Request, status_code: int, body: ErrorBody, headers=None) -> OrjsonResponse:
    body.path = request.url.path
    body.method = request.method
    return OrjsonResponse(status_code=status_code, content=ErrorResponse(error=body), headers=headers)


def _error_details(exc: RequestValidationError) -> List[ErrorDetail]:
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        details.append(ErrorDetail(
            code=error.get("type", "invalid"),
            message=error.get("msg", "Invalid value"),
            field=".".join(location) or None,
        ))
    return details


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> OrjsonResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        body = ErrorBody(
            code=detail.get("code") or _STATUS_CODES.get(exc.status_code, "HTTP_ERROR"),
            message=detail.get("message", ""),
        )
        if detail.get("field"):
            body.details = [ErrorDetail(code=body.code, message=body.message, field=detail["field"])]
    else:
        body = ErrorBody(code=_STATUS_CODES.get(exc.status_code, "HTTP_ERROR"), message=str(detail))

    if exc.status_code >= 500:
        logger.warning(f"HTTP {exc.status_code} - {request.method} {request.url.path} - {body.message}")
    return _render(request, exc.status_code, body, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> OrjsonResponse:
    details = _error_details(exc)
    message = "Invalid request"
    if details:
        first = details[0]
        message = f"{first.field}: {first.message}" if first.field else first.message
    body = ErrorBody(code="INVALID_ARGUMENT", message=message, details=details)
    return _render(request, status.HTTP_400_BAD_REQUEST, body)


async def unhandled_exception_handler(request: Request, exc: Exception) -> OrjsonResponse:
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {exc}", exc_info=exc)
    body = ErrorBody(code="INTERNAL_ERROR", message="Internal server error")
    return _render(request, status.HTTP_500_INTERNAL_SERVER_ERROR, body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
