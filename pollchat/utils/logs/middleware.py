import secrets

from pollchat.utils.logs.errors import ErrorLogger, _current_error_logger, _current_request_id

REQUEST_ID_HEADER = b"x-request-id"


def _inbound_request_id(scope) -> str:
    for name, value in scope.get("headers", []):
        if name == REQUEST_ID_HEADER and value:
            return value.decode("latin-1")[:64]
    return secrets.token_hex(5)


class LoggingMiddleware:

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _inbound_request_id(scope)
        error_logger = ErrorLogger(request_id=request_id)

        error_token = _current_error_logger.set(error_logger)
        request_token = _current_request_id.set(request_id)

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            _current_request_id.reset(request_token)
            _current_error_logger.reset(error_token)
