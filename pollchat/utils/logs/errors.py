import logging
import orjson
import sys

from typing import Optional
from contextvars import ContextVar

_current_error_logger: ContextVar[Optional['ErrorLogger']] = ContextVar('current_error_logger', default=None)
_current_request_id: ContextVar[Optional[str]] = ContextVar('current_request_id', default=None)


class ErrorLogger:
    """Logger for store failures, degraded reads and request diagnostics."""

    def __init__(self, name: str = "chat", request_id: Optional[str] = None):
        self.name = name
        self.request_id = request_id
        self.logger = logging.getLogger(f"pollchat.{name}")
        self.logger.setLevel(logging.INFO)
        self.logger.handlers.clear()
        self.logger.propagate = False

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - '
            '%(module)s:%(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

    def _format(self, message: str, extra: dict) -> str:
        prefix = f"[{self.request_id}] " if self.request_id else ""
        extra_str = f" | {orjson.dumps(extra, default=str).decode()}" if extra else ""
        return f"{prefix}{message}{extra_str}"

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._format(message, kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._format(message, kwargs))

    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(self._format(message, kwargs))

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(self._format(message, kwargs))

    def exception(self, message: str, exc: BaseException, **kwargs):
        """Log exception with full traceback."""
        error_data = {
            'error_type': type(exc).__name__,
            'error_message': str(exc),
            **kwargs
        }
        self.logger.error(self._format(message, error_data), exc_info=exc)

    def log_degraded(self, operation: str, error: BaseException, **kwargs):
        """Log a failure that was absorbed into a fallback value."""
        self.warning(
            f"Degraded result for {operation}",
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            **kwargs
        )


def get_error_logger() -> ErrorLogger:
    """Get the current request's error logger."""
    logger = _current_error_logger.get()
    if logger is None:
        raise RuntimeError("Error logger not initialized for current request")
    return logger


def get_request_id() -> Optional[str]:
    """Get the current request's id, None outside a request."""
    return _current_request_id.get()
