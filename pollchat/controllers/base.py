from abc import ABC
from typing import Optional

from fastapi import HTTPException, status

from pollchat.exceptions import ChatError, InvalidArgument, StoreUnavailable
from pollchat.utils.logs import ErrorLogger


class BaseController(ABC):
    """
    Abstract base class for all controller classes.

    Controllers handle HTTP request/response logic and delegate
    business logic to services.
    """

    def __init__(self, logger: Optional[ErrorLogger] = None):
        self._logger = logger

    @property
    def logger(self) -> Optional[ErrorLogger]:
        """Error logger instance."""
        return self._logger

    async def log_error(self, message: str, **kwargs) -> None:
        """Log an error if logger is available."""
        if self._logger:
            self._logger.error(message, **kwargs)

    async def to_http_exception(self, operation: str, exc: Exception) -> HTTPException:
        """Map a service exception to the HTTPException the client sees."""
        if isinstance(exc, InvalidArgument):
            return HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": exc.code, "message": exc.message, "field": exc.field}
            )
        if isinstance(exc, StoreUnavailable):
            await self.log_error(f"{operation} failed: store unavailable", error=exc.message)
            return HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"code": exc.code, "message": f"Failed to {operation}: store unavailable"}
            )
        if self._logger:
            self._logger.exception(f"{operation} error", exc)
        code = exc.code if isinstance(exc, ChatError) else "INTERNAL_ERROR"
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": code, "message": f"An error occurred during {operation}"}
        )
