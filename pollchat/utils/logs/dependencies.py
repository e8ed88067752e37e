from typing import Annotated
from fastapi import Depends

from .errors import ErrorLogger, get_error_logger, get_request_id


def get_error_logger_dependency() -> ErrorLogger:
    """
    Dependency for ErrorLogger.
    Returns the logger LoggingMiddleware attached to the current request,
    or a fresh one when the app runs without the middleware.
    Returns:
        ErrorLogger instance
    """
    try:
        return get_error_logger()
    except RuntimeError:
        return ErrorLogger(request_id=get_request_id())


ErrorLoggerDep = Annotated[ErrorLogger, Depends(get_error_logger_dependency)]
