import time
from abc import ABC
from typing import Callable, Optional

from pollchat.store.base import KeyValueStore
from pollchat.utils.config import TimingSettings
from pollchat.utils.logs import ErrorLogger


class BaseService(ABC):
    """
    Abstract base class for all service layer classes.

    Services contain business logic and orchestrate operations
    between controllers and the cache services over the store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        timing: Optional[TimingSettings] = None,
        logger: Optional[ErrorLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._timing = timing or TimingSettings()
        self._logger = logger
        self._clock = clock

    @property
    def store(self) -> KeyValueStore:
        """Key-value store."""
        return self._store

    @property
    def timing(self) -> TimingSettings:
        """TTLs and windows."""
        return self._timing

    @property
    def logger(self) -> Optional[ErrorLogger]:
        """Error logger instance."""
        return self._logger

    def now_ms(self) -> int:
        """Current wall-clock time in milliseconds."""
        return int(self._clock() * 1000)

    async def log_degraded(self, operation: str, error: BaseException, **kwargs) -> None:
        """Log a failure that was turned into a fallback value."""
        if self._logger:
            self._logger.log_degraded(operation, error, **kwargs)

    async def log_info(self, message: str, **kwargs) -> None:
        """Log info if logger is available."""
        if self._logger:
            self._logger.info(message, **kwargs)
