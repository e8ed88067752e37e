import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

STORE_BACKEND: str = os.getenv("STORE_BACKEND", "redis").lower()

REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
REDIS_USER: str = os.getenv("REDIS_USER", "")
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
REDIS_MAX_CONNECTIONS: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "20"))
REDIS_SOCKET_TIMEOUT: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))

# Everything derived from a user (edges, logs, markers) lives at most this long.
PRESENCE_TTL_SECONDS: int = int(os.getenv("PRESENCE_TTL_SECONDS", "3600"))

# Typing indicator timing. Clients re-send typing=true every
# TYPING_KEEPALIVE_SECONDS while the user keeps typing; readers treat an entry as
# live for TYPING_STALE_SECONDS. The stale window must be >= the keep-alive
# interval or indicators flicker off between pings. TYPING_MAP_TTL_SECONDS only
# bounds how long an abandoned typing map stays in the store.
TYPING_KEEPALIVE_SECONDS: float = float(os.getenv("TYPING_KEEPALIVE_SECONDS", "2"))
TYPING_STALE_SECONDS: float = float(os.getenv("TYPING_STALE_SECONDS", "5"))
TYPING_MAP_TTL_SECONDS: int = int(os.getenv("TYPING_MAP_TTL_SECONDS", "30"))

CHAT_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("CHAT_FETCH_TIMEOUT_SECONDS", "6"))
CHAT_WINDOW_SIZE: int = int(os.getenv("CHAT_WINDOW_SIZE", "20"))
MESSAGE_LOG_MAX_LENGTH: int = int(os.getenv("MESSAGE_LOG_MAX_LENGTH", "1000"))

MEMORY_CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("MEMORY_CLEANUP_INTERVAL_SECONDS", "300"))

APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT: int = int(os.getenv("APP_PORT", "8500"))


@dataclass(frozen=True, slots=True)
class TimingSettings:
    """TTLs and windows shared by the cache services and the chat list aggregator."""
    presence_ttl: int = 3600
    typing_keepalive: float = 2.0
    typing_stale: float = 5.0
    typing_map_ttl: int = 30
    chat_fetch_timeout: float = 6.0
    chat_window: int = 20
    message_log_max_length: int = 1000

    def __post_init__(self):
        if self.presence_ttl <= 0:
            raise ValueError("presence_ttl must be positive")
        if self.typing_stale < self.typing_keepalive:
            raise ValueError(
                f"typing_stale ({self.typing_stale}s) must be >= typing_keepalive "
                f"({self.typing_keepalive}s) or typing indicators flicker between pings"
            )
        if self.typing_map_ttl < self.typing_stale:
            raise ValueError("typing_map_ttl must be >= typing_stale")
        if self.typing_map_ttl > self.presence_ttl:
            raise ValueError("typing_map_ttl must not exceed presence_ttl")
        if self.chat_fetch_timeout <= 0:
            raise ValueError("chat_fetch_timeout must be positive")
        if self.chat_window < 1:
            raise ValueError("chat_window must be at least 1")
        if self.message_log_max_length < self.chat_window:
            raise ValueError("message_log_max_length must be >= chat_window")

    @property
    def typing_stale_ms(self) -> int:
        return int(self.typing_stale * 1000)


def load_timing_settings() -> TimingSettings:
    """Build TimingSettings from the environment-backed module constants."""
    return TimingSettings(
        presence_ttl=PRESENCE_TTL_SECONDS,
        typing_keepalive=TYPING_KEEPALIVE_SECONDS,
        typing_stale=TYPING_STALE_SECONDS,
        typing_map_ttl=TYPING_MAP_TTL_SECONDS,
        chat_fetch_timeout=CHAT_FETCH_TIMEOUT_SECONDS,
        chat_window=CHAT_WINDOW_SIZE,
        message_log_max_length=MESSAGE_LOG_MAX_LENGTH,
    )


def redis_url() -> str:
    """Compose the Redis connection URL from the REDIS_* settings."""
    if REDIS_USER and REDIS_PASSWORD:
        return f"redis://{REDIS_USER}:{REDIS_PASSWORD}@{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"
    if REDIS_PASSWORD:
        return f"redis://:{REDIS_PASSWORD}@{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"
    return f"redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"
