import logging
import time
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI

from pollchat.exceptions import StoreUnavailable
from pollchat.store.base import KeyValueStore
from pollchat.store.memory_store import MemoryStore
from pollchat.store.redis_store import RedisStore
from pollchat.utils.config import (
    STORE_BACKEND, REDIS_MAX_CONNECTIONS, REDIS_SOCKET_TIMEOUT,
    MEMORY_CLEANUP_INTERVAL_SECONDS,
    load_timing_settings, redis_url,
)

logger = logging.getLogger(__name__)


def build_store(backend: str = STORE_BACKEND) -> KeyValueStore:
    """Create the configured store backend."""
    if backend == "memory":
        return MemoryStore()
    if backend == "redis":
        client = redis.from_url(
            redis_url(),
            encoding="utf-8",
            decode_responses=True,
            max_connections=REDIS_MAX_CONNECTIONS,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        )
        return RedisStore(client)
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r} (expected 'redis' or 'memory')")


async def check_store(store: KeyValueStore) -> bool:
    """Ping the store, logging instead of raising on failure."""
    try:
        return await store.ping()
    except StoreUnavailable as e:
        logger.warning(f"Store connectivity check failed ({store.name}): {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan manager for the store and timing settings.

    A store, timing settings or clock already placed on app.state (tests,
    embedding) is used as is and left open on shutdown.
    """
    if getattr(app.state, "timing", None) is None:
        app.state.timing = load_timing_settings()
    if getattr(app.state, "clock", None) is None:
        app.state.clock = time.time

    owns_store = getattr(app.state, "store", None) is None
    if owns_store:
        app.state.store = build_store()
    store: KeyValueStore = app.state.store

    timing = app.state.timing
    logger.info(
        f"Using {store.name} store; presence TTL {timing.presence_ttl}s, "
        f"typing stale window {timing.typing_stale}s, keep-alive {timing.typing_keepalive}s"
    )
    if await check_store(store):
        logger.info("✓ Store connection test successful")

    if isinstance(store, MemoryStore):
        store.start_cleanup_task(MEMORY_CLEANUP_INTERVAL_SECONDS)

    yield

    logger.info("Shutting down server...")

    if isinstance(store, MemoryStore):
        store.stop_cleanup_task()
    if owns_store:
        await store.close()

    logger.info("Chat server shutdown complete")
