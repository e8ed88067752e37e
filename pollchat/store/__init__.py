from pollchat.store.base import KeyValueStore
from pollchat.store.memory_store import MemoryStore
from pollchat.store.redis_store import RedisStore

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
]
