import logging
from contextlib import contextmanager
from typing import Optional, Set

from redis.asyncio import Redis
from redis.exceptions import RedisError

from pollchat.exceptions import StoreUnavailable
from pollchat.store.base import KeyValueStore

logger = logging.getLogger(__name__)

# KEYS[1] = counter key, ARGV[1] = floor, ARGV[2] = ttl seconds
NEXT_SEQUENCE_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local floor = tonumber(ARGV[1])
local nxt = current + 1
if floor > nxt then
    nxt = floor
end
redis.call('SET', KEYS[1], string.format('%d', nxt), 'EX', ARGV[2])
return nxt
"""


@contextmanager
def _translate_errors(operation: str, key: str):
    try:
        yield
    except RedisError as e:
        logger.warning(f"Redis {operation} failed for {key}: {e}")
        raise StoreUnavailable(f"Redis {operation} failed: {e}") from e


class RedisStore(KeyValueStore):
    """KeyValueStore backed by redis.asyncio; expects decode_responses=True."""

    name = "redis"

    def __init__(self, redis_client: Redis):
        self._redis = redis_client
        self._next_sequence = redis_client.register_script(NEXT_SEQUENCE_LUA)

    async def get(self, key: str) -> Optional[str]:
        with _translate_errors("GET", key):
            return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with _translate_errors("SET", key):
            await self._redis.set(key, value, ex=ttl)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _translate_errors("DEL", keys[0]):
            return await self._redis.delete(*keys)

    async def exists(self, key: str) -> bool:
        with _translate_errors("EXISTS", key):
            return await self._redis.exists(key) > 0

    async def expire(self, key: str, ttl: int) -> bool:
        with _translate_errors("EXPIRE", key):
            return bool(await self._redis.expire(key, ttl))

    async def sadd(self, key: str, *members: str, ttl: Optional[int] = None) -> int:
        with _translate_errors("SADD", key):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.sadd(key, *members)
                if ttl:
                    pipe.expire(key, ttl)
                results = await pipe.execute()
            return results[0]

    async def smembers(self, key: str) -> Set[str]:
        with _translate_errors("SMEMBERS", key):
            return set(await self._redis.smembers(key))

    async def lpush(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> int:
        with _translate_errors("LPUSH", key):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.lpush(key, value)
                if max_length:
                    pipe.ltrim(key, 0, max_length - 1)
                if ttl:
                    pipe.expire(key, ttl)
                results = await pipe.execute()
            return results[0]

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        with _translate_errors("LRANGE", key):
            return await self._redis.lrange(key, start, end)

    async def hset(self, key: str, field: str, value: str, ttl: Optional[int] = None) -> None:
        with _translate_errors("HSET", key):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(key, field, value)
                if ttl:
                    pipe.expire(key, ttl)
                await pipe.execute()

    async def hdel(self, key: str, *fields: str) -> int:
        if not fields:
            return 0
        with _translate_errors("HDEL", key):
            return await self._redis.hdel(key, *fields)

    async def hgetall(self, key: str) -> dict[str, str]:
        with _translate_errors("HGETALL", key):
            return await self._redis.hgetall(key) or {}

    async def next_sequence(self, key: str, floor: int, ttl: int) -> int:
        with _translate_errors("EVALSHA", key):
            return int(await self._next_sequence(keys=[key], args=[floor, ttl]))

    async def ping(self) -> bool:
        with _translate_errors("PING", "-"):
            return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
