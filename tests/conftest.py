"""
Pytest configuration and common fixtures for pollchat tests.

Everything runs against MemoryStore with a hand-driven clock, so TTLs,
staleness windows and same-millisecond appends can be reproduced exactly.
"""

import asyncio
import time
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from pollchat.exceptions import StoreUnavailable
from pollchat.main import create_app
from pollchat.services import ChatService, ChatListService
from pollchat.store.memory_store import MemoryStore
from pollchat.utils.config import TimingSettings

START_TIME = 1_700_000_000.0


class FakeClock:
    """Callable clock returning epoch seconds, advanced by hand."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FaultyStore(MemoryStore):
    """
    MemoryStore that fails or stalls on demand.

    broken_ops: operation names (e.g. "hgetall") that raise StoreUnavailable.
    broken_keys: key fragments whose every operation raises StoreUnavailable.
    slow_keys: key fragment -> seconds to sleep before serving the operation.
    """

    def __init__(self, clock=time.time, broken_ops: Iterable[str] = (), broken_keys: Iterable[str] = ()):
        super().__init__(clock)
        self.broken_ops = set(broken_ops)
        self.broken_keys = set(broken_keys)
        self.slow_keys: dict[str, float] = {}

    async def _check(self, operation: str, key: str) -> None:
        if operation in self.broken_ops:
            raise StoreUnavailable(f"{operation} refused")
        for fragment in self.broken_keys:
            if fragment in key:
                raise StoreUnavailable(f"{operation} refused for {key}")
        for fragment, delay in self.slow_keys.items():
            if fragment in key:
                await asyncio.sleep(delay)

    async def get(self, key, *args, **kwargs):
        await self._check("get", key)
        return await super().get(key, *args, **kwargs)

    async def set(self, key, *args, **kwargs):
        await self._check("set", key)
        return await super().set(key, *args, **kwargs)

    async def exists(self, key, *args, **kwargs):
        await self._check("exists", key)
        return await super().exists(key, *args, **kwargs)

    async def sadd(self, key, *args, **kwargs):
        await self._check("sadd", key)
        return await super().sadd(key, *args, **kwargs)

    async def smembers(self, key, *args, **kwargs):
        await self._check("smembers", key)
        return await super().smembers(key, *args, **kwargs)

    async def lpush(self, key, *args, **kwargs):
        await self._check("lpush", key)
        return await super().lpush(key, *args, **kwargs)

    async def lrange(self, key, *args, **kwargs):
        await self._check("lrange", key)
        return await super().lrange(key, *args, **kwargs)

    async def hset(self, key, *args, **kwargs):
        await self._check("hset", key)
        return await super().hset(key, *args, **kwargs)

    async def hdel(self, key, *args, **kwargs):
        await self._check("hdel", key)
        return await super().hdel(key, *args, **kwargs)

    async def hgetall(self, key, *args, **kwargs):
        await self._check("hgetall", key)
        return await super().hgetall(key, *args, **kwargs)

    async def next_sequence(self, key, *args, **kwargs):
        await self._check("next_sequence", key)
        return await super().next_sequence(key, *args, **kwargs)

    async def ping(self) -> bool:
        if "ping" in self.broken_ops:
            raise StoreUnavailable("ping refused")
        return True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timing() -> TimingSettings:
    return TimingSettings()


@pytest.fixture
def store(clock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def faulty_store(clock) -> FaultyStore:
    return FaultyStore(clock=clock)


@pytest.fixture
def chat_service(store, timing, clock) -> ChatService:
    return ChatService(store, timing, clock=clock)


@pytest.fixture
def chat_list_service(store, timing, clock) -> ChatListService:
    return ChatListService(store, timing, clock=clock)


def make_services(
    store: MemoryStore,
    clock: FakeClock,
    timing: Optional[TimingSettings] = None,
) -> tuple[ChatService, ChatListService]:
    timing = timing or TimingSettings()
    return ChatService(store, timing, clock=clock), ChatListService(store, timing, clock=clock)


@pytest.fixture
def app(clock):
    return create_app(store=MemoryStore(clock=clock), timing=TimingSettings(), clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
