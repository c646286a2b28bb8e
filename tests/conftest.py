"""Shared fixtures: an in-process Redis with Lua support and a controllable clock."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer

from ratekeeper.app.core.redis import reset_redis
from ratekeeper.app.services.rate_limit import RateLimitService, RedisStore, reset_rate_limit_service

# Multiple of every window length used in the tests, so the first attempt
# lands exactly on a window boundary.
START_TIME = 1_700_000_000.0


class FakeClock:
    """Clock returning a fixed time until advanced."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset global state before each test."""
    reset_rate_limit_service()
    reset_redis()
    yield
    reset_rate_limit_service()
    reset_redis()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def redis_server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server) -> AsyncGenerator[FakeAsyncRedis, None]:
    client = FakeAsyncRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis_client) -> RedisStore:
    return RedisStore(redis_client)


@pytest.fixture
def service(redis_client, clock) -> RateLimitService:
    return RateLimitService(redis_client=redis_client, clock=clock)
