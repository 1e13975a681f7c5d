"""
Shared fixtures for gallery tests.
"""

import time
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from gallery.cache import CacheHandle
from gallery.config import Settings
from gallery.schemas import GallerySnapshot, ImageDescriptor


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis covering the calls the gallery makes."""

    def __init__(self, clock=time.monotonic, decode_responses=False):
        self.clock = clock
        self.decode_responses = decode_responses
        self.store = {}
        self.down = False
        self.closed = False
        self.set_calls = []

    def _check(self):
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.store[key]
            return None
        # replies are bytes unless the client decodes them, as redis-py does
        return value.decode("utf-8") if self.decode_responses else value

    async def set(self, key, value, ex=None):
        self._check()
        self.set_calls.append((key, value, ex))
        expires_at = self.clock() + ex if ex is not None else None
        raw = value.encode("utf-8") if isinstance(value, str) else value
        self.store[key] = (raw, expires_at)
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def aclose(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_image(i):
    public_id = f"samples/gallery/photo-{i}"
    return ImageDescriptor(
        id=public_id,
        display_url=f"https://res.cloudinary.com/demo/image/upload/c_fill,h_400,q_auto,w_400/{public_id}",
        original_url=f"https://res.cloudinary.com/demo/image/upload/v1/{public_id}.jpg",
        title=f"photo-{i}",
    )


@pytest.fixture
def snapshot():
    """A three image gallery."""
    return GallerySnapshot(images=tuple(make_image(i) for i in range(3)))


@pytest.fixture
def other_snapshot():
    return GallerySnapshot(images=(make_image(99),))


@pytest.fixture
def fetcher(snapshot):
    """Upstream fetcher double that counts calls."""
    return AsyncMock(return_value=snapshot)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    return FakeRedis(clock=clock)


@pytest.fixture
async def cache(fake_redis):
    """Connected cache handle over the in-memory store."""
    handle = CacheHandle(fake_redis)
    await handle.connect()
    return handle


@pytest.fixture
def down_cache():
    """Cache handle whose store refuses connections."""
    client = FakeRedis()
    client.down = True
    return CacheHandle(client)


@pytest.fixture
def settings():
    return Settings(
        cloud_name="demo",
        api_key="key-123",
        api_secret="secret-456",
    )
