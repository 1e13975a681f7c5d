# gallery/cache.py
# Purpose: Cache-aside gate in front of the media host, backed by Redis.
# Why: One well-known key holds the whole gallery; the handle carries its own liveness.
# Pitfalls: A down cache never fails a read; it only fails an explicit clear.

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from gallery.config import Settings
from gallery.errors import CacheUnavailable
from gallery.observability import CACHE_LOOKUPS
from gallery.schemas import GallerySnapshot

logger = logging.getLogger("gallery.cache")

IMAGES_CACHE_KEY = "cloudinary:images:all"
CACHE_TTL_SEC = 3600

Fetcher = Callable[[], Awaitable[GallerySnapshot]]


def build_redis_client(settings: Settings) -> redis.Redis:
    """Host/port credentials win over REDIS_URL when both are configured."""
    # replies stay bytes; GallerySnapshot.from_json validates the encoding
    common = {
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
    }
    if settings.redis_host and settings.redis_port:
        return redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            **common,
        )
    return redis.from_url(settings.redis_url, **common)


class CacheHandle:
    """Redis client plus whether it is usable. Shared by all requests of one app."""

    def __init__(self, client: redis.Redis | None = None):
        self._client = client
        self._connected = False

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheHandle:
        return cls(build_redis_client(settings))

    @property
    def available(self) -> bool:
        return self._client is not None and self._connected

    async def connect(self) -> bool:
        """Ping the store. On failure log and carry on without a cache."""
        if self._client is None:
            logger.warning("no cache client configured; proceeding without cache")
            return False
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            self._connected = False
            logger.warning("failed to connect to cache, proceeding without it: %s", e)
            return False
        self._connected = True
        logger.info("cache connected")
        return True

    async def close(self) -> None:
        if self._client is None:
            return
        was_connected = self._connected
        self._connected = False
        await self._client.aclose()
        if was_connected:
            logger.info("cache connection closed")

    def _require(self) -> redis.Redis:
        if not self.available:
            raise CacheUnavailable("Cache not connected")
        return self._client

    async def get(self, key: str) -> bytes | None:
        return await self._require().get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._require().set(key, value, ex=ttl)

    async def delete(self, key: str) -> int:
        return await self._require().delete(key)


async def _read_cached(handle: CacheHandle, key: str) -> GallerySnapshot | None:
    try:
        raw = await handle.get(key)
    except (RedisError, CacheUnavailable) as e:
        logger.warning("cache read failed for %s, treating as miss: %s", key, e)
        return None
    if raw is None:
        return None
    try:
        return GallerySnapshot.from_json(raw)
    except (ValidationError, UnicodeDecodeError) as e:
        logger.warning("discarding unreadable cache entry %s: %s", key, e)
        return None


async def get_or_fetch(
    handle: CacheHandle, key: str, ttl: int, fetcher: Fetcher
) -> tuple[GallerySnapshot, bool]:
    """
    Return (snapshot, was_cached).
      - cache down: fetch, never store, was_cached=False
      - hit: deserialize, fetcher untouched, was_cached=True
      - miss: fetch once, store with ttl, was_cached=False
    Fetcher errors propagate and nothing is stored.
    """
    if not handle.available:
        CACHE_LOOKUPS.labels(result="bypass").inc()
        return await fetcher(), False

    cached = await _read_cached(handle, key)
    if cached is not None:
        CACHE_LOOKUPS.labels(result="hit").inc()
        logger.info("serving %s from cache", key, extra={"cache_key": key, "cache_result": "hit"})
        return cached, True

    CACHE_LOOKUPS.labels(result="miss").inc()
    snapshot = await fetcher()
    try:
        await handle.set(key, snapshot.to_json(), ttl)
        logger.info("cached %s for %ds", key, ttl, extra={"cache_key": key, "ttl_s": ttl})
    except (RedisError, CacheUnavailable) as e:
        logger.warning("cache write failed for %s: %s", key, e)
    return snapshot, False


async def clear(handle: CacheHandle, key: str) -> None:
    """Remove the entry. Raises CacheUnavailable when the store is down."""
    removed = await handle.delete(key)
    logger.info("cleared %s", key, extra={"cache_key": key, "removed": removed})
