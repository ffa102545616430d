"""Answer cache stores backed by Redis or process memory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
import logging
import time

from pydantic import ValidationError
import redis.asyncio as aioredis

from tutor.config import Settings
from tutor.models.schemas import CacheEntry

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Key-value store for answered questions with per-entry expiry."""

    backend: str = "unknown"

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry stored under `key`, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        """Replace the entry stored under `key`."""

    async def close(self) -> None:
        return None


def _decode_entry(key: str, raw: str | bytes | None) -> CacheEntry | None:
    if raw is None:
        return None
    try:
        return CacheEntry.model_validate_json(raw)
    except ValidationError:
        logger.warning("Discarding undecodable cache payload for key=%s", key)
        return None


class RedisCacheStore(CacheStore):
    """Redis-backed cache using SET with EX for expiry."""

    backend = "redis"

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> CacheEntry | None:
        return _decode_entry(key, await self._client.get(key))

    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        await self._client.set(key, entry.model_dump_json(), ex=ttl_seconds)

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryCacheStore(CacheStore):
    """Process-local cache for development and tests."""

    backend = "in_memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> CacheEntry | None:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, raw = item
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return _decode_entry(key, raw)

    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, entry.model_dump_json())

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_store(settings: Settings) -> CacheStore | None:
    """Select a cache backend from settings; None disables caching."""
    if not settings.cache_enabled:
        logger.info("Answer cache disabled: REDIS_URL is not set.")
        return None
    if settings.is_cache_in_memory:
        return InMemoryCacheStore()
    return RedisCacheStore.from_url(settings.redis_url or "")
