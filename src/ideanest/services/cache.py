"""Best-effort Redis cache.

The cache only ever accelerates reads. Any Redis failure is logged and the
caller falls through to the database, so an unreachable cache never turns
into a failed request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import redis
from pydantic import TypeAdapter, ValidationError

from ideanest.core.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILE_TTL_SECONDS = 300
PUBLIC_PROFILE_TTL_SECONDS = 600
USER_STATS_TTL_SECONDS = 1800
ADMIN_STATS_TTL_SECONDS = 300
TRENDING_TTL_SECONDS = 300


def build_redis_client(settings: Settings) -> redis.Redis | None:
    """Create the Redis client, or ``None`` when caching is disabled."""
    if not settings.cache_enabled:
        return None
    return redis.from_url(
        settings.redis_url,
        socket_timeout=settings.cache_socket_timeout,
        socket_connect_timeout=settings.cache_socket_timeout,
    )


class CacheService:
    """Namespaced JSON cache with TTL expiry."""

    def __init__(
        self,
        client: redis.Redis | None,
        *,
        prefix: str = "ideanest",
        default_ttl: int = 300,
    ) -> None:
        self._client = client
        self.prefix = prefix
        self.default_ttl = default_ttl

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def key(self, *parts: Any) -> str:
        return ":".join([self.prefix, *(str(part) for part in parts)])

    def get(self, key: str) -> bytes | None:
        if self._client is None:
            return None
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        if self._client is None:
            return
        try:
            self._client.set(key, value, ex=ttl or self.default_ttl)
        except redis.RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    def delete(self, *keys: str) -> None:
        if self._client is None or not keys:
            return
        try:
            self._client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("Cache invalidation failed for %s: %s", ", ".join(keys), exc)

    def get_or_load(
        self,
        key: str,
        adapter: TypeAdapter[T],
        loader: Callable[[], T],
        ttl: int | None = None,
    ) -> T:
        """Return the cached value for ``key`` or compute and store it."""
        raw = self.get(key)
        if raw is not None:
            try:
                return adapter.validate_json(raw)
            except ValidationError:
                logger.warning("Discarding malformed cache entry %s", key)
                self.delete(key)

        value = loader()
        self.set(key, adapter.dump_json(value), ttl)
        return value

    def ping(self) -> bool | None:
        """Return reachability, or ``None`` when caching is disabled."""
        if self._client is None:
            return None
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            logger.warning("Cache ping failed: %s", exc)
            return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
