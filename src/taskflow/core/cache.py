"""Redis-backed read-through cache for per-project listings and statistics."""

from __future__ import annotations

import json
import logging
from threading import Lock
from typing import Any, Awaitable, Callable, TypeVar, cast

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from redis.asyncio import Redis

from .config import Settings, get_settings

T = TypeVar("T")

logger = logging.getLogger("taskflow.core.cache")

TASK_LIST_CACHE_NAMESPACE = "tasks:project"
TASK_STATISTICS_CACHE_NAMESPACE = "stats:project"


class CacheMetrics:
    """In-memory counters for cache behaviour instrumentation."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.invalidations = 0
        self.skipped = 0
        self.errors = 0

    def _bump(self, attribute: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, attribute, getattr(self, attribute) + amount)

    def record_hit(self) -> None:
        self._bump("hits")

    def record_miss(self) -> None:
        self._bump("misses")

    def record_store(self) -> None:
        self._bump("stores")

    def record_invalidation(self, amount: int = 1) -> None:
        self._bump("invalidations", amount)

    def record_skipped(self) -> None:
        self._bump("skipped")

    def record_error(self) -> None:
        self._bump("errors")

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "stores": self.stores,
                "invalidations": self.invalidations,
                "skipped": self.skipped,
                "errors": self.errors,
            }


def task_list_key(project_id: int, query: str) -> str:
    return f"{TASK_LIST_CACHE_NAMESPACE}:{project_id}:{query}"


def task_statistics_key(project_id: int) -> str:
    return f"{TASK_STATISTICS_CACHE_NAMESPACE}:{project_id}"


class ProjectCache:
    """Best-effort cache keyed by project.

    A ``None`` client disables caching. Any Redis failure is logged and the
    caller falls through to the builder, so the cache never changes the
    outcome of an operation.
    """

    def __init__(
        self,
        client: Redis | None,
        *,
        default_ttl: int | None = None,
        metrics: CacheMetrics | None = None,
    ) -> None:
        self._client = client
        self._default_ttl = get_settings().cache_default_ttl_seconds if default_ttl is None else default_ttl
        self.metrics = metrics or CacheMetrics()

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        client = self._client
        self._client = None
        if client is not None:
            await client.aclose()

    async def get_or_set(
        self,
        key: str,
        builder: Callable[[], Awaitable[T]],
        *,
        model: type[BaseModel] | None = None,
        ttl: int | None = None,
    ) -> T:
        """Return a cached value or compute and store it if absent."""

        client = self._client
        if client is None:
            self.metrics.record_skipped()
            return await builder()

        cached_payload: Any = None
        try:
            cached_payload = await client.get(key)
        except Exception:
            self.metrics.record_error()
            logger.warning("Failed to read cache key %s; bypassing cache.", key, exc_info=True)

        if cached_payload is not None:
            try:
                data = json.loads(cached_payload)
                value = model.model_validate(data) if model is not None else data
            except ValueError:
                logger.warning("Discarding undecodable cache entry %s", key, exc_info=True)
            else:
                self.metrics.record_hit()
                logger.debug("Cache hit for %s", key)
                return cast(T, value)

        self.metrics.record_miss()
        logger.debug("Cache miss for %s", key)

        result = await builder()
        serialized = json.dumps(jsonable_encoder(result))
        expires: int | None = self._default_ttl if ttl is None else ttl
        if expires is not None and expires <= 0:
            expires = None

        try:
            await client.set(key, serialized, ex=expires)
        except Exception:
            self.metrics.record_error()
            logger.warning("Failed to store cache key %s", key, exc_info=True)
        else:
            self.metrics.record_store()
        return result

    async def invalidate_project(self, project_id: int) -> None:
        """Drop cached task listings and statistics for ``project_id``."""

        client = self._client
        if client is None:
            return

        pattern = f"{TASK_LIST_CACHE_NAMESPACE}:{project_id}:*"
        try:
            keys = [key async for key in client.scan_iter(match=pattern)]
            keys.append(task_statistics_key(project_id))
            removed = await client.delete(*keys)
        except Exception:
            self.metrics.record_error()
            logger.warning(
                "Failed to invalidate cache for project %s",
                project_id,
                exc_info=True,
                extra={"project_id": project_id},
            )
            return
        self.metrics.record_invalidation(int(removed or 0))
        logger.debug("Invalidated %s cache entries for project %s", removed, project_id)


async def create_cache_client(settings: Settings | None = None) -> Redis | None:
    """Connect to Redis for caching, or return ``None`` when unavailable."""

    settings = settings or get_settings()
    if not settings.cache_enabled:
        return None
    try:
        client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        await client.ping()
    except Exception:
        logger.warning("Redis cache unavailable; caching will be bypassed.", exc_info=True)
        return None
    return client


__all__ = [
    "CacheMetrics",
    "ProjectCache",
    "TASK_LIST_CACHE_NAMESPACE",
    "TASK_STATISTICS_CACHE_NAMESPACE",
    "create_cache_client",
    "task_list_key",
    "task_statistics_key",
]
