"""Builds the CachePort adapter selected by ``store.backend``."""

from __future__ import annotations

from typing import Literal

import structlog

from aggregarr.domain.ports.cache import CachePort
from aggregarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from aggregarr.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]

# Redis multiplexes over a pool, so it tolerates more parallel commands.
_REDIS_MAX_CONCURRENT = 50


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./data/aggregarr",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 0,
    max_concurrent: int = 10,
) -> CachePort:
    """Return an unopened adapter; callers enter it with ``async with``.

    ``max_concurrent`` applies to diskcache only.

    Raises:
        ValueError: unknown ``backend``.
    """
    cache: CachePort
    if backend == "diskcache":
        cache = DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
        target = directory
    elif backend == "redis":
        cache = RedisAdapter(
            url=redis_url,
            ttl_seconds=ttl_seconds,
            max_concurrent=_REDIS_MAX_CONCURRENT,
        )
        target = redis_url
    else:
        raise ValueError(
            f"Unknown cache backend: {backend!r} (expected 'diskcache' or 'redis')"
        )
    log.info("cache_backend_selected", backend=backend, target=target)
    return cache
