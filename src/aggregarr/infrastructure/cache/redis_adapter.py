"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """CachePort backed by a Redis database.

    Values are pickled, so anything the diskcache adapter can hold works
    here too. Errors from Redis propagate; the indexer config store turns
    them into ``ConfigStoreError``.

    Args:
        url: e.g. ``redis://localhost:6379/0``.
        ttl_seconds: Default expiry for ``set()``; 0 keeps keys forever.
        max_concurrent: Upper bound on in-flight commands.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 0,
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._client: Redis | None = None
        log.debug("redis_adapter_created", url=url, default_ttl=ttl_seconds)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is not None:
            return self
        client = Redis.from_url(self.url, decode_responses=False)
        try:
            await client.ping()
        except RedisError as exc:
            log.error("redis_connection_failed", url=self.url, error=str(exc))
            await client.aclose()
            raise
        self._client = client
        log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            log.info("redis_closed")

    def _connected(self) -> Redis:
        if self._client is None:
            raise RuntimeError("RedisAdapter used before 'async with' connected it")
        return self._client

    async def get(self, key: str) -> Any | None:
        client = self._connected()
        async with self._semaphore:
            raw = await client.get(key)
        log.debug("cache_get", key=key, hit=raw is not None)
        return None if raw is None else pickle.loads(raw)

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._connected()
        seconds = self.default_ttl if ttl is None else ttl
        payload = pickle.dumps(value)
        async with self._semaphore:
            # ex=None stores without expiry
            await client.set(key, payload, ex=seconds if seconds > 0 else None)
        log.debug("cache_set", key=key, ttl=seconds, size_bytes=len(payload))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            removed = await self._client.delete(key)
        log.debug("cache_delete", key=key, deleted=removed > 0)
        return removed > 0

    async def write_batch(
        self,
        updates: Mapping[str, Any],
        *,
        deletions: Iterable[str] = (),
        ttl: int | None = None,
    ) -> None:
        """Queue every command in a MULTI/EXEC pipeline and run it at once."""
        client = self._connected()
        seconds = self.default_ttl if ttl is None else ttl
        payloads = {key: pickle.dumps(value) for key, value in updates.items()}
        keys = list(deletions)
        async with self._semaphore:
            async with client.pipeline(transaction=True) as pipe:
                for key, payload in payloads.items():
                    pipe.set(key, payload, ex=seconds if seconds > 0 else None)
                for key in keys:
                    pipe.delete(key)
                await pipe.execute()
        log.debug("cache_write_batch", updated=len(payloads), deleted=len(keys))

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            count = await self._client.exists(key)
        return count > 0

    async def clear(self) -> None:
        if self._client is None:
            return
        async with self._semaphore:
            await self._client.flushdb()
        log.warning("redis_flushed", url=self.url)
