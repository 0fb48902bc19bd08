"""Diskcache adapter - SQLite-backed key-value store without a daemon."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """CachePort on top of the synchronous ``diskcache.Cache``.

    Each call runs in a worker thread. A semaphore caps how many of them
    touch the SQLite file at once, since concurrent writers only contend
    for its lock. With the default ``ttl_seconds=0`` entries live until
    deleted, which the indexer config store depends on.
    """

    def __init__(
        self,
        directory: str | Path = "./data/aggregarr",
        ttl_seconds: int = 0,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._cache: DiskCache | None = None
        log.debug(
            "diskcache_adapter_created",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
        )

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._cache is None:
            # DiskCache() creates the directory and the SQLite file
            self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("diskcache_opened", path=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        cache, self._cache = self._cache, None
        if cache is not None:
            await asyncio.to_thread(cache.close)
            log.info("diskcache_closed", directory=str(self.directory))

    def _open_cache(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError("DiskcacheAdapter used before 'async with' opened it")
        return self._cache

    def _expire(self, ttl: int | None) -> int | None:
        seconds = self.default_ttl if ttl is None else ttl
        return seconds or None

    async def _run(self, func, *args, **kwargs):
        async with self._semaphore:
            return await asyncio.to_thread(func, *args, **kwargs)

    async def get(self, key: str) -> Any | None:
        value = await self._run(self._open_cache().get, key, default=None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire = self._expire(ttl)
        await self._run(self._open_cache().set, key, value, expire=expire)
        log.debug("cache_set", key=key, ttl=expire)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False
        deleted = await self._run(self._cache.delete, key)
        log.debug("cache_delete", key=key, deleted=deleted)
        return bool(deleted)

    async def write_batch(
        self,
        updates: Mapping[str, Any],
        *,
        deletions: Iterable[str] = (),
        ttl: int | None = None,
    ) -> None:
        cache = self._open_cache()
        expire = self._expire(ttl)
        items = list(updates.items())
        keys = list(deletions)

        def _write() -> None:
            # one SQLite transaction; an exception rolls every write back
            with cache.transact():
                for key, value in items:
                    cache.set(key, value, expire=expire)
                for key in keys:
                    cache.delete(key)

        await self._run(_write)
        log.debug("cache_write_batch", updated=len(items), deleted=len(keys))

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        # `in` skips expired entries
        return await self._run(self._cache.__contains__, key)

    async def clear(self) -> None:
        if self._cache is None:
            return
        removed = await self._run(self._cache.clear)
        log.warning("cache_cleared", directory=str(self.directory), removed=removed)
