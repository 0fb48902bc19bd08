"""Composition root: builds every long-lived resource inside the FastAPI lifespan."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from aggregarr.application.use_cases.indexer_manager import IndexerManager
from aggregarr.infrastructure.cache.cache_factory import create_cache
from aggregarr.infrastructure.config import AppConfig
from aggregarr.infrastructure.indexers.connectivity import IndexerConnectivityTester
from aggregarr.infrastructure.indexers.factory import IndexerFactory
from aggregarr.infrastructure.persistence.indexer_config_cache import (
    CacheIndexerConfigStore,
)
from aggregarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store, the shared HTTP client and the indexer manager.

    Resources are released in reverse order on shutdown, and also when a
    later startup step fails.
    """
    state = cast(AppState, app.state)
    config = state.config

    async with AsyncExitStack() as stack:
        # ttl 0: indexer configs never expire
        state.cache = await stack.enter_async_context(
            create_cache(
                backend=config.store.backend,
                directory=str(config.store.directory),
                redis_url=config.store.redis_url,
                ttl_seconds=0,
                max_concurrent=config.store.max_concurrent,
            )
        )
        stack.callback(log.info, "store_closing")

        state.http_client = await stack.enter_async_context(_http_client(config))
        stack.callback(log.info, "http_client_closing")

        state.indexer_store = CacheIndexerConfigStore(cache=state.cache)
        state.connectivity_tester = IndexerConnectivityTester(
            state.http_client,
            timeout=config.connectivity.timeout_seconds,
        )
        manager = IndexerManager(
            store=state.indexer_store,
            indexer_factory=IndexerFactory(state.http_client),
            connectivity_tester=state.connectivity_tester,
            max_concurrent=config.search.max_concurrent_indexers,
            indexer_timeout=config.search.indexer_timeout_seconds,
            strict_episode_matching=config.search.strict_episode_matching,
        )
        stack.push_async_callback(manager.aclose)
        await manager.initialize()
        state.indexer_manager = manager

        log.info(
            "app_startup_complete",
            store=config.store.backend,
            indexers=manager.configured_indexer_names,
        )
        yield

    log.info("app_shutdown_complete")
