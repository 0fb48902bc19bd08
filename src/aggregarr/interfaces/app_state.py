"""Typed view of ``app.state`` for the routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from aggregarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from aggregarr.application.use_cases.indexer_manager import IndexerManager
    from aggregarr.domain.ports import CachePort, IndexerConfigStorePort
    from aggregarr.infrastructure.indexers.connectivity import (
        IndexerConnectivityTester,
    )


class AppState(State):
    """Set by build_app() (config) and composition.lifespan() (the rest).

    Routers read it through ``cast(AppState, request.app.state)``.
    """

    config: AppConfig

    cache: CachePort
    http_client: httpx.AsyncClient
    indexer_store: IndexerConfigStorePort

    indexer_manager: IndexerManager
    connectivity_tester: IndexerConnectivityTester
