"""Builds protocol adapters from persisted indexer configs."""

from __future__ import annotations

import httpx
import structlog

from aggregarr.domain.entities.indexer import IndexerConfig, IndexerType
from aggregarr.domain.ports.indexer import TorrentIndexerPort

from .apibay import APIBayIndexer
from .eztv import EZTVIndexer
from .stremio import StremioIndexer
from .torznab import TorznabIndexer
from .yts import YTSIndexer
from .zilean import ZileanIndexer

log = structlog.get_logger(__name__)


def create_indexer(
    config: IndexerConfig,
    http_client: httpx.AsyncClient | None = None,
) -> TorrentIndexerPort | None:
    """Return the adapter for *config*, or None if it cannot be built.

    Built-in backends (YTS, APIBay, EZTV) always construct.  Self-hosted
    backends need a base URL; a missing API key is reported by the adapter
    at search time, not here.
    """
    itype = config.indexer_type

    if itype is IndexerType.YTS:
        return YTSIndexer(http_client=http_client)
    if itype is IndexerType.APIBAY:
        return APIBayIndexer(
            base_url=config.base_url if config.has_base_url else None,
            http_client=http_client,
        )
    if itype is IndexerType.EZTV:
        return EZTVIndexer(http_client=http_client)

    if not config.has_base_url:
        log.warning(
            "indexer_missing_base_url",
            indexer=config.name,
            indexer_type=itype.value,
        )
        return None

    base_url = config.base_url.strip()
    if itype in (IndexerType.TORZNAB, IndexerType.JACKETT, IndexerType.PROWLARR):
        return TorznabIndexer(
            name=config.name,
            base_url=base_url,
            endpoint_path=config.endpoint_path or itype.default_endpoint_path,
            api_key=config.api_key,
            category_filter=config.category_filter,
            api_key_transport=config.api_key_transport,
            requires_api_key=itype.requires_api_key,
            http_client=http_client,
        )
    if itype is IndexerType.ZILEAN:
        return ZileanIndexer(base_url=base_url, name=config.name, http_client=http_client)
    if itype is IndexerType.STREMIO:
        return StremioIndexer(
            name=config.name,
            base_url=base_url,
            endpoint_path=config.endpoint_path or itype.default_endpoint_path,
            http_client=http_client,
        )

    log.warning("indexer_type_unsupported", indexer=config.name, indexer_type=itype)
    return None


class IndexerFactory:
    """Callable wrapper binding the shared HTTP client for the manager."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    def __call__(self, config: IndexerConfig) -> TorrentIndexerPort | None:
        return create_indexer(config, self._http_client)
