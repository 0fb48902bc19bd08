"""Port for a single torrent search backend."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from aggregarr.domain.entities.indexer import IndexerConfig
from aggregarr.domain.entities.torrent import MediaType, TorrentResult


@runtime_checkable
class TorrentIndexerPort(Protocol):
    """Async interface every protocol adapter implements.

    Adapters raise ``IndexerConfigError`` before any network call when
    their config is unusable and ``IndexerTransportError`` for upstream
    failures.  Malformed individual entries are skipped, not raised.
    """

    name: str

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]: ...

    async def search_by_query(
        self,
        query: str,
        media_type: MediaType,
    ) -> list[TorrentResult]: ...


class IndexerFactoryPort(Protocol):
    """Builds an adapter for a config, or None when the config is unusable."""

    def __call__(self, config: IndexerConfig) -> TorrentIndexerPort | None: ...


class ConnectivityTesterPort(Protocol):
    async def test_connection(self, config: IndexerConfig) -> int:
        """Return the HTTP status on success; raise ``IndexerError`` otherwise."""
        ...
