"""YTS movie indexer with host fallback."""

from __future__ import annotations

from typing import Any

import httpx

from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import (
    IndexerTransportError,
    MalformedPayloadError,
)
from aggregarr.infrastructure.common.converters import to_count, to_int64

from .constants import YTS_HOSTS, YTS_PAGE_LIMIT
from .httpx_base import HttpxIndexerBase, join_url


def _format_title(movie: dict[str, Any], torrent: dict[str, Any]) -> str:
    base = movie.get("title_long") or movie.get("title") or ""
    title = str(base)
    for badge in (torrent.get("quality"), torrent.get("type")):
        if isinstance(badge, str) and badge.strip():
            title += f" [{badge.strip()}]"
    return title


def parse_yts_payload(payload: Any, indexer_name: str) -> list[TorrentResult]:
    """Flatten ``data.movies[].torrents[]`` into results."""
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"{indexer_name}: unexpected payload")
    data = payload.get("data")
    if not isinstance(data, dict):
        return []
    movies = data.get("movies")
    if not isinstance(movies, list):
        return []

    results: list[TorrentResult] = []
    for movie in movies:
        if not isinstance(movie, dict):
            continue
        for torrent in movie.get("torrents") or []:
            if not isinstance(torrent, dict):
                continue
            info_hash = torrent.get("hash")
            result = TorrentResult.from_search(
                info_hash=info_hash if isinstance(info_hash, str) else None,
                title=_format_title(movie, torrent),
                seeders=to_count(torrent.get("seeds")),
                leechers=to_count(torrent.get("peers")),
                size_bytes=to_int64(torrent.get("size_bytes")),
                indexer_name=indexer_name,
            )
            if result is not None:
                results.append(result)
    return results


class YTSIndexer(HttpxIndexerBase):
    """Movie-only indexer for the YTS JSON API.

    Hosts are tried in order.  A host that fails or returns no movies
    hands over to the next one; the first non-empty answer wins.  When
    every host failed, the last transport error is raised.
    """

    name = "YTS"

    def __init__(
        self,
        *,
        hosts: tuple[str, ...] = YTS_HOSTS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client=http_client)
        self.hosts = hosts

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        if media_type != "movie":
            return []
        return await self._search_hosts(imdb_id)

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        if media_type != "movie":
            return []
        return await self._search_hosts(query)

    async def _search_hosts(self, term: str) -> list[TorrentResult]:
        params = {"query_term": term, "limit": YTS_PAGE_LIMIT}
        last_error: IndexerTransportError | None = None
        answered = False

        for host in self.hosts:
            url = join_url(host, "list_movies.json")
            try:
                payload = await self._get_json(url, params=params, context=host)
                results = parse_yts_payload(payload, self.name)
            except IndexerTransportError as exc:
                last_error = exc
                self._log.info("yts_host_failed", host=host, error=str(exc))
                continue

            answered = True
            if results:
                return results
            self._log.debug("yts_host_empty", host=host)

        if not answered and last_error is not None:
            raise last_error
        return []
