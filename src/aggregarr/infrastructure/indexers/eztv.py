"""EZTV series indexer."""

from __future__ import annotations

from typing import Any

import httpx

from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import (
    IndexerTransportError,
    MalformedPayloadError,
)
from aggregarr.domain.indexers import episode_matcher
from aggregarr.infrastructure.common.converters import to_count, to_int, to_int64

from .constants import EZTV_API_URL, EZTV_MAX_PAGES, EZTV_PAGE_LIMIT
from .httpx_base import HttpxIndexerBase


def _torrents(payload: Any, indexer_name: str) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"{indexer_name}: unexpected payload")
    torrents = payload.get("torrents")
    if not isinstance(torrents, list):
        return []
    return [t for t in torrents if isinstance(t, dict)]


def _matches_episode(
    torrent: dict[str, Any], title: str, season: int | None, episode: int | None
) -> bool:
    if season is None:
        return True
    t_season = to_int(torrent.get("season"))
    t_episode = to_int(torrent.get("episode"))
    if t_season is not None and t_season > 0:
        if t_season != season:
            return False
        if episode is None:
            return True
        if t_episode is not None and t_episode > 0:
            return t_episode == episode
    if episode is None:
        return True
    return episode_matcher.matches(title, season, episode)


def _to_result(torrent: dict[str, Any], indexer_name: str) -> TorrentResult | None:
    magnet = torrent.get("magnet_url")
    return TorrentResult.from_search(
        info_hash=torrent.get("hash") if isinstance(torrent.get("hash"), str) else None,
        title=str(torrent.get("title") or torrent.get("filename") or ""),
        seeders=to_count(torrent.get("seeds")),
        leechers=to_count(torrent.get("peers")),
        size_bytes=to_int64(torrent.get("size_bytes")),
        indexer_name=indexer_name,
        magnet_uri=magnet if isinstance(magnet, str) else None,
    )


class EZTVIndexer(HttpxIndexerBase):
    """Series-only indexer; pages through ``get-torrents`` by IMDb id."""

    name = "EZTV"

    def __init__(
        self,
        *,
        api_url: str = EZTV_API_URL,
        max_pages: int = EZTV_MAX_PAGES,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client=http_client)
        self.api_url = api_url
        self.max_pages = max_pages

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        if media_type != "series":
            return []
        numeric_id = imdb_id.removeprefix("tt")

        results: list[TorrentResult] = []
        for page in range(1, self.max_pages + 1):
            params = {"imdb_id": numeric_id, "limit": EZTV_PAGE_LIMIT, "page": page}
            try:
                payload = await self._get_json(
                    self.api_url, params=params, context=f"page={page}"
                )
            except IndexerTransportError:
                # A failing first page fails the search; later pages just stop.
                if page == 1:
                    raise
                break

            torrents = _torrents(payload, self.name)
            for torrent in torrents:
                result = _to_result(torrent, self.name)
                if result is None:
                    continue
                if _matches_episode(torrent, result.title, season, episode):
                    results.append(result)

            if len(torrents) < EZTV_PAGE_LIMIT:
                break
        return results

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        if media_type != "series":
            return []
        payload = await self._get_json(
            self.api_url,
            params={"search": query, "limit": EZTV_PAGE_LIMIT},
            context="query",
        )
        results = (_to_result(t, self.name) for t in _torrents(payload, self.name))
        return [r for r in results if r is not None]
