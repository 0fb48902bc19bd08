"""Zilean (DMM hash index) indexer."""

from __future__ import annotations

from typing import Any

import httpx

from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import MalformedPayloadError
from aggregarr.infrastructure.common.converters import to_int64

from .httpx_base import HttpxIndexerBase, join_url


def parse_zilean_payload(payload: Any, indexer_name: str) -> list[TorrentResult]:
    if not isinstance(payload, list):
        raise MalformedPayloadError(f"{indexer_name}: expected a JSON array")

    results: list[TorrentResult] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        info_hash = entry.get("info_hash") or entry.get("infoHash")
        title = entry.get("raw_title") or entry.get("rawTitle") or ""
        # Zilean indexes debrid caches; it has no swarm statistics.
        result = TorrentResult.from_search(
            info_hash=info_hash if isinstance(info_hash, str) else None,
            title=str(title),
            size_bytes=to_int64(entry.get("size")),
            indexer_name=indexer_name,
        )
        if result is not None:
            results.append(result)
    return results


class ZileanIndexer(HttpxIndexerBase):
    def __init__(
        self,
        *,
        base_url: str,
        name: str = "Zilean",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(name=name, http_client=http_client)
        self.base_url = base_url

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        params: dict[str, Any] = {"imdbId": imdb_id}
        if media_type == "series":
            if season is not None:
                params["season"] = season
            if episode is not None:
                params["episode"] = episode
        payload = await self._get_json(
            join_url(self.base_url, "dmm/filtered"), params=params, context="filtered"
        )
        return parse_zilean_payload(payload, self.name)

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        payload = await self._get_json(
            join_url(self.base_url, "dmm/search"),
            params={"query": query},
            context="search",
        )
        return parse_zilean_payload(payload, self.name)
