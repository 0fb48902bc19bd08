"""APIBay (The Pirate Bay JSON API) indexer."""

from __future__ import annotations

from typing import Any

import httpx

from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import MalformedPayloadError
from aggregarr.domain.indexers import episode_matcher
from aggregarr.infrastructure.common.converters import to_count, to_int64

from .constants import APIBAY_BASE_URL, APIBAY_NO_RESULTS, ZERO_HASH
from .httpx_base import HttpxIndexerBase, join_url


def parse_apibay_payload(payload: Any, indexer_name: str) -> list[TorrentResult]:
    """Parse the ``q.php`` array; every field arrives as a string."""
    if not isinstance(payload, list):
        raise MalformedPayloadError(f"{indexer_name}: expected a JSON array")

    results: list[TorrentResult] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name") or "")
        info_hash = str(entry.get("info_hash") or "")
        if (
            str(entry.get("id", "")) == "0"
            or name == APIBAY_NO_RESULTS
            or not info_hash
            or info_hash == ZERO_HASH
        ):
            continue
        result = TorrentResult.from_search(
            info_hash=info_hash,
            title=name,
            seeders=to_count(entry.get("seeders")),
            leechers=to_count(entry.get("leechers")),
            size_bytes=to_int64(entry.get("size")),
            indexer_name=indexer_name,
        )
        if result is not None:
            results.append(result)
    return results


class APIBayIndexer(HttpxIndexerBase):
    name = "APiBay"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client=http_client)
        self.base_url = base_url or APIBAY_BASE_URL

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        query = imdb_id
        if media_type == "series" and season is not None and episode is not None:
            query = f"{imdb_id} {episode_matcher.episode_token(season, episode)}"
            results = await self._query(query)
            return [
                r for r in results if episode_matcher.matches(r.title, season, episode)
            ]
        return await self._query(query)

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        return await self._query(query)

    async def _query(self, query: str) -> list[TorrentResult]:
        payload = await self._get_json(
            join_url(self.base_url, "q.php"),
            params={"q": query, "cat": 0},
            context="q",
        )
        return parse_apibay_payload(payload, self.name)
