"""Stremio addon indexer (Torrentio and compatible addons)."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx

from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import MalformedPayloadError
from aggregarr.infrastructure.common.converters import to_count, to_int64
from aggregarr.infrastructure.common.extractors import (
    extract_imdb_id,
    extract_info_hash,
)

from .httpx_base import HttpxIndexerBase, join_url


def addon_root(base_url: str, endpoint_path: str = "/manifest.json") -> str:
    """Addon root URL: manifest URL with the ``manifest.json`` file removed.

    ``https://host/providers=x`` + ``/manifest.json`` → ``https://host/providers=x``
    """
    manifest_url = join_url(base_url, endpoint_path)
    parts = urlsplit(manifest_url)
    path = parts.path.rstrip("/")
    if path.lower().endswith(".json"):
        path = path.rsplit("/", 1)[0]
    return urlunsplit((parts.scheme, parts.netloc, path, "", "")).rstrip("/")


def stream_url(
    root: str,
    imdb_id: str,
    media_type: MediaType,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    media_id = imdb_id
    if media_type == "series" and season is not None and episode is not None:
        media_id = f"{imdb_id}:{season}:{episode}"
    return f"{root}/stream/{media_type}/{media_id}.json"


def _stream_hash(stream: dict[str, Any]) -> tuple[str | None, str | None]:
    """(info_hash, magnet) in priority order infoHash → url → externalUrl."""
    magnet = None
    for key in ("url", "externalUrl"):
        value = stream.get(key)
        if isinstance(value, str) and value.startswith("magnet:"):
            magnet = value
            break

    explicit = stream.get("infoHash")
    if isinstance(explicit, str) and explicit.strip():
        return explicit, magnet

    for key in ("url", "externalUrl"):
        value = stream.get(key)
        if isinstance(value, str):
            extracted = extract_info_hash(value)
            if extracted:
                return extracted, value
    return None, magnet


def parse_streams(payload: Any, indexer_name: str) -> list[TorrentResult]:
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"{indexer_name}: unexpected payload")
    streams = payload.get("streams")
    if streams is None:
        return []
    if not isinstance(streams, list):
        raise MalformedPayloadError(f"{indexer_name}: 'streams' is not a list")

    results: list[TorrentResult] = []
    for stream in streams:
        if not isinstance(stream, dict):
            continue
        info_hash, magnet = _stream_hash(stream)
        hints = stream.get("behaviorHints")
        if not isinstance(hints, dict):
            hints = {}
        title = stream.get("title") or stream.get("name") or "Stremio Stream"
        result = TorrentResult.from_search(
            info_hash=info_hash,
            title=str(title),
            seeders=to_count(hints.get("seeders")),
            leechers=to_count(hints.get("leechers")),
            size_bytes=to_int64(hints.get("videoSize")),
            indexer_name=indexer_name,
            magnet_uri=magnet,
        )
        if result is not None:
            results.append(result)
    return results


class StremioIndexer(HttpxIndexerBase):
    """Fetches ``/stream/{type}/{id}.json`` directly; the manifest is never read."""

    def __init__(
        self,
        *,
        name: str,
        base_url: str,
        endpoint_path: str = "/manifest.json",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(name=name, http_client=http_client)
        self.base_url = base_url
        self.endpoint_path = endpoint_path
        self.root = addon_root(base_url, endpoint_path)

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        url = stream_url(self.root, imdb_id, media_type, season, episode)
        payload = await self._get_json(url, context="stream")
        return parse_streams(payload, self.name)

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        imdb_id = extract_imdb_id(query)
        if imdb_id is None:
            return []
        return await self.search(imdb_id, media_type)
