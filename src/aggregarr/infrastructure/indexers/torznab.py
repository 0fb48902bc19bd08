"""Torznab-family adapter (generic Torznab, Jackett, Prowlarr).

Two request dialects are spoken:

* Torznab: ``t=movie|tvsearch|search`` with ``imdbid``/``season``/``ep``
  or ``q`` and an optional ``cat`` filter.
* Prowlarr search API (endpoint path contains ``/api/v1/search``):
  ``type=moviesearch|tvsearch`` with a structured ``query`` such as
  ``{ImdbId:tt0944947} {Season:1} {Episode:2}``.

Responses are either Torznab RSS/XML or the Prowlarr JSON search payload;
the body itself decides which parser runs.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any

import httpx

from aggregarr.domain.entities.indexer import ApiKeyTransport
from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers.exceptions import (
    IndexerTransportError,
    MalformedPayloadError,
    MissingApiKeyError,
)
from aggregarr.infrastructure.common.converters import to_count, to_int64
from aggregarr.infrastructure.common.extractors import extract_info_hash

from .constants import API_KEY_HEADER, PROWLARR_SEARCH_PATH
from .httpx_base import HttpxIndexerBase, join_url

# Undeclared prefixes (``<torznab:attr>`` without ``xmlns:torznab``) would
# make the XML parser fail, so such tags are flattened to ``torznab_attr``.
_PREFIXED_TAG_RE = re.compile(r"<(/?)([A-Za-z][\w.-]*):")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].lower()


def _is_attr_element(tag: str) -> bool:
    local = _local_name(tag)
    return local == "attr" or local.endswith("_attr")


def _strip_undeclared_prefixes(body: str) -> str:
    declared = set(re.findall(r"xmlns:([\w.-]+)\s*=", body))

    def _replace(match: re.Match[str]) -> str:
        prefix = match.group(2)
        if prefix in declared:
            return match.group(0)
        return f"<{match.group(1)}{prefix}_"

    return _PREFIXED_TAG_RE.sub(_replace, body)


def parse_torznab_xml(body: str, indexer_name: str) -> list[TorrentResult]:
    """Parse a Torznab RSS document into results.

    ``torznab:attr`` elements are read from their attribute dict, so the
    order of ``name`` and ``value`` does not matter.  Items without an
    extractable info hash are skipped.

    Raises:
        MalformedPayloadError: body is not well-formed XML.
        IndexerTransportError: the indexer answered with an ``<error>`` document.
    """
    try:
        root = ET.fromstring(_strip_undeclared_prefixes(body))
    except ET.ParseError as exc:
        raise MalformedPayloadError(f"{indexer_name}: invalid Torznab XML") from exc

    if _local_name(root.tag) == "error":
        description = root.attrib.get("description") or root.attrib.get("code", "")
        raise IndexerTransportError(f"{indexer_name}: {description}")

    results: list[TorrentResult] = []
    for item in root.iter():
        if _local_name(item.tag) != "item":
            continue
        result = _parse_xml_item(item, indexer_name)
        if result is not None:
            results.append(result)
    return results


def _parse_xml_item(item: ET.Element, indexer_name: str) -> TorrentResult | None:
    attrs: dict[str, str] = {}
    fields: dict[str, str] = {}
    enclosure_url: str | None = None

    for child in item:
        if _is_attr_element(child.tag):
            name = child.attrib.get("name")
            value = child.attrib.get("value")
            if name and value is not None:
                attrs.setdefault(name.lower(), value)
            continue
        local = _local_name(child.tag)
        if local == "enclosure":
            enclosure_url = child.attrib.get("url")
        elif child.text:
            fields.setdefault(local, child.text.strip())

    magnet = attrs.get("magneturl")
    for candidate in (fields.get("link"), enclosure_url, fields.get("guid")):
        if magnet is None and candidate and candidate.startswith("magnet:"):
            magnet = candidate

    info_hash = attrs.get("infohash") or extract_info_hash(magnet)
    return TorrentResult.from_search(
        info_hash=info_hash,
        title=fields.get("title", ""),
        seeders=to_count(attrs.get("seeders")),
        leechers=to_count(attrs.get("peers", attrs.get("leechers"))),
        size_bytes=to_int64(attrs.get("size", fields.get("size"))),
        indexer_name=indexer_name,
        magnet_uri=magnet,
    )


def parse_prowlarr_json(payload: Any, indexer_name: str) -> list[TorrentResult]:
    """Parse a Prowlarr search response (array, or object with ``results``)."""
    if isinstance(payload, dict):
        payload = payload.get("results")
    if not isinstance(payload, list):
        raise MalformedPayloadError(f"{indexer_name}: unexpected search payload")

    results: list[TorrentResult] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        magnet = entry.get("magnetUrl") or entry.get("magnetUri")
        if not isinstance(magnet, str):
            magnet = None
        guid = entry.get("guid")
        if magnet is None and isinstance(guid, str) and guid.startswith("magnet:"):
            magnet = guid
        info_hash = entry.get("infoHash") or entry.get("hash")
        if not isinstance(info_hash, str):
            info_hash = extract_info_hash(magnet)
        result = TorrentResult.from_search(
            info_hash=info_hash,
            title=str(entry.get("title") or entry.get("name") or ""),
            seeders=to_count(entry.get("seeders")),
            leechers=to_count(entry.get("leechers", entry.get("peers"))),
            size_bytes=to_int64(entry.get("size")),
            indexer_name=indexer_name,
            magnet_uri=magnet,
        )
        if result is not None:
            results.append(result)
    return results


class TorznabIndexer(HttpxIndexerBase):
    """Adapter for Torznab endpoints, including Jackett and Prowlarr."""

    def __init__(
        self,
        *,
        name: str,
        base_url: str,
        endpoint_path: str = "/api",
        api_key: str | None = None,
        category_filter: str | None = None,
        api_key_transport: ApiKeyTransport = ApiKeyTransport.QUERY,
        requires_api_key: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(name=name, http_client=http_client)
        self.base_url = base_url
        self.endpoint_path = endpoint_path
        self.api_key = api_key
        self.category_filter = category_filter
        self.api_key_transport = ApiKeyTransport(api_key_transport)
        self.requires_api_key = requires_api_key

    @property
    def url(self) -> str:
        return join_url(self.base_url, self.endpoint_path)

    @property
    def uses_prowlarr_search_api(self) -> bool:
        return PROWLARR_SEARCH_PATH in self.endpoint_path.lower()

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _check_config(self) -> None:
        if self.requires_api_key and not (self.api_key and self.api_key.strip()):
            raise MissingApiKeyError(self.name)

    def _auth(self, params: dict[str, Any]) -> dict[str, str]:
        """Attach the API key to *params* or return it as a header."""
        if not self.api_key:
            return {}
        if self.api_key_transport is ApiKeyTransport.HEADER:
            return {API_KEY_HEADER: self.api_key}
        params["apikey"] = self.api_key
        return {}

    def _add_categories(self, params: dict[str, Any]) -> None:
        if not self.category_filter:
            return
        key = "categories" if self.uses_prowlarr_search_api else "cat"
        params[key] = self.category_filter

    def build_search_params(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Query params and headers for an IMDb id search."""
        params: dict[str, Any] = {}
        if self.uses_prowlarr_search_api:
            tokens = [f"{{ImdbId:{imdb_id}}}"]
            if media_type == "series":
                if season is not None:
                    tokens.append(f"{{Season:{season}}}")
                if episode is not None:
                    tokens.append(f"{{Episode:{episode}}}")
            params["type"] = "tvsearch" if media_type == "series" else "moviesearch"
            params["query"] = " ".join(tokens)
        else:
            params["t"] = "tvsearch" if media_type == "series" else "movie"
            params["imdbid"] = imdb_id
            if media_type == "series":
                if season is not None:
                    params["season"] = season
                if episode is not None:
                    params["ep"] = episode
        self._add_categories(params)
        headers = self._auth(params)
        return params, headers

    def build_query_params(
        self, query: str, media_type: MediaType
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Query params and headers for a free-text search."""
        params: dict[str, Any]
        if self.uses_prowlarr_search_api:
            params = {"type": "search", "query": query}
        else:
            params = {"t": "search", "q": query}
        self._add_categories(params)
        headers = self._auth(params)
        return params, headers

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        self._check_config()
        params, headers = self.build_search_params(imdb_id, media_type, season, episode)
        return await self._fetch_results(params, headers, context="search")

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        self._check_config()
        params, headers = self.build_query_params(query, media_type)
        return await self._fetch_results(params, headers, context="query")

    async def _fetch_results(
        self,
        params: dict[str, Any],
        headers: dict[str, str],
        *,
        context: str,
    ) -> list[TorrentResult]:
        resp = await self._get(self.url, params=params, headers=headers, context=context)
        results = self.parse_response(resp.text)
        self._log.debug("torznab_search_done", context=context, result_count=len(results))
        return results

    def parse_response(self, body: str) -> list[TorrentResult]:
        text = body.lstrip("\ufeff \t\r\n")
        if text.startswith("<"):
            return parse_torznab_xml(text, self.name)
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise MalformedPayloadError(
                f"{self.name}: response is neither XML nor JSON"
            ) from exc
        return parse_prowlarr_json(payload, self.name)
