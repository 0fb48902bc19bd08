"""Shared base class for httpx-based indexer adapters.

Covers the boilerplate every adapter needs: client lifecycle, URL joining,
GET with structured logging and error mapping, and JSON decoding.

This base class lives in the *infrastructure* layer because it depends
on ``httpx`` and ``structlog``.  The *domain* layer only knows
``TorrentIndexerPort``; adapters inheriting from ``HttpxIndexerBase``
structurally satisfy that Protocol.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from aggregarr.domain.indexers.exceptions import (
    BadStatusCodeError,
    IndexerTransportError,
    InvalidBaseUrlError,
    MalformedPayloadError,
)

from .constants import DEFAULT_CLIENT_TIMEOUT, DEFAULT_USER_AGENT


def join_url(base_url: str, path: str = "") -> str:
    """Join *base_url* and *path* with exactly one ``/`` between them."""
    base = base_url.strip().rstrip("/")
    tail = path.strip().strip("/")
    if not tail:
        return base
    return f"{base}/{tail}"


class HttpxIndexerBase:
    """Shared base for httpx-based indexer adapters.

    Subclasses **must** set ``name`` (class attribute or via ``__init__``)
    and implement ``search()`` / ``search_by_query()``.

    A client passed in is shared and never closed here; otherwise a
    private client is created lazily and closed by ``cleanup()``.
    """

    name: str = ""

    _timeout: float = DEFAULT_CLIENT_TIMEOUT
    _user_agent: str = DEFAULT_USER_AGENT

    def __init__(
        self,
        *,
        name: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if name:
            self.name = name
        self._client: httpx.AsyncClient | None = http_client
        self._owns_client = http_client is None
        self._log = structlog.get_logger(__name__).bind(indexer=self.name)

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Create httpx client if not already running."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
            self._owns_client = True
        return self._client

    async def cleanup(self) -> None:
        """Close the private httpx client (shared clients are left open)."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context: str = "",
    ) -> httpx.Response:
        """GET *url*; non-2xx and network failures raise transport errors.

        A URL httpx cannot parse raises InvalidBaseUrlError.
        """
        client = await self._ensure_client()
        try:
            resp = await client.get(
                url, params=params, headers=headers, timeout=self._timeout
            )
        except httpx.InvalidURL as exc:
            self._log.warning(
                "indexer_invalid_url", url=url, error=str(exc), context=context
            )
            raise InvalidBaseUrlError(url) from exc
        except httpx.TimeoutException as exc:
            self._log.warning("indexer_timeout", url=url, context=context)
            raise IndexerTransportError(f"{self.name}: timeout for {url}") from exc
        except httpx.HTTPError as exc:
            self._log.warning(
                "indexer_fetch_error", url=url, error=str(exc), context=context
            )
            raise IndexerTransportError(f"{self.name}: {exc}") from exc

        if not resp.is_success:
            self._log.warning(
                "indexer_http_error",
                url=str(resp.url),
                status=resp.status_code,
                context=context,
            )
            raise BadStatusCodeError(resp.status_code, str(resp.url))
        return resp

    def _parse_json(self, response: httpx.Response, context: str = "") -> Any:
        """Decode a JSON body; undecodable bodies are a transport failure."""
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            self._log.warning(
                "indexer_invalid_json", url=str(response.url), context=context
            )
            raise MalformedPayloadError(
                f"{self.name}: invalid JSON from {response.url}"
            ) from exc

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context: str = "",
    ) -> Any:
        resp = await self._get(url, params=params, headers=headers, context=context)
        return self._parse_json(resp, context=context)
