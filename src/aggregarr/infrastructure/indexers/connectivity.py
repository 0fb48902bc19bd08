"""Connectivity tester: one minimal validation request per indexer type.

Unlike searches, the tester reports the precise failure (missing key,
bad base URL, bad status) so a settings UI can show it.
"""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from aggregarr.domain.entities.indexer import ApiKeyTransport, IndexerConfig, IndexerType
from aggregarr.domain.indexers.exceptions import (
    BadStatusCodeError,
    InvalidBaseUrlError,
    InvalidResponseError,
    MissingApiKeyError,
)

from .constants import (
    API_KEY_HEADER,
    APIBAY_BASE_URL,
    CONNECTIVITY_TIMEOUT,
    DEFAULT_USER_AGENT,
    EZTV_API_URL,
    PROWLARR_SEARCH_PATH,
    YTS_HOSTS,
)
from .httpx_base import join_url

log = structlog.get_logger(__name__)


def _require_base_url(config: IndexerConfig) -> str:
    if not config.has_base_url:
        raise InvalidBaseUrlError(config.base_url)
    base_url = config.base_url.strip()
    try:
        parts = urlsplit(base_url)
    except ValueError as exc:
        raise InvalidBaseUrlError(base_url) from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise InvalidBaseUrlError(base_url)
    return base_url


def _require_api_key(config: IndexerConfig) -> str:
    if not config.has_api_key:
        raise MissingApiKeyError(config.name)
    return config.api_key.strip()


class IndexerConnectivityTester:
    """Builds and sends a cheap request proving an indexer is reachable."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float = CONNECTIVITY_TIMEOUT,
    ) -> None:
        self._http_client = http_client
        self._timeout = timeout

    def make_request(self, config: IndexerConfig) -> httpx.Request:
        """Build the validation request for *config*.

        Raises:
            InvalidBaseUrlError: base URL missing, malformed or not http(s).
            MissingApiKeyError: Torznab/Jackett/Prowlarr without API key.
        """
        itype = config.indexer_type
        params: dict[str, Any] = {}
        headers: dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT}

        if itype is IndexerType.APIBAY:
            base = config.base_url.strip() if config.has_base_url else APIBAY_BASE_URL
            url = join_url(base, "q.php")
            params = {"q": "test", "cat": 0}
        elif itype is IndexerType.YTS:
            url = join_url(YTS_HOSTS[0], "list_movies.json")
            params = {"limit": 1}
        elif itype is IndexerType.EZTV:
            url = EZTV_API_URL
            params = {"limit": 1}
        elif itype in (IndexerType.JACKETT, IndexerType.TORZNAB):
            base = _require_base_url(config)
            api_key = _require_api_key(config)
            url = join_url(base, config.endpoint_path or "/api")
            params = {"t": "caps"}
            if config.api_key_transport is ApiKeyTransport.QUERY:
                params["apikey"] = api_key
        elif itype is IndexerType.PROWLARR:
            base = _require_base_url(config)
            _require_api_key(config)
            url = join_url(base, config.endpoint_path or PROWLARR_SEARCH_PATH)
            params = {"query": "test"}
        elif itype is IndexerType.ZILEAN:
            base = _require_base_url(config)
            url = join_url(base, "dmm/search")
            params = {"query": "test"}
        else:
            base = _require_base_url(config)
            url = join_url(base, config.endpoint_path or itype.default_endpoint_path)

        if config.has_api_key and (
            itype is IndexerType.PROWLARR
            or config.api_key_transport is ApiKeyTransport.HEADER
        ):
            headers[API_KEY_HEADER] = config.api_key.strip()

        try:
            return httpx.Request(
                "GET",
                url,
                params=params,
                headers=headers,
                extensions={"timeout": httpx.Timeout(self._timeout).as_dict()},
            )
        except httpx.InvalidURL as exc:
            raise InvalidBaseUrlError(url) from exc

    async def test_connection(self, config: IndexerConfig) -> int:
        """Send the validation request; return the (2xx) status code.

        Raises:
            InvalidBaseUrlError, MissingApiKeyError: pre-flight failures.
            InvalidResponseError: no HTTP response (network failure).
            BadStatusCodeError: non-2xx answer.
        """
        request = self.make_request(config)
        client = self._http_client
        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(follow_redirects=True)

        t0 = time.perf_counter()
        try:
            response = await client.send(request)
        except httpx.HTTPError as exc:
            log.warning(
                "indexer_connectivity_failed",
                indexer=config.name,
                url=str(request.url.copy_remove_param("apikey")),
                error=str(exc),
            )
            raise InvalidResponseError(f"{config.name}: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()

        duration_ms = round((time.perf_counter() - t0) * 1000.0, 2)
        if not response.is_success:
            log.warning(
                "indexer_connectivity_bad_status",
                indexer=config.name,
                status=response.status_code,
                duration_ms=duration_ms,
            )
            raise BadStatusCodeError(
                response.status_code, str(request.url.copy_remove_param("apikey"))
            )

        log.info(
            "indexer_connectivity_ok",
            indexer=config.name,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response.status_code
