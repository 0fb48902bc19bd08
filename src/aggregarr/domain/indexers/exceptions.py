"""Indexer exceptions."""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for all indexer-related errors."""


class IndexerConfigError(IndexerError):
    """Raised before any network call when a config cannot be used."""


class MissingApiKeyError(IndexerConfigError):
    """Raised when a Torznab-family indexer has no API key."""

    def __init__(self, indexer: str = "") -> None:
        super().__init__(f"API key is required for indexer {indexer!r}")
        self.indexer = indexer


class MissingBaseUrlError(IndexerConfigError):
    """Raised when a self-hosted indexer has no base URL."""

    def __init__(self, indexer: str = "") -> None:
        super().__init__(f"Base URL is required for indexer {indexer!r}")
        self.indexer = indexer


class InvalidBaseUrlError(IndexerConfigError):
    """Raised when the base URL is missing or not an http(s) URL."""

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__(f"Invalid indexer base URL: {base_url!r}")
        self.base_url = base_url


class IndexerTransportError(IndexerError):
    """Network / upstream failure of a single indexer call."""


class BadStatusCodeError(IndexerTransportError):
    """Raised when an indexer answers with a non-2xx status."""

    def __init__(self, status_code: int, url: str = "") -> None:
        super().__init__(f"Indexer returned HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class MalformedPayloadError(IndexerTransportError):
    """Raised when the top-level response payload has an unexpected shape."""


class ConnectivityError(IndexerError):
    """Base for failures only reported by the connectivity tester."""


class InvalidResponseError(ConnectivityError):
    """Raised when the tester receives no usable HTTP response."""


class UnknownIndexerError(IndexerError):
    """Raised when an indexer id or built-in definition id is not known."""


class ConfigStoreError(Exception):
    """Raised when the indexer config store cannot load or persist configs."""
