"""Shared constants for indexer adapters."""

from __future__ import annotations

DEFAULT_USER_AGENT = "Aggregarr/0.1.0"

DEFAULT_CLIENT_TIMEOUT = 20.0
CONNECTIVITY_TIMEOUT = 12.0

API_KEY_HEADER = "X-Api-Key"

# Prowlarr's native search API lives here; Torznab endpoints do not.
PROWLARR_SEARCH_PATH = "/api/v1/search"

APIBAY_BASE_URL = "https://apibay.org"
EZTV_API_URL = "https://eztvx.to/api/get-torrents"
YTS_HOSTS: tuple[str, ...] = (
    "https://yts.torrentbay.st/api/v2",
    "https://yts.mx/api/v2",
    "https://yts.bz/api/v2",
)

YTS_PAGE_LIMIT = 20
EZTV_PAGE_LIMIT = 100
EZTV_MAX_PAGES = 3

APIBAY_NO_RESULTS = "No results returned"
ZERO_HASH = "0" * 40
