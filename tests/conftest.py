"""Shared test fixtures for the Aggregarr test suite."""

from __future__ import annotations

import pytest

from aggregarr.domain.entities import (
    IndexerConfig,
    IndexerType,
    TorrentResult,
    VideoQuality,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def torznab_config() -> IndexerConfig:
    """Active Torznab config with an API key."""
    return IndexerConfig(
        id="torznab-1",
        name="My Torznab",
        indexer_type=IndexerType.TORZNAB,
        base_url="https://indexer.example.com",
        api_key="secret",
    )


@pytest.fixture()
def prowlarr_config() -> IndexerConfig:
    """Prowlarr config (header API key transport by default)."""
    return IndexerConfig(
        id="prowlarr-1",
        name="Prowlarr",
        indexer_type=IndexerType.PROWLARR,
        base_url="http://prowlarr.local:9696",
        api_key="prowlarr-key",
    )


@pytest.fixture()
def torrent_result() -> TorrentResult:
    """Minimal valid TorrentResult."""
    return TorrentResult(
        info_hash="a" * 40,
        title="Some.Movie.2020.1080p.WEB-DL",
        quality=VideoQuality.HD_1080P,
        seeders=10,
        indexer_name="test",
    )
