"""Tests for building adapters from indexer configs."""

from __future__ import annotations

import pytest

from aggregarr.domain.entities import ApiKeyTransport, IndexerConfig, IndexerType
from aggregarr.infrastructure.indexers import (
    APIBayIndexer,
    EZTVIndexer,
    IndexerFactory,
    StremioIndexer,
    TorznabIndexer,
    YTSIndexer,
    ZileanIndexer,
    create_indexer,
)


def _config(itype: IndexerType, **kwargs) -> IndexerConfig:
    return IndexerConfig(id=f"{itype.value}-1", name=f"My {itype.value}", indexer_type=itype, **kwargs)


class TestCreateIndexer:
    @pytest.mark.parametrize(
        ("itype", "cls"),
        [
            (IndexerType.YTS, YTSIndexer),
            (IndexerType.APIBAY, APIBayIndexer),
            (IndexerType.EZTV, EZTVIndexer),
        ],
    )
    def test_built_ins_need_no_url(self, itype: IndexerType, cls: type) -> None:
        assert isinstance(create_indexer(_config(itype)), cls)

    @pytest.mark.parametrize(
        "itype",
        [
            IndexerType.TORZNAB,
            IndexerType.JACKETT,
            IndexerType.PROWLARR,
            IndexerType.ZILEAN,
            IndexerType.STREMIO,
        ],
    )
    def test_missing_base_url_returns_none(self, itype: IndexerType) -> None:
        assert create_indexer(_config(itype, base_url="  ")) is None

    def test_jackett(self) -> None:
        indexer = create_indexer(
            _config(IndexerType.JACKETT, base_url="http://jackett:9117", api_key="k")
        )
        assert isinstance(indexer, TorznabIndexer)
        assert indexer.name == "My jackett"
        assert indexer.url == "http://jackett:9117/api/v2.0/indexers/all/results/torznab/api"
        assert indexer.requires_api_key is True

    def test_prowlarr_uses_header_and_search_api(self) -> None:
        indexer = create_indexer(
            _config(IndexerType.PROWLARR, base_url="http://prowlarr:9696", api_key="k")
        )
        assert isinstance(indexer, TorznabIndexer)
        assert indexer.uses_prowlarr_search_api
        assert indexer.api_key_transport is ApiKeyTransport.HEADER

    def test_torznab_without_key_still_built(self) -> None:
        indexer = create_indexer(_config(IndexerType.TORZNAB, base_url="http://t"))
        assert isinstance(indexer, TorznabIndexer)

    def test_zilean(self) -> None:
        indexer = create_indexer(_config(IndexerType.ZILEAN, base_url="http://z"))
        assert isinstance(indexer, ZileanIndexer)
        assert indexer.name == "My zilean"

    def test_stremio(self) -> None:
        indexer = create_indexer(
            _config(IndexerType.STREMIO, base_url="https://torrentio.strem.fun")
        )
        assert isinstance(indexer, StremioIndexer)
        assert indexer.root == "https://torrentio.strem.fun"

    def test_apibay_custom_mirror(self) -> None:
        indexer = create_indexer(
            _config(IndexerType.APIBAY, base_url="https://mirror.example")
        )
        assert indexer.base_url == "https://mirror.example"


class TestIndexerFactory:
    def test_binds_shared_client(self) -> None:
        sentinel = object()
        factory = IndexerFactory(sentinel)  # type: ignore[arg-type]
        indexer = factory(_config(IndexerType.YTS))
        assert indexer._client is sentinel
