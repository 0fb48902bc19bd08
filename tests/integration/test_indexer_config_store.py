"""Integration tests for CacheIndexerConfigStore on a real diskcache."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from aggregarr.domain.entities import IndexerConfig, IndexerType
from aggregarr.domain.indexers import default_configs
from aggregarr.domain.indexers.exceptions import ConfigStoreError
from aggregarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from aggregarr.infrastructure.persistence import CacheIndexerConfigStore

pytestmark = pytest.mark.integration


def _custom(config_id: str = "mine", priority: int = 0) -> IndexerConfig:
    return IndexerConfig(
        id=config_id,
        name="Mine",
        indexer_type=IndexerType.PROWLARR,
        base_url="http://prowlarr:9696",
        api_key="k",
        priority=priority,
        category_filter="2000,5000",
    )


class TestCacheIndexerConfigStore:
    @pytest.mark.asyncio
    async def test_empty_store(self, diskcache: DiskcacheAdapter) -> None:
        assert await CacheIndexerConfigStore(diskcache).fetch_all() == []

    @pytest.mark.asyncio
    async def test_save_batch_and_fetch(self, diskcache: DiskcacheAdapter) -> None:
        store = CacheIndexerConfigStore(diskcache)
        configs = default_configs()
        await store.save_batch(configs)
        assert await store.fetch_all() == configs

    @pytest.mark.asyncio
    async def test_update_keeps_single_entry(self, diskcache: DiskcacheAdapter) -> None:
        store = CacheIndexerConfigStore(diskcache)
        await store.save(_custom())
        await store.save(_custom().with_changes(is_active=False))
        (stored,) = await store.fetch_all()
        assert stored.is_active is False
        assert stored.category_filter == "2000,5000"

    @pytest.mark.asyncio
    async def test_delete(self, diskcache: DiskcacheAdapter) -> None:
        store = CacheIndexerConfigStore(diskcache)
        await store.save_batch([_custom("a"), _custom("b", 1)])
        await store.delete("a")
        assert [c.id for c in await store.fetch_all()] == ["b"]

    @pytest.mark.asyncio
    async def test_delete_unknown_is_noop(self, diskcache: DiskcacheAdapter) -> None:
        store = CacheIndexerConfigStore(diskcache)
        await store.save(_custom())
        await store.delete("nope")
        assert len(await store.fetch_all()) == 1

    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path) -> None:
        async with DiskcacheAdapter(directory=tmp_path / "db") as cache:
            await CacheIndexerConfigStore(cache).save(_custom())
        async with DiskcacheAdapter(directory=tmp_path / "db") as cache:
            (stored,) = await CacheIndexerConfigStore(cache).fetch_all()
        assert stored == _custom()

    @pytest.mark.asyncio
    async def test_corrupt_entry_skipped(self, diskcache: DiskcacheAdapter) -> None:
        store = CacheIndexerConfigStore(diskcache)
        await store.save_batch([_custom("a"), _custom("b", 1)])
        await diskcache.set("indexer:a", "{not json", ttl=0)
        assert [c.id for c in await store.fetch_all()] == ["b"]

    @pytest.mark.asyncio
    async def test_corrupt_index_raises(self, diskcache: DiskcacheAdapter) -> None:
        await diskcache.set("indexer:_index", '{"a": 1}', ttl=0)
        with pytest.raises(ConfigStoreError):
            await CacheIndexerConfigStore(diskcache).fetch_all()

    @pytest.mark.asyncio
    async def test_backend_failure_wrapped(self) -> None:
        cache = AsyncMock()
        cache.get.side_effect = RuntimeError("disk gone")
        with pytest.raises(ConfigStoreError, match="disk gone"):
            await CacheIndexerConfigStore(cache).save(_custom())

    @pytest.mark.asyncio
    async def test_save_batch_is_one_transaction(self) -> None:
        cache = AsyncMock()
        cache.get.return_value = '["a"]'
        await CacheIndexerConfigStore(cache).save_batch([_custom("a"), _custom("b", 1)])

        cache.set.assert_not_awaited()
        cache.write_batch.assert_awaited_once()
        updates = cache.write_batch.await_args.args[0]
        assert set(updates) == {"indexer:a", "indexer:b", "indexer:_index"}
        assert updates["indexer:_index"] == '["a", "b"]'

    @pytest.mark.asyncio
    async def test_failed_batch_leaves_previous_state(
        self, diskcache: DiskcacheAdapter
    ) -> None:
        store = CacheIndexerConfigStore(diskcache)
        await store.save(_custom("a"))

        original_set = diskcache._open_cache().set
        calls = []

        def _flaky_set(key, value, **kwargs):
            calls.append(key)
            if len(calls) == 2:
                raise OSError("disk full")
            return original_set(key, value, **kwargs)

        with patch.object(diskcache._open_cache(), "set", _flaky_set):
            with pytest.raises(ConfigStoreError, match="disk full"):
                await store.save_batch(
                    [_custom("a").with_changes(is_active=False), _custom("b", 1)]
                )

        (stored,) = await store.fetch_all()
        assert stored == _custom("a")

    @pytest.mark.asyncio
    async def test_delete_is_one_transaction(self) -> None:
        cache = AsyncMock()
        cache.get.return_value = '["a", "b"]'
        await CacheIndexerConfigStore(cache).delete("a")

        cache.delete.assert_not_awaited()
        cache.write_batch.assert_awaited_once_with(
            {"indexer:_index": '["b"]'}, deletions=["indexer:a"], ttl=0
        )
