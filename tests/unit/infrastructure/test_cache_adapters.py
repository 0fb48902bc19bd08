"""Tests for the CachePort adapters and create_cache()."""

from __future__ import annotations

import pickle
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from aggregarr.infrastructure.cache import (
    DiskcacheAdapter,
    RedisAdapter,
    create_cache,
)

# ---------------------------------------------------------------------------
# DiskcacheAdapter
# ---------------------------------------------------------------------------


class TestDiskcacheAdapter:
    async def test_set_get_delete(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path / "db") as cache:
            await cache.set("k", {"a": [1, 2]})
            assert await cache.get("k") == {"a": [1, 2]}
            assert await cache.exists("k") is True

            assert await cache.delete("k") is True
            assert await cache.get("k") is None
            assert await cache.delete("k") is False

    async def test_values_survive_reopen(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path) as cache:
            await cache.set("indexers", ["a", "b"])
        async with DiskcacheAdapter(directory=tmp_path) as cache:
            assert await cache.get("indexers") == ["a", "b"]

    async def test_clear(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path) as cache:
            await cache.set("a", 1)
            await cache.set("b", 2)
            await cache.clear()
            assert await cache.exists("a") is False

    async def test_zero_ttl_means_no_expiry(self, tmp_path: Path) -> None:
        adapter = DiskcacheAdapter(directory=tmp_path, ttl_seconds=0)
        assert adapter._expire(None) is None
        assert adapter._expire(30) == 30

    async def test_get_before_open_raises(self, tmp_path: Path) -> None:
        adapter = DiskcacheAdapter(directory=tmp_path)
        with pytest.raises(RuntimeError):
            await adapter.get("k")

    async def test_delete_and_exists_before_open(self, tmp_path: Path) -> None:
        adapter = DiskcacheAdapter(directory=tmp_path)
        assert await adapter.delete("k") is False
        assert await adapter.exists("k") is False

    async def test_write_batch(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path) as cache:
            await cache.set("old", 1)
            await cache.write_batch({"a": 1, "b": [2]}, deletions=["old"])
            assert await cache.get("a") == 1
            assert await cache.get("b") == [2]
            assert await cache.exists("old") is False

    async def test_write_batch_rolls_back_on_error(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path) as cache:
            await cache.set("a", "before")
            disk = cache._open_cache()
            original_set = disk.set

            def _set(key, value, **kwargs):
                if key == "b":
                    raise OSError("disk full")
                return original_set(key, value, **kwargs)

            with patch.object(disk, "set", _set):
                with pytest.raises(OSError):
                    await cache.write_batch({"a": "after", "b": 2})
            assert await cache.get("a") == "before"
            assert await cache.exists("b") is False


# ---------------------------------------------------------------------------
# RedisAdapter (client mocked)
# ---------------------------------------------------------------------------


def _fake_client() -> AsyncMock:
    client = AsyncMock()
    client.ping.return_value = True
    client.get.return_value = None
    client.delete.return_value = 1
    client.exists.return_value = 1
    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.execute = AsyncMock(return_value=[])
    client.pipeline = MagicMock(return_value=pipe)
    return client


class TestRedisAdapter:
    async def test_connect_pings(self) -> None:
        client = _fake_client()
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter(url="redis://example:6379/0"):
                client.ping.assert_awaited_once()
        client.aclose.assert_awaited_once()

    async def test_ping_failure_propagates(self) -> None:
        client = _fake_client()
        client.ping.side_effect = RedisConnectionError("refused")
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            adapter = RedisAdapter()
            with pytest.raises(RedisConnectionError):
                await adapter.__aenter__()
        client.aclose.assert_awaited_once()

    async def test_set_without_ttl_has_no_expiry(self) -> None:
        client = _fake_client()
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter(ttl_seconds=0) as cache:
                await cache.set("k", [1])
        key, payload = client.set.await_args.args
        assert key == "k"
        assert pickle.loads(payload) == [1]
        assert client.set.await_args.kwargs["ex"] is None

    async def test_set_with_ttl(self) -> None:
        client = _fake_client()
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter() as cache:
                await cache.set("k", "v", ttl=60)
        assert client.set.await_args.kwargs["ex"] == 60

    async def test_get_unpickles(self) -> None:
        client = _fake_client()
        client.get.return_value = pickle.dumps({"x": 1})
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter() as cache:
                assert await cache.get("k") == {"x": 1}
                client.get.return_value = None
                assert await cache.get("missing") is None

    async def test_delete_and_exists(self) -> None:
        client = _fake_client()
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter() as cache:
                assert await cache.delete("k") is True
                client.exists.return_value = 0
                assert await cache.exists("k") is False

    async def test_write_batch_uses_one_transaction(self) -> None:
        client = _fake_client()
        pipe = client.pipeline.return_value
        with patch(
            "aggregarr.infrastructure.cache.redis_adapter.Redis.from_url",
            return_value=client,
        ):
            async with RedisAdapter() as cache:
                await cache.write_batch({"a": [1]}, deletions=["old"], ttl=0)

        client.pipeline.assert_called_once_with(transaction=True)
        key, payload = pipe.set.call_args.args
        assert key == "a"
        assert pickle.loads(payload) == [1]
        assert pipe.set.call_args.kwargs["ex"] is None
        pipe.delete.assert_called_once_with("old")
        pipe.execute.assert_awaited_once()
        client.set.assert_not_awaited()

    async def test_get_before_connect_raises(self) -> None:
        with pytest.raises(RuntimeError):
            await RedisAdapter().get("k")


# ---------------------------------------------------------------------------
# create_cache
# ---------------------------------------------------------------------------


class TestCreateCache:
    def test_diskcache(self, tmp_path: Path) -> None:
        cache = create_cache("diskcache", directory=str(tmp_path), max_concurrent=3)
        assert isinstance(cache, DiskcacheAdapter)
        assert cache.directory == tmp_path

    def test_redis(self) -> None:
        cache = create_cache("redis", redis_url="redis://cache:6379/1", ttl_seconds=5)
        assert isinstance(cache, RedisAdapter)
        assert cache.url == "redis://cache:6379/1"
        assert cache.default_ttl == 5

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="memcached"):
            create_cache("memcached")  # type: ignore[arg-type]
