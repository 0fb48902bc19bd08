"""Indexer config persistence backed by CachePort (diskcache/redis)."""

from __future__ import annotations

import json

import structlog

from aggregarr.domain.entities.indexer import IndexerConfig
from aggregarr.domain.indexers.exceptions import ConfigStoreError
from aggregarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

# Cache key for the id index (insertion-ordered list of config ids).
_INDEX_KEY: str = "indexer:_index"

# Configs are user data: never expire.
_NO_EXPIRY: int = 0


def _config_key(config_id: str) -> str:
    return f"indexer:{config_id}"


def _serialize(config: IndexerConfig) -> str:
    return json.dumps(config.to_dict())


def _deserialize(data: str) -> IndexerConfig:
    return IndexerConfig.from_dict(json.loads(data))


class CacheIndexerConfigStore:
    """Stores ``IndexerConfig`` records via CachePort.

    Key schema:
    - ``indexer:{id}`` → JSON IndexerConfig
    - ``indexer:_index`` → JSON list of ids (insertion order)
    """

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def _load_index(self) -> list[str]:
        raw = await self.cache.get(_INDEX_KEY)
        if raw is None:
            return []
        try:
            ids = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise ConfigStoreError(f"Corrupt indexer index: {e}") from e
        if not isinstance(ids, list):
            raise ConfigStoreError("Corrupt indexer index: not a list")
        return [str(i) for i in ids]

    async def fetch_all(self) -> list[IndexerConfig]:
        try:
            ids = await self._load_index()
            configs: list[IndexerConfig] = []
            for config_id in ids:
                data = await self.cache.get(_config_key(config_id))
                if data is None:
                    log.warning("indexer_config_missing", id=config_id)
                    continue
                try:
                    configs.append(_deserialize(data))
                except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
                    log.error("indexer_config_deserialize_error", id=config_id, error=str(e))
            return configs
        except ConfigStoreError:
            raise
        except Exception as e:
            raise ConfigStoreError(f"Failed to load indexer configs: {e}") from e

    async def save(self, config: IndexerConfig) -> None:
        await self.save_batch([config])

    async def save_batch(self, configs: list[IndexerConfig]) -> None:
        try:
            ids = await self._load_index()
            updates: dict[str, str] = {}
            for config in configs:
                updates[_config_key(config.id)] = _serialize(config)
                if config.id not in ids:
                    ids.append(config.id)
            updates[_INDEX_KEY] = json.dumps(ids)
            # records and index land together or not at all
            await self.cache.write_batch(updates, ttl=_NO_EXPIRY)
        except ConfigStoreError:
            raise
        except Exception as e:
            raise ConfigStoreError(f"Failed to save indexer configs: {e}") from e
        log.debug("indexer_configs_saved", count=len(configs))

    async def delete(self, config_id: str) -> None:
        try:
            ids = await self._load_index()
            updates: dict[str, str] = {}
            if config_id in ids:
                ids.remove(config_id)
                updates[_INDEX_KEY] = json.dumps(ids)
            await self.cache.write_batch(
                updates, deletions=[_config_key(config_id)], ttl=_NO_EXPIRY
            )
        except ConfigStoreError:
            raise
        except Exception as e:
            raise ConfigStoreError(f"Failed to delete indexer config: {e}") from e
        log.debug("indexer_config_deleted", id=config_id)

