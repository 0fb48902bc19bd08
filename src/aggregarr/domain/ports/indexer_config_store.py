"""Port for persisted indexer configs."""

from __future__ import annotations

from typing import Protocol

from aggregarr.domain.entities.indexer import IndexerConfig


class IndexerConfigStorePort(Protocol):
    """Async persistence of ``IndexerConfig`` records.

    All methods raise ``ConfigStoreError`` on storage failure.
    """

    async def fetch_all(self) -> list[IndexerConfig]: ...

    async def save(self, config: IndexerConfig) -> None: ...

    async def save_batch(self, configs: list[IndexerConfig]) -> None:
        """Upsert *configs*; configs not in the batch are left as they are."""
        ...

    async def delete(self, config_id: str) -> None: ...
