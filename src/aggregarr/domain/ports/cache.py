"""Key-value storage port used by the indexer config store."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol


class CachePort(Protocol):
    """Async key-value store with optional per-key expiry.

    Implemented by DiskcacheAdapter and RedisAdapter. ``ttl=None`` falls
    back to the adapter default and ``ttl=0`` never expires. Adapters are
    opened with ``async with``.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> bool:
        """True when the key existed."""
        ...

    async def write_batch(
        self,
        updates: Mapping[str, Any],
        *,
        deletions: Iterable[str] = (),
        ttl: int | None = None,
    ) -> None:
        """Set *updates* and delete *deletions* as one transaction.

        Either every write lands or none does.
        """
        ...

    async def exists(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
