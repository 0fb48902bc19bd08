"""Use case: aggregate searches across all active indexers.

The manager owns the in-memory view of the persisted indexer list.  It
hydrates the store on first start, keeps built-in configs canonical, builds
one adapter per active config, and fans searches out concurrently.  A
failing indexer never fails a search: its error is logged and recorded in
``last_search_errors`` while the other indexers' results are still merged.

Config mutations hold no lock while the store is written.  Each one is
computed from the current list, persisted, and only applied if no other
mutation was applied in the meantime; otherwise it is recomputed on top of
the newer list and written again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from typing import Literal

import structlog

from aggregarr.domain.entities.indexer import IndexerConfig, IndexerDefinition
from aggregarr.domain.entities.torrent import MediaType, TorrentResult
from aggregarr.domain.indexers import default_ranking, episode_matcher
from aggregarr.domain.indexers.exceptions import (
    IndexerError,
    MissingBaseUrlError,
    UnknownIndexerError,
)
from aggregarr.domain.ports.indexer import (
    ConnectivityTesterPort,
    IndexerFactoryPort,
    TorrentIndexerPort,
)
from aggregarr.domain.ports.indexer_config_store import IndexerConfigStorePort

log = structlog.get_logger(__name__)

MoveDirection = Literal["up", "down"]

# Pure function from the current list to the new one; may raise before any I/O.
Mutation = Callable[[list[IndexerConfig]], list[IndexerConfig]]


def filter_by_episode(
    results: list[TorrentResult],
    season: int,
    episode: int,
) -> list[TorrentResult]:
    """Keep results whose title carries a token for *season*/*episode*."""
    return [r for r in results if episode_matcher.matches(r.title, season, episode)]


def _renumber(configs: Iterable[IndexerConfig]) -> list[IndexerConfig]:
    """Priorities ``0..n-1`` following list order."""
    return [
        c if c.priority == i else c.with_changes(priority=i)
        for i, c in enumerate(configs)
    ]


def _require(configs: list[IndexerConfig], config_id: str) -> IndexerConfig:
    for config in configs:
        if config.id == config_id:
            return config
    raise UnknownIndexerError(f"Unknown indexer id: {config_id!r}")


class IndexerManager:
    """Aggregates search across configured indexers and manages their configs."""

    def __init__(
        self,
        *,
        store: IndexerConfigStorePort,
        indexer_factory: IndexerFactoryPort,
        connectivity_tester: ConnectivityTesterPort | None = None,
        max_concurrent: int = 8,
        indexer_timeout: float = 25.0,
        strict_episode_matching: bool = False,
    ) -> None:
        self._store = store
        self._factory = indexer_factory
        self._tester = connectivity_tester
        self._max_concurrent = max_concurrent
        self._indexer_timeout = indexer_timeout
        self._strict_episode_matching = strict_episode_matching

        self._configs: list[IndexerConfig] = []
        self._indexers: list[TorrentIndexerPort] = []
        self._last_search_errors: dict[str, str] = {}
        # bumped on every applied config list
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def configs(self) -> list[IndexerConfig]:
        return list(self._configs)

    @property
    def configured_indexer_names(self) -> list[str]:
        """Names of the adapters a search would query, in priority order."""
        return [indexer.name for indexer in self._indexers]

    @property
    def last_search_errors(self) -> dict[str, str]:
        """Per-indexer error messages of the most recent search."""
        return dict(self._last_search_errors)

    async def initialize(self) -> None:
        """Load configs from the store and build the adapter set.

        An empty store is seeded with the default catalog.  Stored built-ins
        are canonicalized; anything else is left as the user configured it.
        """
        fetched = sorted(await self._store.fetch_all(), key=lambda c: c.priority)
        if not fetched:
            hydrated = default_ranking.default_configs()
            log.info("indexer_store_seeded", count=len(hydrated))
        else:
            hydrated = default_ranking.canonicalizing_known_defaults(fetched)

        if hydrated != fetched:
            await self._store.save_batch(hydrated)
            log.info("indexer_configs_migrated", count=len(hydrated))

        await self._apply(hydrated)

    async def _apply(self, configs: list[IndexerConfig]) -> None:
        indexers: list[TorrentIndexerPort] = []
        for config in configs:
            if not config.is_active:
                continue
            indexer = self._factory(config)
            if indexer is None:
                log.warning(
                    "indexer_skipped",
                    indexer=config.name,
                    indexer_type=config.indexer_type.value,
                )
                continue
            indexers.append(indexer)

        # a factory may hand back an adapter that is still in use
        retired = [
            old for old in self._indexers if all(old is not new for new in indexers)
        ]
        self._configs = list(configs)
        self._indexers = indexers
        self._generation += 1
        log.info(
            "indexers_loaded",
            configured=len(configs),
            active=len(indexers),
            names=self.configured_indexer_names,
        )
        await self._close_indexers(retired)

    @staticmethod
    async def _close_indexers(indexers: Iterable[TorrentIndexerPort]) -> None:
        for indexer in indexers:
            cleanup = getattr(indexer, "cleanup", None)
            if cleanup is not None:
                await cleanup()

    async def aclose(self) -> None:
        await self._close_indexers(self._indexers)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        imdb_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[TorrentResult]:
        """Search every active indexer by IMDb id and return merged results."""
        results = await self._fan_out(
            lambda indexer: indexer.search(imdb_id, media_type, season, episode),
            context=imdb_id,
        )
        if (
            self._strict_episode_matching
            and media_type == "series"
            and season is not None
            and episode is not None
        ):
            results = filter_by_episode(results, season, episode)
        merged = self.deduplicate_and_sort(results)
        log.info(
            "indexer_search_complete",
            imdb_id=imdb_id,
            media_type=media_type,
            result_count=len(merged),
            failed=sorted(self._last_search_errors),
        )
        return merged

    async def search_by_query(
        self, query: str, media_type: MediaType
    ) -> list[TorrentResult]:
        """Free-text search across every active indexer.

        A series query naming an episode (``S02E03``, ``2x3``) only keeps
        results for that episode.
        """
        results = await self._fan_out(
            lambda indexer: indexer.search_by_query(query, media_type),
            context=query,
        )
        wanted = (
            episode_matcher.context_from_query(query)
            if media_type == "series"
            else None
        )
        if wanted is not None:
            results = filter_by_episode(results, wanted.season, wanted.episode)
        merged = self.deduplicate_and_sort(results)
        log.info(
            "indexer_query_complete",
            query=query,
            media_type=media_type,
            result_count=len(merged),
            failed=sorted(self._last_search_errors),
        )
        return merged

    async def _fan_out(
        self,
        call: Callable[[TorrentIndexerPort], Awaitable[list[TorrentResult]]],
        *,
        context: str,
    ) -> list[TorrentResult]:
        """Run *call* on all active indexers with bounded concurrency."""
        indexers = list(self._indexers)
        semaphore = asyncio.Semaphore(self._max_concurrent)
        errors: dict[str, str] = {}

        async def _search_one(indexer: TorrentIndexerPort) -> list[TorrentResult]:
            async with semaphore:
                try:
                    results = await asyncio.wait_for(
                        call(indexer), timeout=self._indexer_timeout
                    )
                except TimeoutError:
                    log.warning(
                        "indexer_search_timeout",
                        indexer=indexer.name,
                        timeout=self._indexer_timeout,
                        context=context,
                    )
                    errors[indexer.name] = f"timed out after {self._indexer_timeout}s"
                    return []
                except Exception as exc:
                    log.warning(
                        "indexer_search_error",
                        indexer=indexer.name,
                        context=context,
                        exc_info=True,
                    )
                    errors[indexer.name] = str(exc) or type(exc).__name__
                    return []
                except BaseException:
                    log.warning("indexer_search_cancelled", indexer=indexer.name)
                    raise

            log.debug(
                "indexer_search_done",
                indexer=indexer.name,
                result_count=len(results),
            )
            return results

        per_indexer = await asyncio.gather(*(_search_one(i) for i in indexers))
        self._last_search_errors = errors

        all_results: list[TorrentResult] = []
        for results in per_indexer:
            all_results.extend(results)
        return all_results

    @staticmethod
    def deduplicate_and_sort(results: Iterable[TorrentResult]) -> list[TorrentResult]:
        """Merge results sharing an info hash, then rank them.

        A merged entry carries the highest seeder count and is cached if any
        duplicate was.  Order: cached first, then quality, then seeders;
        ties keep first-seen order.
        """
        merged: dict[str, TorrentResult] = {}
        for result in results:
            key = result.info_hash.lower()
            existing = merged.get(key)
            if existing is None:
                merged[key] = result
                continue
            best = result if result.seeders > existing.seeders else existing
            merged[key] = replace(
                best,
                seeders=max(existing.seeders, result.seeders),
                is_cached=existing.is_cached or result.is_cached,
            )

        return sorted(
            merged.values(),
            key=lambda r: (not r.is_cached, -int(r.quality), -r.seeders),
        )

    # ------------------------------------------------------------------
    # Config management
    # ------------------------------------------------------------------

    def list_configs(self) -> list[IndexerConfig]:
        return self.configs

    def get_config(self, config_id: str) -> IndexerConfig:
        return _require(self._configs, config_id)

    def deleted_builtins(self) -> list[IndexerDefinition]:
        return default_ranking.deleted_builtins(self._configs)

    async def _commit(self, mutation: Mutation) -> list[IndexerConfig]:
        """Persist ``mutation(current)`` and make it the live config list."""
        written: set[str] = set()
        while True:
            generation = self._generation
            current = self._configs
            configs = _renumber(mutation(list(current)))
            if configs == current:
                return list(current)

            await self._store.save_batch(configs)
            written.update(c.id for c in current)
            written.update(c.id for c in configs)
            if generation == self._generation:
                break
            log.debug("indexer_config_commit_retry", generation=self._generation)

        await self._apply(configs)
        # ids written by this or an outdated attempt that are no longer listed
        for orphan in written - {c.id for c in configs}:
            await self._store.delete(orphan)
        return configs

    async def save_config(self, config: IndexerConfig) -> IndexerConfig:
        """Insert or update *config*; new configs are appended last."""
        if config.indexer_type.requires_base_url and not config.has_base_url:
            raise MissingBaseUrlError(config.name)

        def upsert(configs: list[IndexerConfig]) -> list[IndexerConfig]:
            for i, existing in enumerate(configs):
                if existing.id == config.id:
                    configs[i] = config.with_changes(priority=existing.priority)
                    return configs
            return [*configs, config]

        saved = _require(await self._commit(upsert), config.id)
        log.info("indexer_config_saved", indexer=config.name, id=config.id)
        return saved

    async def set_active(self, config_id: str, is_active: bool) -> IndexerConfig:
        def toggle(configs: list[IndexerConfig]) -> list[IndexerConfig]:
            _require(configs, config_id)
            return [
                c.with_changes(is_active=is_active) if c.id == config_id else c
                for c in configs
            ]

        updated = _require(await self._commit(toggle), config_id)
        log.info("indexer_active_changed", indexer=updated.name, is_active=is_active)
        return updated

    async def delete_config(self, config_id: str) -> None:
        target = self.get_config(config_id)

        def drop(configs: list[IndexerConfig]) -> list[IndexerConfig]:
            _require(configs, config_id)
            return [c for c in configs if c.id != config_id]

        await self._commit(drop)
        log.info("indexer_config_deleted", indexer=target.name, id=config_id)

    async def move(self, config_id: str, direction: MoveDirection) -> list[IndexerConfig]:
        """Swap *config_id* with its neighbour; no-op at either end."""

        def swap(configs: list[IndexerConfig]) -> list[IndexerConfig]:
            index = configs.index(_require(configs, config_id))
            target = index - 1 if direction == "up" else index + 1
            if 0 <= target < len(configs):
                configs[index], configs[target] = configs[target], configs[index]
            return configs

        return await self._commit(swap)

    async def add_builtin(self, definition_id: str) -> IndexerConfig:
        """Re-add a catalog entry (inactive) unless an equivalent exists."""
        definition = default_ranking.definition_by_id(definition_id)
        if definition is None:
            raise UnknownIndexerError(f"Unknown built-in indexer: {definition_id!r}")

        def append(configs: list[IndexerConfig]) -> list[IndexerConfig]:
            if default_ranking.matching_config(configs, definition) is not None:
                return configs
            return [*configs, definition.make_config(len(configs), is_active=False)]

        configs = await self._commit(append)
        added = default_ranking.matching_config(configs, definition) or _require(
            configs, definition.id
        )
        log.info("indexer_builtin_added", indexer=definition.name, id=added.id)
        return added

    async def restore_missing_defaults(self) -> list[IndexerConfig]:
        return await self._commit(default_ranking.adding_missing_defaults)

    async def apply_default_ranking(self) -> list[IndexerConfig]:
        return await self._commit(default_ranking.prioritize_known_defaults)

    async def test_connection(self, config_id: str) -> int:
        if self._tester is None:
            raise IndexerError("No connectivity tester configured")
        return await self._tester.test_connection(self.get_config(config_id))
