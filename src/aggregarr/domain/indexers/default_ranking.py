"""Ranked catalog of built-in indexers and config migration helpers.

The catalog is immutable; every function here is pure and returns new
lists of (frozen) ``IndexerConfig`` objects.  Callers persist the result.

Two configs are treated as the *same backend* when they share an id, or
when their indexer type, normalized base URL and endpoint path match.  The second rule
keeps a built-in from being re-added when the user already configured
the same backend under a different id.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit

from aggregarr.domain.entities.indexer import (
    IndexerConfig,
    IndexerDefinition,
    IndexerType,
    ProviderSubtype,
)

DEFINITIONS: tuple[IndexerDefinition, ...] = (
    IndexerDefinition(
        id="builtin-torrentio",
        name="Stremio Torrentio",
        indexer_type=IndexerType.STREMIO,
        base_url="https://torrentio.strem.fun",
        endpoint_path="/manifest.json",
        provider_subtype=ProviderSubtype.STREMIO_ADDON,
        active_by_default=True,
    ),
    IndexerDefinition(
        id="builtin-yts",
        name="YTS",
        indexer_type=IndexerType.YTS,
        active_by_default=True,
    ),
    IndexerDefinition(
        id="builtin-apibay",
        name="APiBay",
        indexer_type=IndexerType.APIBAY,
        active_by_default=True,
    ),
    IndexerDefinition(
        id="builtin-eztv",
        name="EZTV",
        indexer_type=IndexerType.EZTV,
        active_by_default=False,
    ),
    IndexerDefinition(
        id="builtin-torrentgalaxy",
        name="TorrentGalaxy",
        indexer_type=IndexerType.STREMIO,
        base_url="https://torrentio.strem.fun/providers=torrentgalaxy",
        endpoint_path="/manifest.json",
        provider_subtype=ProviderSubtype.STREMIO_ADDON,
        active_by_default=False,
    ),
)

_BY_ID: dict[str, IndexerDefinition] = {d.id: d for d in DEFINITIONS}


def normalize_base_url(url: str | None) -> str:
    """Lowercase scheme/host and drop trailing slashes (``""`` for None)."""
    if not url:
        return ""
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, parts.query, "")
    )


def definition_by_id(definition_id: str) -> IndexerDefinition | None:
    return _BY_ID.get(definition_id)


def _normalize_path(path: str | None) -> str:
    return (path or "").strip().rstrip("/")


def _same_backend(
    config: IndexerConfig,
    definition: IndexerDefinition,
) -> bool:
    if config.id == definition.id:
        return True
    return (
        config.indexer_type == definition.indexer_type
        and normalize_base_url(config.base_url)
        == normalize_base_url(definition.base_url)
        and _normalize_path(config.endpoint_path)
        == _normalize_path(definition.endpoint_path)
    )


def matching_definition(config: IndexerConfig) -> IndexerDefinition | None:
    """Catalog entry describing the same backend as *config*, if any."""
    by_id = _BY_ID.get(config.id)
    if by_id is not None:
        return by_id
    for definition in DEFINITIONS:
        if _same_backend(config, definition):
            return definition
    return None


def matching_config(
    configs: Iterable[IndexerConfig],
    definition: IndexerDefinition,
) -> IndexerConfig | None:
    """First config in *configs* describing the same backend as *definition*."""
    for config in configs:
        if _same_backend(config, definition):
            return config
    return None


def is_known_default_config(config: IndexerConfig) -> bool:
    """True if *config* is, or is equivalent to, a catalog entry."""
    return any(_same_backend(config, d) for d in DEFINITIONS)


def canonicalized(config: IndexerConfig, definition: IndexerDefinition) -> IndexerConfig:
    """Rewrite identity fields from *definition*, keeping activation and rank."""
    return definition.make_config(config.priority, is_active=config.is_active)


def normalize_priorities(configs: Iterable[IndexerConfig]) -> list[IndexerConfig]:
    """Stable-sort by priority and renumber to ``0..n-1``."""
    ordered = sorted(configs, key=lambda c: c.priority)
    return [
        c if c.priority == i else c.with_changes(priority=i)
        for i, c in enumerate(ordered)
    ]


def default_configs() -> list[IndexerConfig]:
    """Fresh install list: one config per catalog entry, in rank order."""
    return [d.make_config(priority=i) for i, d in enumerate(DEFINITIONS)]


def canonicalizing_known_defaults(
    existing: Iterable[IndexerConfig],
) -> list[IndexerConfig]:
    """Replace stored built-ins (matched by id) with their canonical form.

    User-defined configs pass through untouched; order is preserved.
    """
    out: list[IndexerConfig] = []
    for config in existing:
        definition = _BY_ID.get(config.id)
        out.append(config if definition is None else canonicalized(config, definition))
    return out


def adding_missing_defaults(existing: Iterable[IndexerConfig]) -> list[IndexerConfig]:
    """Append catalog entries that have no equivalent in *existing*.

    New entries go to the end in catalog order and keep their default
    activation; priorities are renumbered afterwards.
    """
    current = normalize_priorities(existing)
    appended: list[IndexerConfig] = []
    next_priority = len(current)
    for definition in DEFINITIONS:
        if matching_config(current, definition) is not None:
            continue
        appended.append(definition.make_config(priority=next_priority))
        next_priority += 1
    return normalize_priorities(current + appended)


def prioritize_known_defaults(existing: Iterable[IndexerConfig]) -> list[IndexerConfig]:
    """Reorder so catalog-equivalent configs come first, in catalog rank.

    Each catalog entry pulls only the first config equivalent to it; any
    further duplicates stay with the unknown configs, which follow in their
    current relative order.  Activation state is never changed.
    """
    remaining = normalize_priorities(existing)
    ordered: list[IndexerConfig] = []
    for definition in DEFINITIONS:
        config = matching_config(remaining, definition)
        if config is not None:
            remaining.remove(config)
            ordered.append(config)
    return [
        c if c.priority == i else c.with_changes(priority=i)
        for i, c in enumerate(ordered + remaining)
    ]


def deleted_builtins(existing: Iterable[IndexerConfig]) -> list[IndexerDefinition]:
    """Catalog entries with no equivalent in *existing* (for "restore" UIs)."""
    configs = list(existing)
    return [d for d in DEFINITIONS if matching_config(configs, d) is None]
