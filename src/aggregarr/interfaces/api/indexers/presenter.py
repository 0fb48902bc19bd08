"""JSON shapes for indexer configs and catalog entries."""

from __future__ import annotations

from typing import Any

from aggregarr.domain.entities.indexer import IndexerConfig, IndexerDefinition


def present_config(config: IndexerConfig) -> dict[str, Any]:
    # The API key never leaves the server; clients only see whether one is set.
    data = config.to_dict()
    data.pop("api_key", None)
    data["has_api_key"] = config.has_api_key
    data["display_type"] = config.indexer_type.display_name
    return data


def present_configs(configs: list[IndexerConfig]) -> dict[str, Any]:
    return {
        "indexers": [present_config(c) for c in configs],
        "count": len(configs),
    }


def present_definition(definition: IndexerDefinition) -> dict[str, Any]:
    return {
        "id": definition.id,
        "name": definition.name,
        "indexer_type": definition.indexer_type.value,
        "base_url": definition.base_url,
        "active_by_default": definition.active_by_default,
    }
