from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

log = structlog.get_logger(__name__)

_SECTIONS: tuple[str, ...] = ("http", "logging", "store", "search", "connectivity")
_TOP_LEVEL: tuple[str, ...] = ("app_name", "environment")

# flat key (env var / CLI flag) -> (section, key inside section)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "store_backend": ("store", "backend"),
    "store_dir": ("store", "dir"),
    "store_redis_url": ("store", "redis_url"),
    "search_max_concurrent_indexers": ("search", "max_concurrent_indexers"),
    "search_indexer_timeout_seconds": ("search", "indexer_timeout_seconds"),
    "search_strict_episode_matching": ("search", "strict_episode_matching"),
    "connectivity_timeout_seconds": ("connectivity", "timeout_seconds"),
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring a layer into the sectioned shape; flat keys win over sections."""
    shaped: dict[str, Any] = {
        key: layer[key] for key in _TOP_LEVEL if key in layer
    }
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            shaped[section] = dict(block)
    store = shaped.get("store")
    if store is not None and "directory" in store:
        # one spelling only, otherwise a YAML "directory" shadows env/CLI "dir"
        store["dir"] = store.pop("directory")
    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            shaped.setdefault(section, {})[key] = layer[flat_key]
    return shaped


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Resolve the configuration from four layers, later ones winning:
    built-in defaults, the YAML file, AGGREGARR_* env vars, CLI overrides.

    A ``.env`` file feeds the env layer and never replaces variables that
    are already set. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))

    config = AppConfig.model_validate(merged)
    log.debug(
        "config_loaded",
        config_file=str(config_path) if config_path else None,
        store_backend=config.store.backend,
    )
    return config
