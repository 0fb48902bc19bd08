"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "aggregarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
        "follow_redirects": True,
        "user_agent": "Aggregarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "store": {
        "backend": "diskcache",
        "dir": "./data/aggregarr",
        "redis_url": "redis://localhost:6379/0",
        "max_concurrent": 10,
    },
    "search": {
        "max_concurrent_indexers": 8,
        "indexer_timeout_seconds": 25.0,
        "strict_episode_matching": False,
    },
    "connectivity": {
        "timeout_seconds": 12.0,
    },
}
