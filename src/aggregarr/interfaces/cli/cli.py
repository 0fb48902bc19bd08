from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from aggregarr.infrastructure.config import load_config
from aggregarr.infrastructure.logging.setup import configure_logging
from aggregarr.interfaces.main import build_app

log = structlog.get_logger(__name__)

# argparse dest -> flat config key understood by load_config()
_OVERRIDE_FLAGS: dict[str, str] = {
    "store_backend": "store_backend",
    "store_dir": "store_dir",
    "redis_url": "store_redis_url",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="aggregarr",
        description="Serve the aggregated torrent search API.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", default=None, help="Bind host (default: $HOST).")
    server.add_argument(
        "--port", default=None, type=int, help="Bind port (default: $PORT)."
    )

    files = parser.add_argument_group("configuration files")
    files.add_argument("--config", default=None, help="YAML config file.")
    files.add_argument("--dotenv", default=None, help=".env file to load first.")

    overrides = parser.add_argument_group("overrides")
    overrides.add_argument(
        "--store-backend", default=None, choices=["diskcache", "redis"]
    )
    overrides.add_argument(
        "--store-dir",
        default=None,
        help="Diskcache directory holding the indexer list.",
    )
    overrides.add_argument("--redis-url", default=None)
    overrides.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    overrides.add_argument("--log-format", default=None, choices=["json", "console"])

    return parser.parse_args(argv)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat config overrides for the flags that were actually given."""
    return {
        key: getattr(args, dest)
        for dest, key in _OVERRIDE_FLAGS.items()
        if getattr(args, dest)
    }


def _bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", "7979"))
    return host, port


def start(argv: Iterable[str] | None = None) -> None:
    """Load the configuration once and serve the app built from it."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    host, port = _bind_address(args)

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=build_cli_overrides(args),
    )
    log_config = configure_logging(config)
    log.info("aggregarr_starting", host=host, port=port, store=config.store.backend)

    uvicorn.run(build_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
