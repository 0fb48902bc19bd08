"""Tests for app construction and CLI argument wiring."""

from __future__ import annotations

from fastapi.testclient import TestClient

from aggregarr.infrastructure.config import AppConfig
from aggregarr.interfaces.cli.cli import _parse_args, build_cli_overrides
from aggregarr.interfaces.main import build_app


class TestBuildApp:
    def test_healthz(self) -> None:
        app = build_app(AppConfig())
        resp = TestClient(app).get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_routes_registered(self) -> None:
        paths = {route.path for route in build_app(AppConfig()).routes}
        assert "/api/v1/indexers" in paths
        assert "/api/v1/search" in paths
        assert "/api/v1/search/query" in paths

    def test_config_on_state(self) -> None:
        config = AppConfig(app_name="x")
        assert build_app(config).state.config is config


class TestCli:
    def test_no_flags_no_overrides(self) -> None:
        assert build_cli_overrides(_parse_args([])) == {}

    def test_flags_become_overrides(self) -> None:
        args = _parse_args(
            ["--log-level", "DEBUG", "--log-format", "json", "--store-dir", "/data"]
        )
        assert build_cli_overrides(args) == {
            "log_level": "DEBUG",
            "log_format": "json",
            "store_dir": "/data",
        }

    def test_port_parsed_as_int(self) -> None:
        assert _parse_args(["--port", "8080"]).port == 8080

    def test_redis_flags_map_to_store_keys(self) -> None:
        args = _parse_args(
            ["--store-backend", "redis", "--redis-url", "redis://cache:6379/2"]
        )
        assert build_cli_overrides(args) == {
            "store_backend": "redis",
            "store_redis_url": "redis://cache:6379/2",
        }
