"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from aggregarr.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop AGGREGARR_* variables leaking in from the host environment."""
    for key in list(os.environ):
        if key.startswith("AGGREGARR_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "aggregarr-test",
        "environment": "test",
        "http": {"timeout_seconds": 15.0, "user_agent": "TestAgent/1.0"},
        "logging": {"level": "DEBUG", "format": "console"},
        "store": {"backend": "diskcache", "dir": str(tmp_path / "store")},
        "search": {"max_concurrent_indexers": 3, "strict_episode_matching": True},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "aggregarr"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 20.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"
        assert config.store.backend == "diskcache"
        assert config.search.max_concurrent_indexers == 8
        assert config.search.indexer_timeout_seconds == 25.0
        assert config.search.strict_episode_matching is False
        assert config.connectivity.timeout_seconds == 12.0

    def test_prod_derives_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "aggregarr-test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.store.directory == tmp_path / "store"
        assert config.search.max_concurrent_indexers == 3
        assert config.search.strict_episode_matching is True
        # untouched keys keep their defaults
        assert config.search.indexer_timeout_seconds == 25.0

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_empty_yaml_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "aggregarr"


class TestEnvOverrides:
    def test_env_beats_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AGGREGARR_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("AGGREGARR_SEARCH_MAX_CONCURRENT_INDEXERS", "5")
        monkeypatch.setenv("AGGREGARR_STORE_BACKEND", "redis")
        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.search.max_concurrent_indexers == 5
        assert config.store.backend == "redis"

    def test_dotenv_file(self, tmp_path: Path) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("AGGREGARR_CONNECTIVITY_TIMEOUT_SECONDS=3.5\n", encoding="utf-8")
        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            os.environ.pop("AGGREGARR_CONNECTIVITY_TIMEOUT_SECONDS", None)
        assert config.connectivity.timeout_seconds == 3.5

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    def test_cli_beats_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AGGREGARR_LOG_LEVEL", "WARNING")
        config = load_config(
            cli_overrides={"log_level": "ERROR", "store_dir": str(tmp_path)}
        )
        assert config.log_level == "ERROR"
        assert config.store.directory == tmp_path


class TestValidation:
    def test_invalid_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"search_max_concurrent_indexers": 0})

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"search_indexer_timeout_seconds": -1})

    def test_sectioned_dump_round_trips(self) -> None:
        config = load_config()
        data = config.to_sectioned_dict()
        assert data["store"]["dir"] == str(config.store.directory)
        assert data["search"]["max_concurrent_indexers"] == 8
