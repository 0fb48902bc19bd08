"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import AliasChoices, AliasPath, BaseModel, Field, model_validator
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
StoreBackend = Literal["diskcache", "redis"]


def _expand_path(value: Any) -> Path:
    # expanduser only; directories are created by the diskcache adapter
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _flat_or_sectioned(flat: str, section: str, key: str) -> AliasChoices:
    """Accept both ``http_timeout_seconds`` and ``http: {timeout_seconds}``."""
    return AliasChoices(flat, AliasPath(section, key))


class StoreConfig(BaseModel):
    """Persistence of the indexer list (YAML section ``store``)."""

    backend: StoreBackend = "diskcache"
    directory: Path = Field(
        default=Path("./data/aggregarr"),
        validation_alias=AliasChoices("directory", "dir"),
        description="Diskcache SQLite directory.",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Only read when backend is 'redis'.",
    )
    max_concurrent: int = Field(default=10, ge=1)

    @field_validator("directory", mode="before")
    @classmethod
    def _expand_directory(cls, v: Any) -> Path:
        return _expand_path(v)


class SearchConfig(BaseModel):
    """Fan-out limits for aggregated searches (YAML section ``search``)."""

    max_concurrent_indexers: int = Field(default=8, ge=1)
    indexer_timeout_seconds: float = Field(
        default=25.0,
        gt=0,
        description="An indexer slower than this is dropped from the result.",
    )
    strict_episode_matching: bool = Field(
        default=False,
        description="Drop series results whose title names another episode.",
    )


class ConnectivityConfig(BaseModel):
    timeout_seconds: float = Field(default=12.0, gt=0)


class AppConfig(BaseModel):
    """
    Final, validated configuration.

    HTTP and logging values are flat attributes but are read from the
    ``http`` and ``logging`` YAML sections as well. Env vars come in through
    EnvOverrides so that load.py controls precedence.
    """

    app_name: str = "aggregarr"
    environment: Environment = "dev"

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        validation_alias=_flat_or_sectioned(
            "http_timeout_seconds", "http", "timeout_seconds"
        ),
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=_flat_or_sectioned(
            "http_follow_redirects", "http", "follow_redirects"
        ),
    )
    http_user_agent: str = Field(
        default="Aggregarr/0.1.0",
        validation_alias=_flat_or_sectioned("http_user_agent", "http", "user_agent"),
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_flat_or_sectioned("log_level", "logging", "level"),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=_flat_or_sectioned("log_format", "logging", "format"),
        description="console or json; derived from environment when unset.",
    )

    store: StoreConfig = Field(default_factory=StoreConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)

    @model_validator(mode="after")
    def _default_log_format(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """The config in the same shape a config.yaml uses."""
        store = self.store.model_dump(exclude={"directory"})
        store["dir"] = str(self.store.directory)
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "store": store,
            "search": self.search.model_dump(),
            "connectivity": self.connectivity.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    AGGREGARR_* environment variables, all optional.

    Only the variables that are set end up in to_update_dict(); load.py maps
    the flat names (AGGREGARR_STORE_DIR, AGGREGARR_LOG_LEVEL, ...) onto
    their sections.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGGREGARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    store_backend: Optional[StoreBackend] = None
    store_dir: Optional[Path] = None
    store_redis_url: Optional[str] = None

    search_max_concurrent_indexers: Optional[int] = None
    search_indexer_timeout_seconds: Optional[float] = None
    search_strict_episode_matching: Optional[bool] = None

    connectivity_timeout_seconds: Optional[float] = None

    @field_validator("store_dir", mode="before")
    @classmethod
    def _expand_store_dir(cls, v: Any) -> Any:
        return None if v is None else _expand_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
