"""Domain entities describing a configured torrent indexer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class IndexerType(str, Enum):
    """Backend protocol spoken by an indexer."""

    APIBAY = "apibay"
    YTS = "yts"
    EZTV = "eztv"
    JACKETT = "jackett"
    PROWLARR = "prowlarr"
    TORZNAB = "torznab"
    ZILEAN = "zilean"
    STREMIO = "stremio"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def requires_base_url(self) -> bool:
        return self not in _BUILT_IN_TYPES

    @property
    def requires_api_key(self) -> bool:
        return self in _API_KEY_TYPES

    @property
    def default_provider_subtype(self) -> ProviderSubtype:
        return _DEFAULT_SUBTYPES[self]

    @property
    def default_endpoint_path(self) -> str:
        return _DEFAULT_ENDPOINTS[self]

    @property
    def default_api_key_transport(self) -> ApiKeyTransport:
        if self is IndexerType.PROWLARR:
            return ApiKeyTransport.HEADER
        return ApiKeyTransport.QUERY


class ProviderSubtype(str, Enum):
    """Where an indexer config came from / how it is presented."""

    JACKETT = "jackett"
    PROWLARR = "prowlarr"
    CUSTOM_TORZNAB = "custom_torznab"
    STREMIO_ADDON = "stremio_addon"
    BUILT_IN = "built_in"


class ApiKeyTransport(str, Enum):
    """How the API key travels: ``apikey`` query param or ``X-Api-Key`` header."""

    QUERY = "query"
    HEADER = "header"


_BUILT_IN_TYPES = frozenset({IndexerType.APIBAY, IndexerType.YTS, IndexerType.EZTV})

_API_KEY_TYPES = frozenset(
    {IndexerType.JACKETT, IndexerType.PROWLARR, IndexerType.TORZNAB}
)

_DISPLAY_NAMES: dict[IndexerType, str] = {
    IndexerType.APIBAY: "APiBay",
    IndexerType.YTS: "YTS",
    IndexerType.EZTV: "EZTV",
    IndexerType.JACKETT: "Jackett",
    IndexerType.PROWLARR: "Prowlarr",
    IndexerType.TORZNAB: "Torznab",
    IndexerType.ZILEAN: "Zilean",
    IndexerType.STREMIO: "Stremio Addon",
}

_DEFAULT_SUBTYPES: dict[IndexerType, ProviderSubtype] = {
    IndexerType.APIBAY: ProviderSubtype.BUILT_IN,
    IndexerType.YTS: ProviderSubtype.BUILT_IN,
    IndexerType.EZTV: ProviderSubtype.BUILT_IN,
    IndexerType.JACKETT: ProviderSubtype.JACKETT,
    IndexerType.PROWLARR: ProviderSubtype.PROWLARR,
    IndexerType.TORZNAB: ProviderSubtype.CUSTOM_TORZNAB,
    IndexerType.ZILEAN: ProviderSubtype.CUSTOM_TORZNAB,
    IndexerType.STREMIO: ProviderSubtype.STREMIO_ADDON,
}

_DEFAULT_ENDPOINTS: dict[IndexerType, str] = {
    IndexerType.APIBAY: "",
    IndexerType.YTS: "",
    IndexerType.EZTV: "",
    IndexerType.JACKETT: "/api/v2.0/indexers/all/results/torznab/api",
    IndexerType.PROWLARR: "/api/v1/search",
    IndexerType.TORZNAB: "/api",
    IndexerType.ZILEAN: "/api",
    IndexerType.STREMIO: "/manifest.json",
}


@dataclass(frozen=True)
class IndexerConfig:
    """Persisted configuration of one indexer.

    Fields left as ``None`` are filled with the per-type defaults
    (provider subtype, endpoint path, API key transport).
    """

    id: str
    name: str
    indexer_type: IndexerType
    base_url: str | None = None
    api_key: str | None = None
    is_active: bool = True
    priority: int = 0
    provider_subtype: ProviderSubtype | None = None
    endpoint_path: str | None = None
    category_filter: str | None = None
    api_key_transport: ApiKeyTransport | None = None

    def __post_init__(self) -> None:
        # frozen: defaults go through object.__setattr__
        itype = IndexerType(self.indexer_type)
        object.__setattr__(self, "indexer_type", itype)
        if self.provider_subtype is None:
            object.__setattr__(self, "provider_subtype", itype.default_provider_subtype)
        else:
            object.__setattr__(
                self, "provider_subtype", ProviderSubtype(self.provider_subtype)
            )
        if self.endpoint_path is None:
            object.__setattr__(self, "endpoint_path", itype.default_endpoint_path)
        if self.api_key_transport is None:
            object.__setattr__(
                self, "api_key_transport", itype.default_api_key_transport
            )
        else:
            object.__setattr__(
                self, "api_key_transport", ApiKeyTransport(self.api_key_transport)
            )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @property
    def has_base_url(self) -> bool:
        return bool(self.base_url and self.base_url.strip())

    def with_changes(self, **changes: Any) -> IndexerConfig:
        """Return a copy with *changes* applied (dataclasses.replace)."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "indexer_type": self.indexer_type.value,
            "base_url": self.base_url,
            "api_key": self.api_key,
            "is_active": self.is_active,
            "priority": self.priority,
            "provider_subtype": self.provider_subtype.value,
            "endpoint_path": self.endpoint_path,
            "category_filter": self.category_filter,
            "api_key_transport": self.api_key_transport.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexerConfig:
        return cls(
            id=data["id"],
            name=data["name"],
            indexer_type=IndexerType(data["indexer_type"]),
            base_url=data.get("base_url"),
            api_key=data.get("api_key"),
            is_active=bool(data.get("is_active", True)),
            priority=int(data.get("priority", 0)),
            provider_subtype=data.get("provider_subtype"),
            endpoint_path=data.get("endpoint_path"),
            category_filter=data.get("category_filter"),
            api_key_transport=data.get("api_key_transport"),
        )


@dataclass(frozen=True)
class IndexerDefinition:
    """Static catalog entry for a built-in indexer."""

    id: str
    name: str
    indexer_type: IndexerType
    base_url: str | None = None
    endpoint_path: str = ""
    provider_subtype: ProviderSubtype = ProviderSubtype.BUILT_IN
    api_key_transport: ApiKeyTransport = ApiKeyTransport.QUERY
    active_by_default: bool = True

    def make_config(self, priority: int, is_active: bool | None = None) -> IndexerConfig:
        return IndexerConfig(
            id=self.id,
            name=self.name,
            indexer_type=self.indexer_type,
            base_url=self.base_url,
            api_key=None,
            is_active=self.active_by_default if is_active is None else is_active,
            priority=priority,
            provider_subtype=self.provider_subtype,
            endpoint_path=self.endpoint_path,
            category_filter=None,
            api_key_transport=self.api_key_transport,
        )
