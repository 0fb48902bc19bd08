from .default_ranking import (
    DEFINITIONS,
    adding_missing_defaults,
    canonicalizing_known_defaults,
    default_configs,
    definition_by_id,
    deleted_builtins,
    is_known_default_config,
    matching_config,
    normalize_priorities,
    prioritize_known_defaults,
)
from .exceptions import (
    BadStatusCodeError,
    ConfigStoreError,
    ConnectivityError,
    IndexerConfigError,
    IndexerError,
    IndexerTransportError,
    InvalidBaseUrlError,
    InvalidResponseError,
    MalformedPayloadError,
    MissingApiKeyError,
    MissingBaseUrlError,
    UnknownIndexerError,
)

__all__ = [
    "DEFINITIONS",
    "BadStatusCodeError",
    "ConfigStoreError",
    "ConnectivityError",
    "IndexerConfigError",
    "IndexerError",
    "IndexerTransportError",
    "InvalidBaseUrlError",
    "InvalidResponseError",
    "MalformedPayloadError",
    "MissingApiKeyError",
    "MissingBaseUrlError",
    "UnknownIndexerError",
    "adding_missing_defaults",
    "canonicalizing_known_defaults",
    "default_configs",
    "definition_by_id",
    "deleted_builtins",
    "is_known_default_config",
    "matching_config",
    "normalize_priorities",
    "prioritize_known_defaults",
]
