from .indexer import (
    ApiKeyTransport,
    IndexerConfig,
    IndexerDefinition,
    IndexerType,
    ProviderSubtype,
)
from .torrent import MediaType, TorrentResult, VideoQuality, is_valid_info_hash

__all__ = [
    "ApiKeyTransport",
    "IndexerConfig",
    "IndexerDefinition",
    "IndexerType",
    "MediaType",
    "ProviderSubtype",
    "TorrentResult",
    "VideoQuality",
    "is_valid_info_hash",
]
