from .cache import CachePort
from .indexer import ConnectivityTesterPort, IndexerFactoryPort, TorrentIndexerPort
from .indexer_config_store import IndexerConfigStorePort

__all__ = [
    "CachePort",
    "ConnectivityTesterPort",
    "IndexerConfigStorePort",
    "IndexerFactoryPort",
    "TorrentIndexerPort",
]
