from .indexer_config_cache import CacheIndexerConfigStore

__all__ = ["CacheIndexerConfigStore"]
