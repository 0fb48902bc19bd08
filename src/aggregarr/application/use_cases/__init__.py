from .indexer_manager import IndexerManager, filter_by_episode

__all__ = ["IndexerManager", "filter_by_episode"]
