"""Indexer adapters - one per backend protocol."""

from .apibay import APIBayIndexer
from .connectivity import IndexerConnectivityTester
from .eztv import EZTVIndexer
from .factory import IndexerFactory, create_indexer
from .httpx_base import HttpxIndexerBase
from .stremio import StremioIndexer
from .torznab import TorznabIndexer
from .yts import YTSIndexer
from .zilean import ZileanIndexer

__all__ = [
    "APIBayIndexer",
    "EZTVIndexer",
    "HttpxIndexerBase",
    "IndexerConnectivityTester",
    "IndexerFactory",
    "StremioIndexer",
    "TorznabIndexer",
    "YTSIndexer",
    "ZileanIndexer",
    "create_indexer",
]
