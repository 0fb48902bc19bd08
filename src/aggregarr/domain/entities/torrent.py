"""Domain entities for normalized torrent search results.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

MediaType = Literal["movie", "series"]

_HASH_RE = re.compile(r"^[0-9a-fA-F]{40,64}$")

_UHD_RE = re.compile(r"2160p|\b4k\b|\buhd\b", re.IGNORECASE)
_FHD_RE = re.compile(r"1080[pi]", re.IGNORECASE)
_HD_RE = re.compile(r"720p", re.IGNORECASE)
_SD480_RE = re.compile(r"480p", re.IGNORECASE)
_SD_RE = re.compile(r"\bsd\b|dvdrip|\bcam\b", re.IGNORECASE)


def is_valid_info_hash(value: str | None) -> bool:
    """True for a 40-64 character hexadecimal string."""
    if not value:
        return False
    return _HASH_RE.fullmatch(value) is not None


class VideoQuality(IntEnum):
    """Ranked quality levels (higher value = better quality)."""

    UNKNOWN = 0
    SD = 1
    SD_480P = 2
    HD_720P = 3
    HD_1080P = 4
    UHD_4K = 5

    @classmethod
    def parse(cls, text: str | None) -> VideoQuality:
        """Detect quality from a release title."""
        if not text:
            return cls.UNKNOWN
        if _UHD_RE.search(text):
            return cls.UHD_4K
        if _FHD_RE.search(text):
            return cls.HD_1080P
        if _HD_RE.search(text):
            return cls.HD_720P
        if _SD480_RE.search(text):
            return cls.SD_480P
        if _SD_RE.search(text):
            return cls.SD
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _QUALITY_LABELS[self]


_QUALITY_LABELS: dict[VideoQuality, str] = {
    VideoQuality.UNKNOWN: "Unknown",
    VideoQuality.SD: "SD",
    VideoQuality.SD_480P: "480p",
    VideoQuality.HD_720P: "720p",
    VideoQuality.HD_1080P: "1080p",
    VideoQuality.UHD_4K: "4K",
}


@dataclass(frozen=True)
class TorrentResult:
    """A single torrent returned by an indexer, normalized for ranking.

    ``info_hash`` is always lowercase and is the identity used for
    deduplication across indexers.
    """

    info_hash: str
    title: str
    quality: VideoQuality = VideoQuality.UNKNOWN
    seeders: int = 0
    leechers: int = 0
    size_bytes: int | None = None
    is_cached: bool = False
    indexer_name: str = ""
    magnet_uri: str | None = None

    @classmethod
    def from_search(
        cls,
        *,
        info_hash: str | None,
        title: str,
        seeders: int | None = None,
        leechers: int | None = None,
        size_bytes: int | None = None,
        indexer_name: str = "",
        magnet_uri: str | None = None,
        is_cached: bool = False,
    ) -> TorrentResult | None:
        """Build a result from raw indexer fields.

        Returns ``None`` when the hash is missing or not a valid hex digest,
        so callers can simply skip the entry.
        """
        if info_hash is None:
            return None
        normalized = info_hash.strip().lower()
        if not is_valid_info_hash(normalized):
            return None
        return cls(
            info_hash=normalized,
            title=title,
            quality=VideoQuality.parse(title),
            seeders=max(seeders or 0, 0),
            leechers=max(leechers or 0, 0),
            size_bytes=size_bytes,
            is_cached=is_cached,
            indexer_name=indexer_name,
            magnet_uri=magnet_uri,
        )
