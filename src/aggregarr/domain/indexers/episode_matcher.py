"""Season/episode token matching for release titles."""

from __future__ import annotations

import re
from dataclasses import dataclass

_SXXEYY_RE = re.compile(r"s\s*(\d{1,2})\s*e\s*(\d{1,3})", re.IGNORECASE)
_NXM_RE = re.compile(r"(?<!\d)(\d{1,2})\s*x\s*(\d{1,3})(?!\d)", re.IGNORECASE)
_VERBOSE_RE = re.compile(
    r"season\D*(\d{1,2}).{0,20}?episode\D*(\d{1,3})", re.IGNORECASE
)

_TITLE_PATTERNS = (_SXXEYY_RE, _NXM_RE, _VERBOSE_RE)
_QUERY_PATTERNS = (_SXXEYY_RE, _NXM_RE)


@dataclass(frozen=True)
class EpisodeContext:
    season: int
    episode: int


def episode_token(season: int, episode: int) -> str:
    """``S01E05``-style token."""
    return f"S{season:02d}E{episode:02d}"


def matches(title: str, season: int, episode: int) -> bool:
    """True if *title* contains a token for exactly *season*/*episode*."""
    for pattern in _TITLE_PATTERNS:
        for match in pattern.finditer(title):
            if int(match.group(1)) == season and int(match.group(2)) == episode:
                return True
    return False


def context_from_query(query: str) -> EpisodeContext | None:
    """Season/episode mentioned in a free-text query (``S02E03``, ``2x3``)."""
    for pattern in _QUERY_PATTERNS:
        match = pattern.search(query)
        if match:
            return EpisodeContext(int(match.group(1)), int(match.group(2)))
    return None
