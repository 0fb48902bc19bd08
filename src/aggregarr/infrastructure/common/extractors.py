"""Info-hash extraction from magnet URIs and free text."""

from __future__ import annotations

import re

from aggregarr.domain.entities.torrent import is_valid_info_hash

# Token after ``btih:`` up to the next query delimiter.
_BTIH_RE = re.compile(r"btih:([^&#]*)", re.IGNORECASE)
_IMDB_ID_RE = re.compile(r"\btt\d+\b")


def extract_info_hash(magnet: str | None) -> str | None:
    """Extract the BitTorrent info hash from a magnet URI.

    The token must be a 40-64 character hex string.  Tokens containing
    path separators, whitespace, query delimiters or of the wrong length
    are rejected.  The original case is kept; ``TorrentResult`` lowercases.

    Args:
        magnet: A ``magnet:?xt=urn:btih:...`` URI (or any string).

    Returns:
        The hex hash or None.
    """
    if not magnet:
        return None
    match = _BTIH_RE.search(magnet)
    if match is None:
        return None
    token = match.group(1)
    if not is_valid_info_hash(token):
        return None
    return token


def extract_imdb_id(text: str | None) -> str | None:
    """First ``tt<digits>`` id in *text*."""
    if not text:
        return None
    match = _IMDB_ID_RE.search(text)
    return match.group(0) if match else None
