"""Tests for TorrentResult and VideoQuality."""

from __future__ import annotations

import pytest

from aggregarr.domain.entities import TorrentResult, VideoQuality, is_valid_info_hash


class TestIsValidInfoHash:
    @pytest.mark.parametrize("length", [40, 64])
    def test_accepts_boundary_lengths(self, length: int) -> None:
        assert is_valid_info_hash("a" * length)

    @pytest.mark.parametrize("length", [39, 65])
    def test_rejects_out_of_range_lengths(self, length: int) -> None:
        assert not is_valid_info_hash("a" * length)

    def test_rejects_non_hex(self) -> None:
        assert not is_valid_info_hash("g" * 40)

    def test_accepts_uppercase(self) -> None:
        assert is_valid_info_hash("ABCDEF0123" * 4)

    def test_rejects_empty_and_none(self) -> None:
        assert not is_valid_info_hash("")
        assert not is_valid_info_hash(None)


class TestVideoQuality:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Movie.2021.2160p.WEB-DL", VideoQuality.UHD_4K),
            ("Movie 4K HDR", VideoQuality.UHD_4K),
            ("Movie.UHD.BluRay", VideoQuality.UHD_4K),
            ("Movie.2021.1080p.BluRay", VideoQuality.HD_1080P),
            ("Movie.2021.1080i.HDTV", VideoQuality.HD_1080P),
            ("Movie.2021.720p.WEB", VideoQuality.HD_720P),
            ("Movie.2021.480p.DVD", VideoQuality.SD_480P),
            ("Movie.2021.DVDRip.XviD", VideoQuality.SD),
            ("Movie 2021 CAM", VideoQuality.SD),
            ("Movie 2021", VideoQuality.UNKNOWN),
        ],
    )
    def test_parse(self, title: str, expected: VideoQuality) -> None:
        assert VideoQuality.parse(title) == expected

    def test_highest_marker_wins(self) -> None:
        assert VideoQuality.parse("Movie.2160p.and.1080p") == VideoQuality.UHD_4K

    def test_empty_is_unknown(self) -> None:
        assert VideoQuality.parse(None) == VideoQuality.UNKNOWN
        assert VideoQuality.parse("") == VideoQuality.UNKNOWN

    def test_ordering(self) -> None:
        assert VideoQuality.UHD_4K > VideoQuality.HD_1080P > VideoQuality.HD_720P
        assert VideoQuality.SD_480P > VideoQuality.SD > VideoQuality.UNKNOWN

    def test_label(self) -> None:
        assert VideoQuality.HD_1080P.label == "1080p"
        assert VideoQuality.UHD_4K.label == "4K"


class TestTorrentResultFromSearch:
    def test_normalizes_hash_to_lowercase(self) -> None:
        result = TorrentResult.from_search(
            info_hash="  " + "ABCDEF0123" * 4 + " ",
            title="Movie.1080p",
            indexer_name="YTS",
        )
        assert result is not None
        assert result.info_hash == "abcdef0123" * 4
        assert result.quality == VideoQuality.HD_1080P
        assert result.indexer_name == "YTS"

    def test_invalid_hash_returns_none(self) -> None:
        assert TorrentResult.from_search(info_hash="xyz", title="x") is None

    def test_missing_hash_returns_none(self) -> None:
        assert TorrentResult.from_search(info_hash=None, title="x") is None

    def test_negative_counts_clamped(self) -> None:
        result = TorrentResult.from_search(
            info_hash="a" * 40, title="x", seeders=-5, leechers=-1
        )
        assert result is not None
        assert result.seeders == 0
        assert result.leechers == 0

    def test_missing_counts_default_to_zero(self) -> None:
        result = TorrentResult.from_search(info_hash="a" * 40, title="x")
        assert result is not None
        assert result.seeders == 0
        assert result.size_bytes is None
        assert result.is_cached is False

    def test_is_frozen(self, torrent_result: TorrentResult) -> None:
        with pytest.raises(AttributeError):
            torrent_result.seeders = 99  # type: ignore[misc]
