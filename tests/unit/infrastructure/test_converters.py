"""Tests for numeric coercion of indexer payload fields."""

from __future__ import annotations

import pytest

from aggregarr.infrastructure.common.converters import to_count, to_int, to_int64


class TestToInt:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (42, 42),
            (12.9, 12),
            ("123", 123),
            (" 1,234 ", 1234),
            ("1_000", 1000),
            ("12.7", 12),
            ("-3", -3),
        ],
    )
    def test_valid(self, raw: object, expected: int) -> None:
        assert to_int(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "", "   ", "abc", True, False, float("nan"), float("inf"), [1]]
    )
    def test_invalid(self, raw: object) -> None:
        assert to_int(raw) is None

    def test_huge_string_stays_exact(self) -> None:
        assert to_int("123456789012345678901") == 123456789012345678901


class TestToInt64:
    def test_in_range(self) -> None:
        assert to_int64("4700000000") == 4_700_000_000

    def test_out_of_range(self) -> None:
        assert to_int64(2**63) is None
        assert to_int64(-(2**63) - 1) is None

    def test_boundaries(self) -> None:
        assert to_int64(2**63 - 1) == 2**63 - 1
        assert to_int64(-(2**63)) == -(2**63)


class TestToCount:
    def test_positive(self) -> None:
        assert to_count("15") == 15

    def test_negative_becomes_zero(self) -> None:
        assert to_count(-4) == 0

    def test_invalid_becomes_zero(self) -> None:
        assert to_count(None) == 0
        assert to_count("n/a") == 0
