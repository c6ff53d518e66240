"""Tests for duplicate detection."""

from __future__ import annotations

import pytest

from fairmap.core import duplicates
from fairmap.core.duplicates import DuplicateType

NEAR = 0.0005  # ~55 m of latitude
FAR = 0.002  # ~220 m of latitude


class TestProximity:
    def test_close(self, make_entry) -> None:
        assert duplicates.in_close_proximity(make_entry("a", 48.0, 11.0), make_entry("b", 48.0 + NEAR, 11.0))

    def test_too_far(self, make_entry) -> None:
        assert not duplicates.in_close_proximity(make_entry("a", 48.0, 11.0), make_entry("b", 48.0 + FAR, 11.0))

    def test_invalid_coordinates(self, make_entry) -> None:
        assert not duplicates.in_close_proximity(make_entry("a", float("nan"), 11.0), make_entry("b", 48.0, 11.0))


class TestTitles:
    @pytest.mark.parametrize(
        "a,b",
        [
            ("Repair Cafe", "Repair Cafe"),
            ("Repair Cafe", "repair cafe"),
            ("Repair Cafe", "Repair Café"),
            ("Bioladen", "Bio-Laden"),
        ],
    )
    def test_similar_chars(self, a: str, b: str) -> None:
        assert duplicates.similar_chars(a, b)

    def test_different_chars(self) -> None:
        assert not duplicates.similar_chars("Bakery", "Butcher")

    def test_similar_words(self) -> None:
        assert duplicates.similar_words("Green Repair Cafe Munich", "Repair Cafe")

    def test_too_many_extra_words(self) -> None:
        assert not duplicates.similar_words("Big New Organic Repair Cafe Store", "Repair Cafe")

    def test_no_shared_word(self) -> None:
        assert not duplicates.similar_words("Bakery", "Butcher")


class TestFindDuplicates:
    def test_pairs_in_snapshot_order(self, make_entry) -> None:
        entries = [
            make_entry("a", 48.0, 11.0, title="Repair Cafe"),
            make_entry("b", 48.0, 11.0, title="Bakery"),
            make_entry("c", 48.0 + NEAR, 11.0, title="Repair Café"),
            make_entry("d", 48.0, 11.0, title="Green Repair Cafe Munich"),
        ]
        assert duplicates.find_duplicates(entries) == [
            ("a", "c", DuplicateType.SIMILAR_CHARS),
            ("a", "d", DuplicateType.SIMILAR_WORDS),
        ]

    def test_same_title_far_apart(self, make_entry) -> None:
        entries = [
            make_entry("a", 48.0, 11.0, title="Repair Cafe"),
            make_entry("b", 48.0 + FAR, 11.0, title="Repair Cafe"),
        ]
        assert duplicates.find_duplicates(entries) == []

    def test_empty_and_single(self, make_entry) -> None:
        assert duplicates.find_duplicates([]) == []
        assert duplicates.find_duplicates([make_entry("a")]) == []
