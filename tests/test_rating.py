"""Tests for rating aggregation and rating order."""

from __future__ import annotations

import math

from fairmap.core.models import ObjectId, Relation, Triple
from fairmap.core.rating import (
    average_rating,
    average_ratings_by_entry,
    sort_by_average_rating,
    sort_by_rating_lookup,
)


def _rated(entry_id: str, rating_id: str) -> Triple:
    return Triple(ObjectId.entry(entry_id), Relation.IS_RATED_WITH, ObjectId.rating(rating_id))


class TestAverageRating:
    def test_mean_of_linked_ratings(self, make_entry, make_rating) -> None:
        ratings = [
            make_rating("1", 0),
            make_rating("2", 0),
            make_rating("3", 3),
            make_rating("4", 3),
            make_rating("5", -3),
            make_rating("6", 3),
        ]
        triples = [
            _rated("a", "1"),
            _rated("a", "2"),
            _rated("a", "3"),
            _rated("a", "4"),
            _rated("b", "5"),
            _rated("b", "6"),
        ]
        assert average_rating(make_entry("a"), ratings, triples) == 1.5
        assert average_rating(make_entry("b"), ratings, triples) == 0.0
        assert average_rating(make_entry("c"), ratings, triples) == 0.0

    def test_no_ratings_is_zero_not_nan(self, make_entry) -> None:
        avg = average_rating(make_entry("x"), [], [])
        assert avg == 0.0
        assert not math.isnan(avg)

    def test_unlinked_ratings_ignored(self, make_entry, make_rating) -> None:
        # entry_id matches but there is no IS_RATED_WITH triple
        ratings = [make_rating("1", 2, entry_id="a"), make_rating("2", -1, entry_id="a")]
        triples = [_rated("a", "2")]
        assert average_rating(make_entry("a"), ratings, triples) == -1.0

    def test_lookup(self, make_entry, make_rating) -> None:
        entries = [make_entry("a"), make_entry("b")]
        lookup = average_ratings_by_entry(entries, [make_rating("1", 2)], [_rated("a", "1")])
        assert lookup == {"a": 2.0, "b": 0.0}


class TestSortByAverageRating:
    def test_descending(self, make_entry, make_rating) -> None:
        entries = [make_entry(i) for i in "abcde"]
        ratings = [
            make_rating("1", 0),
            make_rating("2", 10),
            make_rating("3", 3),
            make_rating("4", -1),
            make_rating("5", 0),
        ]
        triples = [
            _rated("b", "1"),
            _rated("b", "2"),
            _rated("c", "3"),
            _rated("d", "4"),
            _rated("e", "5"),
        ]
        ids = [e.id for e in sort_by_average_rating(entries, ratings, triples)]
        assert ids[0] == "b"
        assert ids[1] == "c"
        assert set(ids[2:4]) == {"a", "e"}
        assert ids[4] == "d"

    def test_stable_for_ties(self, make_entry) -> None:
        entries = [make_entry(i) for i in "xyz"]
        ids = [e.id for e in sort_by_average_rating(entries, [], [])]
        assert ids == ["x", "y", "z"]

    def test_nan_in_lookup_counts_as_zero(self, make_entry) -> None:
        entries = [make_entry("n"), make_entry("p"), make_entry("m")]
        lookup = {"n": math.nan, "p": 1.0, "m": -1.0}
        ids = [e.id for e in sort_by_rating_lookup(entries, lookup)]
        assert ids == ["p", "n", "m"]
