"""Average-rating aggregation and rating-based ordering."""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from fairmap.core.graph import rating_ids_for_entry
from fairmap.core.models import Entry, Rating, Triple


def average_rating(entry: Entry, ratings: Sequence[Rating], triples: Sequence[Triple]) -> float:
    """Mean value of the ratings linked to *entry* via ``IS_RATED_WITH``.

    Ratings not linked through the graph are ignored, even if their
    ``entry_id`` matches.  An entry without linked ratings averages ``0.0``.
    """
    linked = set(rating_ids_for_entry(triples, entry.id))
    values = [r.value for r in ratings if r.id in linked]
    if not values:
        return 0.0
    return sum(values) / len(values)


def average_ratings_by_entry(
    entries: Sequence[Entry],
    ratings: Sequence[Rating],
    triples: Sequence[Triple],
) -> dict[str, float]:
    """Build the ``{entry_id: average}`` lookup consumed by the search."""
    return {e.id: average_rating(e, ratings, triples) for e in entries}


def _score(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def sort_by_rating_lookup(entries: Sequence[Entry], lookup: Mapping[str, float]) -> list[Entry]:
    """Stable sort, best average first.  Missing or non-finite scores count as 0."""
    return sorted(entries, key=lambda e: -_score(lookup.get(e.id, 0.0)))


def sort_by_average_rating(
    entries: Sequence[Entry],
    ratings: Sequence[Rating],
    triples: Sequence[Triple],
) -> list[Entry]:
    return sort_by_rating_lookup(entries, average_ratings_by_entry(entries, ratings, triples))
