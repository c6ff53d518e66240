"""Find entries that probably describe the same place.

Two entries are reported as a pair when they lie within
``MAX_DISTANCE_METERS`` of each other and their titles are similar:

``SIMILAR_CHARS``
    The titles differ by only a few characters (Levenshtein distance of at
    most ``MAX_PERCENT_DIFFERENT`` of the shorter title, plus one).
``SIMILAR_WORDS``
    Otherwise, all but at most ``MAX_WORDS_DIFFERENT`` words of the longer
    title also appear in the shorter one, and at least one word is shared.

Titles are compared case-insensitively.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from rapidfuzz.distance import Levenshtein

from fairmap.core import geo
from fairmap.core.models import Entry

MAX_DISTANCE_METERS = 100.0
MAX_PERCENT_DIFFERENT = 0.3
MAX_WORDS_DIFFERENT = 2


class DuplicateType(str, Enum):
    SIMILAR_CHARS = "similar_chars"
    SIMILAR_WORDS = "similar_words"


def in_close_proximity(a: Entry, b: Entry, max_meters: float = MAX_DISTANCE_METERS) -> bool:
    if not (a.location.is_finite() and b.location.is_finite()):
        return False
    return geo.distance(a.location, b.location) * 1000.0 <= max_meters


def similar_chars(a: str, b: str, max_percent_different: float = MAX_PERCENT_DIFFERENT) -> bool:
    a, b = a.strip().lower(), b.strip().lower()
    max_dist = int(min(len(a), len(b)) * max_percent_different) + 1
    return Levenshtein.distance(a, b, score_cutoff=max_dist) <= max_dist


def similar_words(a: str, b: str, max_words_different: int = MAX_WORDS_DIFFERENT) -> bool:
    """All but *max_words_different* words of the longer title occur in the other.

    At least one word has to be shared.
    """
    shorter, longer = sorted((set(a.lower().split()), set(b.lower().split())), key=len)
    shared = shorter & longer
    return bool(shared) and len(longer - shared) <= max_words_different


def duplicate_type(a: Entry, b: Entry) -> Optional[DuplicateType]:
    if not in_close_proximity(a, b):
        return None
    if similar_chars(a.title, b.title):
        return DuplicateType.SIMILAR_CHARS
    if similar_words(a.title, b.title):
        return DuplicateType.SIMILAR_WORDS
    return None


def find_duplicates(entries: Sequence[Entry]) -> list[tuple[str, str, DuplicateType]]:
    """Every pair of likely duplicates, in snapshot order (earlier entry first)."""
    found: list[tuple[str, str, DuplicateType]] = []
    for i, a in enumerate(entries):
        for b in entries[i + 1:]:
            kind = duplicate_type(a, b)
            if kind is not None:
                found.append((a.id, b.id, kind))
    return found
