"""Entry filters and distance ordering used by the search pipeline.

Filters are built as reusable predicates (``Callable[[Entry], bool]``) so
callers can compose them over any snapshot of entries.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from fairmap.core import geo
from fairmap.core.graph import tag_ids_for_entry
from fairmap.core.models import BoundingBox, Coordinate, Entry, Triple

logger = logging.getLogger(__name__)

EntryPredicate = Callable[[Entry], bool]


class Combination(str, Enum):
    AND = "and"
    OR = "or"


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def in_bbox(bbox: BoundingBox) -> EntryPredicate:
    return lambda e: geo.is_in_bbox(e.lat, e.lng, bbox)


def by_category_ids(category_ids: Iterable[str]) -> EntryPredicate:
    """Match entries sharing at least one category with *category_ids*.

    An empty id set matches nothing; callers that want no category
    filtering simply do not apply this predicate.
    """
    wanted = set(category_ids)
    return lambda e: not wanted.isdisjoint(e.categories)


def by_tags(
    tags: Iterable[str],
    triples: Sequence[Triple],
    combination: Combination = Combination.OR,
) -> EntryPredicate:
    """Match entries by tag, looking at both ``entry.tags`` and the graph.

    Comparison is case-insensitive.  ``AND`` needs every tag present,
    ``OR`` at least one.
    """
    wanted = {t.lower() for t in tags}

    def _match(e: Entry) -> bool:
        present = {t.lower() for t in e.tags}
        present.update(t.lower() for t in tag_ids_for_entry(triples, e.id))
        if combination == Combination.AND:
            return wanted <= present
        return not wanted.isdisjoint(present)

    return _match


def by_search_text(text: str) -> EntryPredicate:
    """Case-insensitive substring match on title or description.

    Blank text matches every entry.
    """
    needle = text.strip().lower()
    if not needle:
        return lambda e: True
    return lambda e: needle in e.title.lower() or needle in e.description.lower()


# ---------------------------------------------------------------------------
# Hashtags
# ---------------------------------------------------------------------------

class HashtagParser:
    """Pulls ``#word(-word)*`` tokens out of free text.

    Built once from the configured pattern and passed to whoever needs it.
    The pattern must define a ``tag`` group.
    """

    def __init__(self, pattern: str) -> None:
        self._regex = re.compile(pattern)

    def extract(self, text: str) -> list[str]:
        return [m.group("tag") for m in self._regex.finditer(text)]

    def strip(self, text: str) -> str:
        """Remove hashtag tokens and collapse the whitespace left behind."""
        return re.sub(r"\s{2,}", " ", self._regex.sub("", text)).strip()

    def split(self, text: str) -> tuple[list[str], str]:
        return self.extract(text), self.strip(text)


# ---------------------------------------------------------------------------
# Composite filter
# ---------------------------------------------------------------------------

def by_tags_or_search_text(
    text: str,
    tags: Sequence[str],
    triples: Sequence[Triple],
    parser: HashtagParser,
    combination: Combination = Combination.OR,
) -> EntryPredicate:
    """Combine hashtags in *text* with explicit *tags*, then match the rest.

    Tag matching and text matching both have to pass; either side is skipped
    when it has nothing to match on.
    """
    hashtags, residual = parser.split(text)
    all_tags = hashtags + [t for t in tags if t]
    tag_match = by_tags(all_tags, triples, combination) if all_tags else None
    text_match = by_search_text(residual)

    def _match(e: Entry) -> bool:
        if tag_match is not None and not tag_match(e):
            return False
        return text_match(e)

    return _match


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def sort_by_distance_to(entries: Sequence[Entry], reference: Coordinate) -> list[Entry]:
    """Nearest first.  Entries with non-finite coordinates go last.

    A non-finite *reference* leaves the order untouched.
    """
    if not reference.is_finite():
        logger.warning("Invalid reference coordinate %s/%s", reference.lat, reference.lng)
        return list(entries)

    valid: list[Entry] = []
    invalid: list[Entry] = []
    for e in entries:
        if e.location.is_finite():
            valid.append(e)
        else:
            logger.warning("Invalid coordinate on entry %s: %s/%s", e.id, e.lat, e.lng)
            invalid.append(e)

    valid.sort(key=lambda e: geo.distance(e.location, reference))
    return valid + invalid


def apply(entries: Iterable[Entry], predicate: Optional[EntryPredicate]) -> list[Entry]:
    if predicate is None:
        return list(entries)
    return [e for e in entries if predicate(e)]
