"""Bounded search: the viewport query behind the map.

Algorithm
---------
1. Inflate the requested bounding box by fixed degree margins.
2. Keep entries inside the inflated box.
3. Apply the category filter, if one was requested.
4. Apply tag / free-text filtering (hashtags in the text count as tags).
5. Order by average rating, best first.
6. Split into *visible* ids (inside the original box) and at most
   ``max_invisible_results`` *invisible* ids (inside the margin only), both
   keeping the rating order.

The invisible tier lets a client show a few strong near-misses just outside
the viewport without a second request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from fairmap.config import Settings
from fairmap.core import filters, geo
from fairmap.core.filters import Combination, HashtagParser
from fairmap.core.models import BoundingBox, Entry, Triple
from fairmap.core.rating import sort_by_rating_lookup

logger = logging.getLogger(__name__)

BBOX_LAT_EXT = 0.02
BBOX_LNG_EXT = 0.04
MAX_INVISIBLE_RESULTS = 5
HASHTAG_PATTERN = r"#(?P<tag>\w+(?:-\w+)*)"


@dataclass
class SearchConfig:
    lat_ext: float = BBOX_LAT_EXT
    lng_ext: float = BBOX_LNG_EXT
    max_invisible_results: int = MAX_INVISIBLE_RESULTS
    hashtags: HashtagParser = field(default_factory=lambda: HashtagParser(HASHTAG_PATTERN))

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchConfig:
        return cls(
            lat_ext=settings.bbox_lat_ext,
            lng_ext=settings.bbox_lng_ext,
            max_invisible_results=settings.max_invisible_results,
            hashtags=HashtagParser(settings.hashtag_pattern),
        )


@dataclass
class SearchRequest:
    bbox: BoundingBox
    categories: Optional[list[str]] = None
    text: str = ""
    tags: list[str] = field(default_factory=list)
    entry_ratings: Mapping[str, float] = field(default_factory=dict)
    combination: Combination = Combination.OR


@dataclass
class SearchResult:
    visible: list[str] = field(default_factory=list)
    invisible: list[str] = field(default_factory=list)


def search(
    entries: Sequence[Entry],
    triples: Sequence[Triple],
    req: SearchRequest,
    config: SearchConfig,
) -> SearchResult:
    """Run the bounded search over a snapshot of entries and triples."""
    extended = geo.extend_bbox(req.bbox, config.lat_ext, config.lng_ext)

    found = filters.apply(entries, filters.in_bbox(extended))

    if req.categories is not None:
        found = filters.apply(found, filters.by_category_ids(req.categories))

    found = filters.apply(
        found,
        filters.by_tags_or_search_text(
            req.text, req.tags, triples, config.hashtags, req.combination
        ),
    )

    found = sort_by_rating_lookup(found, req.entry_ratings)

    inside = filters.in_bbox(req.bbox)
    visible = [e.id for e in found if inside(e)]
    visible_ids = set(visible)
    invisible = [e.id for e in found if e.id not in visible_ids][: config.max_invisible_results]

    logger.debug(
        "search: %d candidates, %d visible, %d invisible",
        len(entries),
        len(visible),
        len(invisible),
    )
    return SearchResult(visible=visible, invisible=invisible)
