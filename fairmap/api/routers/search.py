"""Search endpoint.

Routes
------
GET /search?bbox=<sw_lat,sw_lng,ne_lat,ne_lng>&categories=<ids>&text=<q>&tags=<tags>&combination=<and|or>
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from fairmap.api.deps import extract_ids, get_repo, get_search_config
from fairmap.core import geo, usecase
from fairmap.core.filters import Combination
from fairmap.core.repository import Repository
from fairmap.core.search import SearchConfig
from fairmap.errors import ParameterError, ParameterErrorKind

router = APIRouter()


class SearchResponse(BaseModel):
    visible: list[str]
    invisible: list[str]


@router.get("", response_model=SearchResponse)
def search(
    bbox: str,
    categories: Optional[str] = None,
    text: Optional[str] = None,
    tags: Optional[str] = None,
    combination: Combination = Combination.OR,
    repo: Repository = Depends(get_repo),
    config: SearchConfig = Depends(get_search_config),
) -> SearchResponse:
    """Search entries inside *bbox*.

    Args:
        bbox: ``south_west_lat,south_west_lng,north_east_lat,north_east_lng``.
        categories: Comma-separated category ids (any may match).
        text: Free text; ``#hashtags`` inside it act as tag filters.
        tags: Comma-separated tags.
        combination: ``or`` (any tag may match, default) or ``and`` (all
            tags must match). Applies to explicit tags and hashtags alike.
    """
    box = geo.extract_bbox(bbox)

    category_ids = None
    if categories is not None:
        category_ids = extract_ids(categories)
        if not category_ids:
            raise ParameterError(ParameterErrorKind.CATEGORIES, "Empty category list")

    result = usecase.search_entries(
        repo,
        box,
        config,
        categories=category_ids,
        text=text or "",
        tags=extract_ids(tags) if tags else [],
        combination=combination,
    )
    return SearchResponse(visible=result.visible, invisible=result.invisible)
