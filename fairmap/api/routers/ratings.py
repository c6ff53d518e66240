"""Rating endpoints.

Routes
------
POST /ratings        Rate an entry (with a mandatory comment)
GET  /ratings/{ids}  Ratings with their comments and authors
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from fairmap.api.deps import extract_ids, get_repo
from fairmap.core import graph, usecase
from fairmap.core.models import RatingContext
from fairmap.core.repository import Repository

router = APIRouter()


class RatingCreate(BaseModel):
    entry: str
    title: str
    value: int
    context: RatingContext
    comment: str
    source: Optional[str] = None


@router.post("", status_code=201)
def create(body: RatingCreate, request: Request, repo: Repository = Depends(get_repo)) -> str:
    """Rate an entry.  Logged-in users are recorded as the author."""
    user_id = request.session.get("user_id")
    return usecase.rate_entry(repo, usecase.RateEntry(**body.model_dump(), user=user_id))


@router.get("/{ids}")
def get_ratings(ids: str, repo: Repository = Depends(get_repo)) -> list[dict[str, Any]]:
    ratings = usecase.get_ratings(repo, extract_ids(ids))
    comments = usecase.get_comments_by_rating_ids(repo, [r.id for r in ratings])
    triples = repo.all_triples()
    return [
        {
            "id": r.id,
            "created": r.created,
            "title": r.title,
            "value": r.value,
            "context": r.context.value,
            "source": r.source,
            "user": graph.user_id_for_rating(triples, r.id),
            "comments": [
                {
                    "id": c.id,
                    "created": c.created,
                    "text": c.text,
                    "user": graph.user_id_for_comment(triples, c.id),
                }
                for c in comments.get(r.id, [])
            ],
        }
        for r in ratings
    ]
