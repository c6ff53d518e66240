"""Bounding-box subscription endpoints (logged-in user only).

Routes
------
POST /subscribe-to-bbox        Replace the user's subscription
POST /unsubscribe-all-bboxes   Drop every subscription of the user
GET  /bbox-subscriptions       List the user's subscriptions
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from fairmap.api.deps import current_user_id, get_repo
from fairmap.core import usecase
from fairmap.core.models import BoundingBox, Coordinate
from fairmap.core.repository import Repository
from fairmap.errors import ParameterError, ParameterErrorKind

router = APIRouter()


class CoordinateBody(BaseModel):
    lat: float
    lng: float


class SubscriptionCreate(BaseModel):
    coordinates: list[CoordinateBody]


@router.post("/subscribe-to-bbox", status_code=201)
def subscribe(
    body: SubscriptionCreate,
    user_id: str = Depends(current_user_id),
    repo: Repository = Depends(get_repo),
) -> str:
    if len(body.coordinates) != 2:
        raise ParameterError(ParameterErrorKind.BBOX, "Expected exactly two coordinates")
    sw, ne = body.coordinates
    bbox = BoundingBox(Coordinate(sw.lat, sw.lng), Coordinate(ne.lat, ne.lng))
    return usecase.subscribe_to_bbox(repo, bbox, user_id)


@router.post("/unsubscribe-all-bboxes")
def unsubscribe_all(
    user_id: str = Depends(current_user_id),
    repo: Repository = Depends(get_repo),
) -> Response:
    usecase.unsubscribe_all_bboxes(repo, user_id)
    return Response(status_code=204)


@router.get("/bbox-subscriptions")
def list_subscriptions(
    user_id: str = Depends(current_user_id),
    repo: Repository = Depends(get_repo),
) -> list[dict[str, Any]]:
    return [
        {
            "id": s.id,
            "south_west_lat": s.bbox.south_west.lat,
            "south_west_lng": s.bbox.south_west.lng,
            "north_east_lat": s.bbox.north_east.lat,
            "north_east_lng": s.bbox.north_east.lng,
        }
        for s in usecase.get_bbox_subscriptions(repo, user_id)
    ]
