"""Entry endpoints.

Routes
------
GET  /entries/{ids}   Fetch one or more entries (comma-separated ids)
POST /entries         Create a new entry, returns its id
PUT  /entries/{id}    Replace an entry with its next version
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fairmap.api.deps import extract_ids, get_repo
from fairmap.core import usecase
from fairmap.core.models import Entry
from fairmap.core.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class EntryFields(BaseModel):
    title: str
    description: str
    lat: float
    lng: float
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    homepage: Optional[str] = None
    categories: list[str] = []
    tags: list[str] = []


class EntryCreate(EntryFields):
    license: str


class EntryUpdate(EntryFields):
    id: str
    version: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _entry_dict(entry: Entry, ratings: list[str]) -> dict[str, Any]:
    return {
        "id": entry.id,
        "created": entry.created,
        "version": entry.version,
        "title": entry.title,
        "description": entry.description,
        "lat": entry.lat,
        "lng": entry.lng,
        "street": entry.street,
        "zip": entry.zip,
        "city": entry.city,
        "country": entry.country,
        "email": entry.email,
        "telephone": entry.telephone,
        "homepage": entry.homepage,
        "categories": entry.categories,
        "tags": entry.tags,
        "ratings": ratings,
        "license": entry.license,
    }


def _log_subscribers(repo: Repository, entry_id: str, lat: float, lng: float) -> None:
    # Mail delivery is handled outside this service; we only resolve recipients.
    addresses = usecase.email_addresses_to_notify(repo, lat, lng)
    if addresses:
        logger.info("Entry %s concerns %d subscriber(s)", entry_id, len(addresses))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/{ids}")
def get_entries(ids: str, repo: Repository = Depends(get_repo)) -> list[dict[str, Any]]:
    """Return the entries named in the comma-separated *ids*."""
    id_list = extract_ids(ids)
    entries = usecase.get_entries(repo, id_list)
    ratings = usecase.get_ratings_by_entry_ids(repo, id_list)
    return [_entry_dict(e, [r.id for r in ratings.get(e.id, [])]) for e in entries]


@router.post("", status_code=201)
def create(body: EntryCreate, repo: Repository = Depends(get_repo)) -> str:
    """Create a new entry and return its id."""
    entry_id = usecase.create_new_entry(repo, usecase.NewEntry(**body.model_dump()))
    _log_subscribers(repo, entry_id, body.lat, body.lng)
    return entry_id


@router.put("/{entry_id}")
def update(entry_id: str, body: EntryUpdate, repo: Repository = Depends(get_repo)) -> str:
    """Store the next version of an entry (``version`` must be current + 1)."""
    if body.id != entry_id:
        raise HTTPException(status_code=400, detail="Entry id in path and body differ.")
    usecase.update_entry(repo, usecase.UpdateEntry(**body.model_dump()))
    _log_subscribers(repo, entry_id, body.lat, body.lng)
    return entry_id
