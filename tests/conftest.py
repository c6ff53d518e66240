"""Shared builders for the test-suite."""

from __future__ import annotations

import pytest

from fairmap.core.models import Entry, Rating, RatingContext


def new_entry(id: str, lat: float = 0.0, lng: float = 0.0, **fields) -> Entry:
    fields.setdefault("title", "foo")
    fields.setdefault("description", "bar")
    return Entry(id=id, lat=lat, lng=lng, **fields)


def new_rating(id: str, value: int, entry_id: str = "") -> Rating:
    return Rating(
        id=id,
        entry_id=entry_id,
        created=0,
        title="blubb",
        value=value,
        context=RatingContext.DIVERSITY,
    )


@pytest.fixture()
def make_entry():
    return new_entry


@pytest.fixture()
def make_rating():
    return new_rating
