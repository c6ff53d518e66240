"""Dataclass models for the directory domain.

These are plain Python objects – not ORM models.  Repositories serialise /
deserialise to and from these types; the core only ever sees snapshots.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)


@dataclass(frozen=True)
class BoundingBox:
    south_west: Coordinate
    north_east: Coordinate

    def is_finite(self) -> bool:
        return self.south_west.is_finite() and self.north_east.is_finite()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class Entry:
    id: str
    title: str
    description: str
    lat: float
    lng: float
    created: int = 0
    version: int = 0
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    homepage: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    license: Optional[str] = None

    @property
    def location(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


@dataclass
class Category:
    id: str
    name: str
    created: int = 0
    version: int = 0


@dataclass(frozen=True)
class Tag:
    id: str


@dataclass
class User:
    id: str
    username: str
    password: str
    email: str
    email_confirmed: bool = False


class RatingContext(str, Enum):
    DIVERSITY = "diversity"
    RENEWABLE = "renewable"
    FAIRNESS = "fairness"
    HUMANITY = "humanity"
    TRANSPARENCY = "transparency"
    SOLIDARITY = "solidarity"


@dataclass
class Rating:
    id: str
    entry_id: str
    created: int
    title: str
    value: int
    context: RatingContext
    source: Optional[str] = None


@dataclass
class Comment:
    id: str
    created: int
    text: str


@dataclass
class BboxSubscription:
    id: str
    bbox: BoundingBox


# ---------------------------------------------------------------------------
# Relation graph
# ---------------------------------------------------------------------------

class ObjectKind(str, Enum):
    ENTRY = "entry"
    TAG = "tag"
    USER = "user"
    COMMENT = "comment"
    RATING = "rating"
    BBOX_SUBSCRIPTION = "bbox_subscription"


@dataclass(frozen=True)
class ObjectId:
    """Reference to an entity by kind and id.  Never holds the entity itself."""

    kind: ObjectKind
    id: str

    @classmethod
    def entry(cls, id: str) -> ObjectId:
        return cls(ObjectKind.ENTRY, id)

    @classmethod
    def tag(cls, id: str) -> ObjectId:
        return cls(ObjectKind.TAG, id)

    @classmethod
    def user(cls, id: str) -> ObjectId:
        return cls(ObjectKind.USER, id)

    @classmethod
    def comment(cls, id: str) -> ObjectId:
        return cls(ObjectKind.COMMENT, id)

    @classmethod
    def rating(cls, id: str) -> ObjectId:
        return cls(ObjectKind.RATING, id)

    @classmethod
    def bbox_subscription(cls, id: str) -> ObjectId:
        return cls(ObjectKind.BBOX_SUBSCRIPTION, id)


class Relation(str, Enum):
    IS_TAGGED_WITH = "is_tagged_with"
    IS_COMMENTED_WITH = "is_commented_with"
    CREATED_BY = "created_by"
    SUBSCRIBED_TO = "subscribed_to"
    IS_RATED_WITH = "is_rated_with"


@dataclass(frozen=True)
class Triple:
    subject: ObjectId
    predicate: Relation
    object: ObjectId
