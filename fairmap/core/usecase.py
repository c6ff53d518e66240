"""Transactional operations over a :class:`~fairmap.core.repository.Repository`.

Each function validates its input, reads the snapshot it needs, and writes
through the repository.  Repository failures propagate unchanged; nothing
here retries.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import uuid
from dataclasses import dataclass, field, replace
from time import time
from typing import Optional

from fairmap.core import graph, validate
from fairmap.core.duplicates import DuplicateType, find_duplicates
from fairmap.core.filters import Combination
from fairmap.core.geo import is_in_bbox
from fairmap.core.models import (
    BboxSubscription,
    BoundingBox,
    Comment,
    Entry,
    ObjectId,
    Rating,
    RatingContext,
    Relation,
    Tag,
    Triple,
    User,
)
from fairmap.core.rating import average_ratings_by_entry
from fairmap.core.repository import Repository
from fairmap.core.search import SearchConfig, SearchRequest, SearchResult, search
from fairmap.errors import (
    ParameterError,
    ParameterErrorKind,
    RepoError,
    RepoErrorKind,
)

logger = logging.getLogger(__name__)

MIN_RATING = -1
MAX_RATING = 2
_PBKDF2_ITERATIONS = 120_000


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass
class NewEntry:
    title: str
    description: str
    lat: float
    lng: float
    license: str
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    homepage: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class UpdateEntry:
    id: str
    version: int
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
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class RateEntry:
    entry: str
    title: str
    value: int
    context: RatingContext
    comment: str
    source: Optional[str] = None
    user: Optional[str] = None


@dataclass
class NewUser:
    username: str
    password: str
    email: str


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> int:
    return int(time())


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), _PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${_PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        _, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def get_entries(repo: Repository, ids: list[str]) -> list[Entry]:
    wanted = set(ids)
    return [e for e in repo.all_entries() if e.id in wanted]


def get_ratings(repo: Repository, ids: list[str]) -> list[Rating]:
    wanted = set(ids)
    return [r for r in repo.all_ratings() if r.id in wanted]


def get_ratings_by_entry_ids(repo: Repository, ids: list[str]) -> dict[str, list[Rating]]:
    ratings = repo.all_ratings()
    return {e_id: [r for r in ratings if r.entry_id == e_id] for e_id in ids}


def get_comments_by_rating_ids(repo: Repository, ids: list[str]) -> dict[str, list[Comment]]:
    triples = repo.all_triples()
    comments = {c.id: c for c in repo.all_comments()}
    return {
        r_id: [
            comments[c_id]
            for c_id in graph.comment_ids_for_rating(triples, r_id)
            if c_id in comments
        ]
        for r_id in ids
    }


def get_tags_by_entry_ids(repo: Repository, ids: list[str]) -> dict[str, list[str]]:
    triples = repo.all_triples()
    return {e_id: graph.tag_ids_for_entry(triples, e_id) for e_id in ids}


def get_tag_ids(repo: Repository) -> list[str]:
    return sorted(t.id for t in repo.all_tags())


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def create_new_user(repo: Repository, u: NewUser) -> str:
    validate.username(u.username)
    validate.password(u.password)
    validate.email(u.email)
    if any(existing.username == u.username for existing in repo.all_users()):
        raise ParameterError(ParameterErrorKind.USER_EXISTS, f"User {u.username!r} exists")

    user = User(
        id=_new_id(),
        username=u.username,
        password=hash_password(u.password),
        email=u.email,
        email_confirmed=False,
    )
    repo.create_user(user)
    logger.info("Created user %s", user.id)
    return user.id


def login(repo: Repository, username: str, password: str) -> str:
    """Return the user id for valid, confirmed credentials."""
    try:
        user = repo.get_user(username)
    except RepoError as exc:
        if exc.kind == RepoErrorKind.NOT_FOUND:
            raise ParameterError(ParameterErrorKind.CREDENTIALS) from exc
        raise
    if not verify_password(password, user.password):
        raise ParameterError(ParameterErrorKind.CREDENTIALS)
    if not user.email_confirmed:
        raise ParameterError(ParameterErrorKind.EMAIL_NOT_CONFIRMED)
    return user.id


def get_user(repo: Repository, login_id: str, username: str) -> tuple[str, str]:
    """Return ``(id, email)`` of *username*, visible only to that same user."""
    users = [u for u in repo.all_users() if u.id == login_id]
    if not users:
        raise RepoError.not_found(f"user {login_id!r}")
    if users[0].username != username:
        raise ParameterError(ParameterErrorKind.FORBIDDEN)
    user = repo.get_user(username)
    return user.id, user.email


def delete_user(repo: Repository, login_id: str, user_id: str) -> None:
    if login_id != user_id:
        raise ParameterError(ParameterErrorKind.FORBIDDEN)
    unsubscribe_all_bboxes(repo, user_id)
    repo.delete_user(user_id)
    logger.info("Deleted user %s", user_id)


def confirm_email(repo: Repository, user_id: str) -> None:
    users = [u for u in repo.all_users() if u.id == user_id]
    if not users:
        raise RepoError.not_found(f"user {user_id!r}")
    repo.update_user(replace(users[0], email_confirmed=True))


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def _upsert_tags(repo: Repository, tags: list[str]) -> None:
    for t in tags:
        repo.create_tag_if_missing(Tag(id=t))


def create_new_entry(repo: Repository, e: NewEntry) -> str:
    entry = Entry(
        id=_new_id(),
        created=_now(),
        version=0,
        title=e.title,
        description=e.description,
        lat=e.lat,
        lng=e.lng,
        street=e.street,
        zip=e.zip,
        city=e.city,
        country=e.country,
        email=e.email,
        telephone=e.telephone,
        homepage=e.homepage,
        categories=list(e.categories),
        tags=list(e.tags),
        license=e.license,
    )
    validate.entry(entry)
    validate.license(e.license)
    _upsert_tags(repo, entry.tags)
    repo.create_entry(entry)
    logger.info("Created entry %s", entry.id)
    return entry.id


def update_entry(repo: Repository, e: UpdateEntry) -> None:
    """Replace an entry with its next version.

    Raises:
        RepoError: ``INVALID_VERSION`` unless ``e.version`` is exactly the
            stored version plus one.
    """
    old = repo.get_entry(e.id)
    if old.version + 1 != e.version:
        raise RepoError(
            RepoErrorKind.INVALID_VERSION,
            f"Entry {e.id!r} is at version {old.version}, got {e.version}",
        )
    entry = Entry(
        id=e.id,
        created=_now(),
        version=e.version,
        title=e.title,
        description=e.description,
        lat=e.lat,
        lng=e.lng,
        street=e.street,
        zip=e.zip,
        city=e.city,
        country=e.country,
        email=e.email,
        telephone=e.telephone,
        homepage=e.homepage,
        categories=list(e.categories),
        tags=list(e.tags),
        license=old.license,
    )
    validate.entry(entry)
    _upsert_tags(repo, entry.tags)
    repo.update_entry(entry)
    logger.info("Updated entry %s to version %d", entry.id, entry.version)


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

def rate_entry(repo: Repository, r: RateEntry) -> str:
    """Store a rating with its comment and link both into the graph."""
    entry = repo.get_entry(r.entry)
    if not r.comment.strip():
        raise ParameterError(ParameterErrorKind.EMPTY_COMMENT)
    if not MIN_RATING <= r.value <= MAX_RATING:
        raise ParameterError(
            ParameterErrorKind.RATING_VALUE,
            f"Rating value must be within [{MIN_RATING}, {MAX_RATING}]",
        )

    now = _now()
    rating_id = _new_id()
    comment_id = _new_id()
    repo.create_rating(
        Rating(
            id=rating_id,
            entry_id=entry.id,
            created=now,
            title=r.title,
            value=r.value,
            context=r.context,
            source=r.source,
        )
    )
    repo.create_comment(Comment(id=comment_id, created=now, text=r.comment))

    rating, comment = ObjectId.rating(rating_id), ObjectId.comment(comment_id)
    repo.create_triple(Triple(ObjectId.entry(entry.id), Relation.IS_RATED_WITH, rating))
    repo.create_triple(Triple(rating, Relation.IS_COMMENTED_WITH, comment))
    if r.user:
        user = ObjectId.user(r.user)
        repo.create_triple(Triple(rating, Relation.CREATED_BY, user))
        repo.create_triple(Triple(comment, Relation.CREATED_BY, user))

    logger.info("Rated entry %s with %d (%s)", entry.id, r.value, r.context.value)
    return rating_id


# ---------------------------------------------------------------------------
# Bounding-box subscriptions
# ---------------------------------------------------------------------------

def subscribe_to_bbox(repo: Repository, bbox: BoundingBox, user_id: str) -> str:
    """Replace any subscription *user_id* holds with one for *bbox*."""
    validate.bbox(bbox)
    unsubscribe_all_bboxes(repo, user_id)

    sub_id = _new_id()
    repo.create_bbox_subscription(BboxSubscription(id=sub_id, bbox=bbox))
    repo.create_triple(
        Triple(ObjectId.user(user_id), Relation.SUBSCRIBED_TO, ObjectId.bbox_subscription(sub_id))
    )
    logger.info("User %s subscribed to bbox %s", user_id, sub_id)
    return sub_id


def unsubscribe_all_bboxes(repo: Repository, user_id: str) -> None:
    for sub_id in graph.subscription_ids_for_user(repo.all_triples(), user_id):
        repo.delete_bbox_subscription(sub_id)


def get_bbox_subscriptions(repo: Repository, user_id: str) -> list[BboxSubscription]:
    ids = set(graph.subscription_ids_for_user(repo.all_triples(), user_id))
    if not ids:
        return []
    return [s for s in repo.all_bbox_subscriptions() if s.id in ids]


def email_addresses_to_notify(repo: Repository, lat: float, lng: float) -> list[str]:
    """Email addresses of users whose subscribed box contains ``lat/lng``."""
    users = {u.id: u for u in repo.all_users()}
    subscriptions = {s.id: s for s in repo.all_bbox_subscriptions()}

    addresses: list[str] = []
    for user_id, sub_id in graph.user_subscriptions(repo.all_triples()):
        user = users.get(user_id)
        sub = subscriptions.get(sub_id)
        if user is None or sub is None:
            logger.warning("Dangling subscription %s of user %s", sub_id, user_id)
            continue
        if is_in_bbox(lat, lng, sub.bbox):
            addresses.append(user.email)
    return addresses


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def search_entries(
    repo: Repository,
    bbox: BoundingBox,
    config: SearchConfig,
    categories: Optional[list[str]] = None,
    text: str = "",
    tags: Optional[list[str]] = None,
    combination: Combination = Combination.OR,
) -> SearchResult:
    entries = repo.all_entries()
    triples = repo.all_triples()
    lookup = average_ratings_by_entry(entries, repo.all_ratings(), triples)
    req = SearchRequest(
        bbox=bbox,
        categories=categories,
        text=text,
        tags=list(tags or []),
        entry_ratings=lookup,
        combination=combination,
    )
    return search(entries, triples, req, config)


def find_duplicate_entries(repo: Repository) -> list[tuple[str, str, DuplicateType]]:
    return find_duplicates(repo.all_entries())
