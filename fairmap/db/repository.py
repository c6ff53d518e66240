"""SQLite implementation of :class:`~fairmap.core.repository.Repository`."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from fairmap.core.graph import check_triple, tag_triples, triple_id
from fairmap.core.models import (
    BboxSubscription,
    BoundingBox,
    Category,
    Comment,
    Coordinate,
    Entry,
    ObjectId,
    ObjectKind,
    Rating,
    RatingContext,
    Relation,
    Tag,
    Triple,
    User,
)
from fairmap.errors import RepoError, RepoErrorKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _float(value: float | None) -> float:
    # SQLite stores NaN as NULL.
    return float("nan") if value is None else value


def _row_to_entry(row: sqlite3.Row, categories: list[str], tags: list[str]) -> Entry:
    return Entry(
        id=row["id"],
        created=row["created"],
        version=row["version"],
        title=row["title"],
        description=row["description"],
        lat=_float(row["lat"]),
        lng=_float(row["lng"]),
        street=row["street"],
        zip=row["zip"],
        city=row["city"],
        country=row["country"],
        email=row["email"],
        telephone=row["telephone"],
        homepage=row["homepage"],
        categories=categories,
        tags=tags,
        license=row["license"],
    )


def _row_to_triple(row: sqlite3.Row) -> Triple:
    return Triple(
        subject=ObjectId(ObjectKind(row["subject_kind"]), row["subject_id"]),
        predicate=Relation(row["predicate"]),
        object=ObjectId(ObjectKind(row["object_kind"]), row["object_id"]),
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        password=row["password"],
        email=row["email"],
        email_confirmed=bool(row["email_confirmed"]),
    )


@contextmanager
def _guard() -> Iterator[None]:
    """Translate ``sqlite3`` failures into :class:`RepoError`."""
    try:
        yield
    except sqlite3.IntegrityError as exc:
        raise RepoError(RepoErrorKind.ALREADY_EXISTS, str(exc), cause=exc) from exc
    except sqlite3.Error as exc:
        raise RepoError.wrap(exc) from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class SqliteRepository:
    """Repository backed by one open SQLite connection.

    The connection must already carry the schema (see
    :func:`fairmap.db.migrations.init_db`).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # -- entries -----------------------------------------------------------

    def _insert_entry(self, entry: Entry) -> None:
        self.conn.execute(
            """
            INSERT INTO entries (id, version, current, created, title, description,
                                 lat, lng, street, zip, city, country, email,
                                 telephone, homepage, license)
            VALUES (?, ?, 1, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id, entry.version, entry.created, entry.title, entry.description,
                entry.lat, entry.lng, entry.street, entry.zip, entry.city, entry.country,
                entry.email, entry.telephone, entry.homepage, entry.license,
            ),
        )
        self.conn.execute("DELETE FROM entry_categories WHERE entry_id = ?", (entry.id,))
        self.conn.executemany(
            "INSERT INTO entry_categories (entry_id, position, category_id) VALUES (?, ?, ?)",
            [(entry.id, i, c) for i, c in enumerate(entry.categories)],
        )
        self.conn.execute(
            "DELETE FROM triples WHERE subject_kind = ? AND subject_id = ? AND predicate = ?",
            (ObjectKind.ENTRY.value, entry.id, Relation.IS_TAGGED_WITH.value),
        )
        for t in tag_triples(entry.id, entry.tags):
            self._insert_triple(t)

    def create_entry(self, entry: Entry) -> None:
        with _guard(), self.conn:
            self._insert_entry(entry)

    def _current_version(self, entry_id: str) -> int:
        row = self.conn.execute(
            "SELECT version FROM entries WHERE id = ? AND current = 1", (entry_id,)
        ).fetchone()
        if row is None:
            raise RepoError.not_found(f"entry {entry_id!r}")
        return row["version"]

    def update_entry(self, entry: Entry) -> None:
        with _guard(), self.conn:
            if self._current_version(entry.id) + 1 != entry.version:
                raise RepoError(RepoErrorKind.INVALID_VERSION, f"entry {entry.id!r}")
            self.conn.execute("UPDATE entries SET current = 0 WHERE id = ?", (entry.id,))
            self._insert_entry(entry)

    def _load_entries(self, rows: list[sqlite3.Row]) -> list[Entry]:
        categories: dict[str, list[str]] = {}
        for r in self.conn.execute(
            "SELECT entry_id, category_id FROM entry_categories ORDER BY entry_id, position"
        ):
            categories.setdefault(r["entry_id"], []).append(r["category_id"])
        tags: dict[str, list[str]] = {}
        for r in self.conn.execute(
            "SELECT subject_id, object_id FROM triples WHERE predicate = ? ORDER BY rowid",
            (Relation.IS_TAGGED_WITH.value,),
        ):
            tags.setdefault(r["subject_id"], []).append(r["object_id"])
        return [
            _row_to_entry(row, categories.get(row["id"], []), tags.get(row["id"], []))
            for row in rows
        ]

    def get_entry(self, entry_id: str) -> Entry:
        with _guard():
            row = self.conn.execute(
                "SELECT * FROM entries WHERE id = ? AND current = 1", (entry_id,)
            ).fetchone()
            if row is None:
                raise RepoError.not_found(f"entry {entry_id!r}")
            return self._load_entries([row])[0]

    def all_entries(self) -> list[Entry]:
        with _guard():
            rows = self.conn.execute(
                "SELECT * FROM entries WHERE current = 1 ORDER BY created, id"
            ).fetchall()
            return self._load_entries(rows)

    # -- categories / tags -------------------------------------------------

    def create_category(self, category: Category) -> None:
        with _guard(), self.conn:
            self.conn.execute(
                "INSERT INTO categories (id, name, created, version) VALUES (?, ?, ?, ?)",
                (category.id, category.name, category.created, category.version),
            )

    def all_categories(self) -> list[Category]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM categories ORDER BY name").fetchall()
        return [
            Category(id=r["id"], name=r["name"], created=r["created"], version=r["version"])
            for r in rows
        ]

    def create_tag_if_missing(self, tag: Tag) -> None:
        with _guard(), self.conn:
            self.conn.execute("INSERT OR IGNORE INTO tags (id) VALUES (?)", (tag.id,))

    def all_tags(self) -> list[Tag]:
        with _guard():
            rows = self.conn.execute("SELECT id FROM tags ORDER BY id").fetchall()
        return [Tag(id=r["id"]) for r in rows]

    # -- users -------------------------------------------------------------

    def create_user(self, user: User) -> None:
        with _guard(), self.conn:
            self.conn.execute(
                """
                INSERT INTO users (id, username, password, email, email_confirmed)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user.id, user.username, user.password, user.email, int(user.email_confirmed)),
            )

    def get_user(self, username: str) -> User:
        with _guard():
            row = self.conn.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            ).fetchone()
        if row is None:
            raise RepoError.not_found(f"user {username!r}")
        return _row_to_user(row)

    def all_users(self) -> list[User]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM users ORDER BY username").fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user: User) -> None:
        with _guard(), self.conn:
            cur = self.conn.execute(
                """
                UPDATE users SET username = ?, password = ?, email = ?, email_confirmed = ?
                WHERE id = ?
                """,
                (user.username, user.password, user.email, int(user.email_confirmed), user.id),
            )
            if cur.rowcount == 0:
                raise RepoError.not_found(f"user {user.id!r}")

    def delete_user(self, user_id: str) -> None:
        with _guard(), self.conn:
            self.conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    # -- ratings / comments ------------------------------------------------

    def create_rating(self, rating: Rating) -> None:
        with _guard(), self.conn:
            self.conn.execute(
                """
                INSERT INTO ratings (id, entry_id, created, title, value, context, source)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rating.id, rating.entry_id, rating.created, rating.title,
                    rating.value, rating.context.value, rating.source,
                ),
            )

    def all_ratings(self) -> list[Rating]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM ratings ORDER BY created, id").fetchall()
        return [
            Rating(
                id=r["id"],
                entry_id=r["entry_id"],
                created=r["created"],
                title=r["title"],
                value=r["value"],
                context=RatingContext(r["context"]),
                source=r["source"],
            )
            for r in rows
        ]

    def create_comment(self, comment: Comment) -> None:
        with _guard(), self.conn:
            self.conn.execute(
                "INSERT INTO comments (id, created, text) VALUES (?, ?, ?)",
                (comment.id, comment.created, comment.text),
            )

    def all_comments(self) -> list[Comment]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM comments ORDER BY created, id").fetchall()
        return [Comment(id=r["id"], created=r["created"], text=r["text"]) for r in rows]

    # -- relation graph ----------------------------------------------------

    def _insert_triple(self, triple: Triple) -> None:
        check_triple(triple)
        if triple.predicate == Relation.CREATED_BY:
            row = self.conn.execute(
                """
                SELECT object_id FROM triples
                WHERE subject_kind = ? AND subject_id = ? AND predicate = ?
                """,
                (triple.subject.kind.value, triple.subject.id, Relation.CREATED_BY.value),
            ).fetchone()
            if row is not None and row["object_id"] != triple.object.id:
                raise RepoError(
                    RepoErrorKind.ALREADY_EXISTS,
                    f"{triple.subject.kind.value} {triple.subject.id!r} already has a creator",
                )
        # Same fields, same id: storing a fact twice is a no-op.
        self.conn.execute(
            """
            INSERT OR IGNORE INTO triples
                (id, subject_kind, subject_id, predicate, object_kind, object_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                triple_id(triple),
                triple.subject.kind.value,
                triple.subject.id,
                triple.predicate.value,
                triple.object.kind.value,
                triple.object.id,
            ),
        )

    def create_triple(self, triple: Triple) -> None:
        with _guard(), self.conn:
            self._insert_triple(triple)

    def delete_triple(self, triple: Triple) -> None:
        with _guard(), self.conn:
            self.conn.execute("DELETE FROM triples WHERE id = ?", (triple_id(triple),))

    def all_triples(self) -> list[Triple]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM triples ORDER BY rowid").fetchall()
        return [_row_to_triple(r) for r in rows]

    # -- subscriptions -----------------------------------------------------

    def create_bbox_subscription(self, subscription: BboxSubscription) -> None:
        sw, ne = subscription.bbox.south_west, subscription.bbox.north_east
        with _guard(), self.conn:
            self.conn.execute(
                """
                INSERT INTO bbox_subscriptions
                    (id, south_west_lat, south_west_lng, north_east_lat, north_east_lng)
                VALUES (?, ?, ?, ?, ?)
                """,
                (subscription.id, sw.lat, sw.lng, ne.lat, ne.lng),
            )

    def all_bbox_subscriptions(self) -> list[BboxSubscription]:
        with _guard():
            rows = self.conn.execute("SELECT * FROM bbox_subscriptions").fetchall()
        return [
            BboxSubscription(
                id=r["id"],
                bbox=BoundingBox(
                    south_west=Coordinate(r["south_west_lat"], r["south_west_lng"]),
                    north_east=Coordinate(r["north_east_lat"], r["north_east_lng"]),
                ),
            )
            for r in rows
        ]

    def delete_bbox_subscription(self, subscription_id: str) -> None:
        """Delete the subscription and every triple pointing at it."""
        with _guard(), self.conn:
            self.conn.execute(
                "DELETE FROM bbox_subscriptions WHERE id = ?", (subscription_id,)
            )
            self.conn.execute(
                "DELETE FROM triples WHERE object_kind = ? AND object_id = ?",
                (ObjectKind.BBOX_SUBSCRIPTION.value, subscription_id),
            )
            logger.debug("Deleted bbox subscription %s", subscription_id)
