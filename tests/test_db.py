"""Database layer tests.

All tests use an in-memory SQLite database so they are fast, isolated and
never touch the workspace under ``~/.fairmap_data``.
"""

from __future__ import annotations

import math
import sqlite3
from typing import Generator

import pytest

from fairmap.core.models import (
    BboxSubscription,
    BoundingBox,
    Category,
    Comment,
    Coordinate,
    ObjectId,
    Rating,
    RatingContext,
    Relation,
    Tag,
    Triple,
    User,
)
from fairmap.db.connection import get_connection
from fairmap.core.graph import triple_id
from fairmap.db.migrations import MIGRATIONS, current_version, init_db, migrate
from fairmap.db.repository import SqliteRepository
from fairmap.errors import RepoError, RepoErrorKind


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def repo(conn: sqlite3.Connection) -> SqliteRepository:
    return SqliteRepository(conn)


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")

    def test_row_factory(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("SELECT 1 AS one").fetchone()
        assert row["one"] == 1


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }
        assert {
            "entries",
            "entry_categories",
            "categories",
            "tags",
            "users",
            "ratings",
            "comments",
            "bbox_subscriptions",
            "triples",
            "schema_version",
        } <= tables

    def test_idempotent(self, conn: sqlite3.Connection) -> None:
        init_db(conn)
        init_db(conn)

    def test_migrations_applied_once(self, conn: sqlite3.Connection) -> None:
        latest = max(v for v, _ in MIGRATIONS)
        assert current_version(conn) == latest
        init_db(conn)
        rows = conn.execute("SELECT version FROM schema_version").fetchall()
        assert sorted(r[0] for r in rows) == [v for v, _ in sorted(MIGRATIONS)]

    def test_legacy_triple_ids_rewritten(self, conn: sqlite3.Connection) -> None:
        t = Triple(ObjectId.entry("e-1"), Relation.IS_TAGGED_WITH, ObjectId.tag("solar-panel"))
        with conn:
            conn.execute(
                """
                INSERT INTO triples
                    (id, subject_kind, subject_id, predicate, object_kind, object_id)
                VALUES ('entry-e-1-is_tagged_with-tag-solar-panel',
                        'entry', 'e-1', 'is_tagged_with', 'tag', 'solar-panel')
                """
            )
            conn.execute("DELETE FROM schema_version")
        migrate(conn)

        row = conn.execute("SELECT id FROM triples").fetchone()
        assert row["id"] == triple_id(t)

        repo = SqliteRepository(conn)
        repo.create_triple(t)
        assert repo.all_triples() == [t]


# ---------------------------------------------------------------------------
# entries
# ---------------------------------------------------------------------------

class TestEntries:
    def test_round_trip(self, repo: SqliteRepository, make_entry) -> None:
        entry = make_entry(
            "e1",
            lat=48.1,
            lng=11.5,
            created=1000,
            city="Munich",
            categories=["c2", "c1"],
            tags=["repair", "diy"],
            license="CC0-1.0",
        )
        repo.create_entry(entry)
        assert repo.get_entry("e1") == entry

    def test_tags_stored_as_triples(self, repo: SqliteRepository, make_entry) -> None:
        repo.create_entry(make_entry("e1", tags=["repair"]))
        assert repo.all_triples() == [
            Triple(ObjectId.entry("e1"), Relation.IS_TAGGED_WITH, ObjectId.tag("repair"))
        ]

    def test_nan_coordinates_survive(self, repo: SqliteRepository, make_entry) -> None:
        repo.create_entry(make_entry("e1", lat=float("nan")))
        assert math.isnan(repo.get_entry("e1").lat)

    def test_missing_entry(self, repo: SqliteRepository, make_entry) -> None:
        with pytest.raises(RepoError) as exc_info:
            repo.get_entry("nope")
        assert exc_info.value.kind == RepoErrorKind.NOT_FOUND

    def test_duplicate_id(self, repo: SqliteRepository, make_entry) -> None:
        repo.create_entry(make_entry("e1"))
        with pytest.raises(RepoError) as exc_info:
            repo.create_entry(make_entry("e1"))
        assert exc_info.value.kind == RepoErrorKind.ALREADY_EXISTS

    def test_update_keeps_history(self, repo: SqliteRepository, conn: sqlite3.Connection, make_entry) -> None:
        repo.create_entry(make_entry("e1", tags=["a"], categories=["c1"]))
        repo.update_entry(make_entry("e1", version=1, title="new", tags=["b"], categories=["c2"]))

        current = repo.get_entry("e1")
        assert current.version == 1
        assert current.title == "new"
        assert current.tags == ["b"]
        assert current.categories == ["c2"]
        assert [e.id for e in repo.all_entries()] == ["e1"]

        versions = conn.execute("SELECT version FROM entries WHERE id = 'e1'").fetchall()
        assert sorted(r[0] for r in versions) == [0, 1]

    @pytest.mark.parametrize("version", [0, 2])
    def test_update_wrong_version(self, repo: SqliteRepository, version: int, make_entry) -> None:
        repo.create_entry(make_entry("e1"))
        with pytest.raises(RepoError) as exc_info:
            repo.update_entry(make_entry("e1", version=version, title="new"))
        assert exc_info.value.kind == RepoErrorKind.INVALID_VERSION
        assert repo.get_entry("e1").title == "foo"

    def test_update_missing(self, repo: SqliteRepository, make_entry) -> None:
        with pytest.raises(RepoError) as exc_info:
            repo.update_entry(make_entry("nope", version=1))
        assert exc_info.value.kind == RepoErrorKind.NOT_FOUND


# ---------------------------------------------------------------------------
# categories / tags / users
# ---------------------------------------------------------------------------

class TestCategoriesAndTags:
    def test_categories_sorted_by_name(self, repo: SqliteRepository) -> None:
        repo.create_category(Category(id="c2", name="Repair", created=1))
        repo.create_category(Category(id="c1", name="Food", created=2))
        assert [c.id for c in repo.all_categories()] == ["c1", "c2"]

    def test_duplicate_category(self, repo: SqliteRepository) -> None:
        repo.create_category(Category(id="c1", name="Food"))
        with pytest.raises(RepoError) as exc_info:
            repo.create_category(Category(id="c1", name="Other"))
        assert exc_info.value.kind == RepoErrorKind.ALREADY_EXISTS

    def test_tag_upsert(self, repo: SqliteRepository) -> None:
        repo.create_tag_if_missing(Tag("b"))
        repo.create_tag_if_missing(Tag("a"))
        repo.create_tag_if_missing(Tag("b"))
        assert repo.all_tags() == [Tag("a"), Tag("b")]


class TestUsers:
    def _user(self, **overrides) -> User:
        fields = dict(id="u1", username="alice", password="x", email="a@example.org")
        fields.update(overrides)
        return User(**fields)

    def test_round_trip(self, repo: SqliteRepository) -> None:
        repo.create_user(self._user())
        assert repo.get_user("alice") == self._user()

    def test_username_unique(self, repo: SqliteRepository) -> None:
        repo.create_user(self._user())
        with pytest.raises(RepoError) as exc_info:
            repo.create_user(self._user(id="u2"))
        assert exc_info.value.kind == RepoErrorKind.ALREADY_EXISTS

    def test_update(self, repo: SqliteRepository) -> None:
        repo.create_user(self._user())
        repo.update_user(self._user(email_confirmed=True))
        assert repo.get_user("alice").email_confirmed is True

    def test_update_missing(self, repo: SqliteRepository) -> None:
        with pytest.raises(RepoError) as exc_info:
            repo.update_user(self._user())
        assert exc_info.value.kind == RepoErrorKind.NOT_FOUND

    def test_delete(self, repo: SqliteRepository) -> None:
        repo.create_user(self._user())
        repo.delete_user("u1")
        repo.delete_user("u1")
        assert repo.all_users() == []


# ---------------------------------------------------------------------------
# ratings / comments / triples
# ---------------------------------------------------------------------------

class TestRatingsAndComments:
    def test_rating_round_trip(self, repo: SqliteRepository) -> None:
        rating = Rating(
            id="r1", entry_id="e1", created=5, title="t", value=2,
            context=RatingContext.RENEWABLE, source="web",
        )
        repo.create_rating(rating)
        assert repo.all_ratings() == [rating]

    def test_comment_round_trip(self, repo: SqliteRepository) -> None:
        comment = Comment(id="c1", created=5, text="hello")
        repo.create_comment(comment)
        assert repo.all_comments() == [comment]


class TestTriples:
    def test_hyphenated_ids_kept_apart(self, repo: SqliteRepository) -> None:
        a = Triple(ObjectId.entry("e-is_tagged_with-tag-x"), Relation.IS_TAGGED_WITH, ObjectId.tag("y"))
        b = Triple(ObjectId.entry("e"), Relation.IS_TAGGED_WITH, ObjectId.tag("x-is_tagged_with-tag-y"))
        repo.create_triple(a)
        repo.create_triple(b)
        assert repo.all_triples() == [a, b]

    def test_same_fact_stored_once(self, repo: SqliteRepository) -> None:
        t = Triple(ObjectId.rating("r1"), Relation.IS_COMMENTED_WITH, ObjectId.comment("c1"))
        repo.create_triple(t)
        repo.create_triple(t)
        assert repo.all_triples() == [t]

    def test_delete(self, repo: SqliteRepository) -> None:
        t = Triple(ObjectId.rating("r1"), Relation.IS_COMMENTED_WITH, ObjectId.comment("c1"))
        repo.create_triple(t)
        repo.delete_triple(t)
        assert repo.all_triples() == []

    def test_disallowed_kinds(self, repo: SqliteRepository) -> None:
        with pytest.raises(ValueError):
            repo.create_triple(
                Triple(ObjectId.user("u1"), Relation.IS_TAGGED_WITH, ObjectId.tag("x"))
            )
        assert repo.all_triples() == []

    def test_single_creator(self, repo: SqliteRepository) -> None:
        subject = ObjectId.rating("r1")
        repo.create_triple(Triple(subject, Relation.CREATED_BY, ObjectId.user("u1")))
        repo.create_triple(Triple(subject, Relation.CREATED_BY, ObjectId.user("u1")))
        with pytest.raises(RepoError) as exc_info:
            repo.create_triple(Triple(subject, Relation.CREATED_BY, ObjectId.user("u2")))
        assert exc_info.value.kind == RepoErrorKind.ALREADY_EXISTS
        assert len(repo.all_triples()) == 1


# ---------------------------------------------------------------------------
# subscriptions
# ---------------------------------------------------------------------------

class TestSubscriptions:
    BOX = BoundingBox(Coordinate(1.0, 2.0), Coordinate(3.0, 4.0))

    def test_round_trip(self, repo: SqliteRepository) -> None:
        sub = BboxSubscription(id="s1", bbox=self.BOX)
        repo.create_bbox_subscription(sub)
        assert repo.all_bbox_subscriptions() == [sub]

    def test_delete_drops_triples(self, repo: SqliteRepository) -> None:
        repo.create_bbox_subscription(BboxSubscription(id="s1", bbox=self.BOX))
        repo.create_triple(
            Triple(ObjectId.user("u1"), Relation.SUBSCRIBED_TO, ObjectId.bbox_subscription("s1"))
        )
        repo.create_triple(
            Triple(ObjectId.rating("r1"), Relation.IS_COMMENTED_WITH, ObjectId.comment("c1"))
        )
        repo.delete_bbox_subscription("s1")
        assert repo.all_bbox_subscriptions() == []
        assert [t.predicate for t in repo.all_triples()] == [Relation.IS_COMMENTED_WITH]
