"""In-memory repository, used by tests and throw-away tooling.

Behaves like :class:`~fairmap.db.repository.SqliteRepository`: records are
copied on the way in and out so callers never share mutable state with it.
"""

from __future__ import annotations

from dataclasses import replace

from fairmap.core.graph import check_triple, tag_triples, triple_id
from fairmap.core.models import (
    BboxSubscription,
    Category,
    Comment,
    Entry,
    ObjectKind,
    Rating,
    Relation,
    Tag,
    Triple,
    User,
)
from fairmap.errors import RepoError, RepoErrorKind


def _copy_entry(e: Entry) -> Entry:
    return replace(e, categories=list(e.categories), tags=list(e.tags))


class InMemoryRepository:
    def __init__(self) -> None:
        self.entries: dict[str, Entry] = {}
        self.categories: dict[str, Category] = {}
        self.tags: dict[str, Tag] = {}
        self.users: dict[str, User] = {}
        self.ratings: dict[str, Rating] = {}
        self.comments: dict[str, Comment] = {}
        self.triples: dict[str, Triple] = {}
        self.subscriptions: dict[str, BboxSubscription] = {}

    # -- entries -----------------------------------------------------------

    def _store_entry(self, entry: Entry) -> None:
        self.entries[entry.id] = _copy_entry(entry)
        for key, t in list(self.triples.items()):
            if t.predicate == Relation.IS_TAGGED_WITH and t.subject.id == entry.id:
                del self.triples[key]
        for t in tag_triples(entry.id, entry.tags):
            self.create_triple(t)

    def create_entry(self, entry: Entry) -> None:
        if entry.id in self.entries:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"entry {entry.id!r}")
        self._store_entry(entry)

    def get_entry(self, entry_id: str) -> Entry:
        if entry_id not in self.entries:
            raise RepoError.not_found(f"entry {entry_id!r}")
        return _copy_entry(self.entries[entry_id])

    def all_entries(self) -> list[Entry]:
        return [_copy_entry(e) for e in self.entries.values()]

    def update_entry(self, entry: Entry) -> None:
        old = self.get_entry(entry.id)
        if old.version + 1 != entry.version:
            raise RepoError(RepoErrorKind.INVALID_VERSION, f"entry {entry.id!r}")
        self._store_entry(entry)

    # -- categories / tags -------------------------------------------------

    def create_category(self, category: Category) -> None:
        if category.id in self.categories:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"category {category.id!r}")
        self.categories[category.id] = replace(category)

    def all_categories(self) -> list[Category]:
        return sorted((replace(c) for c in self.categories.values()), key=lambda c: c.name)

    def create_tag_if_missing(self, tag: Tag) -> None:
        self.tags.setdefault(tag.id, tag)

    def all_tags(self) -> list[Tag]:
        return sorted(self.tags.values(), key=lambda t: t.id)

    # -- users -------------------------------------------------------------

    def create_user(self, user: User) -> None:
        if user.id in self.users or any(u.username == user.username for u in self.users.values()):
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"user {user.username!r}")
        self.users[user.id] = replace(user)

    def get_user(self, username: str) -> User:
        for u in self.users.values():
            if u.username == username:
                return replace(u)
        raise RepoError.not_found(f"user {username!r}")

    def all_users(self) -> list[User]:
        return [replace(u) for u in self.users.values()]

    def update_user(self, user: User) -> None:
        if user.id not in self.users:
            raise RepoError.not_found(f"user {user.id!r}")
        self.users[user.id] = replace(user)

    def delete_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)

    # -- ratings / comments ------------------------------------------------

    def create_rating(self, rating: Rating) -> None:
        if rating.id in self.ratings:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"rating {rating.id!r}")
        self.ratings[rating.id] = replace(rating)

    def all_ratings(self) -> list[Rating]:
        return [replace(r) for r in self.ratings.values()]

    def create_comment(self, comment: Comment) -> None:
        if comment.id in self.comments:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"comment {comment.id!r}")
        self.comments[comment.id] = replace(comment)

    def all_comments(self) -> list[Comment]:
        return [replace(c) for c in self.comments.values()]

    # -- relation graph ----------------------------------------------------

    def create_triple(self, triple: Triple) -> None:
        check_triple(triple)
        if triple.predicate == Relation.CREATED_BY:
            for t in self.triples.values():
                if (
                    t.predicate == Relation.CREATED_BY
                    and t.subject == triple.subject
                    and t.object != triple.object
                ):
                    raise RepoError(
                        RepoErrorKind.ALREADY_EXISTS,
                        f"{triple.subject.kind.value} {triple.subject.id!r} already has a creator",
                    )
        self.triples.setdefault(triple_id(triple), triple)

    def delete_triple(self, triple: Triple) -> None:
        self.triples.pop(triple_id(triple), None)

    def all_triples(self) -> list[Triple]:
        return list(self.triples.values())

    # -- subscriptions -----------------------------------------------------

    def create_bbox_subscription(self, subscription: BboxSubscription) -> None:
        self.subscriptions[subscription.id] = subscription

    def all_bbox_subscriptions(self) -> list[BboxSubscription]:
        return list(self.subscriptions.values())

    def delete_bbox_subscription(self, subscription_id: str) -> None:
        self.subscriptions.pop(subscription_id, None)
        for key, t in list(self.triples.items()):
            if t.object.kind == ObjectKind.BBOX_SUBSCRIPTION and t.object.id == subscription_id:
                del self.triples[key]
