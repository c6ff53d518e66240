"""The storage contract the use-case layer talks to.

Implementations live in :mod:`fairmap.db`.  Every method either succeeds
completely or raises :class:`~fairmap.errors.RepoError`; ``get_*`` methods
raise ``NOT_FOUND`` rather than returning ``None``.
"""

from __future__ import annotations

from typing import Protocol

from fairmap.core.models import (
    BboxSubscription,
    Category,
    Comment,
    Entry,
    Rating,
    Tag,
    Triple,
    User,
)


class Repository(Protocol):
    # entries
    def create_entry(self, entry: Entry) -> None: ...
    def get_entry(self, entry_id: str) -> Entry: ...
    def all_entries(self) -> list[Entry]: ...
    def update_entry(self, entry: Entry) -> None: ...

    # categories / tags
    def create_category(self, category: Category) -> None: ...
    def all_categories(self) -> list[Category]: ...
    def create_tag_if_missing(self, tag: Tag) -> None: ...
    def all_tags(self) -> list[Tag]: ...

    # users
    def create_user(self, user: User) -> None: ...
    def get_user(self, username: str) -> User: ...
    def all_users(self) -> list[User]: ...
    def update_user(self, user: User) -> None: ...
    def delete_user(self, user_id: str) -> None: ...

    # ratings / comments
    def create_rating(self, rating: Rating) -> None: ...
    def all_ratings(self) -> list[Rating]: ...
    def create_comment(self, comment: Comment) -> None: ...
    def all_comments(self) -> list[Comment]: ...

    # relation graph
    def create_triple(self, triple: Triple) -> None: ...
    def delete_triple(self, triple: Triple) -> None: ...
    def all_triples(self) -> list[Triple]: ...

    # subscriptions
    def create_bbox_subscription(self, subscription: BboxSubscription) -> None: ...
    def all_bbox_subscriptions(self) -> list[BboxSubscription]: ...
    def delete_bbox_subscription(self, subscription_id: str) -> None: ...
