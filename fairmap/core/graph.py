"""Queries over the subject / predicate / object relation graph.

The graph holds no state: every function takes a snapshot (a sequence of
:class:`~fairmap.core.models.Triple`) and projects ids out of it.

Each predicate links a fixed pair of object kinds:

====================  ==================  ==================
predicate             subject             object
====================  ==================  ==================
``IS_TAGGED_WITH``    entry               tag
``IS_COMMENTED_WITH`` rating              comment
``CREATED_BY``        comment / rating    user
``SUBSCRIBED_TO``     user                bbox_subscription
``IS_RATED_WITH``     entry               rating
====================  ==================  ==================

The table is a convention checked by :func:`check_triple` when a triple is
written, not something the types enforce.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from fairmap.core.models import ObjectId, ObjectKind, Relation, Triple

TriplePredicate = Callable[[Triple], bool]

ALLOWED_KINDS: dict[Relation, set[tuple[ObjectKind, ObjectKind]]] = {
    Relation.IS_TAGGED_WITH: {(ObjectKind.ENTRY, ObjectKind.TAG)},
    Relation.IS_COMMENTED_WITH: {(ObjectKind.RATING, ObjectKind.COMMENT)},
    Relation.CREATED_BY: {
        (ObjectKind.COMMENT, ObjectKind.USER),
        (ObjectKind.RATING, ObjectKind.USER),
    },
    Relation.SUBSCRIBED_TO: {(ObjectKind.USER, ObjectKind.BBOX_SUBSCRIPTION)},
    Relation.IS_RATED_WITH: {(ObjectKind.ENTRY, ObjectKind.RATING)},
}


def triple_id(t: Triple) -> str:
    """Deterministic identity of a triple; equal fields give equal ids.

    Ids are length-prefixed (``rating-2:r1-is_commented_with-comment-2:c1``)
    so hyphens inside entity ids or tags cannot make two facts collide.
    """
    return "-".join(
        (
            t.subject.kind.value,
            f"{len(t.subject.id)}:{t.subject.id}",
            t.predicate.value,
            t.object.kind.value,
            f"{len(t.object.id)}:{t.object.id}",
        )
    )


def check_triple(t: Triple) -> None:
    """Raise ``ValueError`` if *t* links kinds its predicate does not allow."""
    if (t.subject.kind, t.object.kind) not in ALLOWED_KINDS[t.predicate]:
        raise ValueError(
            f"{t.predicate.value} cannot link {t.subject.kind.value} "
            f"to {t.object.kind.value}"
        )


def filter_by_subject(subject: ObjectId) -> TriplePredicate:
    """Return a reusable filter matching triples whose subject is *subject*."""
    return lambda t: t.subject == subject


def _objects(
    triples: Iterable[Triple],
    subject: ObjectId,
    predicate: Relation,
    kind: ObjectKind,
) -> list[str]:
    by_subject = filter_by_subject(subject)
    return [
        t.object.id
        for t in triples
        if by_subject(t) and t.predicate == predicate and t.object.kind == kind
    ]


def comment_ids_for_rating(triples: Sequence[Triple], rating_id: str) -> list[str]:
    return _objects(
        triples, ObjectId.rating(rating_id), Relation.IS_COMMENTED_WITH, ObjectKind.COMMENT
    )


def _creator(triples: Sequence[Triple], subject: ObjectId) -> Optional[str]:
    # Writers reject a second CREATED_BY per subject; the last match is
    # returned should an older store still carry duplicates.
    users = _objects(triples, subject, Relation.CREATED_BY, ObjectKind.USER)
    return users[-1] if users else None


def user_id_for_comment(triples: Sequence[Triple], comment_id: str) -> Optional[str]:
    return _creator(triples, ObjectId.comment(comment_id))


def user_id_for_rating(triples: Sequence[Triple], rating_id: str) -> Optional[str]:
    return _creator(triples, ObjectId.rating(rating_id))


def subscription_ids_for_user(triples: Sequence[Triple], user_id: str) -> list[str]:
    return _objects(
        triples,
        ObjectId.user(user_id),
        Relation.SUBSCRIBED_TO,
        ObjectKind.BBOX_SUBSCRIPTION,
    )


def user_subscriptions(triples: Iterable[Triple]) -> list[tuple[str, str]]:
    """Every ``(user_id, subscription_id)`` pair linked by ``SUBSCRIBED_TO``."""
    return [
        (t.subject.id, t.object.id)
        for t in triples
        if t.predicate == Relation.SUBSCRIBED_TO
        and t.subject.kind == ObjectKind.USER
        and t.object.kind == ObjectKind.BBOX_SUBSCRIPTION
    ]


def tag_ids_for_entry(triples: Sequence[Triple], entry_id: str) -> list[str]:
    return _objects(
        triples, ObjectId.entry(entry_id), Relation.IS_TAGGED_WITH, ObjectKind.TAG
    )


def rating_ids_for_entry(triples: Sequence[Triple], entry_id: str) -> list[str]:
    return _objects(
        triples, ObjectId.entry(entry_id), Relation.IS_RATED_WITH, ObjectKind.RATING
    )


def tag_triples(entry_id: str, tags: Iterable[str]) -> list[Triple]:
    """Build the ``IS_TAGGED_WITH`` triples for an entry's tag list."""
    subject = ObjectId.entry(entry_id)
    return [Triple(subject, Relation.IS_TAGGED_WITH, ObjectId.tag(t)) for t in tags]
