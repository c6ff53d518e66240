"""Error taxonomy shared by the core, the repositories and the API layer.

Two families exist:

``ParameterError``
    The caller supplied invalid input.  Deterministic, never retried.

``RepoError``
    The storage layer failed: a record is missing, a version conflicts, or
    some backend-specific cause (wrapped, never swallowed).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ParameterErrorKind(str, Enum):
    BBOX = "bbox"
    CATEGORIES = "categories"
    EMPTY_COMMENT = "empty_comment"
    RATING_VALUE = "rating_value"
    USER_EXISTS = "user_exists"
    CREDENTIALS = "credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    FORBIDDEN = "forbidden"
    TITLE = "title"
    DESCRIPTION = "description"
    COORDINATES = "coordinates"
    EMAIL = "email"
    LICENSE = "license"
    USERNAME = "username"
    PASSWORD = "password"


class RepoErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_VERSION = "invalid_version"
    ALREADY_EXISTS = "already_exists"
    OTHER = "other"


class FairmapError(Exception):
    """Base class for every error raised on purpose by this package."""


class ParameterError(FairmapError):
    def __init__(self, kind: ParameterErrorKind, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)


class RepoError(FairmapError):
    def __init__(
        self,
        kind: RepoErrorKind,
        detail: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.cause = cause
        super().__init__(detail or kind.value)

    @classmethod
    def not_found(cls, what: str) -> "RepoError":
        return cls(RepoErrorKind.NOT_FOUND, f"Not found: {what}")

    @classmethod
    def wrap(cls, exc: BaseException) -> "RepoError":
        """Wrap a backend failure so it surfaces as ``RepoErrorKind.OTHER``."""
        return cls(RepoErrorKind.OTHER, str(exc), cause=exc)
