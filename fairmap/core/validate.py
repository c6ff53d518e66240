"""Input validation for the use-case layer.

Every check raises :class:`~fairmap.errors.ParameterError` on failure.
"""

from __future__ import annotations

import math
import re

from fairmap.core.models import BoundingBox, Entry
from fairmap.errors import ParameterError, ParameterErrorKind

LICENSES = ("CC0-1.0", "ODbL-1.0")

_USERNAME_RE = re.compile(r"^[a-z0-9]{1,30}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def username(name: str) -> None:
    if not _USERNAME_RE.match(name):
        raise ParameterError(ParameterErrorKind.USERNAME, f"Invalid username {name!r}")


def password(pw: str) -> None:
    if len(pw) < MIN_PASSWORD_LENGTH:
        raise ParameterError(ParameterErrorKind.PASSWORD, "Password too short")


def email(address: str) -> None:
    if not _EMAIL_RE.match(address):
        raise ParameterError(ParameterErrorKind.EMAIL, f"Invalid email {address!r}")


def license(value: str) -> None:
    if value not in LICENSES:
        raise ParameterError(ParameterErrorKind.LICENSE, f"Unsupported license {value!r}")


def coordinates(lat: float, lng: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ParameterError(ParameterErrorKind.COORDINATES, "Coordinates must be finite")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise ParameterError(ParameterErrorKind.COORDINATES, f"Out of range: {lat}/{lng}")


def bbox(b: BoundingBox) -> None:
    if not b.is_finite():
        raise ParameterError(ParameterErrorKind.BBOX, "Bounding box must be finite")
    sw, ne = b.south_west, b.north_east
    if sw.lat > ne.lat or sw.lng > ne.lng:
        raise ParameterError(ParameterErrorKind.BBOX, "South-west corner must not exceed north-east")


def entry(e: Entry) -> None:
    if not e.title.strip():
        raise ParameterError(ParameterErrorKind.TITLE, "Title must not be empty")
    if not e.description.strip():
        raise ParameterError(ParameterErrorKind.DESCRIPTION, "Description must not be empty")
    coordinates(e.lat, e.lng)
    if e.email:
        email(e.email)
