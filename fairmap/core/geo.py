"""Geospatial helpers."""
from __future__ import annotations

import math

from fairmap.core.models import BoundingBox, Coordinate
from fairmap.errors import ParameterError, ParameterErrorKind

EARTH_RADIUS_KM = 6371.0


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres (haversine)."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push h marginally outside [0, 1] for antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def is_in_bbox(lat: float, lng: float, bbox: BoundingBox) -> bool:
    """Return ``True`` if the point lies inside *bbox* (edges included).

    Non-finite points and boxes with non-finite corners contain nothing.
    """
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    if not bbox.is_finite():
        return False
    sw, ne = bbox.south_west, bbox.north_east
    return sw.lat <= lat <= ne.lat and sw.lng <= lng <= ne.lng


def center(south_west: Coordinate, north_east: Coordinate) -> Coordinate:
    return Coordinate(
        lat=(south_west.lat + north_east.lat) / 2,
        lng=(south_west.lng + north_east.lng) / 2,
    )


def extract_bbox(text: str) -> BoundingBox:
    """Parse ``"sw_lat,sw_lng,ne_lat,ne_lng"`` into a :class:`BoundingBox`.

    Raises:
        ParameterError: (``BBOX``) on non-numeric fields or a field count
            other than four.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise ParameterError(
            ParameterErrorKind.BBOX, f"Expected 4 comma-separated numbers, got {len(parts)}"
        )
    try:
        values = [float(p) for p in parts]
    except ValueError as exc:
        raise ParameterError(ParameterErrorKind.BBOX, f"Invalid bbox {text!r}") from exc
    return BoundingBox(
        south_west=Coordinate(values[0], values[1]),
        north_east=Coordinate(values[2], values[3]),
    )


def extend_bbox(bbox: BoundingBox, lat_ext: float, lng_ext: float) -> BoundingBox:
    """Grow *bbox* by *lat_ext* / *lng_ext* degrees on every side."""
    sw, ne = bbox.south_west, bbox.north_east
    return BoundingBox(
        south_west=Coordinate(sw.lat - lat_ext, sw.lng - lng_ext),
        north_east=Coordinate(ne.lat + lat_ext, ne.lng + lng_ext),
    )
