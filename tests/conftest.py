from __future__ import annotations

import itertools
from math import asin, atan2, cos, degrees, radians, sin

import pytest

from echospace.core.geo import EARTH_RADIUS_M, GeoPoint
from echospace.domain.models import Fragment

# Downtown Morgantown, WV: the reference viewer location used across tests.
ORIGIN = GeoPoint(lat=39.6295, lng=-79.9559)


def point_at(origin: GeoPoint, bearing: float, distance_m: float) -> GeoPoint:
    """Spherical destination point: the exact inverse of haversine + initial bearing."""
    d = distance_m / EARTH_RADIUS_M
    theta = radians(bearing)
    lat1 = radians(origin.lat)
    lng1 = radians(origin.lng)
    lat2 = asin(sin(lat1) * cos(d) + cos(lat1) * sin(d) * cos(theta))
    lng2 = lng1 + atan2(sin(theta) * sin(d) * cos(lat1), cos(d) - sin(lat1) * sin(lat2))
    return GeoPoint(lat=degrees(lat2), lng=degrees(lng2))


_ids = itertools.count(1)


def make_fragment(point: GeoPoint, *, category: str = "story", title: str | None = None, **extra) -> Fragment:
    n = next(_ids)
    return Fragment(
        id=extra.pop("id", f"f{n}"),
        title=title or f"Fragment {n}",
        content="Something happened here.",
        category=category,
        latitude=point.lat,
        longitude=point.lng,
        location_name="Somewhere",
        author="Tester",
        **extra,
    )


@pytest.fixture
def fragment_at():
    """Factory: a fragment placed at (bearing, distance) from ORIGIN."""

    def _make(bearing: float, distance_m: float, **kwargs) -> Fragment:
        return make_fragment(point_at(ORIGIN, bearing, distance_m), **kwargs)

    return _make
