from __future__ import annotations
from dataclasses import dataclass
from math import asin, atan2, cos, degrees, radians, sin, sqrt

"""
Geospatial helpers.

We keep a tiny spherical-Earth layer here so the proximity filter and the AR projector
can do distance/bearing math without pulling in heavier GIS dependencies.

Inputs are not validated: NaN coordinates propagate as NaN instead of raising, so a bad
record never takes down a whole tick.
"""

EARTH_RADIUS_M = 6_371_000
EARTH_RADIUS_KM = 6_371


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


def _central_angle(a: GeoPoint, b: GeoPoint) -> float:
    lat1 = radians(a.lat)
    lng1 = radians(a.lng)
    lat2 = radians(b.lat)
    lng2 = radians(b.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    # Rounding can push h a hair above 1.0 for near-antipodal points.
    return 2 * asin(sqrt(min(h, 1.0)))


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    return EARTH_RADIUS_M * _central_angle(a, b)


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in kilometers between two points."""
    return EARTH_RADIUS_KM * _central_angle(a, b)


def km_to_m(km: float) -> float:
    return float(km) * 1000.0


def bearing_deg(origin: GeoPoint, target: GeoPoint) -> float:
    """Initial compass bearing from `origin` to `target` in [0, 360).

    0 is due north and 90 is due east. Coincident points have no direction; we return 0.0.
    """
    if origin == target:
        return 0.0
    lat1 = radians(origin.lat)
    lat2 = radians(target.lat)
    dlng = radians(target.lng - origin.lng)

    y = sin(dlng) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlng)
    b = (degrees(atan2(y, x)) + 360.0) % 360.0
    # (-tiny + 360) % 360 can round to exactly 360.0.
    return 0.0 if b >= 360.0 else b
