"""
Proximity filter.

Pure functions over a fragment snapshot and the viewer's current location. Distances are
computed against the origin passed in on every call; origins change with every GPS fix,
so nothing is cached between calls.
"""

from __future__ import annotations

import math
from typing import Iterable

from echospace.core.geo import GeoPoint, haversine_m
from echospace.domain.models import Fragment, FragmentWithDistance


def _annotate(fragment: Fragment, distance: float | None) -> FragmentWithDistance:
    return FragmentWithDistance.model_validate({**fragment.model_dump(), "distance": distance})


def nearby(
    fragments: Iterable[Fragment], origin: GeoPoint | None, radius_m: float
) -> list[FragmentWithDistance]:
    """Fragments within `radius_m` meters of `origin` (inclusive), in input order.

    With no origin (location disabled) the filter does not run and returns nothing;
    showing the unfiltered list instead is the caller's decision (see `with_distances`).
    """
    if origin is None:
        return []
    out: list[FragmentWithDistance] = []
    for fragment in fragments:
        d = haversine_m(origin, fragment.location)
        if d <= radius_m:
            out.append(_annotate(fragment, d))
    return out


def with_distances(
    fragments: Iterable[Fragment], origin: GeoPoint | None
) -> list[FragmentWithDistance]:
    """Annotate every fragment with its distance; all distances are None without an origin."""
    if origin is None:
        return [_annotate(f, None) for f in fragments]
    return [_annotate(f, haversine_m(origin, f.location)) for f in fragments]


def sort_nearest_first(items: Iterable[FragmentWithDistance]) -> list[FragmentWithDistance]:
    """Stable nearest-first ordering; undistanced (or NaN) items go last."""

    def key(item: FragmentWithDistance) -> tuple[int, float]:
        d = item.distance
        if d is None or math.isnan(d):
            return (1, 0.0)
        return (0, d)

    return sorted(items, key=key)
