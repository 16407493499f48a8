from __future__ import annotations

import math
from typing import Sequence

from echospace.config.settings import Settings, get_settings
from echospace.core.geo import GeoPoint
from echospace.discovery.proximity import nearby, sort_nearest_first, with_distances
from echospace.domain.models import DiscoveryFeed, Fragment


def build_feed(
    fragments: Sequence[Fragment],
    origin: GeoPoint | None,
    *,
    sort_nearest: bool = False,
    settings: Settings | None = None,
) -> DiscoveryFeed:
    """Map/discovery view-model for one tick.

    Without a location every fragment is listed undistanced and the nearby badge reads 0.
    """
    settings = settings or get_settings()
    items = with_distances(fragments, origin)
    if sort_nearest:
        items = sort_nearest_first(items)
    nearby_count = len(nearby(fragments, origin, settings.proximity.nearby_radius_m))
    return DiscoveryFeed(
        location_enabled=origin is not None,
        total_count=len(fragments),
        nearby_count=nearby_count,
        fragments=items,
    )


def format_distance(distance_m: float | None) -> str:
    if distance_m is None:
        return ""
    if distance_m < 1000:
        return f"{math.floor(distance_m + 0.5)}m away"
    return f"{distance_m / 1000:.1f}km away"
