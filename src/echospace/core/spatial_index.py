"""
Lightweight spatial indexing (grid bucket) for lat/lng points.

Used by the fragment store for the server-side radius query so it does not scan every
fragment when the collection grows. Buckets are laid out in degree space, so the index
stays correct for fragments spread across very different latitudes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from echospace.core.geo import GeoPoint, haversine_m

T = TypeVar("T")

_M_PER_DEG_LAT = 110_540.0
_M_PER_DEG_LNG_EQUATOR = 111_320.0


@dataclass(frozen=True)
class _Entry(Generic[T]):
    item: T
    point: GeoPoint


class SpatialGridIndex(Generic[T]):
    def __init__(
        self,
        items: list[T],
        *,
        get_latlng: Callable[[T], tuple[float, float]],
        cell_size_deg: float = 0.01,
    ):
        if float(cell_size_deg) <= 0:
            raise ValueError("cell_size_deg must be > 0")
        self._cell = float(cell_size_deg)
        self._cells: dict[tuple[int, int], list[_Entry[T]]] = {}
        self._count = 0

        for it in items:
            lat, lng = get_latlng(it)
            lat_f, lng_f = float(lat), float(lng)
            # Non-finite coordinates can never fall inside a radius.
            if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
                continue
            e = _Entry(item=it, point=GeoPoint(lat=lat_f, lng=lng_f))
            self._cells.setdefault(self._cell_key(lat_f, lng_f), []).append(e)
            self._count += 1

    def __len__(self) -> int:
        return self._count

    def _cell_key(self, lat: float, lng: float) -> tuple[int, int]:
        return (int(math.floor(lat / self._cell)), int(math.floor(lng / self._cell)))

    def _candidates(self, lat: float, lng: float, radius_m: float) -> list[_Entry[T]]:
        dlat = radius_m / _M_PER_DEG_LAT
        max_abs_lat = min(90.0, abs(lat) + dlat)
        cos_lat = math.cos(math.radians(max_abs_lat))
        if cos_lat <= 1e-6:
            dlng = 360.0
        else:
            dlng = radius_m / (_M_PER_DEG_LNG_EQUATOR * cos_lat)

        # Near the poles or across the antimeridian the window wraps; scan everything.
        if dlng >= 180.0 or lng - dlng < -180.0 or lng + dlng > 180.0:
            return [e for cell in self._cells.values() for e in cell]

        lat_lo, lng_lo = self._cell_key(lat - dlat, lng - dlng)
        lat_hi, lng_hi = self._cell_key(lat + dlat, lng + dlng)
        out: list[_Entry[T]] = []
        for i in range(lat_lo, lat_hi + 1):
            for j in range(lng_lo, lng_hi + 1):
                cell = self._cells.get((i, j))
                if cell:
                    out.extend(cell)
        return out

    def query_within(self, *, lat: float, lng: float, radius_m: float) -> list[tuple[T, float]]:
        """Return `(item, distance_m)` pairs with haversine distance <= radius_m."""
        r = float(radius_m)
        if not r >= 0 or not (math.isfinite(lat) and math.isfinite(lng)):
            return []
        origin = GeoPoint(lat=float(lat), lng=float(lng))
        out: list[tuple[T, float]] = []
        # Pad the search window; the exact haversine check below decides membership.
        for e in self._candidates(origin.lat, origin.lng, r * 1.05 + 1.0):
            d = haversine_m(origin, e.point)
            if d <= r:
                out.append((e.item, d))
        return out
