"""
Map marker layer.

The map itself belongs to a rendering collaborator. We only talk to it through a
`MapHandle` with an explicit create/update/destroy lifecycle; `MarkerLayer` remembers the
marker ids it placed so each render replaces exactly its own markers. The proximity and
AR code never sees a handle.
"""

from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Protocol

from echospace.domain.categories import style_for
from echospace.domain.models import Fragment, LiveLocation

USER_COLOR = "#3B82F6"
FRAGMENT_RADIUS = 15
SELECTED_RADIUS = 12


@dataclass(frozen=True)
class MapMarker:
    kind: str  # "fragment" | "user" | "accuracy"
    lat: float
    lng: float
    radius: float
    fill_color: str
    stroke_color: str
    weight: int
    opacity: float
    fill_opacity: float
    fragment_id: str | None = None
    title: str | None = None
    category: str | None = None
    selected: bool = False


class MapHandle(Protocol):
    def add_marker(self, marker: MapMarker) -> str: ...

    def remove_marker(self, marker_id: str) -> None: ...

    def destroy(self) -> None: ...


class InMemoryMapHandle:
    """A map that just records markers (tests, CLI, server-side GeoJSON rendering)."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.markers: dict[str, MapMarker] = {}
        self.destroyed = False

    def add_marker(self, marker: MapMarker) -> str:
        if self.destroyed:
            raise RuntimeError("map handle has been destroyed")
        marker_id = f"m{next(self._ids)}"
        self.markers[marker_id] = marker
        return marker_id

    def remove_marker(self, marker_id: str) -> None:
        self.markers.pop(marker_id, None)

    def destroy(self) -> None:
        self.markers.clear()
        self.destroyed = True


def fragment_marker(fragment: Fragment, *, selected: bool = False) -> MapMarker:
    style = style_for(fragment.category)
    return MapMarker(
        kind="fragment",
        lat=fragment.latitude,
        lng=fragment.longitude,
        radius=SELECTED_RADIUS if selected else FRAGMENT_RADIUS,
        fill_color=style.color,
        stroke_color="white",
        weight=4,
        opacity=1.0,
        fill_opacity=0.9,
        fragment_id=fragment.id,
        title=fragment.title,
        category=fragment.category,
        selected=selected,
    )


def user_markers(location: LiveLocation) -> list[MapMarker]:
    dot = MapMarker(
        kind="user",
        lat=location.lat,
        lng=location.lng,
        radius=6,
        fill_color=USER_COLOR,
        stroke_color="white",
        weight=2,
        opacity=1.0,
        fill_opacity=1.0,
    )
    halo = MapMarker(
        kind="accuracy",
        lat=location.lat,
        lng=location.lng,
        radius=15,
        fill_color=USER_COLOR,
        stroke_color=USER_COLOR,
        weight=1,
        opacity=0.6,
        fill_opacity=0.2,
    )
    return [dot, halo]


class MarkerLayer:
    def __init__(self, handle: MapHandle):
        self._handle = handle
        self._placed: list[str] = []

    @property
    def marker_ids(self) -> list[str]:
        return list(self._placed)

    def clear(self) -> None:
        for marker_id in self._placed:
            self._handle.remove_marker(marker_id)
        self._placed = []

    def render(
        self,
        fragments: Iterable[Fragment],
        current_location: LiveLocation | None = None,
        selected_id: str | None = None,
    ) -> list[MapMarker]:
        """Replace this layer's markers with a fresh set; returns what was placed."""
        self.clear()
        markers = [fragment_marker(f, selected=f.id == selected_id) for f in fragments]
        if current_location is not None:
            markers.extend(user_markers(current_location))
        for marker in markers:
            self._placed.append(self._handle.add_marker(marker))
        return markers

    def destroy(self) -> None:
        self.clear()
        self._handle.destroy()


def to_geojson(markers: Iterable[MapMarker]) -> dict[str, Any]:
    features = []
    for m in markers:
        props = asdict(m)
        lat, lng = props.pop("lat"), props.pop("lng")
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lng, lat]},
                "properties": props,
            }
        )
    return {"type": "FeatureCollection", "features": features}
