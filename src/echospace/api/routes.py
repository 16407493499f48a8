"""
API routes.

Endpoints:
- `/api/fragments` CRUD + like, with search/category filters and a km-radius query.
- GET  `/api/discovery`: distance-annotated list + nearby badge count.
- POST `/api/ar/frame`: one AR tick (proximity -> bearing -> projection).
- GET  `/api/map/markers`: the map marker layer as GeoJSON.
- GET  `/api/categories`, `/api/settings`: shared style table and public settings.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from fastapi import APIRouter, HTTPException, Response

from echospace.ar.pipeline import build_ar_frame
from echospace.config.settings import get_settings
from echospace.core.time import utc_now
from echospace.discovery.feed import build_feed
from echospace.domain.categories import CATEGORY_STYLES, DEFAULT_STYLE, same_category
from echospace.domain.models import (
    ARFrame,
    ARFrameRequest,
    DiscoveryFeed,
    Fragment,
    FragmentCreate,
    FragmentUpdate,
    GeoPoint,
    LiveLocation,
)
from echospace.rendering.map_layer import InMemoryMapHandle, MarkerLayer, to_geojson
from echospace.storage.memory import FragmentNotFound, InMemoryFragmentStore, build_store, matches_query

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _store() -> InMemoryFragmentStore:
    return build_store(get_settings())


def _not_found(e: FragmentNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": str(e)})


def _origin(lat: float | None, lng: float | None) -> GeoPoint | None:
    if lat is None or lng is None:
        return None
    try:
        return GeoPoint(lat=lat, lng=lng)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}
        ) from e


@router.get("/api/fragments", response_model=list[Fragment])
def list_fragments(
    search: str | None = None,
    category: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    radius: float | None = None,
) -> list[Fragment]:
    """List fragments; `radius` is in kilometers and only applies with `lat` and `lng`."""
    store = _store()
    if lat is not None and lng is not None and radius is not None:
        origin = _origin(lat, lng)
        fragments = store.within_radius_km(origin.lat, origin.lng, radius)
        return [
            f
            for f in fragments
            if matches_query(f, search or "") and same_category(f.category, category)
        ]
    if search or category:
        return store.search(search or "", category)
    return store.list_all()


@router.get("/api/fragments/{fragment_id}", response_model=Fragment)
def get_fragment(fragment_id: str) -> Fragment:
    try:
        return _store().get(fragment_id)
    except FragmentNotFound as e:
        raise _not_found(e) from e


@router.post("/api/fragments", response_model=Fragment, status_code=201)
def create_fragment(payload: FragmentCreate) -> Fragment:
    return _store().create(payload)


@router.patch("/api/fragments/{fragment_id}", response_model=Fragment)
def update_fragment(fragment_id: str, patch: FragmentUpdate) -> Fragment:
    try:
        return _store().update(fragment_id, patch)
    except FragmentNotFound as e:
        raise _not_found(e) from e
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}
        ) from e


@router.delete("/api/fragments/{fragment_id}", status_code=204)
def delete_fragment(fragment_id: str) -> Response:
    try:
        _store().delete(fragment_id)
    except FragmentNotFound as e:
        raise _not_found(e) from e
    return Response(status_code=204)


@router.post("/api/fragments/{fragment_id}/like", response_model=Fragment)
def like_fragment(fragment_id: str) -> Fragment:
    try:
        return _store().like(fragment_id)
    except FragmentNotFound as e:
        raise _not_found(e) from e


@router.get("/api/discovery", response_model=DiscoveryFeed)
def get_discovery(
    lat: float | None = None,
    lng: float | None = None,
    search: str | None = None,
    category: str | None = None,
    sort: Literal["nearest"] | None = None,
) -> DiscoveryFeed:
    """Map/discovery feed; without lat/lng fragments come back undistanced."""
    origin = _origin(lat, lng)
    store = _store()
    fragments = store.search(search or "", category) if (search or category) else store.list_all()
    return build_feed(
        fragments,
        origin.to_core() if origin is not None else None,
        sort_nearest=sort == "nearest",
        settings=get_settings(),
    )


@router.post("/api/ar/frame", response_model=ARFrame)
def post_ar_frame(request: ARFrameRequest) -> ARFrame:
    return build_ar_frame(
        _store().list_all(),
        request.location,
        request.orientation,
        ar_active=request.ar_active,
        settings=get_settings(),
    )


@router.get("/api/map/markers")
def get_map_markers(
    lat: float | None = None,
    lng: float | None = None,
    selected: str | None = None,
) -> dict:
    """Render the marker layer server-side and return it as a GeoJSON FeatureCollection."""
    origin = _origin(lat, lng)
    location = LiveLocation(lat=origin.lat, lng=origin.lng, timestamp=utc_now()) if origin else None
    layer = MarkerLayer(InMemoryMapHandle())
    try:
        markers = layer.render(_store().list_all(), location, selected)
        return to_geojson(markers)
    finally:
        layer.destroy()


@router.get("/api/categories")
def get_categories() -> dict:
    return {
        "categories": [
            {"value": category.value, **style.as_dict()} for category, style in CATEGORY_STYLES.items()
        ],
        "default": DEFAULT_STYLE.as_dict(),
    }


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return the engine thresholds the UI needs (radii, cone, screen band)."""
    settings = get_settings()
    return {
        "app": {"name": settings.app.name},
        "proximity": settings.proximity.model_dump(mode="json"),
        "ar": settings.ar.model_dump(mode="json"),
        "sensors": settings.sensors.model_dump(mode="json"),
    }
