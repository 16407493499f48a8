"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- stored entities (`Fragment`) and their create/patch payloads
- sensor readings (`LiveLocation`, `DeviceOrientation`)
- derived, never-stored view-models (`FragmentWithDistance`, `ARProjectedFragment`,
  `ARFrame`, `DiscoveryFeed`)

Python code uses snake_case; JSON uses camelCase (`locationName`, `screenX`, ...).
Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from echospace.core.geo import GeoPoint as CoreGeoPoint
from echospace.core.time import ensure_tz, utc_now


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _split_tags(value: Any) -> Any:
    # The create form sends tags as one comma-separated string.
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if value is None:
        return []
    return value


class GeoPoint(_CamelModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lng=self.lng)


class FragmentCreate(_CamelModel):
    """Payload for creating a fragment (server assigns `id`, likes start at 0)."""

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    location_name: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> Any:
        return _split_tags(value)

    @field_validator("image_url")
    @classmethod
    def _blank_image_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class Fragment(FragmentCreate):
    """A stored fragment. Immutable; updates produce a new instance."""

    model_config = ConfigDict(frozen=True)

    id: str
    likes: int = Field(0, ge=0)

    @property
    def location(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.latitude, lng=self.longitude)


class FragmentUpdate(_CamelModel):
    """Partial patch; only fields present in the payload are applied."""

    title: str | None = Field(None, min_length=1)
    content: str | None = Field(None, min_length=1)
    category: str | None = Field(None, min_length=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    location_name: str | None = Field(None, min_length=1)
    author: str | None = Field(None, min_length=1)
    image_url: str | None = None
    tags: list[str] | None = None
    likes: int | None = Field(None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> Any:
        if value is None:
            return None
        return _split_tags(value)

    def changes(self) -> dict[str, Any]:
        """Fields that were sent; explicit nulls only count for `image_url`."""
        sent = self.model_dump(exclude_unset=True)
        return {k: v for k, v in sent.items() if v is not None or k == "image_url"}


class LiveLocation(_CamelModel):
    """A location fix from the device (or a client reporting one)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_tz(value)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lng=self.lng)


class DeviceOrientation(_CamelModel):
    """Compass heading (0 = north) plus tilt angles, which the projector ignores."""

    heading: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    @field_validator("heading")
    @classmethod
    def _wrap_heading(cls, value: float) -> float:
        h = value % 360.0
        # Tiny negative values wrap to exactly 360.0 in float arithmetic.
        return 0.0 if h >= 360.0 else h


class FragmentWithDistance(Fragment):
    """Fragment plus distance in meters from the viewer (None without a location)."""

    distance: float | None = None


class ARProjectedFragment(FragmentWithDistance):
    """One fragment placed on the AR overlay (0..100 screen percentages)."""

    distance: float
    bearing: float
    relative_angle: float
    screen_x: float
    screen_y: float
    visible: bool
    color: str


class ARFrame(_CamelModel):
    """Output of one AR tick: visible markers plus the nearby count."""

    active: bool
    nearby_count: int = 0
    heading: float = 0.0
    markers: list[ARProjectedFragment] = Field(default_factory=list)


class DiscoveryFeed(_CamelModel):
    """Distance-annotated fragment list for the map and discovery panel."""

    location_enabled: bool
    total_count: int
    nearby_count: int
    fragments: list[FragmentWithDistance] = Field(default_factory=list)


class ARFrameRequest(_CamelModel):
    location: LiveLocation | None = None
    orientation: DeviceOrientation | None = None
    ar_active: bool = True
