"""
AR projector.

Turns bearing-annotated nearby fragments plus the device compass heading into 2D overlay
markers. This is a flat compass projection onto the camera plane, not pose tracking:

- relative angle: where the fragment sits relative to where the device faces (0 = ahead)
- visibility: inside the forward cone (+/- `cone_half_angle_deg`, boundaries inclusive)
- screen x: center + signed angle * percent_per_degree, clamped to [min_screen_x, max_screen_x]
- screen y: horizon_y - distance / meters_per_percent, floored at 0 (far fragments rise
  toward the horizon)

Every call is a full pass over its input; nothing is carried between ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from echospace.config.settings import ArSettings
from echospace.core.geo import GeoPoint, bearing_deg, haversine_m
from echospace.domain.categories import color_for
from echospace.domain.models import ARProjectedFragment, FragmentWithDistance

_DEFAULTS = ArSettings()


@dataclass(frozen=True)
class BearingFragment:
    """A nearby fragment plus the bearing from the viewer to it."""

    fragment: FragmentWithDistance
    bearing: float


def with_bearings(
    fragments: Iterable[FragmentWithDistance], origin: GeoPoint
) -> list[BearingFragment]:
    out: list[BearingFragment] = []
    for f in fragments:
        if f.distance is None:
            f = f.model_copy(update={"distance": haversine_m(origin, f.location)})
        out.append(BearingFragment(fragment=f, bearing=bearing_deg(origin, f.location)))
    return out


def relative_angle(bearing: float, heading: float) -> float:
    """Direction of a target relative to the device heading, in [0, 360)."""
    rel = (bearing - heading + 360.0) % 360.0
    return 0.0 if rel >= 360.0 else rel


def in_forward_cone(rel_angle: float, half_angle: float = _DEFAULTS.cone_half_angle_deg) -> bool:
    return rel_angle <= half_angle or rel_angle >= 360.0 - half_angle


def signed_angle(rel_angle: float) -> float:
    """Fold [0, 360) into (-180, 180]; negative means left of center."""
    return rel_angle - 360.0 if rel_angle > 180.0 else rel_angle


def screen_x(rel_angle: float, ar: ArSettings = _DEFAULTS) -> float:
    x = ar.center_x + signed_angle(rel_angle) * ar.percent_per_degree
    return max(ar.min_screen_x, min(ar.max_screen_x, x))


def screen_y(distance_m: float, ar: ArSettings = _DEFAULTS) -> float:
    return max(0.0, ar.horizon_y - distance_m / ar.meters_per_percent)


def project(
    fragments: Iterable[BearingFragment],
    heading: float | None,
    *,
    ar: ArSettings = _DEFAULTS,
) -> list[ARProjectedFragment]:
    """Project every input; out-of-cone fragments come back with `visible=False`.

    A missing heading (orientation unavailable or denied) is treated as 0, i.e. the
    overlay is laid out relative to true north.
    """
    heading = 0.0 if heading is None else heading
    out: list[ARProjectedFragment] = []
    for item in fragments:
        f = item.fragment
        if f.distance is None:
            # Cannot be placed vertically; `with_bearings` always fills distance in.
            continue
        rel = relative_angle(item.bearing, heading)
        out.append(
            ARProjectedFragment.model_validate(
                {
                    **f.model_dump(),
                    "bearing": item.bearing,
                    "relative_angle": rel,
                    "screen_x": screen_x(rel, ar),
                    "screen_y": screen_y(f.distance, ar),
                    "visible": in_forward_cone(rel, ar.cone_half_angle_deg),
                    "color": color_for(f.category),
                }
            )
        )
    return out


def visible_only(projected: Iterable[ARProjectedFragment]) -> list[ARProjectedFragment]:
    return [p for p in projected if p.visible]
