from __future__ import annotations

# One AR tick: proximity filter -> bearing annotation -> projection.
# Re-run in full whenever fragments, location, AR-active flag or orientation change.

import logging
from datetime import datetime
from typing import Sequence

from echospace.ar.projector import project, visible_only, with_bearings
from echospace.config.settings import Settings, get_settings
from echospace.core.time import age_seconds
from echospace.discovery.proximity import nearby
from echospace.domain.models import ARFrame, DeviceOrientation, Fragment, LiveLocation

logger = logging.getLogger(__name__)


def build_ar_frame(
    fragments: Sequence[Fragment],
    location: LiveLocation | None,
    orientation: DeviceOrientation | None,
    *,
    ar_active: bool = True,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> ARFrame:
    """Compute the overlay for the current snapshot of inputs.

    No location or AR mode off short-circuits to an empty frame, so a disabled GPS never
    leaves stale markers behind. A fix older than `sensors.location_max_age_seconds` counts as
    no location. Missing orientation degrades to heading 0.
    """
    if not ar_active or location is None:
        return ARFrame(active=False)

    settings = settings or get_settings()
    if age_seconds(location.timestamp, now=now) > settings.sensors.location_max_age_seconds:
        logger.debug("AR tick skipped: location fix is stale")
        return ARFrame(active=False)

    heading = orientation.heading if orientation is not None else 0.0
    origin = location.to_core()

    close = nearby(fragments, origin, settings.proximity.ar_radius_m)
    projected = project(with_bearings(close, origin), heading, ar=settings.ar)
    markers = visible_only(projected)
    logger.debug(
        "AR tick heading=%.1f nearby=%d visible=%d", heading, len(close), len(markers)
    )
    return ARFrame(active=True, nearby_count=len(close), heading=heading, markers=markers)
