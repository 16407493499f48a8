"""
Location source contract + an in-process implementation.

A location source can be enabled or disabled by the user. Disabling drops the current fix,
and a fix older than `max_age_seconds` reads as no location, so the engine never runs on
stale coordinates.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from echospace.config.settings import Settings
from echospace.core.time import age_seconds
from echospace.domain.models import LiveLocation

logger = logging.getLogger(__name__)


class LocationSource(Protocol):
    @property
    def enabled(self) -> bool: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...

    def current(self) -> LiveLocation | None: ...


class ManualLocationSource:
    """Location fed explicitly (by the API, the CLI, or tests)."""

    def __init__(self, *, max_age_seconds: float = 30.0, enabled: bool = False):
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be > 0")
        self._max_age_seconds = float(max_age_seconds)
        self._enabled = bool(enabled)
        self._fix: LiveLocation | None = None

    @classmethod
    def from_settings(cls, settings: Settings, *, enabled: bool = False) -> "ManualLocationSource":
        return cls(max_age_seconds=settings.sensors.location_max_age_seconds, enabled=enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False
        self._fix = None

    def update(self, fix: LiveLocation) -> None:
        """Record a new fix; ignored while disabled."""
        if not self._enabled:
            logger.debug("Dropping location fix while disabled")
            return
        self._fix = fix

    def fail(self, reason: str) -> None:
        """A geolocation error turns the source off, mirroring a user-visible GPS toggle."""
        logger.warning("Geolocation error, disabling location: %s", reason)
        self.disable()

    def current(self, *, now: datetime | None = None) -> LiveLocation | None:
        if not self._enabled or self._fix is None:
            return None
        if age_seconds(self._fix.timestamp, now=now) > self._max_age_seconds:
            return None
        return self._fix
