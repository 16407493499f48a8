"""
Orientation source contract.

Some platforms require a one-time permission grant before orientation events flow.
`OrientationTracker` wraps any source so a denied permission or a broken sensor never
reaches the projector: the heading simply stays at 0 (north-up overlay).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from echospace.domain.models import DeviceOrientation

logger = logging.getLogger(__name__)


class OrientationSource(Protocol):
    def request_permission(self) -> bool: ...

    def current(self) -> DeviceOrientation | None: ...


class PermissionState(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


class ManualOrientationSource:
    """Orientation fed explicitly; `grant=False` simulates a denied permission prompt."""

    def __init__(self, *, grant: bool = True):
        self._grant = grant
        self._latest: DeviceOrientation | None = None

    def request_permission(self) -> bool:
        return self._grant

    def push(self, orientation: DeviceOrientation) -> None:
        self._latest = orientation

    def current(self) -> DeviceOrientation | None:
        return self._latest


class OrientationTracker:
    def __init__(self, source: OrientationSource):
        self._source = source
        self.permission = PermissionState.UNKNOWN

    def start(self) -> PermissionState:
        try:
            granted = bool(self._source.request_permission())
        except Exception as e:
            logger.warning("Orientation permission request failed: %s", str(e))
            granted = False
        self.permission = PermissionState.GRANTED if granted else PermissionState.DENIED
        if not granted:
            logger.info("Orientation unavailable; AR overlay falls back to heading 0")
        return self.permission

    def orientation(self) -> DeviceOrientation:
        """Latest reading, or a zeroed one when orientation is unavailable."""
        if self.permission is not PermissionState.GRANTED:
            return DeviceOrientation()
        try:
            reading = self._source.current()
        except Exception as e:
            logger.warning("Orientation read failed: %s", str(e))
            return DeviceOrientation()
        return reading if reading is not None else DeviceOrientation()

    def heading(self) -> float:
        return self.orientation().heading
