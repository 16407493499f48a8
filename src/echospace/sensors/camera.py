"""
Camera acquisition state machine.

    IDLE -> REQUESTING -> STREAMING
                       -> ERROR
    any state -> IDLE (stop)

A session only reports STREAMING once the source has confirmed playback; there is no
optimistic "active" state and no timer-based readiness polling. Whether a camera frame is
shown only gates entering AR mode. The projection math does not depend on it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class CameraState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    ERROR = "error"


class InvalidCameraTransition(RuntimeError):
    pass


class CameraSource(Protocol):
    def open(self) -> Any: ...

    def confirm_playback(self, stream: Any) -> bool: ...

    def close(self, stream: Any) -> None: ...


class CameraSession:
    def __init__(self, source: CameraSource):
        self._source = source
        self._stream: Any = None
        self.state = CameraState.IDLE
        self.error: str | None = None

    @property
    def can_enter_ar(self) -> bool:
        return self.state is CameraState.STREAMING

    def start(self) -> CameraState:
        """Acquire the camera synchronously and settle in STREAMING or ERROR."""
        if self.state in (CameraState.REQUESTING, CameraState.STREAMING):
            raise InvalidCameraTransition(f"cannot start camera from state '{self.state.value}'")

        self.state = CameraState.REQUESTING
        self.error = None
        try:
            stream = self._source.open()
        except Exception as e:
            return self._fail(f"Camera access failed: {e}")

        try:
            playing = bool(self._source.confirm_playback(stream))
        except Exception as e:
            self._release(stream)
            return self._fail(f"Camera playback failed: {e}")
        if not playing:
            self._release(stream)
            return self._fail("Camera stream did not start playing")

        self._stream = stream
        self.state = CameraState.STREAMING
        logger.info("Camera streaming")
        return self.state

    def stop(self) -> None:
        if self._stream is not None:
            self._release(self._stream)
            self._stream = None
        self.state = CameraState.IDLE
        self.error = None

    def _release(self, stream: Any) -> None:
        try:
            self._source.close(stream)
        except Exception as e:
            logger.warning("Failed to release camera stream: %s", str(e))

    def _fail(self, message: str) -> CameraState:
        logger.warning(message)
        self.state = CameraState.ERROR
        self.error = message
        return self.state
