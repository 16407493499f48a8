from datetime import datetime, timedelta, timezone

import pytest

from echospace.config.settings import SensorSettings, get_settings
from echospace.domain.models import DeviceOrientation, LiveLocation
from echospace.sensors.camera import CameraSession, CameraState, InvalidCameraTransition
from echospace.sensors.location import ManualLocationSource
from echospace.sensors.orientation import ManualOrientationSource, OrientationTracker, PermissionState

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _fix(ts: datetime = T0) -> LiveLocation:
    return LiveLocation(lat=39.6295, lng=-79.9559, accuracy=8.0, timestamp=ts)


def test_location_source_is_disabled_by_default():
    source = ManualLocationSource()
    source.update(_fix())
    assert source.enabled is False
    assert source.current(now=T0) is None


def test_disabling_location_drops_the_fix():
    source = ManualLocationSource(enabled=True)
    source.update(_fix())
    assert source.current(now=T0) == _fix()

    source.disable()
    assert source.current(now=T0) is None
    source.enable()
    assert source.current(now=T0) is None


def test_stale_fix_reads_as_no_location():
    source = ManualLocationSource(enabled=True, max_age_seconds=30)
    source.update(_fix())
    assert source.current(now=T0 + timedelta(seconds=30)) is not None
    assert source.current(now=T0 + timedelta(seconds=31)) is None


def test_geolocation_error_turns_location_off():
    source = ManualLocationSource(enabled=True)
    source.update(_fix())
    source.fail("timeout")
    assert source.enabled is False
    assert source.current(now=T0) is None


def test_naive_timestamps_are_treated_as_utc():
    fix = LiveLocation(lat=0, lng=0, timestamp=datetime(2026, 3, 1, 12, 0))
    assert fix.timestamp.tzinfo is not None


def test_orientation_heading_is_wrapped():
    assert DeviceOrientation(heading=370).heading == pytest.approx(10)
    assert DeviceOrientation(heading=-90).heading == pytest.approx(270)
    assert DeviceOrientation(heading=-1e-20).heading == 0.0
    assert DeviceOrientation(heading=360).heading == 0.0


def test_orientation_permission_denied_keeps_heading_at_zero():
    source = ManualOrientationSource(grant=False)
    source.push(DeviceOrientation(heading=123))
    tracker = OrientationTracker(source)
    assert tracker.start() is PermissionState.DENIED
    assert tracker.heading() == 0


def test_orientation_granted_reports_latest_heading():
    source = ManualOrientationSource()
    tracker = OrientationTracker(source)
    assert tracker.start() is PermissionState.GRANTED
    assert tracker.heading() == 0
    source.push(DeviceOrientation(heading=42, pitch=10, roll=-3))
    assert tracker.heading() == 42


def test_orientation_source_errors_do_not_propagate():
    class Broken:
        def request_permission(self) -> bool:
            raise RuntimeError("not supported")

        def current(self):
            raise RuntimeError("sensor gone")

    tracker = OrientationTracker(Broken())
    assert tracker.start() is PermissionState.DENIED
    assert tracker.heading() == 0


class FakeCamera:
    def __init__(self, *, open_error: Exception | None = None, plays: bool = True):
        self.open_error = open_error
        self.plays = plays
        self.closed: list[object] = []

    def open(self):
        if self.open_error is not None:
            raise self.open_error
        return object()

    def confirm_playback(self, stream) -> bool:
        return self.plays

    def close(self, stream) -> None:
        self.closed.append(stream)


def test_camera_streams_only_after_confirmed_playback():
    camera = FakeCamera()
    session = CameraSession(camera)
    assert session.state is CameraState.IDLE
    assert session.can_enter_ar is False

    assert session.start() is CameraState.STREAMING
    assert session.can_enter_ar is True

    session.stop()
    assert session.state is CameraState.IDLE
    assert len(camera.closed) == 1


def test_camera_playback_failure_ends_in_error_and_releases_stream():
    camera = FakeCamera(plays=False)
    session = CameraSession(camera)
    assert session.start() is CameraState.ERROR
    assert session.can_enter_ar is False
    assert session.error
    assert len(camera.closed) == 1


def test_camera_permission_denied_ends_in_error():
    session = CameraSession(FakeCamera(open_error=PermissionError("denied")))
    assert session.start() is CameraState.ERROR
    assert "denied" in session.error

    # Retrying from ERROR is allowed.
    session._source = FakeCamera()
    assert session.start() is CameraState.STREAMING


def test_camera_cannot_start_twice():
    session = CameraSession(FakeCamera())
    session.start()
    with pytest.raises(InvalidCameraTransition):
        session.start()


def test_location_source_takes_max_age_from_settings():
    settings = get_settings().model_copy(
        update={"sensors": SensorSettings(location_max_age_seconds=5)}
    )
    source = ManualLocationSource.from_settings(settings, enabled=True)
    source.update(_fix())
    assert source.current(now=T0 + timedelta(seconds=5)) is not None
    assert source.current(now=T0 + timedelta(seconds=6)) is None
