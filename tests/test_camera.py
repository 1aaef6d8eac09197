"""Tests for camera acquisition and release."""

from __future__ import annotations

import os
import sys
from unittest.mock import Mock, patch

import pytest

from faceid.camera import CameraConstraints, CameraSession, WebcamSource
from faceid.errors import CameraNotActive, DeviceBusy, DeviceNotFound, PermissionDenied


def test_acquire_and_read(camera, opener):
    """Acquire opens one source and frames can be read through the session."""
    handle = camera.acquire(CameraConstraints(camera_id=2, width=320, height=240))

    assert camera.is_active
    assert camera.handle is handle
    assert opener.sources[0].constraints.camera_id == 2

    success, frame = camera.read_frame()
    assert success
    assert frame.shape == (48, 64, 3)


def test_acquire_defaults_to_front_camera_vga(camera, opener):
    """No constraints means camera 0 at 640x480."""
    camera.acquire()

    assert opener.sources[0].constraints == CameraConstraints(camera_id=0, width=640, height=480)


def test_release_is_idempotent(camera, opener):
    """Releasing twice releases the device once."""
    camera.acquire()

    camera.release()
    camera.release()

    assert not camera.is_active
    assert opener.sources[0].release_calls == 1


def test_release_without_acquire_is_noop(camera):
    """Releasing an idle session does nothing."""
    camera.release()

    assert not camera.is_active


def test_reacquire_releases_previous_handle(camera, opener):
    """A second acquire releases the first handle before opening again."""
    first = camera.acquire()
    second = camera.acquire()

    assert len(opener.sources) == 2
    assert opener.sources[0].release_calls == 1
    assert opener.sources[1].release_calls == 0
    assert not first.is_active
    assert second.is_active


def test_released_handle_cannot_read(camera):
    """Reading from a stale handle raises CameraNotActive."""
    handle = camera.acquire()
    camera.release()

    with pytest.raises(CameraNotActive):
        handle.read()

    with pytest.raises(CameraNotActive):
        camera.read_frame()


def test_session_context_releases_on_exception(camera, opener):
    """Leaving the context through an exception still releases the camera."""
    with pytest.raises(RuntimeError):
        with camera.session() as handle:
            assert handle.is_active
            raise RuntimeError("boom")

    assert not camera.is_active
    assert opener.sources[0].release_calls == 1


def test_session_object_context_manager(opener):
    """CameraSession used as a context manager releases on exit."""
    with CameraSession(opener=opener) as camera:
        camera.acquire()

    assert not camera.is_active
    assert opener.sources[0].release_calls == 1


def test_failed_acquire_holds_no_handle():
    """If opening fails, the error propagates and nothing is held."""
    opener = Mock(side_effect=DeviceNotFound("no camera"))
    camera = CameraSession(opener=opener)

    with pytest.raises(DeviceNotFound):
        camera.acquire()

    assert not camera.is_active


def test_release_error_is_logged_not_raised():
    """A failing device release still clears the session."""
    source = Mock()
    source.release.side_effect = RuntimeError("driver crashed")
    camera = CameraSession(opener=Mock(return_value=source))
    camera.acquire()

    camera.release()

    assert not camera.is_active
    source.release.assert_called_once()


# Availability


def test_is_available_opens_and_releases(camera, opener):
    """A reachable camera is reported available and not kept open."""
    assert camera.is_available(CameraConstraints(camera_id=1))

    assert len(opener.sources) == 1
    assert opener.sources[0].release_calls == 1
    assert not camera.is_active


def test_is_available_false_on_camera_error():
    """Camera errors are reported as unavailable instead of raised."""
    camera = CameraSession(opener=Mock(side_effect=PermissionDenied("denied")))

    assert not camera.is_available()
    assert not camera.is_active


def test_is_available_keeps_active_handle(camera, opener):
    """Checking the camera already held does not open it a second time."""
    handle = camera.acquire()

    assert camera.is_available()

    assert len(opener.sources) == 1
    assert handle.is_active


# WebcamSource


@pytest.fixture
def device_node(monkeypatch):
    """Fake /dev/video* nodes: set ``exists`` and ``readable`` per test."""
    state = {"exists": True, "readable": True, "checked": []}
    real_exists = os.path.exists
    real_access = os.access

    def fake_exists(path):
        if str(path).startswith("/dev/video"):
            state["checked"].append(path)
            return state["exists"]
        return real_exists(path)

    def fake_access(path, mode, *args, **kwargs):
        if str(path).startswith("/dev/video"):
            return state["readable"]
        return real_access(path, mode, *args, **kwargs)

    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(os.path, "exists", fake_exists)
    monkeypatch.setattr(os, "access", fake_access)
    return state


def _mock_capture(opened=True, first_read=True):
    cap = Mock()
    cap.isOpened.return_value = opened
    cap.read.return_value = (first_read, Mock() if first_read else None)
    cap.get.return_value = 640
    return cap


def test_webcam_source_opens_and_sets_resolution(device_node):
    """WebcamSource requests the configured resolution."""
    cap = _mock_capture()
    with patch("faceid.camera.cv2.VideoCapture", return_value=cap) as video_capture:
        source = WebcamSource(CameraConstraints(camera_id=1, width=1280, height=720))

    video_capture.assert_called_once_with(1)
    assert device_node["checked"] == ["/dev/video1"]
    assert cap.set.call_count == 2
    assert source.is_opened


def test_webcam_source_missing_device_node(device_node):
    """No device node means DeviceNotFound, without touching OpenCV."""
    device_node["exists"] = False

    with patch("faceid.camera.cv2.VideoCapture") as video_capture:
        with pytest.raises(DeviceNotFound):
            WebcamSource(CameraConstraints(camera_id=3))

    video_capture.assert_not_called()


def test_webcam_source_unreadable_device_node(device_node):
    """A device node the user may not read means PermissionDenied."""
    device_node["readable"] = False

    with patch("faceid.camera.cv2.VideoCapture") as video_capture:
        with pytest.raises(PermissionDenied):
            WebcamSource(CameraConstraints())

    video_capture.assert_not_called()


def test_webcam_source_not_opened(device_node):
    """A capture that does not open still maps to DeviceNotFound."""
    with patch("faceid.camera.cv2.VideoCapture", return_value=_mock_capture(opened=False)):
        with pytest.raises(DeviceNotFound):
            WebcamSource(CameraConstraints())


def test_webcam_source_busy(device_node):
    """A capture that opens but yields no frame maps to DeviceBusy."""
    cap = _mock_capture(first_read=False)
    with patch("faceid.camera.cv2.VideoCapture", return_value=cap):
        with pytest.raises(DeviceBusy):
            WebcamSource(CameraConstraints())

    cap.release.assert_called_once()


def test_device_node_check_skipped_off_linux(monkeypatch):
    """Other platforms rely on OpenCV alone."""
    monkeypatch.setattr(sys, "platform", "darwin")
    cap = _mock_capture()
    with patch("faceid.camera.cv2.VideoCapture", return_value=cap):
        source = WebcamSource(CameraConstraints(camera_id=7))

    assert source.is_opened


def test_webcam_availability_with_unreadable_device(device_node):
    """The default opener reports a refused camera as unavailable."""
    device_node["readable"] = False

    assert not CameraSession().is_available()
