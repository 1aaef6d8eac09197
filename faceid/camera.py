"""Camera acquisition with guaranteed release.

``CameraSession`` owns at most one live ``CameraHandle`` at a time. The
handle wraps a ``FrameSource`` (an OpenCV webcam by default) and is released
on every exit path: explicit ``release()``, a new ``acquire()``, or leaving
the ``session()`` context manager.
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import cv2
import numpy as np

from faceid.errors import (
    CameraError,
    CameraNotActive,
    DeviceBusy,
    DeviceNotFound,
    PermissionDenied,
)
from faceid.interfaces import FrameSource
from faceid.logging_config import get_logger

logger = get_logger(__name__)

# V4L2 device node of a camera index (Linux only)
VIDEO_DEVICE_PATTERN = "/dev/video{}"


def check_device_node(camera_id: int) -> None:
    """Tell a missing camera apart from one the OS refuses to open.

    OpenCV reports both cases the same way (a capture that is not opened),
    so on Linux the V4L2 device node is inspected first. Other platforms
    skip the check and rely on ``isOpened()``.

    Raises:
        DeviceNotFound: If the device node does not exist.
        PermissionDenied: If the device node exists but is not readable.
    """
    if not sys.platform.startswith("linux"):
        return

    path = VIDEO_DEVICE_PATTERN.format(camera_id)
    if not os.path.exists(path):
        raise DeviceNotFound(f"No camera device at {path}")
    if not os.access(path, os.R_OK):
        raise PermissionDenied(
            f"Camera access denied for {path}. Check that the user is in the 'video' group."
        )


@dataclass(frozen=True)
class CameraConstraints:
    """Requested capture device and resolution.

    Attributes:
        camera_id: Camera device index (0 for the default/front camera)
        width: Requested frame width in pixels
        height: Requested frame height in pixels
    """

    camera_id: int = 0
    width: int = 640
    height: int = 480


class WebcamSource:
    """Frame source reading from a webcam or USB camera via OpenCV.

    Attributes:
        camera_id: Camera device ID
        cap: OpenCV VideoCapture object

    Example:
        >>> source = WebcamSource(CameraConstraints(camera_id=0))
        >>> try:
        ...     success, frame = source.read()
        ... finally:
        ...     source.release()
    """

    def __init__(self, constraints: CameraConstraints):
        """Open the webcam.

        Args:
            constraints: Device index and requested resolution

        Raises:
            PermissionDenied: If the OS refuses camera access.
            DeviceNotFound: If no camera can be opened at the index.
            DeviceBusy: If the camera opens but delivers no frame.
        """
        self.camera_id = constraints.camera_id

        check_device_node(constraints.camera_id)

        self.cap = cv2.VideoCapture(constraints.camera_id)
        if not self.cap.isOpened():
            raise DeviceNotFound(
                f"Failed to open webcam with camera_id={self.camera_id}. "
                f"Check if camera is connected."
            )

        # Best effort: not every camera honours the requested resolution
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)

        # A camera held by another application opens but yields no frames
        success, _ = self.cap.read()
        if not success:
            self.cap.release()
            raise DeviceBusy(
                f"Webcam {self.camera_id} opened but returned no frame. "
                f"It may be in use by another application."
            )

        width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Opened webcam {self.camera_id}: {width}x{height}")

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        if not self.cap.isOpened():
            logger.error("Webcam is not opened")
            return False, None

        success, frame = self.cap.read()
        if not success:
            logger.warning("Failed to read frame from webcam")
            return False, None

        return True, frame

    def release(self) -> None:
        if self.cap.isOpened():
            self.cap.release()
            logger.info(f"Released webcam {self.camera_id}")

    @property
    def is_opened(self) -> bool:
        return self.cap.isOpened()

    def __repr__(self) -> str:
        status = "opened" if self.is_opened else "closed"
        return f"WebcamSource(camera_id={self.camera_id}, status={status})"


CameraOpener = Callable[[CameraConstraints], FrameSource]


class CameraHandle:
    """Exclusive reference to an opened frame source.

    A handle is only valid until its session releases it; reading from a
    released handle raises ``CameraNotActive``.
    """

    def __init__(self, source: FrameSource, constraints: CameraConstraints):
        self._source: Optional[FrameSource] = source
        self.constraints = constraints

    @property
    def is_active(self) -> bool:
        return self._source is not None

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the current frame from the underlying source."""
        if self._source is None:
            raise CameraNotActive("Camera handle has been released")
        return self._source.read()

    def _invalidate(self) -> None:
        source, self._source = self._source, None
        if source is not None:
            source.release()

    def __repr__(self) -> str:
        status = "active" if self.is_active else "released"
        return f"CameraHandle(camera_id={self.constraints.camera_id}, status={status})"


class CameraSession:
    """Scoped owner of a single camera handle.

    Example:
        >>> camera = CameraSession()
        >>> with camera.session(CameraConstraints(camera_id=0)) as handle:
        ...     success, frame = handle.read()
        >>> camera.is_active
        False
    """

    def __init__(self, opener: CameraOpener = WebcamSource):
        self._opener = opener
        self._handle: Optional[CameraHandle] = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    @property
    def handle(self) -> Optional[CameraHandle]:
        return self._handle

    def acquire(self, constraints: Optional[CameraConstraints] = None) -> CameraHandle:
        """Open the camera, releasing any previously held handle first.

        Args:
            constraints: Device and resolution; defaults to CameraConstraints()

        Returns:
            The new active handle.

        Raises:
            PermissionDenied, DeviceNotFound, DeviceBusy: If the device can't
                be opened. No handle is held afterwards in that case.
        """
        if constraints is None:
            constraints = CameraConstraints()

        if self._handle is not None:
            logger.debug("Releasing previous camera handle before re-acquiring")
            self.release()

        source = self._opener(constraints)
        self._handle = CameraHandle(source, constraints)
        logger.info(f"Camera acquired (camera_id={constraints.camera_id})")
        return self._handle

    def release(self) -> None:
        """Release the active handle. Safe to call any number of times."""
        handle, self._handle = self._handle, None
        if handle is None:
            return

        try:
            handle._invalidate()
        except Exception:
            logger.warning("Error while releasing camera", exc_info=True)
        else:
            logger.info(f"Camera released (camera_id={handle.constraints.camera_id})")

    def is_available(self, constraints: Optional[CameraConstraints] = None) -> bool:
        """Check that the camera can be opened, without keeping it.

        Opens and immediately releases a source, leaving the session's own
        handle untouched. Meant to run before a capture is offered.

        Returns:
            True if the device opened (or this session already holds it),
            False on any camera error.
        """
        if constraints is None:
            constraints = CameraConstraints()

        if self._handle is not None and self._handle.constraints.camera_id == constraints.camera_id:
            return True

        try:
            source = self._opener(constraints)
        except CameraError as e:
            logger.warning(f"Camera {constraints.camera_id} unavailable: {e}")
            return False

        source.release()
        logger.debug(f"Camera {constraints.camera_id} is available")
        return True

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the current frame from the active handle.

        Raises:
            CameraNotActive: If no camera is acquired.
        """
        if self._handle is None:
            raise CameraNotActive("No camera acquired")
        return self._handle.read()

    @contextmanager
    def session(self, constraints: Optional[CameraConstraints] = None) -> Iterator[CameraHandle]:
        """Acquire the camera for the duration of a ``with`` block."""
        handle = self.acquire(constraints)
        try:
            yield handle
        finally:
            self.release()

    def __enter__(self) -> CameraSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"CameraSession(handle={self._handle!r})"
