"""Shared fakes for pipeline tests (no camera or model weights required)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import numpy as np
import pytest

from faceid.camera import CameraConstraints, CameraSession
from faceid.interfaces import FaceDescriptor

EMBEDDING_DIM = 4


class FakeFrameSource:
    """Frame source that always (or never) returns a blank frame."""

    def __init__(self, constraints: Optional[CameraConstraints] = None, frames: bool = True):
        self.constraints = constraints
        self.frames = frames
        self.release_calls = 0
        self.read_calls = 0

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        self.read_calls += 1
        if not self.frames:
            return False, None
        return True, np.zeros((48, 64, 3), dtype=np.uint8)

    def release(self) -> None:
        self.release_calls += 1

    @property
    def is_opened(self) -> bool:
        return self.release_calls == 0


class FakeOpener:
    """Camera opener recording every source it creates."""

    def __init__(self):
        self.sources: List[FakeFrameSource] = []

    def __call__(self, constraints: CameraConstraints) -> FakeFrameSource:
        source = FakeFrameSource(constraints)
        self.sources.append(source)
        return source


class ScriptedCapability:
    """Embedding capability replaying a fixed list of detections.

    Each call to ``detect`` consumes the next scripted result (a
    FaceDescriptor or None). Once the script is exhausted, ``default`` is
    returned.
    """

    def __init__(
        self,
        script: Iterable[Optional[FaceDescriptor]] = (),
        default: Optional[FaceDescriptor] = None,
        embedding_dim: int = EMBEDDING_DIM,
    ):
        self.embedding_dim = embedding_dim
        self._script = list(script)
        self.default = default
        self.calls = 0

    def detect(self, frame_bgr: np.ndarray) -> Optional[FaceDescriptor]:
        self.calls += 1
        if self._script:
            return self._script.pop(0)
        return self.default


def make_descriptor(values=(1.0, 0.0, 0.0, 0.0), confidence: float = 0.9) -> FaceDescriptor:
    """Build a FaceDescriptor from plain values."""
    return FaceDescriptor(embedding=np.array(values, dtype=np.float32), confidence=confidence)


@pytest.fixture
def opener():
    """Create a recording camera opener."""
    return FakeOpener()


@pytest.fixture
def camera(opener):
    """Create a CameraSession backed by fake frame sources."""
    return CameraSession(opener=opener)
