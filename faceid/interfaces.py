"""Core interfaces and data structures for the FaceID capture pipeline.

This module defines the protocols the pipeline depends on (frame sources and
embedding capabilities) and the value types that flow between components.

Components depend on these abstractions rather than on OpenCV, dlib or
InsightFace directly, so tests can substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Tuple, runtime_checkable

import numpy as np


class PoseTag(str, Enum):
    """Guided head orientation a sample was captured in."""

    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


# Fixed traversal order of the guided capture
POSE_SEQUENCE: Tuple[PoseTag, ...] = (
    PoseTag.CENTER,
    PoseTag.LEFT,
    PoseTag.RIGHT,
    PoseTag.UP,
    PoseTag.DOWN,
)


@dataclass
class BBox:
    """Bounding box for a detected face.

    Attributes:
        x1: Left edge x-coordinate (pixels)
        y1: Top edge y-coordinate (pixels)
        x2: Right edge x-coordinate (pixels)
        y2: Bottom edge y-coordinate (pixels)
    """

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def area(self) -> int:
        return self.width * self.height


def _frozen_embedding(embedding: np.ndarray) -> np.ndarray:
    """Copy an embedding into a read-only 1-D float32 array."""
    arr = np.array(embedding, dtype=np.float32).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class FaceDescriptor:
    """One detected face as reported by an embedding capability.

    Attributes:
        embedding: Fixed-length face descriptor, shape [N]
        confidence: Detection confidence score (0.0 to 1.0)
        bbox: Optional bounding box of the face in the frame
    """

    embedding: np.ndarray
    confidence: float
    bbox: Optional[BBox] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "embedding", _frozen_embedding(self.embedding))
        object.__setattr__(self, "confidence", float(self.confidence))

    def __repr__(self) -> str:
        return (
            f"FaceDescriptor(dim={self.embedding.shape[0]}, "
            f"confidence={self.confidence:.3f}, bbox={self.bbox})"
        )


@dataclass(frozen=True, eq=False)
class CaptureSample:
    """An accepted sample produced by the FaceSampler.

    Immutable once produced: the embedding is stored as a read-only copy.

    Attributes:
        embedding: Face embedding, shape [N], dtype float32
        confidence: Detection confidence (0.0 to 1.0)
        pose: Pose the sample was captured in
    """

    embedding: np.ndarray
    confidence: float
    pose: PoseTag = field(default=PoseTag.CENTER)

    def __post_init__(self) -> None:
        """Validate and freeze sample data after initialization."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Sample confidence must be in [0, 1], got {self.confidence}")

        embedding = _frozen_embedding(self.embedding)
        if embedding.size == 0:
            raise ValueError("Sample embedding must not be empty")

        object.__setattr__(self, "embedding", embedding)
        object.__setattr__(self, "confidence", float(self.confidence))
        object.__setattr__(self, "pose", PoseTag(self.pose))

    @property
    def dimension(self) -> int:
        return int(self.embedding.shape[0])

    def __repr__(self) -> str:
        return (
            f"CaptureSample(pose={self.pose.value}, dim={self.dimension}, "
            f"confidence={self.confidence:.3f})"
        )


@runtime_checkable
class EmbeddingCapability(Protocol):
    """Protocol for a loaded face detection + embedding model.

    Given a frame, a capability returns zero or one detected face with a
    fixed-length descriptor. When several faces are visible, the
    implementation picks the best one.
    """

    embedding_dim: int

    def detect(self, frame_bgr: np.ndarray) -> Optional[FaceDescriptor]:
        """Detect the best face in a frame and compute its descriptor.

        Args:
            frame_bgr: Input image in BGR format (OpenCV convention), shape [H, W, 3]

        Returns:
            FaceDescriptor for the selected face, or None if no face was found.

        Example:
            >>> descriptor = capability.detect(frame)
            >>> if descriptor is not None:
            ...     print(descriptor.embedding.shape, descriptor.confidence)
        """
        ...


@runtime_checkable
class FrameSource(Protocol):
    """Protocol for live video sources (webcam, test fakes)."""

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the current frame.

        Returns:
            Tuple of (success, frame):
                - success: True if frame read successfully, False otherwise
                - frame: BGR image array [H, W, 3] if success, None otherwise
        """
        ...

    def release(self) -> None:
        """Release the underlying device. Must be safe to call twice."""
        ...

    @property
    def is_opened(self) -> bool:
        """True while the source can deliver frames."""
        ...
