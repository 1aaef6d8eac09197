"""Dlib embedding capability using the face_recognition library.

Detects faces with dlib's HOG or CNN detector and describes the largest one
with dlib's ResNet-34 model (128-D). This is the same descriptor family the
0.6 Euclidean matching threshold was tuned for.
"""

from __future__ import annotations

from typing import Literal, Optional

import cv2
import face_recognition
import numpy as np

from faceid.interfaces import BBox, FaceDescriptor
from faceid.logging_config import get_logger

logger = get_logger(__name__)

# dlib/face_recognition doesn't expose detection scores
DLIB_DETECTION_SCORE = 0.99


class DlibCapability:
    """Detect-and-embed capability backed by dlib.

    Attributes:
        detector_model: Detection model ("hog" or "cnn")
        embedder_model: Landmark model size ("large" or "small")
        upsample: Number of times to upsample the image before detection
        num_jitters: Number of re-samples when computing the encoding
        embedding_dim: Dimension of output embeddings (128)

    Example:
        >>> capability = DlibCapability(detector_model="hog")
        >>> descriptor = capability.detect(frame)
        >>> if descriptor is not None:
        ...     assert descriptor.embedding.shape == (128,)
    """

    embedding_dim = 128

    def __init__(
        self,
        detector_model: Literal["hog", "cnn"] = "hog",
        embedder_model: Literal["large", "small"] = "large",
        upsample: int = 1,
        num_jitters: int = 1,
    ):
        if detector_model not in ("hog", "cnn"):
            raise ValueError(f"detector_model must be 'hog' or 'cnn', got '{detector_model}'")
        if embedder_model not in ("large", "small"):
            raise ValueError(f"embedder_model must be 'large' or 'small', got '{embedder_model}'")

        self.detector_model = detector_model
        self.embedder_model = embedder_model
        self.upsample = upsample
        self.num_jitters = num_jitters

        logger.info(
            f"Initialized dlib capability (detector={detector_model}, "
            f"embedder={embedder_model}, upsample={upsample})"
        )

    def detect(self, frame_bgr: np.ndarray) -> Optional[FaceDescriptor]:
        """Detect the largest face in a frame and compute its 128-D descriptor.

        Args:
            frame_bgr: Input image in BGR format, shape [H, W, 3]

        Returns:
            FaceDescriptor with a fixed confidence of 0.99, or None if no
            face was found or it could not be encoded.
        """
        if frame_bgr is None or frame_bgr.size == 0:
            logger.warning("Empty frame provided to dlib capability")
            return None

        # face_recognition expects RGB
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        # (top, right, bottom, left) tuples
        locations = face_recognition.face_locations(
            frame_rgb,
            number_of_times_to_upsample=self.upsample,
            model=self.detector_model,
        )
        if not locations:
            return None

        # No scores available, so the largest face wins
        top, right, bottom, left = max(
            locations, key=lambda loc: (loc[1] - loc[3]) * (loc[2] - loc[0])
        )
        if len(locations) > 1:
            logger.debug(f"{len(locations)} faces detected, using the largest")

        encodings = face_recognition.face_encodings(
            frame_rgb,
            known_face_locations=[(top, right, bottom, left)],
            num_jitters=self.num_jitters,
            model=self.embedder_model,
        )
        if not encodings:
            logger.debug("Face detected but no encoding could be computed")
            return None

        h, w = frame_bgr.shape[:2]
        bbox = BBox(
            x1=max(0, min(left, w - 1)),
            y1=max(0, min(top, h - 1)),
            x2=max(0, min(right, w - 1)),
            y2=max(0, min(bottom, h - 1)),
        )

        return FaceDescriptor(
            embedding=np.asarray(encodings[0], dtype=np.float32),
            confidence=DLIB_DETECTION_SCORE,
            bbox=bbox,
        )

    def __repr__(self) -> str:
        return (
            f"DlibCapability(detector='{self.detector_model}', "
            f"embedder='{self.embedder_model}', dim={self.embedding_dim})"
        )
