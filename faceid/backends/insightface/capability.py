"""InsightFace embedding capability (SCRFD detector + ArcFace recognition).

Runs the full FaceAnalysis pipeline on a frame and describes the face with
the highest detection score as a 512-D L2-normalized ArcFace embedding.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from insightface.app import FaceAnalysis

from faceid.config import Config
from faceid.errors import ModelLoadError
from faceid.interfaces import BBox, FaceDescriptor
from faceid.logging_config import get_logger
from faceid.utils import l2_normalize

logger = get_logger(__name__)


class InsightFaceCapability:
    """Detect-and-embed capability backed by InsightFace.

    Attributes:
        app: InsightFace FaceAnalysis instance
        ctx_id: Compute context (-1=CPU, 0+=GPU)
        embedding_dim: Dimension of output embeddings (512 for ArcFace)

    Example:
        >>> capability = InsightFaceCapability(config)
        >>> descriptor = capability.detect(frame)
        >>> if descriptor is not None:
        ...     assert descriptor.embedding.shape == (512,)
    """

    embedding_dim = 512

    def __init__(self, config: Config, det_size: tuple[int, int] = (640, 640)):
        """Load the model pack.

        Args:
            config: Configuration with model_pack and ctx_id.
            det_size: Detector input size.

        Raises:
            ModelLoadError: If model initialization fails.
        """
        self.ctx_id = config.ctx_id
        self.model_pack = config.model_pack

        logger.info(
            f"Initializing InsightFace capability with model_pack={config.model_pack}, "
            f"ctx_id={config.ctx_id}"
        )

        try:
            self.app = FaceAnalysis(
                name=config.model_pack,
                allowed_modules=["detection", "recognition"],
                providers=(
                    ["CUDAExecutionProvider", "CPUExecutionProvider"]
                    if config.ctx_id >= 0
                    else ["CPUExecutionProvider"]
                ),
            )
            self.app.prepare(ctx_id=config.ctx_id, det_size=det_size)
        except Exception as e:
            logger.error(f"Failed to initialize InsightFace: {e}")
            raise ModelLoadError(f"InsightFace initialization failed: {e}") from e

        logger.info(
            f"InsightFace capability initialized "
            f"(device: {'GPU' if config.ctx_id >= 0 else 'CPU'})"
        )

    def detect(self, frame_bgr: np.ndarray) -> Optional[FaceDescriptor]:
        """Detect the most confident face and return its ArcFace embedding.

        Args:
            frame_bgr: Input image in BGR format, shape [H, W, 3]

        Returns:
            FaceDescriptor with confidence = detection score, or None if no
            face was found.
        """
        if frame_bgr is None or frame_bgr.size == 0:
            logger.warning("Empty frame provided to InsightFace capability")
            return None

        faces = self.app.get(frame_bgr)
        if not faces:
            return None

        face = max(faces, key=lambda f: float(f.det_score))
        if face.embedding is None:
            logger.debug("Face detected without recognition output")
            return None

        embedding = l2_normalize(face.embedding)

        x1, y1, x2, y2 = (int(v) for v in face.bbox)
        h, w = frame_bgr.shape[:2]
        bbox = BBox(
            x1=max(0, min(x1, w - 1)),
            y1=max(0, min(y1, h - 1)),
            x2=max(0, min(x2, w - 1)),
            y2=max(0, min(y2, h - 1)),
        )

        return FaceDescriptor(
            embedding=embedding,
            confidence=float(np.clip(face.det_score, 0.0, 1.0)),
            bbox=bbox,
        )

    def __repr__(self) -> str:
        device = "GPU" if self.ctx_id >= 0 else "CPU"
        return f"InsightFaceCapability(pack={self.model_pack}, dim={self.embedding_dim}, device={device})"
