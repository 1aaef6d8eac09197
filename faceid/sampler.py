"""Single-frame face sampling.

A sample is one frame run through the embedding capability. A frame without
a face, or with a face below the confidence floor, is a failed attempt, never
a degraded sample.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from faceid.errors import DimensionMismatch, FrameUnavailable, LowConfidence, NoFaceDetected
from faceid.interfaces import (
    CaptureSample,
    EmbeddingCapability,
    FaceDescriptor,
    FrameSource,
    PoseTag,
)
from faceid.logging_config import get_logger

logger = get_logger(__name__)


def _read_and_detect(
    frame_source: FrameSource, capability: EmbeddingCapability
) -> Optional[FaceDescriptor]:
    # Runs in a worker thread: both calls block
    success, frame = frame_source.read()
    if not success or frame is None:
        raise FrameUnavailable("No frame available from camera")
    return capability.detect(frame)


class FaceSampler:
    """Produce at most one CaptureSample per call.

    Frame reading and detection run in a worker thread; callers must await each
    call before issuing the next one, so a session never has two samples in flight.

    Example:
        >>> sampler = FaceSampler()
        >>> try:
        ...     sample = await sampler.sample(handle, capability, 0.5, PoseTag.LEFT)
        ... except SamplingError as e:
        ...     print(f"Skipped: {e}")
    """

    async def sample(
        self,
        frame_source: FrameSource,
        capability: EmbeddingCapability,
        min_confidence: float,
        pose: PoseTag = PoseTag.CENTER,
    ) -> CaptureSample:
        """Capture the current frame and turn it into a sample.

        Args:
            frame_source: Anything with ``read() -> (ok, frame)``, usually a CameraHandle
            capability: Loaded embedding capability
            min_confidence: Minimum accepted detection confidence (inclusive)
            pose: Pose tag attached to the produced sample

        Returns:
            Immutable CaptureSample.

        Raises:
            FrameUnavailable: If the source returned no frame.
            NoFaceDetected: If no face was found in the frame.
            LowConfidence: If the face confidence is below ``min_confidence``.
            DimensionMismatch: If the descriptor length disagrees with the capability.
        """
        descriptor = await asyncio.to_thread(_read_and_detect, frame_source, capability)

        if descriptor is None:
            raise NoFaceDetected("No face detected. Keep your face inside the frame.")

        if descriptor.confidence < min_confidence:
            raise LowConfidence(descriptor.confidence, min_confidence)

        expected_dim = getattr(capability, "embedding_dim", None)
        actual_dim = descriptor.embedding.shape[0]
        if expected_dim is not None and actual_dim != expected_dim:
            raise DimensionMismatch(expected_dim, actual_dim)

        sample = CaptureSample(
            embedding=descriptor.embedding,
            confidence=descriptor.confidence,
            pose=pose,
        )
        logger.debug(f"Sampled {sample}")
        return sample

    def __repr__(self) -> str:
        return "FaceSampler()"
