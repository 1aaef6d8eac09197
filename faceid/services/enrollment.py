"""Enrollment service for registering a FaceID.

Runs the guided multi-pose capture, reduces the accepted samples to one
canonical embedding and submits it to the backend.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from faceid.aggregation import EmbeddingAggregator
from faceid.api_client import FaceIdApiClient
from faceid.capture import GuidedCaptureOrchestrator
from faceid.errors import CaptureInProgress, NoUsableCaptures
from faceid.interfaces import CaptureSample
from faceid.logging_config import get_logger

logger = get_logger(__name__)


class EnrollmentService:
    """Service for enrolling an account's face.

    Workflow:
    1. Guided capture over all poses (camera and models acquired on demand)
    2. If nothing usable was captured, retry the guided capture with the
       same camera, up to ``max_rounds`` rounds
    3. Aggregate accepted samples into one unit-length embedding
    4. Submit the embedding to the enrollment endpoint

    The camera is released on every exit path.

    Attributes:
        orchestrator: Guided capture orchestrator
        api_client: REST client for the enrollment endpoint
        aggregator: Sample aggregator
        max_rounds: Guided capture rounds allowed per enrollment

    Example:
        >>> service = EnrollmentService(orchestrator, api_client)
        >>> embedding = await service.enroll("user@example.com")
    """

    def __init__(
        self,
        orchestrator: GuidedCaptureOrchestrator,
        api_client: FaceIdApiClient,
        aggregator: Optional[EmbeddingAggregator] = None,
        max_rounds: int = 1,
    ):
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {max_rounds}")

        self.orchestrator = orchestrator
        self.api_client = api_client
        self.aggregator = aggregator if aggregator is not None else EmbeddingAggregator()
        self.max_rounds = max_rounds

        logger.info(f"Initialized EnrollmentService: max_rounds={max_rounds}")

    async def enroll(self, identity: str) -> np.ndarray:
        """Capture, aggregate and submit a FaceID for ``identity``.

        Args:
            identity: Account identifier (email) the face belongs to

        Returns:
            The canonical embedding that was submitted.

        Raises:
            NoUsableCaptures: If every round ended without an accepted sample.
            CaptureCancelled: If the capture was cancelled.
            CaptureInProgress: If an enrollment is already capturing.
            CameraError, ModelLoadError: On resource failure.
            FaceIdApiError: If the backend rejected the enrollment.
        """
        # A rejected call must not release the camera of the running one
        if self.orchestrator.is_running:
            raise CaptureInProgress("An enrollment capture is already running")

        logger.info(f"Starting FaceID enrollment for '{identity}'")

        try:
            samples = await self._capture()
        finally:
            self.orchestrator.camera.release()

        embedding = self.aggregator.aggregate(samples)
        logger.info(f"Aggregated {len(samples)} sample(s) into canonical embedding")

        await self.api_client.enroll(identity, embedding)
        logger.info(f"FaceID enrolled for '{identity}'")
        return embedding

    async def _capture(self) -> Tuple[CaptureSample, ...]:
        for round_number in range(1, self.max_rounds + 1):
            try:
                return await self.orchestrator.run()
            except NoUsableCaptures:
                if round_number == self.max_rounds:
                    raise
                logger.warning(
                    f"Round {round_number}/{self.max_rounds} captured no usable "
                    f"samples, retrying"
                )

    def __repr__(self) -> str:
        return (
            f"EnrollmentService(max_rounds={self.max_rounds}, "
            f"orchestrator={self.orchestrator!r})"
        )
