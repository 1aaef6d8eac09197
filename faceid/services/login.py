"""Login service for FaceID authentication.

Takes several straight-on captures, orders them by how close each is to the
consensus of all captures, and submits them one by one until the backend
accepts one. The consensus embedding itself is the last candidate.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import numpy as np

from faceid.aggregation import EmbeddingAggregator
from faceid.api_client import FaceIdApiClient
from faceid.camera import CameraConstraints, CameraSession
from faceid.errors import FaceIdApiError, NoUsableCaptures, SamplingError
from faceid.interfaces import CaptureSample, PoseTag
from faceid.logging_config import get_logger
from faceid.matcher import SimilarityMatcher
from faceid.model_lifecycle import ModelLifecycleService
from faceid.sampler import FaceSampler

logger = get_logger(__name__)


class LoginService:
    """Service for logging in with a face.

    Attributes:
        captures: Number of sampling attempts per login
        capture_delay: Seconds between attempts
        min_confidence: Confidence floor passed to the sampler
        constraints: Camera constraints for the login capture

    Example:
        >>> service = LoginService(camera, models, api_client)
        >>> tokens = await service.login()
    """

    def __init__(
        self,
        camera: CameraSession,
        models: ModelLifecycleService,
        api_client: FaceIdApiClient,
        sampler: Optional[FaceSampler] = None,
        matcher: Optional[SimilarityMatcher] = None,
        aggregator: Optional[EmbeddingAggregator] = None,
        *,
        captures: int = 5,
        capture_delay: float = 0.3,
        min_confidence: float = 0.5,
        constraints: Optional[CameraConstraints] = None,
    ):
        if captures < 1:
            raise ValueError(f"captures must be >= 1, got {captures}")
        if capture_delay < 0:
            raise ValueError(f"capture_delay must be >= 0, got {capture_delay}")

        self.camera = camera
        self.models = models
        self.api_client = api_client
        self.sampler = sampler if sampler is not None else FaceSampler()
        self.matcher = matcher if matcher is not None else SimilarityMatcher()
        self.aggregator = aggregator if aggregator is not None else EmbeddingAggregator()
        self.captures = captures
        self.capture_delay = capture_delay
        self.min_confidence = min_confidence
        self.constraints = constraints

    async def capture_candidates(self) -> List[np.ndarray]:
        """Capture samples and return login candidates in submission order.

        Returns:
            Sample embeddings sorted by ascending distance to their consensus,
            followed by the consensus embedding.

        Raises:
            NoUsableCaptures: If no attempt produced a sample.
            CameraError, ModelLoadError: On resource failure.
        """
        capability = await self.models.ensure_loaded()

        samples: List[CaptureSample] = []
        with self.camera.session(self.constraints) as handle:
            for attempt in range(self.captures):
                if attempt > 0:
                    await asyncio.sleep(self.capture_delay)
                try:
                    sample = await self.sampler.sample(
                        handle, capability, self.min_confidence, PoseTag.CENTER
                    )
                except SamplingError as e:
                    logger.debug(f"Login capture {attempt + 1}/{self.captures} skipped: {e}")
                    continue
                samples.append(sample)

        if not samples:
            raise NoUsableCaptures(self.captures)

        consensus = self.aggregator.aggregate(samples)
        ranked = self.matcher.rank(samples, consensus)

        outliers = sum(1 for _, d in ranked if d >= self.matcher.threshold)
        if outliers:
            logger.warning(f"{outliers}/{len(ranked)} capture(s) far from the consensus")

        return [sample.embedding for sample, _ in ranked] + [consensus]

    async def login(self) -> Dict[str, Any]:
        """Capture candidates and submit them until the backend accepts one.

        Returns:
            Token payload of the first accepted candidate.

        Raises:
            FaceIdApiError: The last backend error if every candidate was rejected.
            NoUsableCaptures, CameraError, ModelLoadError: From the capture.
        """
        candidates = await self.capture_candidates()
        logger.info(f"Trying FaceID login with {len(candidates)} candidate(s)")

        last_error: Optional[FaceIdApiError] = None
        for index, candidate in enumerate(candidates, start=1):
            try:
                response = await self.api_client.login(candidate)
            except FaceIdApiError as e:
                logger.debug(f"Candidate {index}/{len(candidates)} rejected: {e}")
                last_error = e
                continue

            logger.info(f"FaceID login succeeded with candidate {index}/{len(candidates)}")
            return response

        logger.error(f"FaceID login failed for all {len(candidates)} candidate(s)")
        raise last_error

    def __repr__(self) -> str:
        return (
            f"LoginService(captures={self.captures}, "
            f"threshold={self.matcher.threshold})"
        )
