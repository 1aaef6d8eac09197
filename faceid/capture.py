"""Guided multi-pose face capture.

The orchestrator walks the user through a fixed sequence of head poses and
collects accepted samples along the way:

    IDLE -> CENTER -> LEFT -> RIGHT -> UP -> DOWN -> COMPLETE

Each pose waits a settle delay, then performs exactly K sampling attempts.
Failed attempts are skipped, not retried. Cancellation is honoured before
every attempt and interrupts delays.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from faceid.camera import CameraConstraints, CameraSession
from faceid.errors import (
    CameraError,
    CaptureCancelled,
    CaptureInProgress,
    ModelLoadError,
    NoUsableCaptures,
    SamplingError,
)
from faceid.interfaces import POSE_SEQUENCE, CaptureSample, EmbeddingCapability, PoseTag
from faceid.logging_config import get_logger
from faceid.model_lifecycle import ModelLifecycleService
from faceid.sampler import FaceSampler

logger = get_logger(__name__)


class CaptureState(str, Enum):
    """States of the guided capture."""

    IDLE = "idle"
    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    COMPLETE = "complete"

    @classmethod
    def for_pose(cls, pose: PoseTag) -> CaptureState:
        return cls(pose.value)


# User prompts shown while a pose is active
POSE_PROMPTS = {
    PoseTag.CENTER: "Look straight at the camera",
    PoseTag.LEFT: "Turn your head slightly to the left",
    PoseTag.RIGHT: "Turn your head slightly to the right",
    PoseTag.UP: "Tilt your head slightly up",
    PoseTag.DOWN: "Tilt your head slightly down",
}


@dataclass
class EnrollmentSession:
    """Ephemeral state of one guided capture attempt.

    Attributes:
        total_attempts: poses x attempts per pose
        pose_index: Index into the pose sequence of the current pose
        samples: Accepted samples so far, in capture order
        attempts_completed: Attempts finished so far (accepted or not)
    """

    total_attempts: int
    pose_index: int = 0
    samples: List[CaptureSample] = field(default_factory=list)
    attempts_completed: int = 0

    @property
    def progress(self) -> float:
        """Percentage of attempts completed (0.0 to 100.0)."""
        if self.total_attempts == 0:
            return 0.0
        return self.attempts_completed / self.total_attempts * 100.0


ProgressCallback = Callable[[CaptureState, float], None]
SampleCallback = Callable[[CaptureSample], None]


class GuidedCaptureOrchestrator:
    """Drive the pose sequence and collect accepted samples.

    Attributes:
        attempts_per_pose: Sampling attempts per pose (K >= 2)
        settle_delay: Seconds to wait after entering a pose
        attempt_delay: Seconds between attempts within a pose
        min_confidence: Confidence floor passed to the sampler
        constraints: Camera constraints used if the camera must be acquired
        state: Current CaptureState
        error: Message of the last session-level failure, or None
        session: Current EnrollmentSession, or None when idle

    Example:
        >>> orchestrator = GuidedCaptureOrchestrator(camera, models)
        >>> try:
        ...     samples = await orchestrator.run()
        ... except NoUsableCaptures:
        ...     print(orchestrator.error)
        >>> embedding = EmbeddingAggregator().aggregate(samples)
    """

    def __init__(
        self,
        camera: CameraSession,
        models: ModelLifecycleService,
        sampler: Optional[FaceSampler] = None,
        *,
        attempts_per_pose: int = 2,
        settle_delay: float = 1.5,
        attempt_delay: float = 0.5,
        min_confidence: float = 0.5,
        constraints: Optional[CameraConstraints] = None,
        poses: Sequence[PoseTag] = POSE_SEQUENCE,
        on_progress: Optional[ProgressCallback] = None,
        on_sample: Optional[SampleCallback] = None,
    ):
        if attempts_per_pose < 2:
            raise ValueError(f"attempts_per_pose must be >= 2, got {attempts_per_pose}")
        if settle_delay < 0 or attempt_delay < 0:
            raise ValueError("Delays must be >= 0")
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {min_confidence}")
        if not poses:
            raise ValueError("At least one pose is required")

        self.camera = camera
        self.models = models
        self.sampler = sampler if sampler is not None else FaceSampler()
        self.attempts_per_pose = attempts_per_pose
        self.settle_delay = settle_delay
        self.attempt_delay = attempt_delay
        self.min_confidence = min_confidence
        self.constraints = constraints
        self.poses: Tuple[PoseTag, ...] = tuple(poses)
        self.on_progress = on_progress
        self.on_sample = on_sample

        self.state = CaptureState.IDLE
        self.error: Optional[str] = None
        self.session: Optional[EnrollmentSession] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._running = False

    @property
    def progress(self) -> float:
        return self.session.progress if self.session is not None else 0.0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def total_attempts(self) -> int:
        return len(self.poses) * self.attempts_per_pose

    def cancel(self) -> None:
        """Request cancellation; ``run()`` stops before its next attempt."""
        if self._cancel_event is not None and not self._cancel_event.is_set():
            logger.info(f"Cancellation requested (state={self.state.value})")
            self._cancel_event.set()

    async def run(self) -> Tuple[CaptureSample, ...]:
        """Run one guided capture from IDLE to COMPLETE.

        Acquires the camera if the session holds none, and makes sure the
        models are loaded before the first pose.

        Returns:
            All accepted samples, in capture order (at least one).

        Raises:
            ModelLoadError, CameraError: Resource failure; the camera is
                released before the error propagates.
            NoUsableCaptures: Every attempt failed; the camera stays acquired
                so the caller can retry without a new permission prompt.
            CaptureCancelled: ``cancel()`` was called; the camera is released.
            CaptureInProgress: ``run()`` is already executing.
        """
        if self._running:
            raise CaptureInProgress("A guided capture is already running")

        self._running = True
        self._cancel_event = asyncio.Event()
        self.error = None
        self.state = CaptureState.IDLE
        self.session = EnrollmentSession(total_attempts=self.total_attempts)

        try:
            capability = await self._prepare_resources()
            samples = await self._capture_sequence(capability)
        except CaptureCancelled:
            logger.info("Guided capture cancelled, discarding samples")
            self._reset(release_camera=True)
            raise
        except asyncio.CancelledError:
            logger.info("Guided capture task cancelled, discarding samples")
            self._reset(release_camera=True)
            raise
        except NoUsableCaptures as e:
            logger.error(str(e))
            self.error = str(e)
            self._reset(release_camera=False)
            raise
        except (ModelLoadError, CameraError) as e:
            logger.error(f"Guided capture aborted: {e}")
            self.error = str(e)
            self._reset(release_camera=True)
            raise
        except Exception as e:
            logger.error(f"Guided capture failed unexpectedly: {e}", exc_info=True)
            self.error = str(e)
            self._reset(release_camera=True)
            raise
        finally:
            self._running = False
            self._cancel_event = None

        self.state = CaptureState.COMPLETE
        self.session = None
        logger.info(
            f"Guided capture complete: {len(samples)}/{self.total_attempts} "
            f"attempts accepted"
        )
        return samples

    async def _prepare_resources(self) -> EmbeddingCapability:
        capability = await self._load_models()
        self._check_cancelled()

        if not self.camera.is_active:
            self.camera.acquire(self.constraints)
        return capability

    async def _load_models(self) -> EmbeddingCapability:
        """Wait for the models, waking early on cancellation.

        Abandoning the wait leaves the shared load running for other callers.
        """
        if self.models.is_loaded:
            return await self.models.ensure_loaded()

        load = asyncio.ensure_future(self.models.ensure_loaded())
        cancelled = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({load, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if not load.done():
                load.cancel()

        if not load.done() or load.cancelled():
            raise CaptureCancelled("Guided capture cancelled while loading models")
        return load.result()

    async def _capture_sequence(
        self, capability: EmbeddingCapability
    ) -> Tuple[CaptureSample, ...]:
        session = self.session
        handle = self.camera.handle

        for index, pose in enumerate(self.poses):
            session.pose_index = index
            self.state = CaptureState.for_pose(pose)
            logger.info(f"Pose {index + 1}/{len(self.poses)}: {POSE_PROMPTS.get(pose, pose.value)}")
            self._notify_progress()

            await self._pause(self.settle_delay)

            for attempt in range(self.attempts_per_pose):
                if attempt > 0:
                    await self._pause(self.attempt_delay)
                self._check_cancelled()

                try:
                    sample = await self.sampler.sample(
                        handle, capability, self.min_confidence, pose
                    )
                except SamplingError as e:
                    logger.debug(
                        f"Attempt {attempt + 1}/{self.attempts_per_pose} "
                        f"for pose '{pose.value}' skipped: {e}"
                    )
                else:
                    session.samples.append(sample)
                    if self.on_sample is not None:
                        self.on_sample(sample)

                session.attempts_completed += 1
                self._notify_progress()

            accepted = sum(1 for s in session.samples if s.pose is pose)
            logger.info(
                f"Pose '{pose.value}' done: {accepted}/{self.attempts_per_pose} accepted"
            )

        if not session.samples:
            raise NoUsableCaptures(session.attempts_completed)

        return tuple(session.samples)

    async def _pause(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking early on cancellation."""
        if delay > 0 and not self._cancel_event.is_set():
            try:
                await asyncio.wait_for(self._cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        else:
            await asyncio.sleep(0)
        self._check_cancelled()

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise CaptureCancelled("Guided capture cancelled")

    def _notify_progress(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.state, self.progress)

    def _reset(self, release_camera: bool) -> None:
        self.state = CaptureState.IDLE
        self.session = None
        if release_camera:
            self.camera.release()

    def __repr__(self) -> str:
        return (
            f"GuidedCaptureOrchestrator(state={self.state.value}, "
            f"poses={len(self.poses)}, attempts_per_pose={self.attempts_per_pose})"
        )
