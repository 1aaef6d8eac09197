"""FaceID capture, aggregation and verification pipeline.

Components, leaves first:
- ModelLifecycleService: loads the embedding capability once
- CameraSession: scoped camera acquisition
- FaceSampler: one frame -> zero or one CaptureSample
- GuidedCaptureOrchestrator: multi-pose capture state machine
- EmbeddingAggregator: mean + L2 normalization
- SimilarityMatcher: Euclidean distance and threshold matching
"""

from faceid.aggregation import EmbeddingAggregator
from faceid.camera import CameraConstraints, CameraHandle, CameraSession, WebcamSource
from faceid.capture import CaptureState, EnrollmentSession, GuidedCaptureOrchestrator
from faceid.config import Config, get_config
from faceid.errors import (
    CameraError,
    CameraNotActive,
    CaptureCancelled,
    CaptureError,
    CaptureInProgress,
    DeviceBusy,
    DeviceNotFound,
    DimensionMismatch,
    EmbeddingError,
    EmptyInput,
    FaceIdApiError,
    FaceIdError,
    FrameUnavailable,
    LowConfidence,
    ModelLoadError,
    NoFaceDetected,
    NoUsableCaptures,
    PermissionDenied,
    SamplingError,
)
from faceid.interfaces import (
    POSE_SEQUENCE,
    BBox,
    CaptureSample,
    EmbeddingCapability,
    FaceDescriptor,
    FrameSource,
    PoseTag,
)
from faceid.logging_config import get_logger, setup_logging
from faceid.matcher import SimilarityMatcher
from faceid.model_lifecycle import ModelLifecycleService
from faceid.sampler import FaceSampler
from faceid.utils import l2_normalize

__all__ = [
    # Config
    "Config",
    "get_config",
    # Logging
    "setup_logging",
    "get_logger",
    # Interfaces
    "POSE_SEQUENCE",
    "BBox",
    "CaptureSample",
    "EmbeddingCapability",
    "FaceDescriptor",
    "FrameSource",
    "PoseTag",
    # Components
    "ModelLifecycleService",
    "CameraConstraints",
    "CameraHandle",
    "CameraSession",
    "WebcamSource",
    "FaceSampler",
    "CaptureState",
    "EnrollmentSession",
    "GuidedCaptureOrchestrator",
    "EmbeddingAggregator",
    "SimilarityMatcher",
    "l2_normalize",
    # Errors
    "FaceIdError",
    "CameraError",
    "PermissionDenied",
    "DeviceNotFound",
    "DeviceBusy",
    "CameraNotActive",
    "ModelLoadError",
    "SamplingError",
    "FrameUnavailable",
    "NoFaceDetected",
    "LowConfidence",
    "CaptureError",
    "NoUsableCaptures",
    "CaptureCancelled",
    "CaptureInProgress",
    "EmbeddingError",
    "DimensionMismatch",
    "EmptyInput",
    "FaceIdApiError",
]
