"""Exception hierarchy for the FaceID capture pipeline.

Per-attempt failures (``SamplingError``) are recoverable and absorbed by the
guided capture. Resource failures (``CameraError``, ``ModelLoadError``) abort
a capture session. ``EmbeddingError`` subclasses signal contract violations
between components and also derive from ``ValueError``.
"""

from __future__ import annotations

from typing import Optional


class FaceIdError(Exception):
    """Base class for all FaceID pipeline errors."""


# Camera


class CameraError(FaceIdError):
    """Camera could not be acquired or used."""


class PermissionDenied(CameraError):
    """Access to the camera was refused by the OS or the user."""


class DeviceNotFound(CameraError):
    """No camera exists at the requested device index."""


class DeviceBusy(CameraError):
    """Camera exists but is held by another process or yields no frames."""


class CameraNotActive(CameraError):
    """A frame was requested while no camera handle is held."""


# Model


class ModelLoadError(FaceIdError):
    """The embedding capability failed to load (or timed out)."""


# Sampling (per attempt, recoverable)


class SamplingError(FaceIdError):
    """A single sampling attempt produced no usable sample."""


class FrameUnavailable(SamplingError):
    """The frame source returned no frame."""


class NoFaceDetected(SamplingError):
    """The capability found no face in the frame."""


class LowConfidence(SamplingError):
    """A face was found but its confidence is below the required minimum."""

    def __init__(self, confidence: float, min_confidence: float):
        self.confidence = confidence
        self.min_confidence = min_confidence
        super().__init__(
            f"Low detection confidence ({confidence:.2f} < {min_confidence:.2f})"
        )


# Guided capture


class CaptureError(FaceIdError):
    """Guided capture session ended without a result."""


class NoUsableCaptures(CaptureError):
    """Every sampling attempt across the whole pose sequence failed."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No usable face captures in {attempts} attempts")


class CaptureCancelled(CaptureError):
    """The capture session was cancelled before completion."""


class CaptureInProgress(CaptureError):
    """A capture session is already running on this orchestrator."""


# Embedding contract violations


class EmbeddingError(FaceIdError, ValueError):
    """Embeddings passed between components violate their contract."""


class DimensionMismatch(EmbeddingError):
    """Two embeddings (or an embedding and a model) disagree on length."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected embedding dimension {expected}, got {actual}")


class EmptyInput(EmbeddingError):
    """Aggregation was asked to reduce an empty list."""


# REST backend


class FaceIdApiError(FaceIdError):
    """The enrollment/login backend rejected a request or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
