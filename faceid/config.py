"""Configuration management for the FaceID capture pipeline.

This module loads configuration from environment variables (.env file) and
provides a centralized Config class for accessing application settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Attributes:
        backend: Embedding backend ("dlib" or "insightface")
        ctx_id: Device context ID for insightface (-1 for CPU, 0+ for GPU)
        model_pack: InsightFace model pack name
        dlib_detector: dlib detection model ("hog" or "cnn")
        camera_id: Camera device ID for video capture
        frame_width: Requested capture width in pixels
        frame_height: Requested capture height in pixels
        min_confidence: Minimum detection confidence for a usable sample (0.0-1.0)
        attempts_per_pose: Sampling attempts per guided pose (>= 2)
        settle_delay: Seconds to wait after a pose prompt before sampling
        attempt_delay: Seconds between two sampling attempts
        match_threshold: Euclidean distance threshold for local matching
        login_captures: Number of samples taken for a login attempt
        model_load_timeout: Seconds before a model load is abandoned (None = no limit)
        api_base_url: Base URL of the enrollment/login REST backend
        api_timeout: HTTP timeout in seconds
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    backend: str
    ctx_id: int
    model_pack: str
    dlib_detector: str
    camera_id: int
    frame_width: int
    frame_height: int
    min_confidence: float
    attempts_per_pose: int
    settle_delay: float
    attempt_delay: float
    match_threshold: float
    login_captures: int
    model_load_timeout: Optional[float]
    api_base_url: str
    api_timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Returns:
            Config instance with values from environment or defaults.

        Raises:
            ValueError: If environment variables are invalid.
        """
        # Backend selection
        backend = os.getenv("FACEID_BACKEND", "dlib").lower()
        valid_backends = ["dlib", "insightface"]
        if backend not in valid_backends:
            raise ValueError(
                f"FACEID_BACKEND must be one of {valid_backends}, got {backend}"
            )

        ctx_id = int(os.getenv("CTX_ID", "-1"))

        model_pack = os.getenv("MODEL_PACK", "buffalo_l")
        valid_packs = ["buffalo_l", "buffalo_m", "buffalo_s", "buffalo_sc"]
        if model_pack not in valid_packs:
            raise ValueError(f"MODEL_PACK must be one of {valid_packs}, got {model_pack}")

        dlib_detector = os.getenv("DLIB_DETECTOR", "hog").lower()
        if dlib_detector not in ("hog", "cnn"):
            raise ValueError(f"DLIB_DETECTOR must be 'hog' or 'cnn', got {dlib_detector}")

        # Camera configuration
        camera_id = int(os.getenv("CAMERA_ID", "0"))
        if camera_id < 0:
            raise ValueError(f"CAMERA_ID must be >= 0, got {camera_id}")

        frame_width = int(os.getenv("FRAME_WIDTH", "640"))
        frame_height = int(os.getenv("FRAME_HEIGHT", "480"))
        if frame_width <= 0 or frame_height <= 0:
            raise ValueError(
                f"FRAME_WIDTH/FRAME_HEIGHT must be > 0, got {frame_width}x{frame_height}"
            )

        # Capture configuration
        min_confidence = float(os.getenv("MIN_CONFIDENCE", "0.5"))
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(
                f"MIN_CONFIDENCE must be between 0.0 and 1.0, got {min_confidence}"
            )

        attempts_per_pose = int(os.getenv("ATTEMPTS_PER_POSE", "2"))
        if attempts_per_pose < 2:
            raise ValueError(f"ATTEMPTS_PER_POSE must be >= 2, got {attempts_per_pose}")

        settle_delay = float(os.getenv("SETTLE_DELAY", "1.5"))
        attempt_delay = float(os.getenv("ATTEMPT_DELAY", "0.5"))
        if settle_delay < 0 or attempt_delay < 0:
            raise ValueError("SETTLE_DELAY and ATTEMPT_DELAY must be >= 0")

        # Matching
        match_threshold = float(os.getenv("MATCH_THRESHOLD", "0.6"))
        if match_threshold <= 0:
            raise ValueError(f"MATCH_THRESHOLD must be > 0, got {match_threshold}")

        login_captures = int(os.getenv("LOGIN_CAPTURES", "5"))
        if login_captures < 1:
            raise ValueError(f"LOGIN_CAPTURES must be >= 1, got {login_captures}")

        # Model loading (0 disables the timeout)
        load_timeout = float(os.getenv("MODEL_LOAD_TIMEOUT", "60"))
        if load_timeout < 0:
            raise ValueError(f"MODEL_LOAD_TIMEOUT must be >= 0, got {load_timeout}")
        model_load_timeout = load_timeout or None

        # REST backend
        api_base_url = os.getenv("API_BASE_URL", "http://localhost:8080/api")
        api_timeout = float(os.getenv("API_TIMEOUT", "10"))
        if api_timeout <= 0:
            raise ValueError(f"API_TIMEOUT must be > 0, got {api_timeout}")

        # Logging configuration
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got {log_level}")

        return cls(
            backend=backend,
            ctx_id=ctx_id,
            model_pack=model_pack,
            dlib_detector=dlib_detector,
            camera_id=camera_id,
            frame_width=frame_width,
            frame_height=frame_height,
            min_confidence=min_confidence,
            attempts_per_pose=attempts_per_pose,
            settle_delay=settle_delay,
            attempt_delay=attempt_delay,
            match_threshold=match_threshold,
            login_captures=login_captures,
            model_load_timeout=model_load_timeout,
            api_base_url=api_base_url,
            api_timeout=api_timeout,
            log_level=log_level,
        )

    def __repr__(self) -> str:
        """Return string representation of config."""
        return (
            f"Config(\n"
            f"  Backend: {self.backend},\n"
            f"  Camera: {self.camera_id} ({self.frame_width}x{self.frame_height}),\n"
            f"  Min Confidence: {self.min_confidence},\n"
            f"  Attempts/Pose: {self.attempts_per_pose},\n"
            f"  Match Threshold: {self.match_threshold},\n"
            f"  API: {self.api_base_url},\n"
            f"  Log Level: {self.log_level}\n"
            f")"
        )


# Global config instance (lazy-loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get global config instance (singleton pattern).

    Returns:
        Config instance loaded from environment.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
