"""Backend factory for embedding capabilities.

This module turns a backend name into the zero-argument loader that
``ModelLifecycleService`` runs once, off the event loop:
- dlib: HOG/CNN detector + ResNet-34 descriptors (128-D), Euclidean 0.6
- insightface: SCRFD detector + ArcFace embeddings (512-D)

Backend libraries are imported inside the loader, so importing this module
never pulls in dlib or onnxruntime.

Usage:
    loader = create_capability_loader("dlib", config)
    models = ModelLifecycleService(loader, load_timeout=config.model_load_timeout)
"""

from __future__ import annotations

from typing import Literal

from faceid.config import Config
from faceid.interfaces import EmbeddingCapability
from faceid.logging_config import get_logger
from faceid.model_lifecycle import CapabilityLoader

logger = get_logger(__name__)

# Backend type alias
BackendType = Literal["dlib", "insightface"]


def create_capability_loader(
    backend_type: BackendType | None = None,
    config: Config | None = None,
) -> CapabilityLoader:
    """Create the loader for the requested backend.

    Args:
        backend_type: Backend to use ("dlib" or "insightface"). If None,
            taken from ``config.backend``.
        config: Configuration object. If None, loads from .env

    Returns:
        Zero-argument callable constructing the capability.

    Raises:
        ValueError: If the backend is unknown.

    Example:
        >>> loader = create_capability_loader("insightface", config)
        >>> capability = loader()  # blocking, loads model weights
    """
    if config is None:
        from faceid.config import get_config

        config = get_config()

    if backend_type is None:
        backend_type = config.backend

    if backend_type == "dlib":
        return lambda: _load_dlib_capability(config)
    elif backend_type == "insightface":
        return lambda: _load_insightface_capability(config)
    else:
        raise ValueError(
            f"Unknown backend: '{backend_type}'. "
            f"Supported backends: 'dlib', 'insightface'"
        )


def _load_dlib_capability(config: Config) -> EmbeddingCapability:
    logger.info(f"Creating dlib capability (detector={config.dlib_detector})...")

    from faceid.backends.dlib.capability import DlibCapability

    return DlibCapability(detector_model=config.dlib_detector)


def _load_insightface_capability(config: Config) -> EmbeddingCapability:
    logger.info(f"Creating InsightFace capability (pack={config.model_pack})...")

    from faceid.backends.insightface.capability import InsightFaceCapability

    return InsightFaceCapability(config)
