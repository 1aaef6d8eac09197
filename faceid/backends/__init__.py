"""Embedding capability backends.

This package contains the concrete detect-and-embed implementations:
- dlib: HOG/CNN detector + ResNet-34 descriptors (128-D)
- insightface: SCRFD detector + ArcFace embeddings (512-D)

Use the factory module to obtain a loader for ModelLifecycleService.
"""

from faceid.backends.factory import BackendType, create_capability_loader

__all__ = [
    "create_capability_loader",
    "BackendType",
]
