"""InsightFace backend (SCRFD detection + ArcFace, 512-D embeddings)."""

from faceid.backends.insightface.capability import InsightFaceCapability

__all__ = ["InsightFaceCapability"]
