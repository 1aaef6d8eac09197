"""dlib backend (face_recognition library, 128-D descriptors)."""

from faceid.backends.dlib.capability import DlibCapability

__all__ = ["DlibCapability"]
