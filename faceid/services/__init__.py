"""High-level FaceID services.

This package contains the flows that combine capture, aggregation,
matching and the REST backend.
"""

from faceid.services.enrollment import EnrollmentService
from faceid.services.login import LoginService

__all__ = [
    "EnrollmentService",
    "LoginService",
]
