# shared/__init__.py
"""
Shared package - central access to constants.
Avoids importing models and services to prevent circular dependencies.
"""

from .constants import (
    StudentStatus,
    Division,
    ApplicationStatus,
    EnrollmentEvent,
    AssessmentResponse,
)

__all__ = [
    'StudentStatus',
    'Division',
    'ApplicationStatus',
    'EnrollmentEvent',
    'AssessmentResponse',
]
