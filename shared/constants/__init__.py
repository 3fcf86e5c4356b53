from .enrollment import (
    StudentStatus,
    Division,
    ApplicationStatus,
    EnrollmentEvent,
    RECEIPT_REJECTION_REASON,
    PENDING_COUNTS_CACHE_KEY,
)
from .assessment import (
    ASSESSMENT_DAYS,
    MIN_RAW_SCORE,
    MAX_RAW_SCORE,
    SCORE_AREAS,
    AssessmentResponse,
    THINKING_TASKS,
    SELF_CARE_ITEMS,
    SELF_CARE_ITEM_IDS,
)

__all__ = [
    'StudentStatus',
    'Division',
    'ApplicationStatus',
    'EnrollmentEvent',
    'RECEIPT_REJECTION_REASON',
    'PENDING_COUNTS_CACHE_KEY',
    'ASSESSMENT_DAYS',
    'MIN_RAW_SCORE',
    'MAX_RAW_SCORE',
    'SCORE_AREAS',
    'AssessmentResponse',
    'THINKING_TASKS',
    'SELF_CARE_ITEMS',
    'SELF_CARE_ITEM_IDS',
]
