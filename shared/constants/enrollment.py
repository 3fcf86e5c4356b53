# shared/constants/enrollment.py

"""
Enrollment vocabulary shared by admissions, students and billing.
NO MODEL IMPORTS - safe to import from anywhere.
"""
from django.db import models


class StudentStatus(models.TextChoices):
    WAITING_PAYMENT = 'WAITING_PAYMENT', 'Waiting for Payment'
    PAYMENT_VERIFICATION = 'PAYMENT_VERIFICATION', 'Payment Verification'
    ASSESSMENT = 'ASSESSMENT', 'Assessment'
    ENROLLED = 'ENROLLED', 'Enrolled'


class Division(models.TextChoices):
    MAINSTREAM = 'Mainstream', 'Mainstream'
    SPECIAL_NEEDS = 'Special Needs', 'Special Needs'


class ApplicationStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


# Events understood by the enrollment state machine
class EnrollmentEvent:
    ENROLL = 'enroll'
    SUBMIT_RECEIPT = 'submit_receipt'
    VERIFY_RECEIPT = 'verify_receipt'
    REJECT_PAYMENT = 'reject_payment'
    SAVE_ASSESSMENT_DAY = 'save_assessment_day'
    SAVE_PARENT_SELF_CARE = 'save_parent_self_care'
    FINALIZE_ASSESSMENT = 'finalize_assessment'


# Shown to the parent when a receipt cannot be used
RECEIPT_REJECTION_REASON = (
    "The receipt number you provided was invalid or already used. "
    "Please check your receipt and try again."
)

PENDING_COUNTS_CACHE_KEY = 'admissions_pending_action_counts'
