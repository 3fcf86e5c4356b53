# students/placement.py
"""
Stage resolver: combines the 14 teacher day totals with the parent
self-care score into a final placement stage.
"""
from decimal import Decimal

from core.exceptions import ValidationError
from shared.constants import ASSESSMENT_DAYS
from shared.constants.assessment import (
    DEFAULT_STAGE,
    PARENT_WEIGHT,
    STAGE_THRESHOLDS,
    TEACHER_WEIGHT,
)

from .scoring import round_score


def stage_for(final_average):
    """Thresholds are checked from the highest stage down."""
    for threshold, stage in STAGE_THRESHOLDS:
        if final_average >= threshold:
            return stage
    return DEFAULT_STAGE


def assigned_class_for(base_class, stage):
    return f"{base_class} - Stage {stage}"


def missing_days(days):
    """Day numbers 1..14 without a completed record."""
    return [
        day for day in range(1, ASSESSMENT_DAYS + 1)
        if not (days.get(day) and days[day].get('completed'))
    ]


def resolve_stage(days, parent_score):
    """
    Args:
        days: mapping of day number -> {'completed': bool, 'daily_total_score': Decimal}
        parent_score: parent self-care score (0-5) or None

    Returns:
        dict with teacher_average, parent_score, final_average and stage

    Raises:
        ValidationError: fewer than 14 completed days or no parent score
    """
    missing = missing_days(days)
    if missing:
        raise ValidationError(
            f"Assessment incomplete: {len(missing)} of {ASSESSMENT_DAYS} days still to be recorded.",
            details={'missing_days': missing}
        )
    if parent_score is None:
        raise ValidationError(
            "Assessment incomplete: the parent self-care questionnaire has not been submitted.",
            details={'missing_parent_self_care': True}
        )

    totals = [Decimal(days[day]['daily_total_score']) for day in range(1, ASSESSMENT_DAYS + 1)]
    teacher_average = sum(totals, Decimal('0')) / ASSESSMENT_DAYS
    parent_score = Decimal(parent_score)
    final_average = round_score(teacher_average * TEACHER_WEIGHT + parent_score * PARENT_WEIGHT)

    return {
        'teacher_average': round_score(teacher_average),
        'parent_score': parent_score,
        'final_average': final_average,
        'stage': stage_for(final_average),
    }
