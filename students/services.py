# students/services.py
"""
STUDENT SERVICES - read accessors for admin, teacher and parent screens.
Nothing here writes to a student; state changes live in admissions.services.
"""
import logging
from typing import Dict, List

from django.apps import apps
from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Q, QuerySet, Value
from django.db.models.functions import Concat

# SHARED IMPORTS
from shared.constants import (
    ASSESSMENT_DAYS,
    PENDING_COUNTS_CACHE_KEY,
    ApplicationStatus,
    StudentStatus,
)
from core.exceptions import NotFoundError, ValidationError

from .models import SelfCareAssessment, Student
from .scoring import day_percentage, thinking_task_for_day

logger = logging.getLogger(__name__)


# ============ HELPER FUNCTIONS ============

def _get_model(model_name: str, app_label: str = 'students'):
    """Get model lazily to avoid circular imports."""
    try:
        return apps.get_model(app_label, model_name)
    except LookupError as e:
        logger.error(f"Model not found: {app_label}.{model_name} - {e}")
        raise


class StudentQueryService:
    """Lookups over the student aggregate."""

    @staticmethod
    def get_student_by_id(student_id: str) -> Student:
        try:
            return Student.objects.select_related('application').get(pk=student_id)
        except Student.DoesNotExist:
            raise NotFoundError(
                f"Student {student_id} was not found.",
                details={'student_id': student_id}
            )

    @staticmethod
    def get_students() -> QuerySet:
        return Student.objects.order_by('id')

    @staticmethod
    def get_students_by_status(status: str) -> QuerySet:
        if status not in StudentStatus.values:
            raise ValidationError(
                f"Unknown student status '{status}'.",
                details={'status': status, 'allowed': StudentStatus.values}
            )
        return Student.objects.filter(student_status=status).order_by('id')

    @staticmethod
    def get_students_by_assigned_class(assigned_class: str, include_stages: bool = False) -> QuerySet:
        """
        Students in ``assigned_class``. With ``include_stages`` a teacher's
        cohort such as ``Level 2`` also matches ``Level 2 - Stage 1`` etc.
        """
        condition = Q(assigned_class=assigned_class)
        if include_stages:
            condition |= Q(assigned_class__startswith=f"{assigned_class} - ")
        return Student.objects.filter(condition).order_by('id')

    @staticmethod
    def search_students(term: str) -> QuerySet:
        """Case-insensitive match on first name, surname or full name. A blank term matches nobody."""
        term = (term or '').strip()
        if not term:
            return Student.objects.none()
        return Student.objects.annotate(
            search_name=Concat('first_name', Value(' '), 'surname')
        ).filter(
            Q(first_name__icontains=term)
            | Q(surname__icontains=term)
            | Q(search_name__icontains=term)
        ).order_by('id')

    # ============ PENDING ACTIONS ============

    @staticmethod
    def get_pending_action_counts() -> Dict[str, int]:
        """
        Sidebar badge counts. ``total`` covers the items office staff act on:
        applications waiting for review and receipts waiting for verification.

        Counts read inside an open transaction are only cached once it
        commits, so a rolled-back change never reaches the cache.
        """
        counts = cache.get(PENDING_COUNTS_CACHE_KEY)
        if counts is not None:
            return counts

        Application = _get_model('Application', 'admissions')
        applications = Application.objects.filter(status=ApplicationStatus.PENDING).count()
        payment_verifications = Student.objects.filter(
            student_status=StudentStatus.PAYMENT_VERIFICATION
        ).count()
        assessments = Student.objects.filter(student_status=StudentStatus.ASSESSMENT).count()

        counts = {
            'applications': applications,
            'payment_verifications': payment_verifications,
            'assessments': assessments,
            'total': applications + payment_verifications,
        }
        timeout = getattr(settings, 'PENDING_COUNTS_CACHE_TIMEOUT', 300)
        transaction.on_commit(lambda: cache.set(PENDING_COUNTS_CACHE_KEY, counts, timeout))
        return counts

    @staticmethod
    def invalidate_pending_counts():
        """Drop the counts now and again when the current transaction commits."""
        cache.delete(PENDING_COUNTS_CACHE_KEY)
        transaction.on_commit(lambda: cache.delete(PENDING_COUNTS_CACHE_KEY))

    # ============ ASSESSMENT PROGRESS ============

    @staticmethod
    def assessment_progress(student: Student) -> Dict:
        """Per-day view of the 14-day observation for the teacher dashboard."""
        records = {record.day: record for record in student.assessment_days.all()}

        days: List[Dict] = []
        for day in range(1, ASSESSMENT_DAYS + 1):
            record = records.get(day)
            task = thinking_task_for_day(day)
            total = record.daily_total_score if record else None
            days.append({
                'day': day,
                'thinking_task_id': task['id'],
                'thinking_task_description': task['description'],
                'completed': bool(record and record.completed),
                'daily_total_score': total,
                'percentage': day_percentage(total),
            })

        completed = sum(1 for entry in days if entry['completed'])
        has_self_care = SelfCareAssessment.objects.filter(student=student).exists()

        return {
            'student_id': student.pk,
            'days': days,
            'completed_days': completed,
            'total_days': ASSESSMENT_DAYS,
            'percent_complete': round(completed * 100 / ASSESSMENT_DAYS),
            'parent_self_care_submitted': has_self_care,
            'ready_to_finalize': (
                student.student_status == StudentStatus.ASSESSMENT
                and completed == ASSESSMENT_DAYS
                and has_self_care
            ),
        }
