# students/models.py
"""
Student aggregate and the records of its 14-day observation.
"""
import logging

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone

# SHARED IMPORTS
from shared.constants import (
    ASSESSMENT_DAYS,
    MAX_RAW_SCORE,
    MIN_RAW_SCORE,
    AssessmentResponse,
    Division,
    StudentStatus,
)
from core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)

SCORE_VALIDATORS = [MinValueValidator(MIN_RAW_SCORE), MaxValueValidator(MAX_RAW_SCORE)]


class StudentManager(models.Manager):

    def versioned_update(self, student, expected_version=None, **fields):
        """
        Write ``fields`` only if the row still carries ``expected_version``.

        The version is bumped on every successful write and the in-memory
        instance is brought up to date. Raises ConcurrencyError when another
        writer got there first.
        """
        version = student.version if expected_version is None else expected_version
        fields['updated_at'] = timezone.now()

        updated = self.filter(pk=student.pk, version=version).update(
            version=F('version') + 1,
            **fields
        )
        if not updated:
            logger.warning(f"Stale write rejected for student {student.pk} at version {version}")
            raise ConcurrencyError(
                "This student record was changed by someone else. Reload and try again.",
                details={'student_id': student.pk, 'expected_version': version}
            )

        for name, value in fields.items():
            setattr(student, name, value)
        student.version = version + 1
        return student


class Student(models.Model):
    """
    Learner admitted from an approved application.
    ``student_status`` only moves through admissions.workflow.
    """
    STAGE_CHOICES = (
        (1, 'Stage 1'),
        (2, 'Stage 2'),
        (3, 'Stage 3'),
    )

    id = models.CharField(primary_key=True, max_length=20, editable=False)
    application = models.OneToOneField(
        'admissions.Application',
        on_delete=models.PROTECT,
        related_name='student'
    )

    first_name = models.CharField(max_length=150)
    surname = models.CharField(max_length=150)
    date_of_birth = models.DateField()
    parent_name = models.CharField(max_length=255, blank=True)
    parent_email = models.EmailField(blank=True)
    parent_phone = models.CharField(max_length=30, blank=True)
    parent_pin = models.CharField(max_length=10)

    division = models.CharField(max_length=20, choices=Division.choices)
    level = models.CharField(max_length=50, blank=True, help_text="Special-needs level from age at application")
    grade = models.CharField(max_length=50, blank=True, help_text="Mainstream grade")

    student_status = models.CharField(
        max_length=30,
        choices=StudentStatus.choices,
        default=StudentStatus.WAITING_PAYMENT
    )
    status_history = models.JSONField(default=list, blank=True)

    # Payment gate
    receipt_number = models.CharField(max_length=50, blank=True)
    receipt_submitted_at = models.DateTimeField(null=True, blank=True)
    payment_rejected = models.BooleanField(default=False)
    payment_rejection_reason = models.CharField(max_length=255, blank=True)

    # Placement
    teacher_average = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    parent_score = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    final_average = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    stage = models.PositiveSmallIntegerField(choices=STAGE_CHOICES, null=True, blank=True)
    assessment_complete = models.BooleanField(default=False)
    assessment_completed_at = models.DateTimeField(null=True, blank=True)
    assigned_class = models.CharField(max_length=100, blank=True)

    version = models.PositiveIntegerField(default=0)
    enrolled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StudentManager()

    class Meta:
        db_table = 'students_student'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        indexes = [
            models.Index(fields=['student_status']),
            models.Index(fields=['assigned_class']),
            models.Index(fields=['division']),
        ]
        ordering = ['id']

    def __str__(self):
        return f"{self.full_name} ({self.id})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.surname}"

    @property
    def is_special_needs(self):
        return self.division == Division.SPECIAL_NEEDS

    @property
    def base_class(self):
        """Level for special-needs learners, grade otherwise."""
        return self.level if self.is_special_needs else self.grade


class AssessmentDay(models.Model):
    """One teacher observation day. Saving the same day again overwrites it."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='assessment_days')
    day = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(ASSESSMENT_DAYS)])

    # Main assessment, five areas scored /5
    numbers = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    reading = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    self_care = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    behaviour = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    senses = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)

    # Learn to think
    thinking_task_id = models.CharField(max_length=5)
    thinking_task_description = models.CharField(max_length=255)
    thinking_response = models.CharField(max_length=20, choices=AssessmentResponse.choices, blank=True)
    thinking_score = models.DecimalField(max_digits=3, decimal_places=2)

    # ABC behaviour
    abc_logs = models.JSONField(default=list, blank=True)
    abc_score = models.DecimalField(max_digits=3, decimal_places=2)

    daily_total_score = models.DecimalField(max_digits=3, decimal_places=2)
    completed = models.BooleanField(default=True)
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'students_assessment_day'
        unique_together = ['student', 'day']
        ordering = ['student', 'day']

    def __str__(self):
        return f"Day {self.day} - {self.student_id}"


class SelfCareAssessment(models.Model):
    """Parent questionnaire, nine items keyed s1..s9."""
    student = models.OneToOneField(Student, on_delete=models.CASCADE, related_name='parent_self_care')
    responses = models.JSONField(default=dict)
    comments = models.TextField(blank=True)
    calculated_score = models.DecimalField(max_digits=3, decimal_places=2)
    completed_date = models.DateTimeField(default=timezone.now)
    amended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'students_self_care_assessment'
        verbose_name = 'Self-Care Assessment'

    def __str__(self):
        return f"Self-care - {self.student_id} ({self.calculated_score})"
