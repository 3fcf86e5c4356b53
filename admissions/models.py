# admissions/models.py
import datetime
import logging

from django.db import models
from django.utils import timezone

# SHARED IMPORTS
from shared.constants import ApplicationStatus, Division

logger = logging.getLogger(__name__)


class Application(models.Model):
    """
    Intake record submitted by a parent/guardian.
    Never changed after approval except for the office-review fields.
    """
    GENDER_CHOICES = (
        ('Male', 'Male'),
        ('Female', 'Female'),
    )

    OFFICE_FIELDS = (
        'office_reviewer',
        'office_review_date',
        'office_status',
        'office_response_method',
        'office_response_date',
    )

    status = models.CharField(max_length=20, choices=ApplicationStatus.choices, default=ApplicationStatus.PENDING)
    submitted_at = models.DateTimeField(default=timezone.now)

    # Learner details
    surname = models.CharField(max_length=150)
    first_name = models.CharField(max_length=150)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    citizenship = models.CharField(max_length=100, blank=True)
    address = models.TextField(blank=True)
    region = models.CharField(max_length=100, blank=True)

    division = models.CharField(max_length=20, choices=Division.choices, default=Division.MAINSTREAM)
    grade = models.CharField(max_length=50, blank=True, help_text="Grade applied for (mainstream)")
    special_needs_type = models.CharField(max_length=255, blank=True)

    # Parent details
    father_name = models.CharField(max_length=255, blank=True)
    father_phone = models.CharField(max_length=30, blank=True)
    father_email = models.EmailField(blank=True)
    mother_name = models.CharField(max_length=255, blank=True)
    mother_phone = models.CharField(max_length=30, blank=True)
    mother_email = models.EmailField(blank=True)

    # Emergency contact
    emergency_name = models.CharField(max_length=255, blank=True)
    emergency_relationship = models.CharField(max_length=100, blank=True)
    emergency_cell = models.CharField(max_length=30, blank=True)
    emergency_email = models.EmailField(blank=True)

    details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Medical, previous school, languages, medical aid and consents"
    )

    # Office use
    office_reviewer = models.CharField(max_length=255, blank=True)
    office_review_date = models.DateField(null=True, blank=True)
    office_status = models.CharField(max_length=50, blank=True)
    office_response_method = models.CharField(max_length=50, blank=True)
    office_response_date = models.DateField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'admissions_application'
        verbose_name = 'Application'
        verbose_name_plural = 'Applications'
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['submitted_at']),
        ]
        ordering = ['-submitted_at']

    def __str__(self):
        return f"Application {self.pk} - {self.learner_name}"

    def clean(self):
        """Validate application data."""
        from django.core.exceptions import ValidationError

        dob_checked = isinstance(self.date_of_birth, datetime.date) and isinstance(self.submitted_at, datetime.datetime)
        if dob_checked and self.date_of_birth > self.submitted_at.date():
            raise ValidationError({'date_of_birth': 'Date of birth cannot be after the application date.'})

        if self.division == Division.MAINSTREAM and not self.grade:
            raise ValidationError({'grade': 'Mainstream applications must name the grade applied for.'})

        if not (self.father_name or self.mother_name):
            raise ValidationError({'father_name': 'At least one parent or guardian name is required.'})

    @property
    def learner_name(self):
        return f"{self.first_name} {self.surname}".strip()

    @property
    def parent_name(self):
        return self.father_name or self.mother_name

    @property
    def parent_email(self):
        return self.father_email or self.mother_email

    @property
    def parent_phone(self):
        return self.father_phone or self.mother_phone

    @property
    def is_special_needs(self):
        return self.division == Division.SPECIAL_NEEDS

    @property
    def age_at_application(self):
        """Whole years of age on the submission date."""
        on = self.submitted_at.date() if self.submitted_at else timezone.now().date()
        dob = self.date_of_birth
        age = on.year - dob.year
        if (on.month, on.day) < (dob.month, dob.day):
            age -= 1
        return age
