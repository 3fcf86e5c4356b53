# admissions/signals.py
import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from .models import Application

logger = logging.getLogger(__name__)

# Sent after every enrollment status change.
# kwargs: student, from_status, to_status, event
student_status_changed = Signal()


@receiver(student_status_changed)
def handle_student_status_change(sender, student, from_status, to_status, event, **kwargs):
    """Drop cached badge counts whenever a student moves between states."""
    from students.services import StudentQueryService

    logger.debug(f"Status change received for {student.pk}: {from_status} -> {to_status} ({event})")
    StudentQueryService.invalidate_pending_counts()


@receiver(post_save, sender=Application)
@receiver(post_delete, sender=Application)
def handle_application_change(sender, instance, **kwargs):
    """Pending-application counts change with every intake or review."""
    from students.services import StudentQueryService

    StudentQueryService.invalidate_pending_counts()
