# admissions/workflow.py
"""
Enrollment state machine: the single transition table and its guard.

Only the transitions listed here are valid. Events that act on a student
without moving it (saving assessment data) are listed with the state as
its own target.
"""
import logging

from django.utils import timezone

from core.exceptions import InvalidTransitionError
from shared.constants import EnrollmentEvent, StudentStatus

logger = logging.getLogger(__name__)

TRANSITIONS = {
    (StudentStatus.WAITING_PAYMENT, EnrollmentEvent.SUBMIT_RECEIPT): (
        StudentStatus.PAYMENT_VERIFICATION,
    ),
    (StudentStatus.PAYMENT_VERIFICATION, EnrollmentEvent.VERIFY_RECEIPT): (
        StudentStatus.ASSESSMENT,
        StudentStatus.ENROLLED,
        StudentStatus.WAITING_PAYMENT,
    ),
    (StudentStatus.PAYMENT_VERIFICATION, EnrollmentEvent.REJECT_PAYMENT): (
        StudentStatus.WAITING_PAYMENT,
    ),
    (StudentStatus.ASSESSMENT, EnrollmentEvent.SAVE_ASSESSMENT_DAY): (
        StudentStatus.ASSESSMENT,
    ),
    (StudentStatus.ASSESSMENT, EnrollmentEvent.SAVE_PARENT_SELF_CARE): (
        StudentStatus.ASSESSMENT,
    ),
    (StudentStatus.ASSESSMENT, EnrollmentEvent.FINALIZE_ASSESSMENT): (
        StudentStatus.ENROLLED,
    ),
}


def allowed_targets(status, event):
    return TRANSITIONS.get((StudentStatus(status), event), ())


def allowed_events(status):
    status = StudentStatus(status)
    return [event for (state, event) in TRANSITIONS if state == status]


def check_transition(status, event, target=None):
    """
    Raise InvalidTransitionError unless ``event`` is valid from ``status``
    (and, when given, leads to ``target``). Returns the allowed targets.
    """
    targets = allowed_targets(status, event)
    if not targets or (target is not None and target not in targets):
        raise InvalidTransitionError(status, event, target)
    return targets


def history_entry(from_status, to_status, event, notes=''):
    return {
        'from_status': str(from_status) if from_status else None,
        'to_status': str(to_status),
        'event': event,
        'changed_at': timezone.now().isoformat(),
        'notes': notes,
    }


def apply_transition(student, event, target=None, notes='', expected_version=None, **fields):
    """
    Guarded dispatcher: validate ``event`` against the table, write the new
    status together with ``fields`` as one versioned update, record history
    and announce the change.

    Events that keep the student in place still bump the version so
    concurrent writers to the same aggregate are detected.
    """
    from students.models import Student

    from .signals import student_status_changed

    current = StudentStatus(student.student_status)
    targets = check_transition(current, event, target)
    if target is None:
        if len(targets) != 1:
            raise InvalidTransitionError(current, event)
        target = targets[0]

    if target != current:
        fields['status_history'] = list(student.status_history or []) + [
            history_entry(current, target, event, notes)
        ]
    fields['student_status'] = target

    Student.objects.versioned_update(student, expected_version, **fields)

    if target != current:
        logger.info(f"Student {student.pk}: {current} -> {target} ({event})")
        student_status_changed.send(
            sender=Student,
            student=student,
            from_status=current,
            to_status=target,
            event=event,
        )
    return student
