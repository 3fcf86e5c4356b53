# admissions/notifications.py
"""
Notification composer. Produces ready-to-send messages; delivery is
handled outside this project.
"""
import logging

from django.template.loader import render_to_string

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

SUBJECTS = {
    'conditional_approval': "Conditional Approval - {learner_name}",
    'payment_rejected': "Registration Payment Not Verified - {learner_name}",
    'placement_complete': "Class Placement - {learner_name}",
}

TEMPLATE_KEYS = tuple(SUBJECTS)


def compose(template_key, student=None, application=None, **extra):
    """
    Render the ``template_key`` message for a student and/or application.

    Returns:
        dict with ``to``, ``subject`` and ``body``
    """
    if template_key not in SUBJECTS:
        raise ValidationError(
            f"Unknown notification template '{template_key}'.",
            details={'template_key': template_key, 'available': list(TEMPLATE_KEYS)}
        )
    if student is None and application is None:
        raise ValidationError("A notification needs a student or an application.")

    if application is None:
        application = student.application

    recipient = (student.parent_email if student else '') or application.parent_email
    if not recipient:
        raise ValidationError(
            f"No parent email on file for application {application.pk}.",
            details={'application_id': application.pk}
        )

    context = {
        'student': student,
        'application': application,
        'learner_name': student.full_name if student else application.learner_name,
        'parent_name': (student.parent_name if student else '') or application.parent_name,
        **extra,
    }

    message = {
        'to': recipient,
        'subject': SUBJECTS[template_key].format(learner_name=context['learner_name']),
        'body': render_to_string(f'admissions/notifications/{template_key}.txt', context).strip(),
    }
    logger.info(f"Composed '{template_key}' notification for {recipient}")
    return message
