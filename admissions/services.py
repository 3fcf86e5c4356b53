# admissions/services.py
"""
Application review and the enrollment lifecycle of an admitted student.

Every student write goes through admissions.workflow.apply_transition so the
transition table, version stamp and status history are applied uniformly.
"""
import logging
import secrets

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from billing.services import ReceiptLedger
from core.exceptions import AuthenticationError, NotFoundError, ValidationError
from core.services import IdentityAllocator
from shared.constants import (
    ApplicationStatus,
    Division,
    EnrollmentEvent,
    RECEIPT_REJECTION_REASON,
    StudentStatus,
)
from students.models import AssessmentDay, SelfCareAssessment, Student
from students.placement import assigned_class_for, resolve_stage
from students.scoring import score_assessment_day, score_self_care

from .models import Application
from .notifications import compose
from .workflow import apply_transition, check_transition, history_entry

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_BANDS = (
    (7, 'Level 1'),
    (12, 'Level 2'),
    (None, 'Level 3'),
)


def level_for_age(age):
    """Special-needs level from whole years of age; bands are inclusive upper bounds."""
    bands = getattr(settings, 'SPECIAL_NEEDS_LEVEL_BANDS', DEFAULT_LEVEL_BANDS)
    for max_age, level in bands:
        if max_age is None or age <= max_age:
            return level
    return bands[-1][1]


def generate_parent_pin():
    length = getattr(settings, 'PARENT_PIN_LENGTH', 4)
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def in_cohort(assigned_class, cohort):
    """True when ``assigned_class`` is the cohort itself or one of its stages."""
    if not assigned_class or not cohort:
        return False
    return assigned_class == cohort or assigned_class.startswith(f"{cohort} - ")


def _notify(template_key, student, **extra):
    """Compose a parent notice, or None (with a warning) when no email is on file."""
    if not student.parent_email:
        logger.warning(f"No parent email for {student.pk}; '{template_key}' notice must be sent by hand")
        return None
    return compose(template_key, student=student, **extra)


class ApplicationService:
    """Intake and office review of admission applications."""

    EDITABLE_FIELDS = frozenset(
        field.name for field in Application._meta.concrete_fields
        if field.name not in ('id', 'status', 'submitted_at', 'updated_at') + Application.OFFICE_FIELDS
    )

    @staticmethod
    def submit(data):
        """
        Record a new PENDING application. The submission time is always the
        server clock; the learner's age (and so the level) is measured on it.
        """
        unknown = sorted(set(data) - ApplicationService.EDITABLE_FIELDS)
        if unknown:
            logger.debug(f"Ignoring unknown application fields: {unknown}")

        application = Application(
            submitted_at=timezone.now(),
            **{
                key: value for key, value in data.items()
                if key in ApplicationService.EDITABLE_FIELDS
            }
        )
        try:
            application.full_clean()
        except DjangoValidationError as e:
            logger.warning(f"Application rejected at intake: {e.message_dict}")
            raise ValidationError("Please correct the application form.", details=e.message_dict)

        application.save()
        logger.info(f"Application {application.pk} submitted for {application.learner_name}")
        return application

    @staticmethod
    def get_application(application_id, lock=False):
        queryset = Application.objects.select_for_update() if lock else Application.objects
        try:
            return queryset.get(pk=application_id)
        except Application.DoesNotExist:
            raise NotFoundError(
                f"Application {application_id} was not found.",
                details={'application_id': application_id}
            )

    @staticmethod
    def _office_fields(office_data):
        fields = {
            key: value for key, value in (office_data or {}).items()
            if key in Application.OFFICE_FIELDS
        }
        fields.setdefault('office_review_date', timezone.localdate())
        return fields

    @staticmethod
    @transaction.atomic
    def approve(application_id, office_data=None):
        """
        Approve a pending application and enroll the learner.

        Returns:
            dict with ``student``, ``parent_pin`` and the conditional-approval
            ``notification`` payload
        """
        application = ApplicationService.get_application(application_id, lock=True)
        if application.status != ApplicationStatus.PENDING:
            raise ValidationError(
                f"Application {application.pk} has already been {application.status.lower()}.",
                details={'application_id': application.pk, 'status': application.status}
            )

        for key, value in ApplicationService._office_fields(office_data).items():
            setattr(application, key, value)
        application.status = ApplicationStatus.APPROVED
        application.save()

        student = EnrollmentService.enroll(application)

        notification = _notify(
            'conditional_approval',
            student,
            application=application,
            parent_pin=student.parent_pin,
        )

        logger.info(f"Application {application.pk} approved as student {student.pk}")
        return {
            'student': student,
            'parent_pin': student.parent_pin,
            'notification': notification,
        }

    @staticmethod
    @transaction.atomic
    def reject(application_id, office_data=None):
        application = ApplicationService.get_application(application_id, lock=True)
        if application.status != ApplicationStatus.PENDING:
            raise ValidationError(
                f"Application {application.pk} has already been {application.status.lower()}.",
                details={'application_id': application.pk, 'status': application.status}
            )

        for key, value in ApplicationService._office_fields(office_data).items():
            setattr(application, key, value)
        application.status = ApplicationStatus.REJECTED
        application.save()

        logger.info(f"Application {application.pk} rejected")
        return application

    @staticmethod
    def update_office_review(application_id, office_data):
        """Office-use metadata is the only part of an application editable after review."""
        application = ApplicationService.get_application(application_id)
        fields = {
            key: value for key, value in (office_data or {}).items()
            if key in Application.OFFICE_FIELDS
        }
        for key, value in fields.items():
            setattr(application, key, value)
        application.save(update_fields=list(fields) + ['updated_at'])
        return application


class EnrollmentService:
    """
    Drives a student through WAITING_PAYMENT -> PAYMENT_VERIFICATION ->
    ASSESSMENT (special needs only) -> ENROLLED.

    Each operation accepts an optional ``expected_version`` taken from an
    earlier read; the write is refused with ConcurrencyError if the student
    changed in between.
    """

    @staticmethod
    def get_student(student_id, lock=False):
        queryset = Student.objects.select_for_update() if lock else Student.objects
        try:
            return queryset.get(pk=student_id)
        except Student.DoesNotExist:
            raise NotFoundError(
                f"Student {student_id} was not found.",
                details={'student_id': student_id}
            )

    @staticmethod
    def check_parent_pin(student_id, pin):
        """
        Bind a parent action to one learner: the PIN issued on approval must
        match. Raises AuthenticationError otherwise.
        """
        student = EnrollmentService.get_student(student_id)
        supplied = (pin or '').strip()
        if not (supplied and student.parent_pin
                and secrets.compare_digest(student.parent_pin.encode(), supplied.encode())):
            logger.warning(f"Parent PIN check failed for {student.pk}")
            raise AuthenticationError(
                "The student number and PIN do not match.",
                details={'student_id': student.pk}
            )
        return student

    # ============ ENROLL ============

    @staticmethod
    @transaction.atomic
    def enroll(application):
        """Create the student record for an approved application."""
        if application.status != ApplicationStatus.APPROVED:
            raise ValidationError(
                "Only approved applications can be enrolled.",
                details={'application_id': application.pk, 'status': application.status}
            )
        if Student.objects.filter(application=application).exists():
            raise ValidationError(
                f"Application {application.pk} already has a student record.",
                details={'application_id': application.pk}
            )

        if application.division == Division.SPECIAL_NEEDS:
            level = level_for_age(application.age_at_application)
            base_class = level
        else:
            level = ''
            base_class = application.grade

        student = Student.objects.create(
            id=IdentityAllocator.allocate(),
            application=application,
            first_name=application.first_name,
            surname=application.surname,
            date_of_birth=application.date_of_birth,
            parent_name=application.parent_name,
            parent_email=application.parent_email,
            parent_phone=application.parent_phone,
            parent_pin=generate_parent_pin(),
            division=application.division,
            level=level,
            grade=application.grade,
            student_status=StudentStatus.WAITING_PAYMENT,
            assigned_class=base_class,
            status_history=[
                history_entry(None, StudentStatus.WAITING_PAYMENT, EnrollmentEvent.ENROLL)
            ],
        )

        from .signals import student_status_changed
        student_status_changed.send(
            sender=Student,
            student=student,
            from_status=None,
            to_status=StudentStatus.WAITING_PAYMENT,
            event=EnrollmentEvent.ENROLL,
        )

        logger.info(f"Student {student.pk} enrolled ({student.division}, {base_class})")
        return student

    # ============ PAYMENT ============

    @staticmethod
    @transaction.atomic
    def submit_receipt(student_id, receipt_number, expected_version=None):
        """Parent quotes a receipt number; staff verification follows."""
        number = (receipt_number or '').strip()
        if not number:
            raise ValidationError("Please enter your receipt number.")

        student = EnrollmentService.get_student(student_id, lock=True)
        apply_transition(
            student,
            EnrollmentEvent.SUBMIT_RECEIPT,
            StudentStatus.PAYMENT_VERIFICATION,
            notes=f"Receipt {number} submitted",
            expected_version=expected_version,
            receipt_number=number,
            receipt_submitted_at=timezone.now(),
            payment_rejected=False,
            payment_rejection_reason='',
        )
        return student

    @staticmethod
    @transaction.atomic
    def verify_receipt(student_id, receipt_number=None, expected_version=None):
        """
        Consume the receipt and advance the student.

        Special-needs students move to ASSESSMENT, mainstream students straight
        to ENROLLED. An unknown or already used receipt sends the student back
        to WAITING_PAYMENT with ``payment_rejected`` set; no receipt changes
        in that case.
        """
        student = EnrollmentService.get_student(student_id, lock=True)
        check_transition(student.student_status, EnrollmentEvent.VERIFY_RECEIPT)

        number = (receipt_number or student.receipt_number or '').strip()
        target = StudentStatus.ASSESSMENT if student.is_special_needs else StudentStatus.ENROLLED

        fields = {
            'receipt_number': number,
            'payment_rejected': False,
            'payment_rejection_reason': '',
        }
        if target == StudentStatus.ENROLLED:
            fields['enrolled_at'] = timezone.now()

        try:
            with transaction.atomic():
                ReceiptLedger.consume(number, student)
                apply_transition(
                    student,
                    EnrollmentEvent.VERIFY_RECEIPT,
                    target,
                    notes=f"Receipt {number} verified",
                    expected_version=expected_version,
                    **fields
                )
        except NotFoundError as e:
            logger.warning(f"Payment verification failed for {student.pk}: {e.message}")
            apply_transition(
                student,
                EnrollmentEvent.VERIFY_RECEIPT,
                StudentStatus.WAITING_PAYMENT,
                notes=e.message,
                expected_version=expected_version,
                payment_rejected=True,
                payment_rejection_reason=RECEIPT_REJECTION_REASON,
            )
        return student

    @staticmethod
    @transaction.atomic
    def reject_payment(student_id, reason='', expected_version=None):
        """Staff turn down a submitted receipt without consulting the ledger."""
        student = EnrollmentService.get_student(student_id, lock=True)
        reason = (reason or '').strip() or RECEIPT_REJECTION_REASON
        apply_transition(
            student,
            EnrollmentEvent.REJECT_PAYMENT,
            StudentStatus.WAITING_PAYMENT,
            notes=reason,
            expected_version=expected_version,
            payment_rejected=True,
            payment_rejection_reason=reason,
        )
        logger.info(f"Payment rejected for {student.pk}")
        return student

    @staticmethod
    def payment_notice(student):
        """
        The ``payment_rejected`` notice for a student whose receipt was just
        turned down; None when the payment is not in a rejected state.
        """
        if not student.payment_rejected:
            return None
        return _notify('payment_rejected', student, reason=student.payment_rejection_reason)

    # ============ ASSESSMENT ============

    @staticmethod
    @transaction.atomic
    def save_assessment_day(student_id, day, raw, expected_version=None):
        """Score and store one observation day. Saving a day again overwrites it."""
        student = EnrollmentService.get_student(student_id, lock=True)
        check_transition(student.student_status, EnrollmentEvent.SAVE_ASSESSMENT_DAY)

        scored = score_assessment_day(day, raw)
        scored.pop('day')
        record, created = AssessmentDay.objects.update_or_create(
            student=student,
            day=day,
            defaults={**scored, 'date': timezone.now()},
        )

        apply_transition(
            student,
            EnrollmentEvent.SAVE_ASSESSMENT_DAY,
            expected_version=expected_version,
        )
        logger.info(
            f"Day {day} {'recorded' if created else 'updated'} for {student.pk}: "
            f"total {record.daily_total_score}"
        )
        return record

    @staticmethod
    @transaction.atomic
    def save_parent_self_care(student_id, raw, amend=False, expected_version=None):
        """
        Store the parent questionnaire. A second submission is refused unless
        ``amend`` is set, in which case the earlier answers are replaced.
        """
        student = EnrollmentService.get_student(student_id, lock=True)
        check_transition(student.student_status, EnrollmentEvent.SAVE_PARENT_SELF_CARE)

        scored = score_self_care(raw)
        existing = SelfCareAssessment.objects.filter(student=student).first()

        if existing and not amend:
            raise ValidationError(
                "The self-care questionnaire has already been submitted.",
                details={'already_submitted': True, 'completed_date': existing.completed_date.isoformat()}
            )

        if existing:
            for key, value in scored.items():
                setattr(existing, key, value)
            existing.amended_at = timezone.now()
            existing.save()
            record = existing
        else:
            record = SelfCareAssessment.objects.create(student=student, **scored)

        apply_transition(
            student,
            EnrollmentEvent.SAVE_PARENT_SELF_CARE,
            expected_version=expected_version,
        )
        logger.info(
            f"Self-care {'amended' if existing else 'submitted'} for {student.pk}: "
            f"score {record.calculated_score}"
        )
        return record

    @staticmethod
    @transaction.atomic
    def finalize_assessment(student_id, teacher_class=None, expected_version=None):
        """
        Resolve the placement stage and enroll the student.

        Returns:
            dict with ``student``, ``stage``, ``final_average``,
            ``assigned_class``, ``stays_in_cohort`` (None when no
            ``teacher_class`` was given) and the ``placement_complete``
            ``notification`` payload

        Raises:
            ValidationError: fewer than 14 completed days, or no parent
            self-care record. Nothing is written in that case.
        """
        student = EnrollmentService.get_student(student_id, lock=True)
        check_transition(
            student.student_status,
            EnrollmentEvent.FINALIZE_ASSESSMENT,
            StudentStatus.ENROLLED,
        )

        days = {
            record.day: {'completed': record.completed, 'daily_total_score': record.daily_total_score}
            for record in student.assessment_days.all()
        }
        self_care = SelfCareAssessment.objects.filter(student=student).first()
        result = resolve_stage(days, self_care.calculated_score if self_care else None)

        assigned_class = assigned_class_for(student.base_class, result['stage'])
        now = timezone.now()

        apply_transition(
            student,
            EnrollmentEvent.FINALIZE_ASSESSMENT,
            StudentStatus.ENROLLED,
            notes=f"Stage {result['stage']} ({result['final_average']})",
            expected_version=expected_version,
            teacher_average=result['teacher_average'],
            parent_score=result['parent_score'],
            final_average=result['final_average'],
            stage=result['stage'],
            assessment_complete=True,
            assessment_completed_at=now,
            assigned_class=assigned_class,
            enrolled_at=now,
        )

        stays = in_cohort(assigned_class, teacher_class) if teacher_class else None
        logger.info(
            f"Assessment finalized for {student.pk}: stage {result['stage']}, "
            f"final average {result['final_average']}, class {assigned_class}"
        )
        return {
            'student': student,
            'stage': result['stage'],
            'final_average': result['final_average'],
            'assigned_class': assigned_class,
            'stays_in_cohort': stays,
            'notification': _notify('placement_complete', student),
        }
