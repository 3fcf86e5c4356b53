# admissions/tests/test_enrollment.py
import datetime
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.db import transaction
from django.test import TestCase, TransactionTestCase, override_settings

from admissions.models import Application
from admissions.services import (
    ApplicationService,
    EnrollmentService,
    in_cohort,
    level_for_age,
)
from billing.models import Receipt
from billing.services import ReceiptLedger
from core.exceptions import (
    AuthenticationError,
    ConcurrencyError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from core.models import IdentityCounter
from shared.constants import (
    PENDING_COUNTS_CACHE_KEY,
    RECEIPT_REJECTION_REASON,
    ApplicationStatus,
    StudentStatus,
)
from students.models import AssessmentDay, SelfCareAssessment, Student
from students.services import StudentQueryService

from .factories import (
    FOURS,
    application_data,
    approved_student,
    day_raw,
    mainstream_data,
    self_care_raw,
)


def to_assessment(student, number='R-1001'):
    ReceiptLedger.add(number, '1500.00')
    EnrollmentService.submit_receipt(student.pk, number)
    return EnrollmentService.verify_receipt(student.pk)


def record_all_days(student, raw=None):
    for day in range(1, 15):
        EnrollmentService.save_assessment_day(student.pk, day, raw or day_raw())


class ApplicationServiceTest(TestCase):

    def test_submit_creates_pending_application(self):
        application = ApplicationService.submit(application_data())
        self.assertEqual(application.status, ApplicationStatus.PENDING)
        self.assertEqual(application.learner_name, 'Tangeni Amupolo')
        self.assertEqual(application.age_at_application, 10)

    def test_submit_validates_form(self):
        with self.assertRaises(ValidationError) as ctx:
            ApplicationService.submit(mainstream_data(grade=''))
        self.assertIn('grade', ctx.exception.details)

        with self.assertRaises(ValidationError):
            ApplicationService.submit(application_data(mother_name='', father_name=''))

        self.assertFalse(Application.objects.exists())

    def test_submit_ignores_status_and_office_fields(self):
        application = ApplicationService.submit(application_data(
            status=ApplicationStatus.APPROVED,
            office_reviewer='Self approved',
        ))
        self.assertEqual(application.status, ApplicationStatus.PENDING)
        self.assertEqual(application.office_reviewer, '')

    def test_submission_time_comes_from_server(self):
        backdated = datetime.datetime(2019, 1, 15, 9, 0, tzinfo=datetime.timezone.utc)
        application = ApplicationService.submit(application_data(submitted_at=backdated))

        self.assertNotEqual(application.submitted_at, backdated)
        self.assertEqual(application.age_at_application, 10)
        student = ApplicationService.approve(application.pk)['student']
        self.assertEqual(student.level, 'Level 2')

    def test_approve_enrolls_and_composes_notice(self):
        application = ApplicationService.submit(application_data())
        result = ApplicationService.approve(application.pk, {'office_reviewer': 'Mrs Kandjii'})

        application.refresh_from_db()
        self.assertEqual(application.status, ApplicationStatus.APPROVED)
        self.assertEqual(application.office_reviewer, 'Mrs Kandjii')
        self.assertIsNotNone(application.office_review_date)

        student = result['student']
        self.assertEqual(student.pk, 'COHA-0001')
        self.assertEqual(student.application, application)
        self.assertRegex(result['parent_pin'], r'^\d{4}$')
        self.assertEqual(result['notification']['to'], 'selma@example.com')
        self.assertIn(result['parent_pin'], result['notification']['body'])

    def test_approve_without_email_still_enrolls(self):
        application = ApplicationService.submit(application_data(mother_email=''))
        result = ApplicationService.approve(application.pk)
        self.assertIsNone(result['notification'])
        self.assertTrue(Student.objects.filter(pk=result['student'].pk).exists())

    def test_approve_twice_rejected(self):
        application = ApplicationService.submit(application_data())
        ApplicationService.approve(application.pk)
        with self.assertRaises(ValidationError):
            ApplicationService.approve(application.pk)
        self.assertEqual(Student.objects.count(), 1)

    def test_reject(self):
        application = ApplicationService.submit(application_data())
        ApplicationService.reject(application.pk, {'office_status': 'Declined'})
        application.refresh_from_db()
        self.assertEqual(application.status, ApplicationStatus.REJECTED)
        self.assertFalse(Student.objects.exists())

        with self.assertRaises(ValidationError):
            ApplicationService.approve(application.pk)

    def test_unknown_application(self):
        with self.assertRaises(NotFoundError):
            ApplicationService.approve(9999)

    def test_office_review_update_after_approval(self):
        application = ApplicationService.submit(application_data())
        ApplicationService.approve(application.pk)
        ApplicationService.update_office_review(application.pk, {
            'office_response_method': 'Email',
            'surname': 'Changed',
        })
        application.refresh_from_db()
        self.assertEqual(application.office_response_method, 'Email')
        self.assertEqual(application.surname, 'Amupolo')


class EnrollTest(TestCase):

    def test_special_needs_enrollment(self):
        student = approved_student()
        self.assertEqual(student.student_status, StudentStatus.WAITING_PAYMENT)
        self.assertEqual(student.level, 'Level 2')
        self.assertEqual(student.assigned_class, 'Level 2')
        self.assertEqual(student.parent_name, 'Selma Amupolo')
        self.assertEqual(student.status_history[0]['event'], 'enroll')
        self.assertIsNone(student.status_history[0]['from_status'])

    def test_mainstream_enrollment(self):
        student = approved_student(mainstream_data())
        self.assertEqual(student.level, '')
        self.assertEqual(student.assigned_class, 'Grade 1')

    def test_identifiers_are_sequential(self):
        first = approved_student()
        second = approved_student(application_data(first_name='Ndeshi'))
        self.assertEqual([first.pk, second.pk], ['COHA-0001', 'COHA-0002'])

    def test_failed_approval_returns_its_number(self):
        application = ApplicationService.submit(application_data())
        with mock.patch('admissions.services.generate_parent_pin', side_effect=PersistenceError()):
            with self.assertRaises(PersistenceError):
                ApplicationService.approve(application.pk)

        application.refresh_from_db()
        self.assertEqual(application.status, ApplicationStatus.PENDING)
        self.assertFalse(Student.objects.exists())
        self.assertFalse(IdentityCounter.objects.filter(value__gt=0).exists())

        self.assertEqual(ApplicationService.approve(application.pk)['student'].pk, 'COHA-0001')

    def test_pending_application_cannot_be_enrolled(self):
        application = ApplicationService.submit(application_data())
        with self.assertRaises(ValidationError):
            EnrollmentService.enroll(application)

    def test_level_bands(self):
        self.assertEqual(level_for_age(4), 'Level 1')
        self.assertEqual(level_for_age(7), 'Level 1')
        self.assertEqual(level_for_age(8), 'Level 2')
        self.assertEqual(level_for_age(12), 'Level 2')
        self.assertEqual(level_for_age(13), 'Level 3')

    @override_settings(SPECIAL_NEEDS_LEVEL_BANDS=((9, 'Junior'), (None, 'Senior')))
    def test_level_bands_from_settings(self):
        self.assertEqual(level_for_age(9), 'Junior')
        self.assertEqual(level_for_age(10), 'Senior')


class ScenarioTest(TestCase):

    def test_special_needs_path(self):
        student = approved_student()
        self.assertEqual(student.level, 'Level 2')
        self.assertEqual(student.student_status, StudentStatus.WAITING_PAYMENT)

        receipt = ReceiptLedger.add('R-1001', '1500.00')
        student = EnrollmentService.submit_receipt(student.pk, 'R-1001')
        self.assertEqual(student.student_status, StudentStatus.PAYMENT_VERIFICATION)

        student = EnrollmentService.verify_receipt(student.pk, 'R-1001')
        receipt.refresh_from_db()
        self.assertTrue(receipt.is_used)
        self.assertEqual(receipt.used_by_student_id, student.pk)
        self.assertEqual(student.student_status, StudentStatus.ASSESSMENT)

        for day in range(1, 15):
            record = EnrollmentService.save_assessment_day(student.pk, day, day_raw(FOURS, 'Yes', []))
            self.assertEqual(record.daily_total_score, Decimal('4.00'))

        self_care = EnrollmentService.save_parent_self_care(student.pk, self_care_raw('Yes'))
        self.assertEqual(self_care.calculated_score, Decimal('5.00'))

        result = EnrollmentService.finalize_assessment(student.pk, teacher_class='Level 2')
        self.assertEqual(result['final_average'], Decimal('4.40'))
        self.assertEqual(result['stage'], 3)
        self.assertEqual(result['assigned_class'], 'Level 2 - Stage 3')
        self.assertTrue(result['stays_in_cohort'])
        self.assertIn('Level 2 - Stage 3', result['notification']['body'])

        student = Student.objects.get(pk=student.pk)
        self.assertEqual(student.student_status, StudentStatus.ENROLLED)
        self.assertEqual(student.assigned_class, 'Level 2 - Stage 3')
        self.assertEqual(student.teacher_average, Decimal('4.00'))
        self.assertEqual(student.parent_score, Decimal('5.00'))
        self.assertTrue(student.assessment_complete)
        self.assertIsNotNone(student.enrolled_at)
        self.assertEqual(
            [entry['event'] for entry in student.status_history],
            ['enroll', 'submit_receipt', 'verify_receipt', 'finalize_assessment']
        )

    def test_mainstream_path(self):
        student = approved_student(mainstream_data())
        ReceiptLedger.add('R-2001', '1500.00')
        EnrollmentService.submit_receipt(student.pk, 'R-2001')

        student = EnrollmentService.verify_receipt(student.pk)

        self.assertEqual(student.student_status, StudentStatus.ENROLLED)
        self.assertEqual(student.assigned_class, 'Grade 1')
        self.assertIsNone(student.stage)
        self.assertIsNotNone(student.enrolled_at)
        self.assertFalse(AssessmentDay.objects.exists())

        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.save_assessment_day(student.pk, 1, day_raw())
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.finalize_assessment(student.pk)

    def test_rejected_payment(self):
        student = approved_student()
        ReceiptLedger.add('R-1001', '1500.00')
        EnrollmentService.submit_receipt(student.pk, 'R-404')

        student = EnrollmentService.verify_receipt(student.pk, 'R-404')

        self.assertEqual(student.student_status, StudentStatus.WAITING_PAYMENT)
        self.assertTrue(student.payment_rejected)
        self.assertEqual(student.payment_rejection_reason, RECEIPT_REJECTION_REASON)
        self.assertFalse(Receipt.objects.filter(is_used=True).exists())

        stored = Student.objects.get(pk=student.pk)
        self.assertTrue(stored.payment_rejected)
        self.assertEqual(stored.student_status, StudentStatus.WAITING_PAYMENT)

        # Parent tries again with the right number
        student = EnrollmentService.submit_receipt(student.pk, 'R-1001')
        self.assertFalse(student.payment_rejected)
        self.assertEqual(student.payment_rejection_reason, '')
        student = EnrollmentService.verify_receipt(student.pk)
        self.assertEqual(student.student_status, StudentStatus.ASSESSMENT)


class PaymentTest(TestCase):

    def setUp(self):
        self.student = approved_student()

    def test_receipt_number_required(self):
        with self.assertRaises(ValidationError):
            EnrollmentService.submit_receipt(self.student.pk, '   ')
        self.assertEqual(Student.objects.get(pk=self.student.pk).student_status, StudentStatus.WAITING_PAYMENT)

    def test_receipt_used_by_another_student(self):
        other = approved_student(application_data(first_name='Ndeshi'))
        to_assessment(other, 'R-1001')

        EnrollmentService.submit_receipt(self.student.pk, 'R-1001')
        student = EnrollmentService.verify_receipt(self.student.pk)

        self.assertTrue(student.payment_rejected)
        self.assertEqual(student.student_status, StudentStatus.WAITING_PAYMENT)
        self.assertEqual(Receipt.objects.get(number='R-1001').used_by_student_id, other.pk)

    def test_staff_reject_payment(self):
        ReceiptLedger.add('R-1001', '1500.00')
        EnrollmentService.submit_receipt(self.student.pk, 'R-1001')

        student = EnrollmentService.reject_payment(self.student.pk, 'Amount does not match the fee')

        self.assertEqual(student.student_status, StudentStatus.WAITING_PAYMENT)
        self.assertTrue(student.payment_rejected)
        self.assertEqual(student.payment_rejection_reason, 'Amount does not match the fee')
        self.assertFalse(Receipt.objects.get(number='R-1001').is_used)

    def test_parent_pin_check(self):
        self.assertEqual(EnrollmentService.check_parent_pin(self.student.pk, self.student.parent_pin), self.student)
        for pin in (None, '', '12345', '\u00e9\u00e9\u00e9\u00e9'):
            with self.assertRaises(AuthenticationError):
                EnrollmentService.check_parent_pin(self.student.pk, pin)

    def test_payment_notice(self):
        self.assertIsNone(EnrollmentService.payment_notice(self.student))
        EnrollmentService.submit_receipt(self.student.pk, 'R-404')
        student = EnrollmentService.verify_receipt(self.student.pk)

        notice = EnrollmentService.payment_notice(student)
        self.assertEqual(notice['to'], 'selma@example.com')
        self.assertIn(RECEIPT_REJECTION_REASON, notice['body'])

    def test_invalid_transitions_leave_state_unchanged(self):
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.verify_receipt(self.student.pk, 'R-1001')
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.reject_payment(self.student.pk)
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw())

        EnrollmentService.submit_receipt(self.student.pk, 'R-1001')
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.submit_receipt(self.student.pk, 'R-1002')

        student = Student.objects.get(pk=self.student.pk)
        self.assertEqual(student.student_status, StudentStatus.PAYMENT_VERIFICATION)
        self.assertEqual(student.receipt_number, 'R-1001')

    def test_unknown_student(self):
        with self.assertRaises(NotFoundError):
            EnrollmentService.submit_receipt('COHA-9999', 'R-1001')

    def test_verify_is_atomic(self):
        receipt = ReceiptLedger.add('R-1001', '1500.00')
        EnrollmentService.submit_receipt(self.student.pk, 'R-1001')

        with mock.patch('admissions.services.apply_transition', side_effect=ConcurrencyError()):
            with self.assertRaises(ConcurrencyError):
                EnrollmentService.verify_receipt(self.student.pk)

        receipt.refresh_from_db()
        self.assertFalse(receipt.is_used)
        self.assertIsNone(receipt.used_by_student)
        self.assertEqual(
            Student.objects.get(pk=self.student.pk).student_status,
            StudentStatus.PAYMENT_VERIFICATION
        )


class AssessmentTest(TestCase):

    def setUp(self):
        self.student = to_assessment(approved_student())

    def test_saving_a_day_again_overwrites_it(self):
        EnrollmentService.save_assessment_day(self.student.pk, 1, day_raw())
        EnrollmentService.save_assessment_day(
            self.student.pk, 1, day_raw(dict.fromkeys(FOURS, 2), 'No', [{'behaviour': 'Cried', 'is_positive': False}])
        )

        records = AssessmentDay.objects.filter(student_id=self.student.pk)
        self.assertEqual(records.count(), 1)
        # (2*5 + 0 + 0) / 7
        self.assertEqual(records.get().daily_total_score, Decimal('1.43'))
        self.assertEqual(records.get().abc_logs[0]['antecedent'], 'N/A')

    def test_invalid_day_input_is_rejected(self):
        with self.assertRaises(ValidationError):
            EnrollmentService.save_assessment_day(self.student.pk, 15, day_raw())
        with self.assertRaises(ValidationError):
            EnrollmentService.save_assessment_day(self.student.pk, 2, day_raw({**FOURS, 'senses': 7}))
        self.assertFalse(AssessmentDay.objects.exists())

    def test_self_care_is_one_shot(self):
        EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw('Yes'))

        with self.assertRaises(ValidationError) as ctx:
            EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw('No'))
        self.assertTrue(ctx.exception.details['already_submitted'])
        self.assertEqual(SelfCareAssessment.objects.get().calculated_score, Decimal('5.00'))

    def test_self_care_amendment(self):
        EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw('Yes'))
        record = EnrollmentService.save_parent_self_care(
            self.student.pk, self_care_raw('Yes with help', 'Corrected'), amend=True
        )
        self.assertEqual(record.calculated_score, Decimal('2.50'))
        self.assertEqual(record.comments, 'Corrected')
        self.assertIsNotNone(record.amended_at)
        self.assertEqual(SelfCareAssessment.objects.count(), 1)

    def test_finalize_needs_fourteen_days(self):
        for day in range(1, 14):
            EnrollmentService.save_assessment_day(self.student.pk, day, day_raw())
        EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw())

        with self.assertRaises(ValidationError) as ctx:
            EnrollmentService.finalize_assessment(self.student.pk)
        self.assertEqual(ctx.exception.details['missing_days'], [14])

        student = Student.objects.get(pk=self.student.pk)
        self.assertEqual(student.student_status, StudentStatus.ASSESSMENT)
        self.assertFalse(student.assessment_complete)
        self.assertIsNone(student.stage)

    def test_finalize_needs_parent_self_care(self):
        record_all_days(self.student)
        with self.assertRaises(ValidationError) as ctx:
            EnrollmentService.finalize_assessment(self.student.pk)
        self.assertTrue(ctx.exception.details['missing_parent_self_care'])
        self.assertEqual(Student.objects.get(pk=self.student.pk).student_status, StudentStatus.ASSESSMENT)

    def test_finalize_reports_cohort_transfer(self):
        record_all_days(self.student, day_raw(dict.fromkeys(FOURS, 1), 'No'))
        EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw('No'))

        result = EnrollmentService.finalize_assessment(self.student.pk, teacher_class='Level 2 - Stage 3')

        # (5 + 0 + 3) / 7 = 1.14 -> 0.68 overall
        self.assertEqual(result['stage'], 1)
        self.assertEqual(result['assigned_class'], 'Level 2 - Stage 1')
        self.assertFalse(result['stays_in_cohort'])

    def test_finalize_is_not_repeatable(self):
        record_all_days(self.student)
        EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw())
        EnrollmentService.finalize_assessment(self.student.pk)

        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.finalize_assessment(self.student.pk)
        with self.assertRaises(InvalidTransitionError):
            EnrollmentService.save_parent_self_care(self.student.pk, self_care_raw('No'), amend=True)

    def test_cohort_matching(self):
        self.assertTrue(in_cohort('Level 2 - Stage 1', 'Level 2'))
        self.assertTrue(in_cohort('Level 2', 'Level 2'))
        self.assertFalse(in_cohort('Level 20 - Stage 1', 'Level 2'))
        self.assertFalse(in_cohort('', 'Level 2'))


class ConcurrencyTest(TestCase):

    def setUp(self):
        self.student = approved_student()

    def test_stale_expected_version_rejected(self):
        stale = Student.objects.get(pk=self.student.pk).version
        ReceiptLedger.add('R-1001', '1500.00')
        EnrollmentService.submit_receipt(self.student.pk, 'R-1001', expected_version=stale)

        with self.assertRaises(ConcurrencyError):
            EnrollmentService.reject_payment(self.student.pk, 'Duplicate click', expected_version=stale)

        student = Student.objects.get(pk=self.student.pk)
        self.assertEqual(student.student_status, StudentStatus.PAYMENT_VERIFICATION)
        self.assertEqual(student.version, stale + 1)

    def test_stale_instance_cannot_overwrite(self):
        first = Student.objects.get(pk=self.student.pk)
        second = Student.objects.get(pk=self.student.pk)

        Student.objects.versioned_update(first, parent_phone='+264810000001')
        with self.assertRaises(ConcurrencyError):
            Student.objects.versioned_update(second, parent_phone='+264810000002')

        self.assertEqual(Student.objects.get(pk=self.student.pk).parent_phone, '+264810000001')

    def test_every_write_bumps_version(self):
        student = to_assessment(self.student)
        before = student.version
        EnrollmentService.save_assessment_day(student.pk, 1, day_raw())
        self.assertEqual(Student.objects.get(pk=student.pk).version, before + 1)


class PendingActionCountsTest(TestCase):

    def setUp(self):
        cache.clear()

    def test_counts_follow_status_changes(self):
        application = ApplicationService.submit(application_data())
        self.assertEqual(
            StudentQueryService.get_pending_action_counts(),
            {'applications': 1, 'payment_verifications': 0, 'assessments': 0, 'total': 1}
        )

        student = ApplicationService.approve(application.pk)['student']
        self.assertEqual(StudentQueryService.get_pending_action_counts()['applications'], 0)

        ReceiptLedger.add('R-1001', '1500.00')
        EnrollmentService.submit_receipt(student.pk, 'R-1001')
        counts = StudentQueryService.get_pending_action_counts()
        self.assertEqual(counts['payment_verifications'], 1)
        self.assertEqual(counts['total'], 1)

        EnrollmentService.verify_receipt(student.pk)
        self.assertEqual(
            StudentQueryService.get_pending_action_counts(),
            {'applications': 0, 'payment_verifications': 0, 'assessments': 1, 'total': 0}
        )


class PendingActionCountsCacheTest(TransactionTestCase):
    """Runs with real commits so on-commit cache updates take effect."""

    def setUp(self):
        cache.clear()
        self.student = approved_student()
        ReceiptLedger.add('R-1001', '1500.00')

    def test_committed_change_refreshes_cache(self):
        self.assertEqual(StudentQueryService.get_pending_action_counts()['payment_verifications'], 0)
        self.assertEqual(cache.get(PENDING_COUNTS_CACHE_KEY)['payment_verifications'], 0)

        with transaction.atomic():
            EnrollmentService.submit_receipt(self.student.pk, 'R-1001')
            self.assertIsNone(cache.get(PENDING_COUNTS_CACHE_KEY))
            self.assertEqual(StudentQueryService.get_pending_action_counts()['payment_verifications'], 1)

        self.assertEqual(cache.get(PENDING_COUNTS_CACHE_KEY)['payment_verifications'], 1)

    def test_rolled_back_change_never_cached(self):
        StudentQueryService.get_pending_action_counts()

        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                EnrollmentService.submit_receipt(self.student.pk, 'R-1001')
                counts = StudentQueryService.get_pending_action_counts()
                self.assertEqual(counts['payment_verifications'], 1)
                raise RuntimeError("abort")

        self.assertIsNone(cache.get(PENDING_COUNTS_CACHE_KEY))
        counts = StudentQueryService.get_pending_action_counts()
        self.assertEqual(counts['payment_verifications'], 0)
        self.assertEqual(counts['total'], 0)
        self.assertEqual(
            Student.objects.get(pk=self.student.pk).student_status,
            StudentStatus.WAITING_PAYMENT
        )
