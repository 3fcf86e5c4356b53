# admissions/views.py
"""
ADMISSIONS API - application review and the enrollment actions on a student.
Business errors raised by the services are turned into JSON by
core.middleware.ExceptionHandlingMiddleware.
"""
import logging

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from students.models import Student
from students.serializers import (
    AssessmentDaySerializer,
    SelfCareAssessmentSerializer,
    StudentSerializer,
)
from students.services import StudentQueryService

from .models import Application
from .serializers import (
    ApplicationSerializer,
    AssessmentDayInputSerializer,
    FinalizeAssessmentSerializer,
    OfficeReviewSerializer,
    RejectPaymentSerializer,
    SelfCareInputSerializer,
    SubmitReceiptSerializer,
    VerifyReceiptSerializer,
)
from .services import ApplicationService, EnrollmentService

logger = logging.getLogger(__name__)


# ============ APPLICATIONS ============

class ApplicationViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         viewsets.GenericViewSet):
    queryset = Application.objects.all()
    serializer_class = ApplicationSerializer
    permission_classes = [permissions.IsAuthenticated, permissions.IsAdminUser]

    def get_permissions(self):
        # Parents submit without an account
        if self.action == 'create':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = Application.objects.all()
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def create(self, request):
        serializer = ApplicationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = ApplicationService.submit(serializer.validated_data)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        serializer = OfficeReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ApplicationService.approve(pk, serializer.validated_data)
        return Response({
            'student': StudentSerializer(result['student']).data,
            'parent_pin': result['parent_pin'],
            'notification': result['notification'],
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = OfficeReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = ApplicationService.reject(pk, serializer.validated_data)
        return Response(ApplicationSerializer(application).data)

    @action(detail=True, methods=['patch'], url_path='office-review')
    def office_review(self, request, pk=None):
        serializer = OfficeReviewSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        application = ApplicationService.update_office_review(pk, serializer.validated_data)
        return Response(ApplicationSerializer(application).data)


# ============ ENROLLMENT ============

class EnrollmentViewSet(viewsets.GenericViewSet):
    """State-changing actions on a student, addressed by student id."""
    queryset = Student.objects.all()
    serializer_class = StudentSerializer
    permission_classes = [permissions.IsAuthenticated]
    staff_actions = ('verify_receipt', 'reject_payment', 'assessment_day', 'finalize')

    def get_permissions(self):
        if self.action in self.staff_actions:
            return [permissions.IsAuthenticated(), permissions.IsAdminUser()]
        return super().get_permissions()

    def _validated(self, serializer_class, request):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)

    def _check_parent(self, request, pk, data):
        """Parents act only on their own learner, proven by the PIN from the approval notice."""
        if not request.user.is_staff:
            EnrollmentService.check_parent_pin(pk, data.get('parent_pin'))

    @action(detail=True, methods=['post'], url_path='submit-receipt')
    def submit_receipt(self, request, pk=None):
        data = self._validated(SubmitReceiptSerializer, request)
        self._check_parent(request, pk, data)
        student = EnrollmentService.submit_receipt(
            pk, data['receipt_number'], expected_version=data.get('expected_version')
        )
        return Response(StudentSerializer(student).data)

    @action(detail=True, methods=['post'], url_path='verify-receipt')
    def verify_receipt(self, request, pk=None):
        data = self._validated(VerifyReceiptSerializer, request)
        student = EnrollmentService.verify_receipt(
            pk, data.get('receipt_number'), expected_version=data.get('expected_version')
        )
        return Response({
            **StudentSerializer(student).data,
            'notification': EnrollmentService.payment_notice(student),
        })

    @action(detail=True, methods=['post'], url_path='reject-payment')
    def reject_payment(self, request, pk=None):
        data = self._validated(RejectPaymentSerializer, request)
        student = EnrollmentService.reject_payment(
            pk, data.get('reason', ''), expected_version=data.get('expected_version')
        )
        return Response({
            **StudentSerializer(student).data,
            'notification': EnrollmentService.payment_notice(student),
        })

    @action(detail=True, methods=['post'], url_path='assessment-days')
    def assessment_day(self, request, pk=None):
        data = self._validated(AssessmentDayInputSerializer, request)
        raw = {
            'scores': dict(data['scores']),
            'thinking_response': data.get('thinking_response', ''),
            'abc_logs': [dict(entry) for entry in data.get('abc_logs', [])],
        }
        record = EnrollmentService.save_assessment_day(
            pk, data['day'], raw, expected_version=data.get('expected_version')
        )
        return Response(AssessmentDaySerializer(record).data)

    @action(detail=True, methods=['post'], url_path='self-care')
    def self_care(self, request, pk=None):
        data = self._validated(SelfCareInputSerializer, request)
        self._check_parent(request, pk, data)
        raw = {**data['responses'], 'comments': data.get('comments', '')}
        record = EnrollmentService.save_parent_self_care(
            pk, raw, amend=data['amend'], expected_version=data.get('expected_version')
        )
        return Response(SelfCareAssessmentSerializer(record).data)

    @action(detail=True, methods=['post'])
    def finalize(self, request, pk=None):
        data = self._validated(FinalizeAssessmentSerializer, request)
        result = EnrollmentService.finalize_assessment(
            pk, teacher_class=data.get('teacher_class') or None, expected_version=data.get('expected_version')
        )
        return Response({
            'student': StudentSerializer(result['student']).data,
            'stage': result['stage'],
            'final_average': str(result['final_average']),
            'assigned_class': result['assigned_class'],
            'stays_in_cohort': result['stays_in_cohort'],
            'notification': result['notification'],
        })


class PendingActionsView(APIView):
    """Badge counts for the admin sidebar."""
    permission_classes = [permissions.IsAuthenticated, permissions.IsAdminUser]

    def get(self, request):
        return Response(StudentQueryService.get_pending_action_counts())
