# students/views.py
"""
STUDENT API - read accessors for admin, teacher and parent screens.
"""
import logging

from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from billing.serializers import ReceiptSerializer
from billing.services import ReceiptLedger

from .serializers import AssessmentDaySerializer, StudentSerializer
from .services import StudentQueryService

logger = logging.getLogger(__name__)


class StudentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ``?search=`` matches learner names, ``?status=`` filters by enrollment
    state, ``?assigned_class=`` by class; add ``&cohort=1`` to include every
    stage of that class.
    """
    serializer_class = StudentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        params = self.request.query_params
        if 'search' in params:
            return StudentQueryService.search_students(params['search'])
        if params.get('status'):
            return StudentQueryService.get_students_by_status(params['status'])
        if params.get('assigned_class'):
            return StudentQueryService.get_students_by_assigned_class(
                params['assigned_class'],
                include_stages=params.get('cohort') in ('1', 'true', 'True'),
            )
        return StudentQueryService.get_students()

    def get_object(self):
        student = StudentQueryService.get_student_by_id(self.kwargs['pk'])
        self.check_object_permissions(self.request, student)
        return student

    @action(detail=True, methods=['get'])
    def progress(self, request, pk=None):
        return Response(StudentQueryService.assessment_progress(self.get_object()))

    @action(detail=True, methods=['get'], url_path='assessment-days')
    def assessment_days(self, request, pk=None):
        student = self.get_object()
        return Response(AssessmentDaySerializer(student.assessment_days.all(), many=True).data)

    @action(detail=True, methods=['get'])
    def payments(self, request, pk=None):
        """Receipts bound to the student and the total paid."""
        student = self.get_object()
        return Response({
            'student_id': student.pk,
            'receipts': ReceiptSerializer(ReceiptLedger.receipts_for_student(student), many=True).data,
            'total_paid': str(ReceiptLedger.total_paid(student)),
        })
