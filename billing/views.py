# billing/views.py
"""
RECEIPT API - staff maintenance of the receipt ledger.
"""
import logging

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from .serializers import ReceiptSerializer
from .services import ReceiptLedger

logger = logging.getLogger(__name__)


class ReceiptViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """``?is_used=true|false`` narrows the list."""
    serializer_class = ReceiptSerializer
    permission_classes = [permissions.IsAuthenticated, permissions.IsAdminUser]

    def get_queryset(self):
        is_used = self.request.query_params.get('is_used')
        if is_used is not None:
            return ReceiptLedger.list_receipts(is_used=is_used.lower() in ('1', 'true'))
        return ReceiptLedger.list_receipts()

    def create(self, request):
        serializer = ReceiptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        receipt = ReceiptLedger.add(**serializer.validated_data)
        return Response(ReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        ReceiptLedger.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
