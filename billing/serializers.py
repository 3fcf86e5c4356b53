# billing/serializers.py
from rest_framework import serializers

from .models import Receipt


class ReceiptSerializer(serializers.ModelSerializer):
    class Meta:
        model = Receipt
        fields = ['id', 'number', 'amount', 'date', 'is_used', 'used_by_student', 'used_at', 'created_at']
        read_only_fields = ['id', 'is_used', 'used_by_student', 'used_at', 'created_at']
