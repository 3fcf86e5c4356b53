# billing/admin.py
from django.contrib import admin

from .models import Receipt


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ['number', 'amount', 'date', 'is_used', 'used_by_student', 'used_at']
    list_filter = ['is_used', 'date']
    search_fields = ['number', 'used_by_student__id', 'used_by_student__surname']
    readonly_fields = ['is_used', 'used_by_student', 'used_at', 'created_at']
    date_hierarchy = 'date'

    def get_readonly_fields(self, request, obj=None):
        # A consumed receipt is part of a student's payment record
        if obj and obj.is_used:
            return ['number', 'amount', 'date'] + self.readonly_fields
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_used:
            return False
        return super().has_delete_permission(request, obj)
