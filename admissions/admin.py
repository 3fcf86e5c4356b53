# admissions/admin.py
from django.contrib import admin

from shared.constants import ApplicationStatus

from .models import Application


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ['id', 'learner_name', 'division', 'grade', 'status', 'submitted_at', 'office_reviewer']
    list_filter = ['status', 'division', 'region']
    search_fields = ['first_name', 'surname', 'father_name', 'mother_name', 'father_email', 'mother_email']
    date_hierarchy = 'submitted_at'
    readonly_fields = ['status', 'submitted_at', 'updated_at']

    fieldsets = (
        ('Learner', {
            'fields': (
                'surname', 'first_name', 'date_of_birth', 'gender', 'citizenship',
                'address', 'region', 'division', 'grade', 'special_needs_type',
            )
        }),
        ('Parents', {
            'fields': (
                'father_name', 'father_phone', 'father_email',
                'mother_name', 'mother_phone', 'mother_email',
            )
        }),
        ('Emergency Contact', {
            'fields': ('emergency_name', 'emergency_relationship', 'emergency_cell', 'emergency_email')
        }),
        ('Additional Details', {
            'fields': ('details',),
            'classes': ('collapse',)
        }),
        ('Office Use', {
            'fields': Application.OFFICE_FIELDS
        }),
        ('Status', {
            'fields': ('status', 'submitted_at', 'updated_at')
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        # Reviewed applications only accept office-use changes
        if obj and obj.status != ApplicationStatus.PENDING:
            return [
                field.name for field in Application._meta.concrete_fields
                if field.name not in Application.OFFICE_FIELDS
            ]
        return self.readonly_fields
