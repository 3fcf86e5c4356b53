# students/admin.py
from django.contrib import admin

from .models import AssessmentDay, SelfCareAssessment, Student


class AssessmentDayInline(admin.TabularInline):
    model = AssessmentDay
    extra = 0
    can_delete = False
    fields = ['day', 'thinking_task_id', 'thinking_response', 'abc_score', 'daily_total_score', 'completed']
    readonly_fields = fields


# ===== STUDENT ADMIN =====
@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    """Read-mostly view; status only changes through the enrollment service."""
    list_display = ['id', 'full_name', 'division', 'student_status', 'assigned_class', 'stage', 'payment_rejected']
    list_filter = ['student_status', 'division', 'stage', 'payment_rejected']
    search_fields = ['id', 'first_name', 'surname', 'parent_name', 'parent_email', 'receipt_number']
    inlines = [AssessmentDayInline]

    readonly_fields = [
        'id',
        'application',
        'student_status',
        'status_history',
        'receipt_number',
        'receipt_submitted_at',
        'teacher_average',
        'parent_score',
        'final_average',
        'stage',
        'assessment_complete',
        'assessment_completed_at',
        'assigned_class',
        'version',
        'enrolled_at',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Learner', {
            'fields': ('id', 'application', 'first_name', 'surname', 'date_of_birth', 'division', 'level', 'grade')
        }),
        ('Parent', {
            'fields': ('parent_name', 'parent_email', 'parent_phone')
        }),
        ('Enrollment', {
            'fields': (
                'student_status',
                'receipt_number',
                'receipt_submitted_at',
                'payment_rejection_reason',
                'enrolled_at',
                'status_history',
            )
        }),
        ('Placement', {
            'fields': (
                'teacher_average',
                'parent_score',
                'final_average',
                'stage',
                'assessment_complete',
                'assessment_completed_at',
                'assigned_class',
            )
        }),
        ('System', {
            'fields': ('version', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SelfCareAssessment)
class SelfCareAssessmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'calculated_score', 'completed_date', 'amended_at']
    search_fields = ['student__id', 'student__first_name', 'student__surname']
    readonly_fields = ['student', 'responses', 'calculated_score', 'completed_date', 'amended_at']
