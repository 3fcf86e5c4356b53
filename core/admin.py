# core/admin.py
from django.contrib import admin

from .models import IdentityCounter


@admin.register(IdentityCounter)
class IdentityCounterAdmin(admin.ModelAdmin):
    list_display = ['name', 'value', 'updated_at']
    readonly_fields = ['name', 'value', 'updated_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
