# core/models.py
"""
Core models shared by every app.
"""
from django.db import models


class IdentityCounter(models.Model):
    """
    Single shared counter row per identifier sequence.
    Only ever advanced through IdentityAllocator.
    """
    name = models.CharField(max_length=50, unique=True)
    value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_identitycounter'
        verbose_name = 'Identity Counter'
        verbose_name_plural = 'Identity Counters'

    def __str__(self):
        return f"{self.name}: {self.value}"
