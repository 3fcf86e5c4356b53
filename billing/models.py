# billing/models.py
import logging

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

logger = logging.getLogger(__name__)


class Receipt(models.Model):
    """
    Prepaid registration-fee receipt, captured by staff before a parent
    quotes it. Consumed at most once, only through ReceiptLedger.consume.
    """
    number = models.CharField(max_length=50, unique=True, db_index=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    date = models.DateField(default=timezone.localdate)

    is_used = models.BooleanField(default=False)
    used_by_student = models.ForeignKey(
        'students.Student',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receipts'
    )
    used_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'billing_receipt'
        verbose_name = 'Receipt'
        verbose_name_plural = 'Receipts'
        indexes = [
            models.Index(fields=['is_used']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Receipt {self.number} - N$ {self.amount:,.2f}"

    def clean(self):
        """Validate receipt data."""
        from django.core.exceptions import ValidationError

        if self.is_used and not self.used_by_student_id:
            raise ValidationError({'used_by_student': 'A used receipt must name the student it paid for.'})

        if self.used_by_student_id and not self.is_used:
            raise ValidationError({'is_used': 'A receipt bound to a student must be marked as used.'})
