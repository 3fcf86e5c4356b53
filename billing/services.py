# billing/services.py
"""
Receipt ledger: registry of prepaid receipt numbers, each consumable once.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from core.exceptions import NotFoundError, ValidationError

from .models import Receipt

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


class ReceiptLedger:
    """
    All receipt mutations go through here. ``consume`` is the only path that
    flips ``is_used``, and it does so with a conditional update so two
    verifications of the same number can never both succeed.
    """

    @staticmethod
    def add(number, amount, date=None):
        """Register a new, unused receipt."""
        number = (number or '').strip()
        if not number:
            raise ValidationError("Receipt number is required.")

        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid receipt amount: {amount}", details={'amount': str(amount)})
        if amount < 0:
            raise ValidationError("Receipt amount cannot be negative.", details={'amount': str(amount)})

        try:
            with transaction.atomic():
                receipt = Receipt.objects.create(
                    number=number,
                    amount=amount,
                    date=date or timezone.localdate(),
                )
        except IntegrityError:
            logger.warning(f"Duplicate receipt number rejected: {number}")
            raise ValidationError(
                f"Receipt {number} is already registered.",
                details={'number': number}
            )

        logger.info(f"Receipt registered: {number} (N$ {amount:,.2f})")
        return receipt

    @staticmethod
    def consume(number, student):
        """
        Mark the receipt as used by ``student`` and return its id.

        Raises:
            NotFoundError: no such receipt, or it has already been used
        """
        number = (number or '').strip()

        with transaction.atomic():
            receipt = Receipt.objects.select_for_update().filter(number=number).first()
            if receipt is None:
                logger.warning(f"Receipt {number!r} not found (student {student.pk})")
                raise NotFoundError(
                    f"Receipt {number} was not found.",
                    details={'number': number, 'reason': 'missing'}
                )

            updated = Receipt.objects.filter(pk=receipt.pk, is_used=False).update(
                is_used=True,
                used_by_student=student,
                used_at=timezone.now(),
            )
            if not updated:
                logger.warning(f"Receipt {number} already used (student {student.pk})")
                raise NotFoundError(
                    f"Receipt {number} has already been used.",
                    details={'number': number, 'reason': 'used'}
                )

        logger.info(f"Receipt {number} consumed by student {student.pk}")
        return receipt.pk

    @staticmethod
    def delete(receipt_id):
        """Remove a receipt that has not been used yet."""
        with transaction.atomic():
            deleted, _ = Receipt.objects.filter(pk=receipt_id, is_used=False).delete()
            if deleted:
                logger.info(f"Receipt {receipt_id} deleted")
                return True

            if Receipt.objects.filter(pk=receipt_id).exists():
                raise ValidationError(
                    "Used receipts cannot be deleted.",
                    details={'receipt_id': receipt_id}
                )
        raise NotFoundError(f"Receipt {receipt_id} was not found.", details={'receipt_id': receipt_id})

    @staticmethod
    def list_receipts(is_used=None):
        queryset = Receipt.objects.select_related('used_by_student')
        if is_used is not None:
            queryset = queryset.filter(is_used=is_used)
        return queryset

    @staticmethod
    def receipts_for_student(student):
        return Receipt.objects.filter(used_by_student=student).order_by('used_at', 'pk')

    @staticmethod
    def total_paid(student):
        """Sum of all receipts bound to the student, to the cent."""
        total = Receipt.objects.filter(used_by_student=student).aggregate(total=Sum('amount'))['total']
        return (total or Decimal('0')).quantize(CENT, rounding=ROUND_HALF_UP)
