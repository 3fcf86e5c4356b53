# core/services.py
"""
Identity allocation for human-readable student identifiers.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F

from .exceptions import PersistenceError
from .models import IdentityCounter

logger = logging.getLogger(__name__)


class IdentityAllocator:
    """
    Hands out unique, monotonically increasing identifiers such as ``COHA-0001``.

    Each call runs in its own atomic block against a single counter row. Inside
    a caller's transaction that block is a savepoint: the counter row stays
    locked until the caller commits, and the increment rolls back with a
    failed caller, so committed identifiers have no gaps.
    """

    STUDENT_SEQUENCE = 'student'

    @staticmethod
    def allocate(sequence=STUDENT_SEQUENCE):
        """
        Atomically increment the counter and return the formatted identifier.

        Raises:
            PersistenceError: if the increment could not be committed. No
            fallback identifier is produced.
        """
        try:
            with transaction.atomic():
                counter, _ = IdentityCounter.objects.select_for_update().get_or_create(name=sequence)
                IdentityCounter.objects.filter(pk=counter.pk).update(value=F('value') + 1)
                counter.refresh_from_db(fields=['value'])
                value = counter.value
        except DatabaseError as e:
            logger.error(f"Identity allocation failed for sequence '{sequence}': {e}", exc_info=True)
            raise PersistenceError(
                "Could not allocate a student number. Please try again.",
                user_friendly=True,
                details={'sequence': sequence}
            ) from e

        identifier = IdentityAllocator.format_identifier(value)
        logger.info(f"Allocated identifier {identifier}")
        return identifier

    @staticmethod
    def format_identifier(value):
        prefix = getattr(settings, 'STUDENT_ID_PREFIX', 'COHA-')
        width = getattr(settings, 'STUDENT_ID_WIDTH', 4)
        return f"{prefix}{value:0{width}d}"
