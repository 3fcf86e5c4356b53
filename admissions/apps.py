# admissions/apps.py
from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)

class AdmissionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'admissions'
    verbose_name = 'Admissions & Enrollment'

    def ready(self):
        """Connect enrollment signal receivers."""
        from . import signals  # noqa: F401
        logger.debug("Admissions signals connected")
