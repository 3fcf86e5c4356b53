# config/views.py
"""
Project-level endpoints and JSON error handlers.
"""
import logging

from django.db import connection
from django.db.utils import OperationalError
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def health_check_view(request):
    """System health check endpoint."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        db_status = True
    except OperationalError as e:
        logger.error(f"Health check database failure: {e}")
        db_status = False

    status_code = 200 if db_status else 503

    return JsonResponse({
        'status': 'healthy' if db_status else 'unhealthy',
        'database': 'connected' if db_status else 'disconnected',
        'timestamp': timezone.now().isoformat(),
    }, status=status_code)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

def _error_response(code, message, status):
    return JsonResponse({'error': code, 'message': message, 'details': {}}, status=status)


def handler400(request, exception):
    return _error_response('BAD_REQUEST', 'The request could not be understood.', 400)


def handler403(request, exception):
    return _error_response('FORBIDDEN', 'You do not have permission to access this resource.', 403)


def handler404(request, exception):
    return _error_response('NOT_FOUND', 'The resource you are looking for does not exist.', 404)


def handler500(request):
    return _error_response('SERVER_ERROR', 'System error. Our team has been notified.', 500)
