# core/middleware.py
"""
Request-level error translation and request logging.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse

from .exceptions import SchoolManagementException

logger = logging.getLogger(__name__)


# ============ EXCEPTION HANDLING MIDDLEWARE ============

class ExceptionHandlingMiddleware:
    """Turns SchoolManagementException and general server errors into JSON responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        # Business logic error
        if isinstance(exception, SchoolManagementException):
            if exception.status_code >= 500:
                logger.error(f"Business exception on {request.path}: {exception}")
            else:
                logger.warning(f"Business exception on {request.path}: {exception}")
            return JsonResponse(exception.to_dict(), status=exception.status_code)

        if isinstance(exception, DjangoValidationError):
            logger.warning(f"Model validation failed on {request.path}: {exception}")
            details = exception.message_dict if hasattr(exception, 'error_dict') else {'errors': exception.messages}
            return JsonResponse({
                'error': 'VALIDATION_ERROR',
                'message': "Submitted data is invalid.",
                'details': details,
            }, status=400)

        # System error
        logger.error(f"System exception: {exception}", exc_info=True)
        return JsonResponse({
            'error': 'SERVER_ERROR',
            'message': "System error. Our team has been notified.",
            'details': {},
        }, status=500)


# ============ REQUEST LOGGING MIDDLEWARE ============

class RequestLoggingMiddleware:
    """Debug-level structured request/response logging."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Skip logging for static files and health checks
        if self._should_skip_logging(request):
            return self.get_response(request)

        if settings.DEBUG:
            logger.debug("Request", extra={
                "method": request.method,
                "path": request.path,
                "ip": self._get_client_ip(request),
                "user": getattr(request.user, "id", None) if hasattr(request, 'user') else None,
            })

        response = self.get_response(request)

        if settings.DEBUG:
            logger.debug("Response", extra={
                "path": request.path,
                "status": response.status_code,
            })

        return response

    def _should_skip_logging(self, request) -> bool:
        """Skip logging for noisy requests."""
        skip_paths = ['/static/', '/media/', '/favicon.ico', '/health/']
        return any(request.path.startswith(path) for path in skip_paths)

    def _get_client_ip(self, request) -> str:
        xff = request.META.get("HTTP_X_FORWARDED_FOR")
        return xff.split(",")[0] if xff else request.META.get("REMOTE_ADDR", "unknown")
