# core/exceptions.py
class SchoolManagementException(Exception):
    """Base exception for all school management system errors."""

    status_code = 400

    def __init__(self, message=None, user_friendly=False, details=None, error_code=None):
        self.message = message or "An error occurred"
        self.user_friendly = user_friendly
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self):
        return {
            'error': self.error_code,
            'message': self.message if self.user_friendly else "Operation failed.",
            'details': self.details,
        }

class ValidationError(SchoolManagementException):
    """Precondition not met. State is unchanged and the call is safe to retry."""
    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Validation failed", user_friendly, details, "VALIDATION_ERROR")

class AuthenticationError(SchoolManagementException):
    """Caller could not prove it may act for this student."""
    status_code = 403

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Authentication failed", user_friendly, details, "AUTH_ERROR")

class InvalidTransitionError(ValidationError):
    """Requested status change is not in the enrollment transition table."""
    def __init__(self, from_status, event, to_status=None):
        message = f"Cannot {event.replace('_', ' ')} while student is {from_status}"
        if to_status:
            message = f"{message} (target {to_status})"
        super().__init__(message, details={
            'from_status': str(from_status),
            'event': event,
            'to_status': str(to_status) if to_status else None,
        })
        self.error_code = "INVALID_TRANSITION"

class NotFoundError(SchoolManagementException):
    """Referenced student or receipt does not exist, or the receipt is already used."""
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Record not found", user_friendly, details, "NOT_FOUND")

class ConcurrencyError(SchoolManagementException):
    """A conditional write lost its race. Retry the whole operation."""
    status_code = 409

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Record was modified by someone else", user_friendly, details, "CONCURRENCY_ERROR")

class PersistenceError(SchoolManagementException):
    """Store unreachable or transaction aborted."""
    status_code = 503

    def __init__(self, message=None, user_friendly=False, details=None):
        super().__init__(message or "Storage unavailable", user_friendly, details, "PERSISTENCE_ERROR")
