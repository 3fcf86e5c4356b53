# settings/development.py
"""
Development settings for the admissions backend.
"""
import copy

from .base import *

LOGGING = copy.deepcopy(LOGGING)

# Debug settings
DEBUG = True
ALLOWED_HOSTS = ['localhost', '127.0.0.1', '0.0.0.0']

# Database configuration for development
DATABASES['default'].update({
    'ATOMIC_REQUESTS': True,
})

# Email configuration for development
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Logging configuration for development
# Ensure logs directory exists
(BASE_DIR / 'logs').mkdir(exist_ok=True)

LOGGING['handlers']['file'] = {
    'level': 'DEBUG',
    'class': 'logging.FileHandler',
    'filename': BASE_DIR / 'logs' / 'development.log',
    'formatter': 'detailed',
}

LOGGING['handlers']['error_file'] = {
    'level': 'ERROR',
    'class': 'logging.FileHandler',
    'filename': BASE_DIR / 'logs' / 'error.log',
    'formatter': 'detailed',
}

LOGGING['handlers']['console']['level'] = 'DEBUG'

for name in ('core', 'admissions', 'students', 'billing'):
    LOGGING['loggers'][name] = {
        'handlers': ['console', 'file', 'error_file'],
        'level': 'DEBUG',
        'propagate': False,
    }

# Disable security settings for development
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
SECURE_SSL_REDIRECT = False

# CORS settings for development
CORS_ALLOW_ALL_ORIGINS = True
