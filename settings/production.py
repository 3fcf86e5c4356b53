# settings/production.py
"""
Production settings - secure and optimized.
"""

import os
import copy

from .base import *

LOGGING = copy.deepcopy(LOGGING)

# Security settings
DEBUG = False
ALLOWED_HOSTS = [host for host in os.getenv('ALLOWED_HOSTS', '').split(',') if host]

# SSL/HTTPS settings
SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

# Database
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('DB_NAME'),
        'USER': os.getenv('DB_USER'),
        'PASSWORD': os.getenv('DB_PASSWORD'),
        'HOST': os.getenv('DB_HOST'),
        'PORT': os.getenv('DB_PORT'),
        'CONN_MAX_AGE': 600,  # 10 minutes
        'OPTIONS': {
            'sslmode': 'require',
        }
    }
}

# Shared cache so badge counts are invalidated across workers
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.db.DatabaseCache',
        'LOCATION': 'admissions_cache',
    }
}

# Logging
LOG_DIR = os.getenv('LOG_DIR', '/var/log/admissions')

LOGGING['formatters']['verbose'] = {
    'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
    'style': '{',
}

LOGGING['handlers'].update({
    'file': {
        'level': 'INFO',
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, 'admissions.log'),
        'maxBytes': 10485760,  # 10MB
        'backupCount': 10,
        'formatter': 'verbose',
    },
    'error_file': {
        'level': 'ERROR',
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, 'error.log'),
        'maxBytes': 10485760,
        'backupCount': 10,
        'formatter': 'verbose',
        'filters': ['require_debug_false'],
    },
})

for name in ('django', 'core', 'admissions', 'students', 'billing'):
    LOGGING['loggers'][name] = {
        'handlers': ['file', 'error_file'],
        'level': 'INFO',
        'propagate': False,
    }

LOGGING['root'] = {
    'handlers': ['file', 'error_file'],
    'level': 'INFO',
}
