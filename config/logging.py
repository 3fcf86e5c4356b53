# config/logging.py
from django.utils.log import RequireDebugFalse

APP_LOGGERS = ('core', 'shared', 'admissions', 'students', 'billing')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'detailed': {
            'format': '{asctime} {levelname} [{name}:{lineno}] {message}',
            'style': '{',
        },
    },
    'filters': {
        'require_debug_false': {
            '()': RequireDebugFalse,
        },
    },
    'handlers': {
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'detailed',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        **{
            name: {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            }
            for name in APP_LOGGERS
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}
