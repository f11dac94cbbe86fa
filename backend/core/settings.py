"""
Django settings for the event posters project.

Only what the events app needs: a database for events/attachments/blobs,
MEDIA_ROOT for stored bytes, and EVENT_UPLOADS for blob keys and URLs.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-dev-only-key')
DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'events',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
USE_TZ = True
TIME_ZONE = 'UTC'

# Uploaded bytes land in MEDIA_ROOT/blobs/<k0k1>/<k2k3>/<key>
MEDIA_ROOT = BASE_DIR / 'media'
MEDIA_URL = '/media/'

# Attachment settings
# URL_HOST has no default on purpose: without it, building a blob URL
# raises ConfigurationError rather than producing a relative link.
EVENT_UPLOADS = {
    'URL_HOST': os.environ.get('EVENT_UPLOADS_URL_HOST'),
    'URL_PATH_PREFIX': 'blobs',
    'KEY_LENGTH': 28,
    'SERVICE_NAME': 'local',
}

REST_FRAMEWORK = {
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.MultiPartParser',
        'rest_framework.parsers.FormParser',
    ],
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'events': {
            'handlers': ['console'],
            'level': os.environ.get('EVENTS_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
