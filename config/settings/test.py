"""
WMS Inventory Core — Test Settings

Used by pytest (see pyproject.toml). File-backed SQLite so that threaded
tests share one database, local cache, Celery tasks run inline.
Set TEST_DATABASE_URL to run the suite against PostgreSQL.

@file config/settings/test.py
"""

from .base import *  # noqa: F401, F403

DEBUG = False
ALLOWED_HOSTS = ['*']

if env('TEST_DATABASE_URL', default=None):  # noqa: F405
    DATABASES = {
        'default': env.db('TEST_DATABASE_URL'),  # noqa: F405
    }
else:
    # IMMEDIATE transactions take the write lock up front, so concurrent
    # writers queue on the busy timeout instead of failing mid-transaction.
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': str(BASE_DIR / 'wms-test.sqlite3'),  # noqa: F405
            'OPTIONS': {
                'transaction_mode': 'IMMEDIATE',
                'timeout': 20,
            },
            'TEST': {
                'NAME': str(BASE_DIR / '.wms-test.sqlite3'),  # noqa: F405
            },
        }
    }

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405

LOGGING['loggers']['wms']['level'] = 'WARNING'  # noqa: F405
