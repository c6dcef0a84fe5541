"""Settings used by the pytest suite.

Keeps production defaults and swaps out the external services: in-memory
SQLite unless DATABASE_URL names a real server (the row-locking tests only
run there), an in-process cache instead of Redis, the locmem mail backend
and eager Celery.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from decouple import config  # noqa: E402
from dj_database_url import parse as db_url  # noqa: E402

from config.settings import *  # noqa: E402,F401,F403

DATABASES = {
    "default": config("DATABASE_URL", default="sqlite://:memory:", cast=db_url)
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "storefront-tests",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "orders@storefront.test"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/day",
        "user": "10000/hour",
        "checkout": "1000/minute",
        "offline_sale": "1000/minute",
        "order_listing": "1000/minute",
    },
}
