"""
Test settings for the Product Report CMS backend.

In-memory SQLite, eager Celery on an in-memory broker, no Sentry. Rule
tables come from the bundled defaults; tests that need other tables
override them with the pytest-django ``settings`` fixture.
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "reviews-test",
    }
}

# Aggregate tasks run inline; no Redis needed
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
REVIEWS_AGGREGATE_COUNTDOWN = 0

LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["reviews"]["level"] = "WARNING"

AUTH_PASSWORD_VALIDATORS = []
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

SENTRY_DSN = ""

REVIEWS_RULE_TABLES_PATH = ""
REVIEWS_RULE_TABLES = {}
