"""
Settings package for the Product Report CMS.

DJANGO_ENV selects the environment module: development (default), test or
production. Tools that need a fixed environment (pytest, Celery workers)
can name config.settings.<env> in DJANGO_SETTINGS_MODULE instead.
"""

import os

from django.core.exceptions import ImproperlyConfigured

DJANGO_ENV = os.getenv("DJANGO_ENV", "development").strip().lower()

if DJANGO_ENV == "production":
    from .production import *
elif DJANGO_ENV == "test":
    from .test import *
elif DJANGO_ENV == "development":
    from .development import *
else:
    raise ImproperlyConfigured(
        f"Unknown DJANGO_ENV '{DJANGO_ENV}' (expected development, test or production)"
    )
