"""
Reviews application configuration.
"""

from django.apps import AppConfig


class ReviewsConfig(AppConfig):
    """Configuration for the reviews Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "reviews"
    verbose_name = "Product Reviews"

    def ready(self):
        """
        Perform application initialization.

        Imports signal handlers so that product saves schedule the
        category and brand aggregate recounts.
        """
        from reviews import signals  # noqa: F401
