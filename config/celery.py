"""
Celery configuration for the Product Report CMS backend.

Background side effects of a product save (category and brand product
counts) run here, decoupled from the request that triggered them.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("product_report")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Configure task queues for different operations
app.conf.task_queues = {
    "aggregates": {
        "exchange": "aggregates",
        "routing_key": "aggregates",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "reviews.tasks.update_category_product_count": {"queue": "aggregates"},
    "reviews.tasks.update_brand_product_count": {"queue": "aggregates"},
}
