"""
Django signals for the reviews application.

Product save/delete -> Category.product_count and Brand.product_count

The recounts are background side effects: they are scheduled after the
transaction commits, with a short countdown, and may fail independently of
the save that triggered them.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


def _schedule_aggregate_updates(category_id, brand_id):
    from reviews.tasks import update_brand_product_count, update_category_product_count

    countdown = getattr(settings, "REVIEWS_AGGREGATE_COUNTDOWN", 2)

    def dispatch():
        try:
            if category_id:
                update_category_product_count.apply_async(args=[category_id], countdown=countdown)
            if brand_id:
                update_brand_product_count.apply_async(args=[brand_id], countdown=countdown)
        except Exception as e:
            logger.warning(f"Could not schedule aggregate updates: {e}")

    transaction.on_commit(dispatch)


@receiver(post_save, sender="reviews.Product")
def schedule_aggregates_on_product_save(sender, instance, created, **kwargs):
    """Recount category and brand products after a Product is saved."""
    _schedule_aggregate_updates(instance.category_id, instance.brand_id)


@receiver(post_delete, sender="reviews.Product")
def schedule_aggregates_on_product_delete(sender, instance, **kwargs):
    """Recount category and brand products after a Product is deleted."""
    _schedule_aggregate_updates(instance.category_id, instance.brand_id)
