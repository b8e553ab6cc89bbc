"""
Celery tasks for the reviews application.

- update_category_product_count: recount products in a category
- update_brand_product_count: recount products for a brand

Both tolerate eventual consistency and run with no ordering guarantee
relative to the save that scheduled them. Failures are logged and recorded,
never raised back to the caller.
"""

import logging
from typing import Any, Dict

from celery import shared_task

from reviews.models import Brand, Category, Product
from reviews.monitoring import log_error_with_context

logger = logging.getLogger(__name__)


@shared_task(name="reviews.tasks.update_category_product_count")
def update_category_product_count(category_id: int) -> Dict[str, Any]:
    """
    Recompute Category.product_count.

    Returns:
        Dict with category_id and the new count (None if the update failed)
    """
    try:
        count = Product.objects.filter(category_id=category_id).count()
        updated = Category.objects.filter(pk=category_id).update(product_count=count)
    except Exception as e:
        log_error_with_context(
            e,
            category="aggregate_update_error",
            message=f"Failed to recount products for category {category_id}",
            metadata={"category_id": category_id},
        )
        return {"category_id": category_id, "product_count": None}

    if not updated:
        logger.info(f"Category {category_id} no longer exists, skipping recount")
        return {"category_id": category_id, "product_count": None}

    logger.debug(f"Category {category_id} product_count = {count}")
    return {"category_id": category_id, "product_count": count}


@shared_task(name="reviews.tasks.update_brand_product_count")
def update_brand_product_count(brand_id: int) -> Dict[str, Any]:
    """Recompute Brand.product_count."""
    try:
        count = Product.objects.filter(brand_id=brand_id).count()
        updated = Brand.objects.filter(pk=brand_id).update(product_count=count)
    except Exception as e:
        log_error_with_context(
            e,
            category="aggregate_update_error",
            message=f"Failed to recount products for brand {brand_id}",
            metadata={"brand_id": brand_id},
        )
        return {"brand_id": brand_id, "product_count": None}

    if not updated:
        logger.info(f"Brand {brand_id} no longer exists, skipping recount")
        return {"brand_id": brand_id, "product_count": None}

    return {"brand_id": brand_id, "product_count": count}
