"""
Tests for the background aggregate updates.

Product saves schedule category and brand recounts after commit. The tasks
run eagerly under the test settings.
"""

from unittest.mock import patch

import pytest

from reviews.models import AuditLog, Brand, Category, Product
from reviews.services.product_saver import PublicationRejected
from reviews.tasks import update_brand_product_count, update_category_product_count


class TestScheduling:
    def test_save_recounts_after_commit(self, django_capture_on_commit_callbacks, category, brand):
        with django_capture_on_commit_callbacks(execute=True):
            Product.objects.create(name="Bath Oil", verdict="caution", category=category, brand=brand)

        category.refresh_from_db()
        brand.refresh_from_db()
        assert category.product_count == 1
        assert brand.product_count == 1

    def test_nothing_runs_before_commit(self, django_capture_on_commit_callbacks, category):
        with patch("reviews.tasks.update_category_product_count.apply_async") as apply_async:
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                Product.objects.create(name="Bath Oil", verdict="caution", category=category)

            apply_async.assert_not_called()
            assert len(callbacks) == 1

            callbacks[0]()
            apply_async.assert_called_once()
            assert apply_async.call_args.kwargs["args"] == [category.pk]

    def test_rejected_save_schedules_nothing(self, django_capture_on_commit_callbacks, flagged_product):
        flagged_product.status = "published"
        flagged_product.retailer_type = ""

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            with pytest.raises(PublicationRejected):
                flagged_product.save()

        assert callbacks == []

    def test_delete_recounts(self, django_capture_on_commit_callbacks, category):
        product = Product.objects.create(name="Bath Oil", verdict="caution", category=category)
        Category.objects.filter(pk=category.pk).update(product_count=1)

        with django_capture_on_commit_callbacks(execute=True):
            product.delete()

        category.refresh_from_db()
        assert category.product_count == 0

    def test_scheduling_failure_is_swallowed(self, django_capture_on_commit_callbacks, category):
        with patch(
            "reviews.tasks.update_category_product_count.apply_async",
            side_effect=ConnectionError("broker down"),
        ):
            with django_capture_on_commit_callbacks(execute=True):
                product = Product.objects.create(name="Bath Oil", verdict="caution", category=category)

        assert Product.objects.filter(pk=product.pk).exists()


class TestTasks:
    def test_category_count(self, category):
        Product.objects.create(name="A", verdict="caution", category=category)
        Product.objects.create(name="B", verdict="caution", category=category)

        result = update_category_product_count(category.pk)

        assert result == {"category_id": category.pk, "product_count": 2}

    def test_brand_count(self, brand):
        Product.objects.create(name="A", verdict="caution", brand=brand)

        assert update_brand_product_count(brand.pk)["product_count"] == 1
        assert Brand.objects.get(pk=brand.pk).product_count == 1

    def test_missing_category(self, db):
        assert update_category_product_count(999)["product_count"] is None

    def test_failure_is_recorded_not_raised(self, category):
        with patch("reviews.tasks.Product.objects.filter", side_effect=RuntimeError("db gone")):
            result = update_category_product_count(category.pk)

        assert result["product_count"] is None
        error = AuditLog.objects.get(action="error")
        assert error.success is False
        assert error.metadata["error_category"] == "aggregate_update_error"
        assert error.metadata["category_id"] == category.pk
