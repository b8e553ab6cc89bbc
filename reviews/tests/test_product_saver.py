"""
Integration tests for ProductSaveService.

Every Product.save() goes through the publication rule pipeline. A rejected
save leaves the products row untouched and records why it was rejected.
"""

from unittest.mock import patch

import pytest

from reviews.models import AuditLog, Category, Product
from reviews.services.product_saver import (
    ProductSaveService,
    PublicationRejected,
    product_to_document,
)


# =============================================================================
# Legal-defense gate end to end
# =============================================================================

class TestPublishFlagged:
    def test_missing_retailer_type_blocks_publish(self, flagged_product, editor):
        flagged_product.retailer_type = ""
        flagged_product.status = "published"

        with pytest.raises(PublicationRejected) as exc_info:
            flagged_product.save(acting_user=editor)

        message = str(exc_info.value)
        assert "CHAIN OF CUSTODY" in message
        assert "Retailer Type" in message
        assert exc_info.value.stage == "check_legal_defense"

        flagged_product.refresh_from_db()
        assert flagged_product.status == "review"
        assert flagged_product.retailer_type == "pharmacy"

        blocked = AuditLog.objects.get(action="publish_blocked", target_id=flagged_product.pk)
        assert blocked.performed_by == editor
        assert any("Retailer Type" in error for error in blocked.metadata["errors"])

    def test_rejection_is_a_validation_error(self, flagged_product):
        from django.core.exceptions import ValidationError

        flagged_product.selection_rationale = ""
        flagged_product.status = "published"

        with pytest.raises(ValidationError) as exc_info:
            flagged_product.save()

        assert len(exc_info.value.messages) == 1

    def test_complete_bundle_publishes(self, flagged_product, editor):
        flagged_product.status = "published"
        flagged_product.save(acting_user=editor)

        flagged_product.refresh_from_db()
        assert flagged_product.status == "published"
        assert flagged_product.detections[0]["display_mode"] == "primary"
        assert flagged_product.detections[0]["detection_type"] == "hidden_contaminant"
        assert not AuditLog.objects.filter(action="publish_blocked").exists()

    def test_resave_of_published_product_is_gated(self, flagged_product):
        flagged_product.status = "published"
        flagged_product.save()

        flagged_product.method_validation_package = ""
        with pytest.raises(PublicationRejected) as exc_info:
            flagged_product.save()

        assert exc_info.value.errors[0].startswith("METHOD VALIDATION")

    def test_prohibited_terms_block_publish(self, db):
        product = Product.objects.create(name="Rose Toner", verdict="caution", status="review")
        product.status = "published"
        product.full_review = "Honestly a scam."

        with pytest.raises(PublicationRejected) as exc_info:
            product.save()

        assert exc_info.value.errors == ['Full Review contains prohibited terms: "scam"']
        product.refresh_from_db()
        assert product.full_review == ""


# =============================================================================
# Conflicts and overrides
# =============================================================================

class TestConflictsOnSave:
    @pytest.fixture
    def strict_category(self, db):
        return Category.objects.create(
            name="Infant Care",
            slug="infant-care",
            blocked_verdicts=[{"verdict": "recommend", "message": "Infant products cannot be recommended yet"}],
        )

    def test_blocked_verdict_rejects_save(self, strict_category):
        product = Product(name="Baby Oil", verdict="recommend", category=strict_category)

        with pytest.raises(PublicationRejected) as exc_info:
            product.save()

        assert exc_info.value.errors == ["Infant products cannot be recommended yet"]
        assert product.pk is None
        assert AuditLog.objects.filter(action="conflict_detected").count() == 1

    def test_override_saves_and_stamps(self, strict_category, editor):
        product = Product(
            name="Baby Oil",
            verdict="recommend",
            category=strict_category,
            verdict_override=True,
            verdict_override_reason="Confirmed clean by external lab",
        )
        product.save(acting_user=editor)

        product.refresh_from_db()
        assert product.verdict_overridden_by == editor
        assert product.verdict_overridden_at is not None
        assert product.conflicts["items"][0]["type"] == "blocked_verdict"

        override = AuditLog.objects.get(action="manual_override")
        assert override.target_id == product.pk
        assert override.metadata["reason"] == "Confirmed clean by external lab"

    def test_override_stamp_not_repeated(self, strict_category, editor):
        product = Product(name="Baby Oil", verdict="recommend", category=strict_category, verdict_override=True)
        product.save(acting_user=editor)
        stamped_at = Product.objects.get(pk=product.pk).verdict_overridden_at

        product.summary = "Updated copy"
        product.save(acting_user=editor)

        product.refresh_from_db()
        assert product.verdict_overridden_at == stamped_at
        assert AuditLog.objects.filter(action="manual_override").count() == 1

    def test_flagged_ingredient_blocks_recommend(self, db, flagged_ingredient):
        product = Product.objects.create(name="Cleanser", verdict="caution")
        product.ingredients.add(flagged_ingredient)
        product.verdict = "recommend"

        with pytest.raises(PublicationRejected) as exc_info:
            product.save()

        assert "Benzene" in exc_info.value.errors[0]

    def test_category_lookup_failure_fails_open(self, db, editor):
        def broken_rules(candidate):
            raise ConnectionError("lookup unavailable")

        product = Product(name="Hand Soap", verdict="recommend")
        ProductSaveService(category_rules=broken_rules).save(product, user=editor)

        assert product.pk is not None
        error = AuditLog.objects.get(action="error", target_id=product.pk)
        assert error.metadata["error_category"] == "conflict_detection_error"


# =============================================================================
# Derived fields
# =============================================================================

class TestAutoVerdict:
    def test_computed_from_ingredients(self, db, caution_ingredient, flagged_ingredient):
        product = Product.objects.create(name="Body Mist", verdict="caution")
        product.ingredients.add(caution_ingredient, flagged_ingredient)

        product.save()

        product.refresh_from_db()
        assert product.auto_verdict == "flagged"
        assert AuditLog.objects.filter(action="ai_verdict_set", target_id=product.pk).exists()
        # Diverging from the computed verdict is a warning, not a block
        assert product.conflicts["items"][0]["type"] == "auto_verdict_mismatch"

    def test_cleared_when_ingredients_removed(self, db, caution_ingredient):
        product = Product.objects.create(name="Body Mist", verdict="caution")
        product.ingredients.add(caution_ingredient)
        product.save()

        product.ingredients.clear()
        product.save()

        product.refresh_from_db()
        assert product.auto_verdict == ""


class TestSaveMechanics:
    def test_update_fields_include_derived(self, db):
        product = Product.objects.create(
            name="Face Mist",
            verdict="caution",
            detections=[{"compound": "Linalool", "match_probability": 55}],
        )
        product.detections = [{"compound": "Mercury", "match_probability": 91}]
        product.save(update_fields=["detections"])

        product.refresh_from_db()
        assert product.detections[0]["detection_type"] == "hidden_contaminant"
        assert product.conflicts["checked_at"]

    def test_audit_write_failure_does_not_fail_save(self, db, editor):
        product = Product(name="Hand Soap", verdict="recommend", verdict_override=True)

        with patch.object(AuditLog.objects, "create", side_effect=RuntimeError("audit store down")):
            product.save(acting_user=editor)

        assert Product.objects.filter(pk=product.pk).exists()
        assert not AuditLog.objects.exists()

    def test_document_snapshot(self, flagged_product, flagged_ingredient):
        flagged_product.ingredients.add(flagged_ingredient)

        document = product_to_document(flagged_product)

        assert document["id"] == flagged_product.pk
        assert document["category"] == flagged_product.category_id
        assert document["ingredients"] == [flagged_ingredient.pk]
        assert document["retailer_type"] == "pharmacy"

    def test_pending_ingredient_links_replace_stored_ones(self, db, flagged_ingredient, caution_ingredient):
        product = Product.objects.create(name="Cleanser", verdict="caution")
        product.ingredients.add(flagged_ingredient)
        product.verdict = "recommend"

        # Links are stored after the row, as the admin does
        product.save(ingredient_ids=[caution_ingredient.pk])
        product.ingredients.set([caution_ingredient])

        product.refresh_from_db()
        assert product.verdict == "recommend"
        assert product.auto_verdict == "caution"
        assert {item["severity"] for item in product.conflicts["items"]} == {"warning"}
        assert not any("Benzene" in item["message"] for item in product.conflicts["items"])

    def test_positional_save_options_rejected(self, db):
        product = Product.objects.create(name="Face Mist", verdict="caution")
        product.name = "Renamed"

        with pytest.raises(TypeError):
            product.save(False, False)

        product.refresh_from_db()
        assert product.name == "Face Mist"

