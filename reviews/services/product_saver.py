"""
Product Save Service.

Runs the publication rule pipeline for one Product save and applies the
result:

    accepted -> derived fields written onto the instance, row saved,
                audit entries flushed, all inside one transaction
    rejected -> publish_blocked / conflict entries written, PublicationRejected
                raised, the products row untouched

Usage:
    service = ProductSaveService()
    service.save(product, user=request.user)

Product.save() calls this automatically.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from reviews.choices import AuditAction, AuditSourceType
from reviews.monitoring import add_rule_breadcrumb
from reviews.rules.context import Actor, AuditEntry, PipelineOutcome, RuleContext
from reviews.rules.pipeline import preflight, run_save_pipeline
from reviews.rules.verdicts import compute_auto_verdict
from reviews.services.audit import AuditLogSink
from reviews.services.category_rules import DatabaseCategoryRules

logger = logging.getLogger(__name__)

# Plain fields copied between the model and the rule document
DOCUMENT_FIELDS = (
    "name",
    "slug",
    "verdict",
    "auto_verdict",
    "verdict_override",
    "verdict_override_reason",
    "verdict_overridden_at",
    "status",
    "sample_id",
    "package_text",
    "summary",
    "full_review",
    "retailer_type",
    "purchase_receipt",
    "purchase_photo",
    "split_sample_retained",
    "selection_rationale",
    "expert_reviewer_name",
    "expert_review_date",
    "method_validation_package",
    "verified_by_third_party",
    "external_lab_name",
    "last_tested_at",
)

# Fields the pipeline may change; always included in the write
DERIVED_FIELDS = {
    "conflicts",
    "detections",
    "auto_verdict",
    "verdict_overridden_by",
    "verdict_overridden_at",
}


class PublicationRejected(ValidationError):
    """The save pipeline rejected a Product save. Carries every error string."""

    def __init__(self, outcome: PipelineOutcome):
        self.outcome = outcome
        self.errors = list(outcome.errors)
        self.stage = outcome.stage
        super().__init__(self.errors)

    def __str__(self):
        return self.outcome.error_message


def product_to_document(product) -> Dict[str, Any]:
    """Snapshot a Product instance as a plain rule document."""
    document = {name: getattr(product, name) for name in DOCUMENT_FIELDS}
    document.update({
        "id": product.pk,
        "brand": product.brand_id,
        "category": product.category_id,
        "verdict_overridden_by": product.verdict_overridden_by_id,
        "conflicts": copy.deepcopy(product.conflicts or {}),
        "detections": copy.deepcopy(product.detections or []),
        "pros": copy.deepcopy(product.pros or []),
        "cons": copy.deepcopy(product.cons or []),
        "ingredients": (
            list(product.ingredients.values_list("id", flat=True)) if product.pk else []
        ),
    })
    return document


def apply_document(product, document: Dict[str, Any]) -> None:
    """Copy pipeline-derived fields from the document back onto the instance."""
    product.conflicts = document.get("conflicts") or {}
    product.detections = document.get("detections") or []
    product.auto_verdict = document.get("auto_verdict") or ""
    product.verdict_overridden_by_id = document.get("verdict_overridden_by")
    product.verdict_overridden_at = document.get("verdict_overridden_at")


def actor_for(user) -> Optional[Actor]:
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return Actor(id=user.pk, name=user.get_username())


class ProductSaveService:
    """Runs the publication rules around a Product save."""

    def __init__(self, category_rules=None, audit_sink: Optional[AuditLogSink] = None):
        self.category_rules = category_rules if category_rules is not None else DatabaseCategoryRules()
        self.audit_sink = audit_sink or AuditLogSink()

    def build_context(self, product, user=None, now=None) -> RuleContext:
        from reviews.models import Product

        previous = None
        if product.pk:
            persisted = Product.objects.filter(pk=product.pk).first()
            if persisted is not None:
                previous = product_to_document(persisted)

        return RuleContext(
            user=actor_for(user),
            previous=previous,
            now=now or timezone.now(),
            category_rules=self.category_rules,
        )

    def refresh_auto_verdict(self, document: Dict[str, Any]) -> List[AuditEntry]:
        """
        Recompute auto_verdict from linked ingredients.

        Returns an ai_verdict_set entry when the computed verdict changed.
        """
        from reviews.models import Ingredient

        ingredient_ids = document.get("ingredients") or []
        verdicts = (
            Ingredient.objects.filter(id__in=ingredient_ids).values_list("verdict", flat=True)
            if ingredient_ids
            else []
        )
        auto_verdict = compute_auto_verdict(verdicts) or ""
        previous_auto = document.get("auto_verdict") or ""
        if auto_verdict == previous_auto:
            return []

        document["auto_verdict"] = auto_verdict
        return [AuditEntry(
            action=AuditAction.AI_VERDICT_SET,
            source_type=AuditSourceType.RULE,
            target_id=document.get("id"),
            target_name=document.get("name") or "",
            before={"auto_verdict": previous_auto or None},
            after={"auto_verdict": auto_verdict or None},
            metadata={"ingredient_count": len(ingredient_ids)},
        )]

    def evaluate(self, product, user=None, now=None, ingredient_ids=None) -> PipelineOutcome:
        """
        Run the pipeline for ``product`` without saving or auditing.

        ``ingredient_ids`` replaces the persisted ingredient links, for forms
        whose M2M values are not saved yet.
        """
        context = self.build_context(product, user=user, now=now)
        document = product_to_document(product)
        if ingredient_ids is not None:
            document["ingredients"] = list(ingredient_ids)
        self.refresh_auto_verdict(document)
        return run_save_pipeline(document, context)

    def preflight(self, product, user=None) -> PipelineOutcome:
        """Run every publication gate as if ``product`` were being published."""
        context = self.build_context(product, user=user)
        document = product_to_document(product)
        self.refresh_auto_verdict(document)
        return preflight(document, context)

    def record_rejection(self, product, outcome: PipelineOutcome, user=None) -> None:
        """Write the audit entries that document a rejected save."""
        self.audit_sink.write_many(outcome.audit_entries, user=user)
        add_rule_breadcrumb(
            stage=outcome.stage,
            message="Product save rejected",
            product_id=product.pk,
            level="warning",
            extra_data={"error_count": len(outcome.errors)},
        )
        logger.info(
            f"Rejected save of product {product.pk} ({product.name}) at {outcome.stage}: "
            f"{'; '.join(outcome.errors)}"
        )

    def save(self, product, user=None, ingredient_ids=None, **save_kwargs) -> PipelineOutcome:
        """
        Validate and save a Product.

        Args:
            product: Product instance holding the candidate field values
            user: Acting user, used for audit stamps
            ingredient_ids: Ingredient links the save will store, when they
                differ from the persisted ones (admin forms save M2M later)
            save_kwargs: Passed through to Model.save()

        Returns:
            The accepted PipelineOutcome

        Raises:
            PublicationRejected: with every error string; nothing is saved
        """
        context = self.build_context(product, user=user)
        document = product_to_document(product)
        if ingredient_ids is not None:
            document["ingredients"] = list(ingredient_ids)
        auto_entries = self.refresh_auto_verdict(document)

        outcome = run_save_pipeline(document, context)

        if not outcome.accepted:
            self.record_rejection(product, outcome, user=user)
            raise PublicationRejected(outcome)

        update_fields = save_kwargs.get("update_fields")
        if update_fields is not None:
            save_kwargs["update_fields"] = set(update_fields) | DERIVED_FIELDS

        with transaction.atomic():
            apply_document(product, outcome.document)
            product.save(run_rules=False, **save_kwargs)
            self.audit_sink.write_many(
                auto_entries + outcome.audit_entries,
                user=user,
                target_id=product.pk,
            )

        return outcome
