"""
Django models for the Product Report CMS.

Models: Brand, Category, Ingredient, Product, AuditLog

Product is the only model with publication invariants. Every Product save
runs the publication rule pipeline (see reviews.rules and
reviews.services.product_saver); a rejected save raises
PublicationRejected and writes nothing to the products table.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from reviews.choices import (
    AuditAction,
    AuditSourceType,
    IngredientVerdict,
    ProductStatus,
    RetailerType,
    Verdict,
)


class Brand(models.Model):
    """Manufacturer of reviewed products."""

    name = models.CharField(max_length=200, unique=True)
    slug = models.SlugField(max_length=200, unique=True)

    # Denormalized, recomputed asynchronously after product saves
    product_count = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "brands"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Category(models.Model):
    """
    Product category with its verdict rules.

    harmful_ingredients: [{"ingredient": "talc", "reason": "..."}]
        Ingredients that raise a warning for products in this category.
    blocked_verdicts: [{"verdict": "recommend", "message": "..."}]
        Verdicts that may not be given to products in this category.
    """

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
    )

    harmful_ingredients = models.JSONField(default=list, blank=True)
    blocked_verdicts = models.JSONField(default=list, blank=True)

    product_count = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "categories"
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class Ingredient(models.Model):
    """Researched ingredient with its own verdict."""

    name = models.CharField(max_length=200, unique=True)
    verdict = models.CharField(
        max_length=20,
        choices=IngredientVerdict.choices,
        default=IngredientVerdict.UNKNOWN,
    )
    aliases = models.JSONField(default=list, blank=True)
    reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ingredients"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.verdict})"


class Product(models.Model):
    """
    A tested product and its published verdict.

    Derived fields (conflicts, detection display_mode / detection_type and
    override stamps) are written by the save pipeline, never by hand.
    """

    # Identity
    name = models.CharField(max_length=300)
    slug = models.SlugField(max_length=300, blank=True)
    brand = models.ForeignKey(
        Brand,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    ingredients = models.ManyToManyField(Ingredient, blank=True, related_name="products")

    # Verdict
    verdict = models.CharField(max_length=20, choices=Verdict.choices, blank=True)
    auto_verdict = models.CharField(
        max_length=20,
        choices=Verdict.choices,
        blank=True,
        help_text="System-computed baseline verdict from linked ingredients",
    )
    verdict_override = models.BooleanField(
        default=False,
        help_text="Editor chose to diverge from the computed verdict",
    )
    verdict_override_reason = models.TextField(blank=True)
    verdict_overridden_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verdict_overrides",
        editable=False,
    )
    verdict_overridden_at = models.DateTimeField(null=True, blank=True, editable=False)
    conflicts = models.JSONField(
        default=dict,
        blank=True,
        editable=False,
        help_text="Result of the most recent conflict check: {items, checked_at}",
    )

    # Lifecycle
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.DRAFT,
    )

    # Lab results
    sample_id = models.CharField(
        max_length=50,
        blank=True,
        help_text="Unique identifier for the tested sample (e.g. TPR-2026-0001)",
    )
    detections = models.JSONField(
        default=list,
        blank=True,
        help_text=(
            "Lab detections: [{compound, match_probability, display_mode, "
            "detection_type, confirmation_level}]"
        ),
    )
    package_text = models.TextField(
        blank=True,
        help_text="All text from the package: ingredients, warnings, allergen statements",
    )
    last_tested_at = models.DateTimeField(null=True, blank=True)

    # Editorial copy
    summary = models.TextField(blank=True)
    full_review = models.TextField(blank=True)
    pros = models.JSONField(default=list, blank=True)
    cons = models.JSONField(default=list, blank=True)

    # Chain of custody
    retailer_type = models.CharField(max_length=30, choices=RetailerType.choices, blank=True)
    purchase_receipt = models.CharField(max_length=500, blank=True)
    purchase_photo = models.CharField(max_length=500, blank=True)
    split_sample_retained = models.BooleanField(
        null=True,
        blank=True,
        help_text="Whether a split of the sample was kept for independent retesting",
    )
    selection_rationale = models.TextField(blank=True)

    # Method validation
    expert_reviewer_name = models.CharField(max_length=200, blank=True)
    expert_review_date = models.DateField(null=True, blank=True)
    method_validation_package = models.CharField(max_length=500, blank=True)
    verified_by_third_party = models.BooleanField(default=False)
    external_lab_name = models.CharField(max_length=200, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["verdict"], name="products_verdict_idx"),
        ]
        permissions = [
            ("view_full_analysis", "Can view the full lab analysis of flagged products"),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, acting_user=None, run_rules=True, ingredient_ids=None, **kwargs):
        """
        Save through the publication rule pipeline.

        Args:
            acting_user: User performing the save, stamped on override audits
            run_rules: False only for internal writes of already-validated state
            ingredient_ids: Ingredient links about to be stored, for callers
                that save the many-to-many field after the row

        Raises:
            PublicationRejected: the pipeline rejected the save
            TypeError: positional save options were given with run_rules on
        """
        if not run_rules:
            return super().save(*args, **kwargs)

        if args:
            raise TypeError(
                "Product.save() takes save options as keyword arguments only "
                "(force_insert=, force_update=, using=, update_fields=)"
            )

        from reviews.services.product_saver import ProductSaveService

        return ProductSaveService().save(
            self, user=acting_user, ingredient_ids=ingredient_ids, **kwargs
        )


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise PermissionError("Audit log entries are immutable")


class AuditLog(models.Model):
    """
    Append-only record of rule-engine and editor actions on products.

    Entries are created programmatically and never updated.
    """

    action = models.CharField(max_length=30, choices=AuditAction.choices)
    source_type = models.CharField(
        max_length=20,
        choices=AuditSourceType.choices,
        default=AuditSourceType.SYSTEM,
    )
    target_collection = models.CharField(max_length=50, default="products")
    target_id = models.BigIntegerField(null=True, blank=True)
    target_name = models.CharField(max_length=300, blank=True)
    before = models.JSONField(null=True, blank=True)
    after = models.JSONField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = "audit_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "created_at"], name="audit_log_action_idx"),
            models.Index(fields=["target_collection", "target_id"], name="audit_log_target_idx"),
        ]

    def __str__(self):
        return f"{self.action}: {self.target_name or self.target_id} ({self.created_at})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError("Audit log entries are immutable")
        return super().save(*args, **kwargs)
