"""
Django admin configuration for the Product Report CMS.

The product form runs the publication rule pipeline in clean() so editors
see every rejection reason on the form instead of a server error. Audit log
entries are read-only.
"""

import copy

from django import forms
from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import construct_instance
from django.utils.html import format_html

from reviews.models import AuditLog, Brand, Category, Ingredient, Product
from reviews.services.product_saver import ProductSaveService

VERDICT_COLORS = {
    "recommend": "#28a745",
    "caution": "#ffc107",
    "flagged": "#dc3545",
}


class ProductAdminForm(forms.ModelForm):
    """Product form that surfaces publication rule rejections as form errors."""

    request_user = None

    class Meta:
        model = Product
        fields = "__all__"

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        candidate = construct_instance(
            self, copy.copy(self.instance), self._meta.fields, self._meta.exclude
        )
        service = ProductSaveService()
        outcome = service.evaluate(
            candidate,
            user=self.request_user,
            ingredient_ids=self.submitted_ingredient_ids(),
        )
        if not outcome.accepted:
            service.record_rejection(candidate, outcome, user=self.request_user)
            raise ValidationError([ValidationError(error) for error in outcome.errors])

        return cleaned_data

    def submitted_ingredient_ids(self):
        """Ingredient IDs from the form, or None when the field was not submitted."""
        ingredients = self.cleaned_data.get("ingredients")
        if ingredients is None:
            return None
        return [ingredient.pk for ingredient in ingredients]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for products and their publication evidence."""

    form = ProductAdminForm

    list_display = [
        "name",
        "brand",
        "category",
        "verdict_badge",
        "auto_verdict",
        "verdict_override",
        "status",
        "conflict_count",
        "updated_at",
    ]
    list_filter = ["status", "verdict", "verdict_override", "retailer_type", "category"]
    search_fields = ["name", "brand__name", "sample_id"]
    raw_id_fields = ["brand", "category"]
    filter_horizontal = ["ingredients"]
    readonly_fields = [
        "auto_verdict",
        "conflicts",
        "verdict_overridden_by",
        "verdict_overridden_at",
        "created_at",
        "updated_at",
    ]
    prepopulated_fields = {"slug": ("name",)}

    fieldsets = (
        ("Identity", {
            "fields": ("name", "slug", "brand", "category", "ingredients"),
        }),
        ("Verdict", {
            "fields": (
                "verdict",
                "auto_verdict",
                "verdict_override",
                "verdict_override_reason",
                "verdict_overridden_by",
                "verdict_overridden_at",
                "conflicts",
            ),
        }),
        ("Publication", {
            "fields": ("status", "summary", "full_review", "pros", "cons"),
        }),
        ("Lab Results", {
            "fields": ("sample_id", "detections", "package_text", "last_tested_at"),
        }),
        ("Chain of Custody", {
            "fields": (
                "retailer_type",
                "purchase_receipt",
                "purchase_photo",
                "split_sample_retained",
                "selection_rationale",
            ),
            "description": "Required before a FLAGGED verdict can be published.",
        }),
        ("Method Validation", {
            "fields": (
                "method_validation_package",
                "expert_reviewer_name",
                "expert_review_date",
                "verified_by_third_party",
                "external_lab_name",
            ),
            "description": (
                "FLAGGED verdicts need a validation package, a completed expert review, "
                "or third-party verification."
            ),
        }),
        ("Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)
        form.request_user = request.user
        return form

    def save_model(self, request, obj, form, change):
        # M2M links are stored later in save_related; validate against the submitted ones
        obj.save(acting_user=request.user, ingredient_ids=form.submitted_ingredient_ids())

    def verdict_badge(self, obj):
        """Display verdict as colored badge."""
        if not obj.verdict:
            return "-"
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 2px 8px; border-radius: 4px;">{}</span>',
            VERDICT_COLORS.get(obj.verdict, "#6c757d"),
            obj.get_verdict_display(),
        )
    verdict_badge.short_description = "Verdict"
    verdict_badge.admin_order_field = "verdict"

    def conflict_count(self, obj):
        return len((obj.conflicts or {}).get("items", []))
    conflict_count.short_description = "Conflicts"


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "parent", "product_count"]
    search_fields = ["name"]
    readonly_fields = ["product_count"]
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ["name", "product_count"]
    search_fields = ["name"]
    readonly_fields = ["product_count"]
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Ingredient)
class IngredientAdmin(admin.ModelAdmin):
    list_display = ["name", "verdict"]
    list_filter = ["verdict"]
    search_fields = ["name"]


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only view of the audit trail."""

    list_display = ["action", "target_name", "target_id", "source_type", "performed_by", "success", "created_at"]
    list_filter = ["action", "source_type", "success"]
    search_fields = ["target_name", "error_message"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
