"""
Serializers for the product publication API.
"""

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from reviews.models import Product
from reviews.rules.legal_copy import (
    SCREENING_WATERMARK,
    describe_detection,
    describe_detections_overview,
    format_batch_disclaimer,
    get_verdict_language,
)
from reviews.rules.verdicts import calculate_freshness

# Written only by the save pipeline
DERIVED_READ_ONLY_FIELDS = (
    "auto_verdict",
    "conflicts",
    "verdict_overridden_by",
    "verdict_overridden_at",
)


class DetectionSerializer(serializers.Serializer):
    """One lab detection as submitted by an editor."""

    compound = serializers.CharField(max_length=200)
    match_probability = serializers.FloatField(min_value=0, max_value=100)
    confirmation_level = serializers.ChoiceField(
        choices=["screening", "confirmed", "quantified"],
        required=False,
    )
    display_mode = serializers.ChoiceField(
        choices=["primary", "low_confidence", "hidden"],
        required=False,
    )
    detection_type = serializers.ChoiceField(
        choices=["standard", "fragrance_component", "hidden_contaminant"],
        required=False,
    )
    measured_value = serializers.FloatField(required=False, allow_null=True)
    unit = serializers.CharField(required=False, allow_blank=True, max_length=20)


class ProductWriteSerializer(serializers.ModelSerializer):
    """Editable product fields. Derived fields are rejected as read-only."""

    detections = DetectionSerializer(many=True, required=False)
    pros = serializers.ListField(child=serializers.CharField(), required=False)
    cons = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "brand",
            "category",
            "verdict",
            "verdict_override",
            "verdict_override_reason",
            "status",
            "sample_id",
            "detections",
            "package_text",
            "last_tested_at",
            "summary",
            "full_review",
            "pros",
            "cons",
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
            *DERIVED_READ_ONLY_FIELDS,
        ]
        read_only_fields = ["id", *DERIVED_READ_ONLY_FIELDS]

    def assign(self, instance, validated_data):
        """Apply validated values to ``instance`` without saving it."""
        for name, value in validated_data.items():
            setattr(instance, name, value)
        return instance

    def update(self, instance, validated_data):
        request = self.context.get("request")
        self.assign(instance, validated_data)
        instance.save(acting_user=getattr(request, "user", None))
        return instance


class ProductReadSerializer(ProductWriteSerializer):
    """Published view of a product with legal copy attached."""

    verdict_language = serializers.SerializerMethodField()
    batch_disclaimer = serializers.SerializerMethodField()
    screening_watermark = serializers.SerializerMethodField()
    freshness = serializers.SerializerMethodField()
    detection_summaries = serializers.SerializerMethodField()
    detection_overview = serializers.SerializerMethodField()

    class Meta(ProductWriteSerializer.Meta):
        fields = ProductWriteSerializer.Meta.fields + [
            "ingredients",
            "verdict_language",
            "batch_disclaimer",
            "screening_watermark",
            "freshness",
            "detection_summaries",
            "detection_overview",
        ]
        read_only_fields = fields

    def get_verdict_language(self, obj):
        return get_verdict_language(obj.verdict)

    def get_batch_disclaimer(self, obj):
        return format_batch_disclaimer(obj.sample_id)

    def get_screening_watermark(self, obj):
        return SCREENING_WATERMARK["primary"]

    def get_freshness(self, obj):
        return calculate_freshness(
            obj.last_tested_at,
            timezone.now(),
            getattr(settings, "REVIEWS_FRESHNESS_THRESHOLD_DAYS", 180),
        )

    def get_detection_summaries(self, obj):
        summaries = (describe_detection(d) for d in obj.detections or [])
        return [s for s in summaries if s]

    def get_detection_overview(self, obj):
        return describe_detections_overview(obj.detections)
