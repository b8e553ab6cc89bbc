# Initial schema for the product review collection and its audit log

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Brand",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("slug", models.SlugField(max_length=200, unique=True)),
                ("product_count", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "brands",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=200, unique=True)),
                ("harmful_ingredients", models.JSONField(blank=True, default=list)),
                ("blocked_verdicts", models.JSONField(blank=True, default=list)),
                ("product_count", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="children",
                        to="reviews.category",
                    ),
                ),
            ],
            options={
                "db_table": "categories",
                "ordering": ["name"],
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="Ingredient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                (
                    "verdict",
                    models.CharField(
                        choices=[
                            ("recommend", "Recommend"),
                            ("caution", "Caution"),
                            ("flagged", "Flagged"),
                            ("unknown", "Unknown (needs research)"),
                        ],
                        default="unknown",
                        max_length=20,
                    ),
                ),
                ("aliases", models.JSONField(blank=True, default=list)),
                ("reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "ingredients",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=300)),
                ("slug", models.SlugField(blank=True, max_length=300)),
                (
                    "verdict",
                    models.CharField(
                        blank=True,
                        choices=[("recommend", "Recommend"), ("caution", "Caution"), ("flagged", "Flagged")],
                        max_length=20,
                    ),
                ),
                (
                    "auto_verdict",
                    models.CharField(
                        blank=True,
                        choices=[("recommend", "Recommend"), ("caution", "Caution"), ("flagged", "Flagged")],
                        help_text="System-computed baseline verdict from linked ingredients",
                        max_length=20,
                    ),
                ),
                (
                    "verdict_override",
                    models.BooleanField(default=False, help_text="Editor chose to diverge from the computed verdict"),
                ),
                ("verdict_override_reason", models.TextField(blank=True)),
                ("verdict_overridden_at", models.DateTimeField(blank=True, editable=False, null=True)),
                (
                    "conflicts",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        editable=False,
                        help_text="Result of the most recent conflict check: {items, checked_at}",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ai_draft", "AI Draft"),
                            ("draft", "Draft"),
                            ("testing", "Testing"),
                            ("writing", "Writing"),
                            ("review", "Review"),
                            ("published", "Published"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                (
                    "sample_id",
                    models.CharField(
                        blank=True,
                        help_text="Unique identifier for the tested sample (e.g. TPR-2026-0001)",
                        max_length=50,
                    ),
                ),
                (
                    "detections",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text=(
                            "Lab detections: [{compound, match_probability, display_mode, "
                            "detection_type, confirmation_level}]"
                        ),
                    ),
                ),
                (
                    "package_text",
                    models.TextField(
                        blank=True,
                        help_text="All text from the package: ingredients, warnings, allergen statements",
                    ),
                ),
                ("last_tested_at", models.DateTimeField(blank=True, null=True)),
                ("summary", models.TextField(blank=True)),
                ("full_review", models.TextField(blank=True)),
                ("pros", models.JSONField(blank=True, default=list)),
                ("cons", models.JSONField(blank=True, default=list)),
                (
                    "retailer_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("authorized_retailer", "Authorized Retailer"),
                            ("brand_direct", "Brand Direct"),
                            ("marketplace_first_party", "Marketplace (sold by marketplace)"),
                            ("marketplace_third_party", "Marketplace (third-party seller)"),
                            ("pharmacy", "Pharmacy"),
                            ("grocery", "Grocery"),
                            ("other", "Other"),
                        ],
                        max_length=30,
                    ),
                ),
                ("purchase_receipt", models.CharField(blank=True, max_length=500)),
                ("purchase_photo", models.CharField(blank=True, max_length=500)),
                (
                    "split_sample_retained",
                    models.BooleanField(
                        blank=True,
                        help_text="Whether a split of the sample was kept for independent retesting",
                        null=True,
                    ),
                ),
                ("selection_rationale", models.TextField(blank=True)),
                ("expert_reviewer_name", models.CharField(blank=True, max_length=200)),
                ("expert_review_date", models.DateField(blank=True, null=True)),
                ("method_validation_package", models.CharField(blank=True, max_length=500)),
                ("verified_by_third_party", models.BooleanField(default=False)),
                ("external_lab_name", models.CharField(blank=True, max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "brand",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="reviews.brand",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="reviews.category",
                    ),
                ),
                (
                    "ingredients",
                    models.ManyToManyField(blank=True, related_name="products", to="reviews.ingredient"),
                ),
                (
                    "verdict_overridden_by",
                    models.ForeignKey(
                        blank=True,
                        editable=False,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="verdict_overrides",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "products",
                "ordering": ["-updated_at"],
                "permissions": [
                    ("view_full_analysis", "Can view the full lab analysis of flagged products"),
                ],
                "indexes": [
                    models.Index(fields=["status"], name="products_status_idx"),
                    models.Index(fields=["verdict"], name="products_verdict_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("conflict_detected", "Conflict Detected"),
                            ("manual_override", "Manual Override"),
                            ("publish_blocked", "Publish Blocked"),
                            ("ai_verdict_set", "AI Verdict Set"),
                            ("error", "Error"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "source_type",
                    models.CharField(
                        choices=[("manual", "Manual"), ("system", "System"), ("rule", "Rule")],
                        default="system",
                        max_length=20,
                    ),
                ),
                ("target_collection", models.CharField(default="products", max_length=50)),
                ("target_id", models.BigIntegerField(blank=True, null=True)),
                ("target_name", models.CharField(blank=True, max_length=300)),
                ("before", models.JSONField(blank=True, null=True)),
                ("after", models.JSONField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("success", models.BooleanField(default=True)),
                ("error_message", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "audit_log",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["action", "created_at"], name="audit_log_action_idx"),
                    models.Index(fields=["target_collection", "target_id"], name="audit_log_target_idx"),
                ],
            },
        ),
    ]
