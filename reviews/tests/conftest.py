"""
Pytest configuration and fixtures for the reviews test suite.
"""

import copy
from datetime import datetime, timezone as dt_timezone

import pytest

from reviews.rules.context import Actor, RuleContext
from reviews.rules.tables import reset_rule_tables_cache

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture(autouse=True)
def fresh_rule_tables():
    """Every test starts from the configured rule tables, not a cached copy."""
    reset_rule_tables_cache()
    yield
    reset_rule_tables_cache()


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def editor(db):
    """An editor without premium analysis access."""
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(username="editor", password="test-pass")


@pytest.fixture
def premium_reader(db):
    """A user holding the view_full_analysis permission."""
    from django.contrib.auth import get_user_model
    from django.contrib.auth.models import Permission

    User = get_user_model()
    user = User.objects.create_user(username="premium", password="test-pass")
    user.user_permissions.add(Permission.objects.get(codename="view_full_analysis"))
    # Re-fetch to drop the cached permission set
    return User.objects.get(pk=user.pk)


@pytest.fixture
def category(db):
    from reviews.models import Category

    return Category.objects.create(
        name="Baby Shampoo",
        slug="baby-shampoo",
        harmful_ingredients=[{"ingredient": "Fragrance", "reason": "common allergen for infants"}],
        blocked_verdicts=[],
    )


@pytest.fixture
def brand(db):
    from reviews.models import Brand

    return Brand.objects.create(name="Acme Naturals", slug="acme-naturals")


@pytest.fixture
def flagged_ingredient(db):
    from reviews.models import Ingredient

    return Ingredient.objects.create(name="Benzene", verdict="flagged", reason="Known carcinogen")


@pytest.fixture
def caution_ingredient(db):
    from reviews.models import Ingredient

    return Ingredient.objects.create(name="Fragrance Blend", verdict="caution")


@pytest.fixture
def rule_context():
    """Context with a fixed clock, an actor and no category rules."""
    return RuleContext(user=Actor(id=7, name="editor"), now=FIXED_NOW)


@pytest.fixture
def flagged_fields():
    """Field values for a FLAGGED product that satisfies every legal-defense requirement."""
    return {
        "name": "Lavender Baby Wash",
        "verdict": "flagged",
        "sample_id": "TPR-2026-0001",
        "package_text": "Ingredients: water, sodium laureth sulfate, fragrance.",
        "detections": [
            {
                "compound": "Benzene",
                "match_probability": 92,
                "confirmation_level": "confirmed",
            },
        ],
        "summary": "Screening detected peaks consistent with benzene.",
        "full_review": "Results are valid for the tested sample only.",
        "pros": ["Clear labeling"],
        "cons": ["Undisclosed volatile compound detected"],
        "retailer_type": "pharmacy",
        "purchase_receipt": "receipts/tpr-2026-0001.jpg",
        "split_sample_retained": True,
        "selection_rationale": "Top seller in the category, requested by readers.",
        "method_validation_package": "validation/gcms-voc-v3.pdf",
    }


@pytest.fixture
def flagged_document(flagged_fields):
    """Rule document for a FLAGGED publish with the full evidence bundle."""
    document = copy.deepcopy(flagged_fields)
    document.update({
        "id": 1,
        "status": "published",
        "verdict_override": False,
        "purchase_photo": "",
        "expert_reviewer_name": "",
        "expert_review_date": None,
        "verified_by_third_party": False,
    })
    document["detections"][0]["display_mode"] = "primary"
    return document


@pytest.fixture
def flagged_product(db, category, brand, flagged_fields):
    """A FLAGGED product in review with the full evidence bundle."""
    from reviews.models import Product

    return Product.objects.create(
        status="review",
        category=category,
        brand=brand,
        **flagged_fields,
    )
