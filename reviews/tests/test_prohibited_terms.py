"""
Tests for the Prohibited-Term Linter.
"""

from reviews.rules.context import RuleContext
from reviews.rules.prohibited_terms import contains_prohibited_terms, lint_publication
from reviews.rules.tables import RuleTables


class TestContainsProhibitedTerms:
    def test_case_insensitive_match(self):
        assert contains_prohibited_terms("This product is TOXIC") == ["toxic"]

    def test_clean_text(self):
        assert contains_prohibited_terms("This product is great") == []

    def test_empty_text(self):
        assert contains_prohibited_terms("") == []
        assert contains_prohibited_terms(None) == []

    def test_multiple_terms_in_table_order(self):
        found = contains_prohibited_terms("A scam. Dangerous and toxic.")
        assert found == ["toxic", "dangerous", "scam"]

    def test_multi_word_term(self):
        assert contains_prohibited_terms("Honestly, don't buy this") == ["don't buy"]

    def test_custom_tables(self):
        tables = RuleTables(prohibited_terms=("awful",))
        assert contains_prohibited_terms("An awful, toxic smell", tables) == ["awful"]


class TestLintPublication:
    def _document(self, **overrides):
        document = {
            "id": 3,
            "status": "published",
            "verdict": "caution",
            "summary": "Screening detected notable findings.",
            "full_review": "See the detailed results.",
            "pros": ["Fragrance disclosed"],
            "cons": ["Strong scent"],
        }
        document.update(overrides)
        return document

    def test_clean_publish_passes(self, rule_context):
        result = lint_publication(self._document(), rule_context)
        assert result.fatal is False
        assert result.errors == []

    def test_every_field_is_reported(self, rule_context):
        document = self._document(
            summary="Toxic product.",
            full_review="This is a scam.",
            cons=["Worst smell"],
        )

        result = lint_publication(document, rule_context)

        assert result.fatal is True
        assert result.errors == [
            'Summary contains prohibited terms: "toxic"',
            'Full Review contains prohibited terms: "scam"',
            'Pros/Cons contains prohibited terms: "worst"',
        ]

    def test_pros_cons_items_as_objects(self, rule_context):
        document = self._document(pros=[{"item": "Not harmful at all"}], cons=[])
        result = lint_publication(document, rule_context)
        assert result.errors == ['Pros/Cons contains prohibited terms: "harmful"']

    def test_not_applied_before_publication(self, rule_context):
        document = self._document(status="review", summary="Toxic product.")
        result = lint_publication(document, rule_context)
        assert result.fatal is False

    def test_document_is_not_changed(self, rule_context):
        document = self._document(summary="Toxic product.")
        result = lint_publication(document, rule_context)
        assert result.document["summary"] == "Toxic product."

    def test_uses_context_tables(self):
        context = RuleContext(tables=RuleTables(prohibited_terms=("meh",)))
        result = lint_publication(self._document(summary="Toxic but meh"), context)
        assert result.errors == ['Summary contains prohibited terms: "meh"']
