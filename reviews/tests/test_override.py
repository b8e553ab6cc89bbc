"""
Tests for the Verdict Override Auditor.
"""

from reviews.rules.context import RuleContext
from reviews.rules.override import audit_verdict_override


def _document(**overrides):
    document = {
        "id": 12,
        "name": "Citrus Body Lotion",
        "verdict": "recommend",
        "auto_verdict": "caution",
        "verdict_override": True,
        "verdict_override_reason": "Caution ingredient is below 0.01%",
        "verdict_overridden_by": None,
        "verdict_overridden_at": None,
    }
    document.update(overrides)
    return document


class TestAuditVerdictOverride:
    def test_stamps_on_first_override(self, rule_context):
        rule_context.previous = _document(verdict="caution", verdict_override=False)

        result = audit_verdict_override(_document(), rule_context)

        assert result.document["verdict_overridden_by"] == 7
        assert result.document["verdict_overridden_at"] == rule_context.now

        entry = result.audit_entries[0]
        assert entry.action == "manual_override"
        assert entry.source_type == "manual"
        assert entry.before["verdict"] == "caution"
        assert entry.after == {"verdict": "recommend"}
        assert entry.metadata["reason"] == "Caution ingredient is below 0.01%"
        assert entry.metadata["overridden_by"] == "editor"

    def test_new_document_counts_as_override_off(self, rule_context):
        result = audit_verdict_override(_document(id=None), rule_context)

        assert result.document["verdict_overridden_by"] == 7
        # No previous verdict, so the computed one is the baseline
        assert result.audit_entries[0].before["verdict"] == "caution"

    def test_no_restamp_when_already_on(self, rule_context):
        earlier = rule_context.now.replace(year=2025)
        rule_context.previous = _document(verdict_overridden_by=3, verdict_overridden_at=earlier)
        document = _document(verdict_overridden_by=3, verdict_overridden_at=earlier)

        result = audit_verdict_override(document, rule_context)

        assert result.document["verdict_overridden_by"] == 3
        assert result.document["verdict_overridden_at"] == earlier
        assert result.audit_entries == []

    def test_turning_off_keeps_stamps(self, rule_context):
        earlier = rule_context.now.replace(year=2025)
        rule_context.previous = _document(verdict_overridden_by=3, verdict_overridden_at=earlier)
        document = _document(
            verdict_override=False,
            verdict_overridden_by=3,
            verdict_overridden_at=earlier,
        )

        result = audit_verdict_override(document, rule_context)

        assert result.document["verdict_overridden_by"] == 3
        assert result.document["verdict_overridden_at"] == earlier
        assert result.audit_entries == []

    def test_anonymous_user(self):
        result = audit_verdict_override(_document(), RuleContext(user=None))

        assert result.document["verdict_overridden_by"] is None
        assert result.audit_entries[0].metadata["overridden_by"] == ""
