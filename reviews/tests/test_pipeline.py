"""
Tests for the save pipeline: stage order, short-circuiting and what a
rejection hands back to the caller.
"""

import copy

from reviews.rules.conflicts import Conflict
from reviews.rules.context import RuleContext, StageResult
from reviews.rules.pipeline import DEFAULT_STAGES, preflight, run_save_pipeline

BLOCKING = Conflict(type="blocked_verdict", severity="error", message="FLAGGED is not allowed here")


def _blocking_rules(candidate):
    return [BLOCKING]


class TestStageOrder:
    def test_default_order(self):
        assert [name for name, _ in DEFAULT_STAGES] == [
            "classify_detections",
            "check_conflicts",
            "audit_verdict_override",
            "check_legal_defense",
            "lint_publication",
        ]

    def test_stops_at_first_fatal_stage(self, rule_context):
        calls = []

        def recorder(name, fatal=False):
            def stage(document, context):
                calls.append(name)
                return StageResult(document=document, errors=[name] if fatal else [], fatal=fatal)
            return stage

        stages = [
            ("first", recorder("first")),
            ("second", recorder("second", fatal=True)),
            ("third", recorder("third")),
        ]

        outcome = run_save_pipeline({"id": 1}, rule_context, stages)

        assert calls == ["first", "second"]
        assert outcome.accepted is False
        assert outcome.stage == "second"
        assert outcome.errors == ["second"]


class TestAcceptedSave:
    def test_derived_fields_and_entries(self, flagged_document, rule_context):
        del flagged_document["detections"][0]["display_mode"]
        flagged_document.update({"verdict_override": True, "verdict_override_reason": "Lab confirmed"})

        outcome = run_save_pipeline(flagged_document, rule_context)

        assert outcome.accepted is True
        assert outcome.errors == []
        detection = outcome.document["detections"][0]
        assert detection["display_mode"] == "primary"
        assert detection["detection_type"] == "hidden_contaminant"
        assert outcome.document["conflicts"]["checked_at"] == rule_context.now.isoformat()
        assert outcome.document["verdict_overridden_by"] == 7
        assert [e.action for e in outcome.audit_entries] == ["manual_override"]

    def test_draft_save_skips_publication_gates(self, rule_context):
        document = {"id": 5, "status": "draft", "verdict": "flagged", "summary": "toxic"}
        assert run_save_pipeline(document, rule_context).accepted is True


class TestRejectedSave:
    def test_conflict_rejection_precedes_legal_defense(self, flagged_document):
        flagged_document["retailer_type"] = ""
        context = RuleContext(category_rules=_blocking_rules)

        outcome = run_save_pipeline(flagged_document, context)

        assert outcome.stage == "check_conflicts"
        assert outcome.errors == [BLOCKING.message]

    def test_override_reaches_legal_defense(self, flagged_document):
        flagged_document.update({"retailer_type": "", "verdict_override": True})
        context = RuleContext(category_rules=_blocking_rules)

        outcome = run_save_pipeline(flagged_document, context)

        assert outcome.stage == "check_legal_defense"
        assert len(outcome.errors) == 1
        assert "Retailer Type" in outcome.errors[0]
        # Only the rejection itself is audited; no override stamp survives
        assert [e.action for e in outcome.audit_entries] == ["publish_blocked"]

    def test_rejected_document_is_untouched_input(self, flagged_document, rule_context):
        flagged_document["selection_rationale"] = ""
        original = copy.deepcopy(flagged_document)

        outcome = run_save_pipeline(flagged_document, rule_context)

        assert outcome.accepted is False
        assert outcome.document == original
        assert flagged_document == original
        assert "conflicts" in outcome.evaluated_document

    def test_prohibited_terms_after_legal_defense(self, flagged_document, rule_context):
        flagged_document["summary"] = "A dangerous product."

        outcome = run_save_pipeline(flagged_document, rule_context)

        assert outcome.stage == "lint_publication"
        assert outcome.errors == ['Summary contains prohibited terms: "dangerous"']
        assert outcome.audit_entries == []

    def test_error_message_numbers_errors(self, flagged_document, rule_context):
        flagged_document.update({"retailer_type": "", "selection_rationale": ""})

        message = run_save_pipeline(flagged_document, rule_context).error_message

        lines = message.splitlines()
        assert lines[0].startswith("Cannot publish FLAGGED verdict")
        assert lines[1].startswith("1. CHAIN OF CUSTODY")
        assert lines[2].startswith("2. SELECTION RATIONALE")


class TestPreflight:
    def test_forces_publication_gates(self, flagged_document, rule_context):
        flagged_document.update({"status": "review", "retailer_type": ""})

        outcome = preflight(flagged_document, rule_context)

        assert outcome.accepted is False
        assert outcome.stage == "check_legal_defense"
        assert flagged_document["status"] == "review"
