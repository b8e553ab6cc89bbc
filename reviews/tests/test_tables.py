"""
Tests for rule table loading and per-deployment overrides.
"""

import json

import pytest

from reviews.rules.tables import (
    RuleTables,
    RuleTablesError,
    load_rule_tables,
    read_tables_file,
    reset_rule_tables_cache,
)


class TestBundledTables:
    def test_default_sizes(self):
        tables = load_rule_tables()

        assert len(tables.fragrance_components) == 25
        assert len(tables.prohibited_terms) == 24
        assert "Limonene" in tables.fragrance_components
        assert "lead" in tables.known_contaminants
        assert "fragrance" in tables.fragrance_disclosure_keywords

    def test_cached(self):
        assert load_rule_tables() is load_rule_tables()


class TestOverrides:
    def test_settings_dict_override(self, settings):
        settings.REVIEWS_RULE_TABLES = {"prohibited_terms": ["awful"]}
        reset_rule_tables_cache()

        tables = load_rule_tables()

        assert tables.prohibited_terms == ("awful",)
        assert "Limonene" in tables.fragrance_components

    def test_settings_path_override(self, settings, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"known_contaminants": ["toluene"]}))
        settings.REVIEWS_RULE_TABLES_PATH = str(path)
        reset_rule_tables_cache()

        tables = load_rule_tables()

        assert tables.known_contaminants == ("toluene",)
        assert len(tables.prohibited_terms) == 24

    def test_dict_applied_after_path(self, settings, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"prohibited_terms": ["from-file"]}))
        settings.REVIEWS_RULE_TABLES_PATH = str(path)
        settings.REVIEWS_RULE_TABLES = {"prohibited_terms": ["from-settings"]}
        reset_rule_tables_cache()

        assert load_rule_tables().prohibited_terms == ("from-settings",)


class TestValidation:
    def test_unknown_table_rejected(self):
        with pytest.raises(RuleTablesError, match="prohibted_terms"):
            RuleTables.from_mapping({"prohibted_terms": ["x"]})

    def test_values_must_be_strings(self):
        with pytest.raises(RuleTablesError):
            RuleTables.from_mapping({"prohibited_terms": "toxic"})

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(RuleTablesError):
            read_tables_file(tmp_path / "missing.json")

    def test_file_must_hold_object(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text("[]")
        with pytest.raises(RuleTablesError):
            read_tables_file(path)
