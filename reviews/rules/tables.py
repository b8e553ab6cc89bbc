"""
Static rule tables for the publication rule engine.

The fragrance whitelist, fragrance disclosure keywords, contaminant list and
prohibited-term blocklist are data, not code. The defaults ship as
``data/rule_tables.json`` and can be replaced per deployment:

    REVIEWS_RULE_TABLES_PATH = "/etc/product-report/rule_tables.json"
    REVIEWS_RULE_TABLES = {"prohibited_terms": ["toxic", "fraud"]}

A path replaces every table it defines; the dict override is applied last.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).resolve().parent / "data" / "rule_tables.json"

TABLE_NAMES = (
    "fragrance_components",
    "fragrance_disclosure_keywords",
    "known_contaminants",
    "prohibited_terms",
)


class RuleTablesError(ValueError):
    """Raised when a rule table file or override is malformed."""


@dataclass(frozen=True)
class RuleTables:
    """Immutable set of lookup tables used by the rule functions."""

    fragrance_components: Tuple[str, ...] = field(default_factory=tuple)
    fragrance_disclosure_keywords: Tuple[str, ...] = field(default_factory=tuple)
    known_contaminants: Tuple[str, ...] = field(default_factory=tuple)
    prohibited_terms: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], base: Optional["RuleTables"] = None) -> "RuleTables":
        """
        Build tables from a mapping of table name to list of strings.

        Tables missing from ``data`` are taken from ``base`` (or left empty).
        Unknown keys are rejected so a typo cannot silently disable a table.
        """
        unknown = set(data) - set(TABLE_NAMES)
        if unknown:
            raise RuleTablesError(f"Unknown rule tables: {', '.join(sorted(unknown))}")

        updates = {}
        for name, values in data.items():
            if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
                raise RuleTablesError(f"Rule table '{name}' must be a list of strings")
            updates[name] = tuple(values)

        return replace(base or cls(), **updates)


def read_tables_file(path) -> RuleTables:
    """Load a complete set of rule tables from a JSON file."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise RuleTablesError(f"Cannot read rule tables from {path}: {e}") from e

    if not isinstance(data, dict):
        raise RuleTablesError(f"Rule tables file {path} must contain a JSON object")

    return RuleTables.from_mapping(data)


@lru_cache(maxsize=1)
def load_rule_tables() -> RuleTables:
    """
    Return the rule tables configured for this deployment.

    Order of precedence (later wins):
        1. Bundled defaults
        2. REVIEWS_RULE_TABLES_PATH file
        3. REVIEWS_RULE_TABLES dict
    """
    tables = read_tables_file(DEFAULT_TABLES_PATH)

    custom_path = getattr(settings, "REVIEWS_RULE_TABLES_PATH", "")
    if custom_path:
        custom = read_tables_file(custom_path)
        tables = replace(
            tables,
            **{name: getattr(custom, name) for name in TABLE_NAMES if getattr(custom, name)},
        )
        logger.info(f"Loaded rule tables from {custom_path}")

    overrides = getattr(settings, "REVIEWS_RULE_TABLES", None) or {}
    if overrides:
        tables = RuleTables.from_mapping(overrides, base=tables)

    return tables


def reset_rule_tables_cache() -> None:
    """Drop the cached tables so the next call re-reads settings."""
    load_rule_tables.cache_clear()
