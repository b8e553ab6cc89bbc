"""
Category rule lookup backed by the database.

This is the collaborator the Conflict Detector calls through
RuleContext.category_rules. It resolves the candidate's category and linked
ingredients and reports:

- ingredient_verdict_mismatch (error):   RECOMMEND with FLAGGED ingredients
- ingredient_verdict_mismatch (warning): RECOMMEND with CAUTION ingredients
- blocked_verdict (error):               verdict not allowed in the category
- category_warning (warning):            ingredient listed as harmful for the category

Lookup failures propagate; the detector decides how to degrade.
"""

import logging
from typing import Any, Dict, List

from reviews.choices import ConflictSeverity, IngredientVerdict, Verdict
from reviews.rules.conflicts import Conflict, resolve_category_id

logger = logging.getLogger(__name__)


class DatabaseCategoryRules:
    """Callable collaborator: ``rules(candidate) -> list[Conflict]``."""

    def __call__(self, candidate: Dict[str, Any]) -> List[Conflict]:
        from reviews.models import Category, Ingredient

        conflicts: List[Conflict] = []
        verdict = candidate.get("verdict")

        ingredient_ids = candidate.get("ingredients") or []
        ingredients = list(Ingredient.objects.filter(id__in=ingredient_ids)) if ingredient_ids else []

        if verdict == Verdict.RECOMMEND:
            conflicts.extend(self._ingredient_conflicts(ingredients))

        category_id = resolve_category_id(candidate.get("category"))
        if category_id is not None:
            category = Category.objects.get(pk=category_id)
            conflicts.extend(self._blocked_verdict_conflicts(category, verdict))
            conflicts.extend(self._harmful_ingredient_conflicts(category, ingredients))

        if conflicts:
            logger.debug(
                f"Category rules produced {len(conflicts)} conflict(s) for product {candidate.get('id')}"
            )

        return conflicts

    def _ingredient_conflicts(self, ingredients) -> List[Conflict]:
        flagged = [i.name for i in ingredients if i.verdict == IngredientVerdict.FLAGGED]
        caution = [i.name for i in ingredients if i.verdict == IngredientVerdict.CAUTION]

        conflicts = []
        if flagged:
            conflicts.append(Conflict(
                type="ingredient_verdict_mismatch",
                severity=ConflictSeverity.ERROR,
                message=f"Cannot RECOMMEND product with FLAGGED ingredients: {', '.join(flagged)}",
                details={"flagged_ingredients": flagged},
            ))
        if caution:
            conflicts.append(Conflict(
                type="ingredient_verdict_mismatch",
                severity=ConflictSeverity.WARNING,
                message=f"Product contains CAUTION ingredients: {', '.join(caution)}",
                details={"caution_ingredients": caution},
            ))
        return conflicts

    def _blocked_verdict_conflicts(self, category, verdict) -> List[Conflict]:
        conflicts = []
        for rule in category.blocked_verdicts or []:
            if verdict and rule.get("verdict") == verdict:
                conflicts.append(Conflict(
                    type="blocked_verdict",
                    severity=ConflictSeverity.ERROR,
                    message=rule.get("message")
                    or f"Verdict '{verdict}' is not allowed in category {category.name}",
                    details={"category": category.name, "verdict": verdict},
                ))
        return conflicts

    def _harmful_ingredient_conflicts(self, category, ingredients) -> List[Conflict]:
        conflicts = []
        for harmful in category.harmful_ingredients or []:
            harmful_name = (harmful.get("ingredient") or "").lower()
            if not harmful_name:
                continue
            for ingredient in ingredients:
                if harmful_name in ingredient.name.lower():
                    reason = harmful.get("reason") or "flagged as harmful for this category"
                    conflicts.append(Conflict(
                        type="category_warning",
                        severity=ConflictSeverity.WARNING,
                        message=f'Contains "{harmful["ingredient"]}" - {reason}',
                        details={"ingredient": harmful["ingredient"], "reason": harmful.get("reason")},
                    ))
        return conflicts
