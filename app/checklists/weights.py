"""
Definition-time weight validation for templates and groups.
"""
import math
from typing import Dict, Iterable, List, Optional

from app.checklists.config import ScoringConfig, get_scoring_config
from app.checklists.errors import OK, Err, ValidationErrorKind, ValidationOutcome
from app.checklists.models import Template
from app.core.logging import get_logger

logger = get_logger("weights")


class TemplateWeightValidator:
    """
    Enforces the question weight floor on every category of a template.

    Only questions carry weight, so categories are not checked against each
    other; a category without questions is always valid.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def validate(self, template: Template) -> ValidationOutcome:
        floor = self.config.weights.min_question_weight

        for category in template.categories:
            if not category.questions:
                continue

            invalid = [q for q in category.questions if not _meets_floor(q.weight, floor)]
            if invalid:
                logger.warning(
                    f"Template {template.id}: {len(invalid)} question(s) below weight {floor} "
                    f"in category {category.id}"
                )
                return Err(
                    ValidationErrorKind.MIN_WEIGHT_VIOLATION,
                    f"Questions must have minimum weight of {floor} in category {category.id}",
                    {
                        "category_id": category.id,
                        "category_title": category.title,
                        "question_ids": [q.id for q in invalid],
                    },
                )

        return OK


class GroupWeightValidator:
    """
    Enforces that a group's template weights cover its templates exactly and
    sum to 1.0.

    Rules are checked in a fixed order and the first failure is returned.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def validate(
        self,
        template_ids: List[str],
        template_weights: Optional[Dict[str, float]],
        known_template_ids: Iterable[str],
    ) -> ValidationOutcome:
        if not template_ids:
            return OK

        known = set(known_template_ids)
        missing_templates = [tid for tid in template_ids if tid not in known]
        if missing_templates:
            return Err(
                ValidationErrorKind.TEMPLATES_NOT_FOUND,
                f"Templates not found: {', '.join(missing_templates)}",
                {"missing_ids": missing_templates},
            )

        if template_weights is None:
            return Err(
                ValidationErrorKind.WEIGHTS_REQUIRED,
                "Template weights must be provided when templates are specified",
            )

        id_set = set(template_ids)
        missing_weights = [tid for tid in template_ids if tid not in template_weights]
        if missing_weights:
            return Err(
                ValidationErrorKind.MISSING_WEIGHTS,
                f"Missing weights for templates: {', '.join(missing_weights)}",
                {"ids": missing_weights},
            )

        extra_weights = [tid for tid in template_weights if tid not in id_set]
        if extra_weights:
            return Err(
                ValidationErrorKind.EXTRA_WEIGHTS,
                f"Extra weights for non-existent templates: {', '.join(extra_weights)}",
                {"ids": extra_weights},
            )

        return self._check_normalized(template_weights)

    def _check_normalized(self, template_weights: Dict[str, float]) -> ValidationOutcome:
        rules = self.config.weights
        weights = list(template_weights.values())

        out_of_range = {
            tid: w for tid, w in template_weights.items()
            if not isinstance(w, (int, float)) or math.isnan(w) or w < 0.0 or w > 1.0
        }
        total = sum(float(w) for w in weights if isinstance(w, (int, float)))

        if out_of_range or abs(total - rules.group_weight_total) > rules.group_weight_tolerance:
            return Err(
                ValidationErrorKind.WEIGHTS_NOT_NORMALIZED,
                "Template weights must sum to 1.0 and each weight must be between 0 and 1",
                {"total": total, "out_of_range": out_of_range},
            )

        return OK


def _meets_floor(weight: float, floor: float) -> bool:
    weight = float(weight)
    return math.isfinite(weight) and weight >= floor
