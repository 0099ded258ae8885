"""
Score Calculator - weighted scores across the question -> category ->
template -> group hierarchy.

Scoring model:
- A question scores its answer's approval value (0 when skipped or
  unanswered); the approval value already is the compliance fraction.
- A category scores the weight-multiplied sum of its question scores, out of
  the sum of its question weights.
- A template's points are the sum over its categories.
- A group scores each template separately and combines the template
  percentages with the group's template weights.

Percentages are kept at full float precision; rounding is a display concern.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from app.checklists.errors import ChecklistValidationError, ValidationErrorKind
from app.checklists.models import Answer, Group, Question
from app.core.logging import get_logger

logger = get_logger("scoring")


@dataclass
class ScoreResult:
    """Scores produced for one execution."""
    total_score: float
    max_possible_score: float
    percentage_score: float
    category_scores: Dict[str, float] = field(default_factory=dict)
    group_score: Optional[float] = None
    template_scores: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_score": self.total_score,
            "max_possible_score": self.max_possible_score,
            "percentage_score": self.percentage_score,
            "category_scores": dict(self.category_scores),
            "group_score": self.group_score,
            "template_scores": dict(self.template_scores) if self.template_scores is not None else None,
        }


def _percentage(score: float, maximum: float) -> float:
    return (score / maximum) * 100 if maximum > 0 else 0.0


class ScoreCalculator:
    """
    Computes template and group scores.

    Both entry points write ``answer_score`` and ``max_score`` back onto the
    answer records they score.
    """

    def question_score(self, answer: Optional[Answer]) -> float:
        if answer is None or answer.is_skipped:
            return 0.0
        return float(answer.approval_value)

    def compute_template_score(self, questions: Sequence[Question], answers: Iterable[Answer]) -> ScoreResult:
        answer_map = {a.question_id: a for a in answers}
        return self._score_questions(questions, answer_map)

    def compute_group_score(
        self,
        group: Group,
        questions_by_template: Mapping[str, Sequence[Question]],
        answer_map: Mapping[str, Answer],
    ) -> ScoreResult:
        if not group.template_ids:
            raise ChecklistValidationError(
                ValidationErrorKind.GROUP_NOT_CONFIGURED,
                "Group not found or has no templates",
                {"group_id": group.id},
            )
        if not group.template_weights:
            raise ChecklistValidationError(
                ValidationErrorKind.GROUP_NOT_CONFIGURED,
                "Group template weights not configured",
                {"group_id": group.id},
            )

        template_scores: Dict[str, float] = {}
        category_scores: Dict[str, float] = {}
        group_score = 0.0
        total_score = 0.0
        max_possible_score = 0.0

        for template_id in group.template_ids:
            template_questions = questions_by_template.get(template_id, [])
            if not template_questions:
                logger.debug(f"Group {group.id}: template {template_id} has no active questions, skipped")
                continue

            result = self._score_questions(template_questions, answer_map)

            template_scores[template_id] = result.percentage_score
            group_score += result.percentage_score * group.template_weights.get(template_id, 0.0)

            # Prefix category keys so categories of different templates never collide
            for category_id, score in result.category_scores.items():
                category_scores[f"{template_id}_{category_id}"] = score

            total_score += result.total_score
            max_possible_score += result.max_possible_score

        return ScoreResult(
            total_score=total_score,
            max_possible_score=max_possible_score,
            percentage_score=_percentage(total_score, max_possible_score),
            category_scores=category_scores,
            group_score=group_score,
            template_scores=template_scores,
        )

    def _score_questions(self, questions: Sequence[Question], answer_map: Mapping[str, Answer]) -> ScoreResult:
        by_category: "OrderedDict[str, List[Question]]" = OrderedDict()
        for question in questions:
            if not question.is_active:
                continue
            by_category.setdefault(question.category_id, []).append(question)

        category_scores: Dict[str, float] = {}
        total_score = 0.0
        max_possible_score = 0.0

        for category_id, category_questions in by_category.items():
            category_score = 0.0
            category_max = 0.0

            for question in category_questions:
                weight = float(question.weight)
                answer = answer_map.get(question.id)
                score = self.question_score(answer)

                category_score += score * weight
                category_max += weight

                if answer is not None:
                    answer.answer_score = score
                    answer.max_score = weight

            category_scores[category_id] = _percentage(category_score, category_max)
            total_score += category_score
            max_possible_score += category_max

        return ScoreResult(
            total_score=total_score,
            max_possible_score=max_possible_score,
            percentage_score=_percentage(total_score, max_possible_score),
            category_scores=category_scores,
        )
