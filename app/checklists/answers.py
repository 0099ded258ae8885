"""
Answer validation.

Checks a submitted answer set against the questions resolved for an
execution. Two passes: completeness of required questions, then a per-answer
consistency check in submission order. The first violation is returned.
"""
import math
from typing import Dict, Optional, Sequence, Set

from app.checklists.config import ScoringConfig, get_scoring_config
from app.checklists.errors import OK, Err, ValidationErrorKind, ValidationOutcome
from app.checklists.models import AnswerInput, ApprovalStatus, Question


class AnswerValidator:
    """Validates answers against their question definitions. Pure."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def validate(self, questions: Sequence[Question], answers: Sequence[AnswerInput]) -> ValidationOutcome:
        outcome = self.check_required(questions, answers)
        if not outcome.ok:
            return outcome
        return self.check_answer_types(questions, answers)

    def check_required(self, questions: Sequence[Question], answers: Sequence[AnswerInput]) -> ValidationOutcome:
        """Every required question must have an answer."""
        answered: Set[str] = {a.question_id for a in answers}
        missing = [q for q in questions if q.required and q.id not in answered]

        if missing:
            titles = [q.title for q in missing]
            return Err(
                ValidationErrorKind.MISSING_REQUIRED_ANSWERS,
                f"Missing answers for required questions: {', '.join(titles)}",
                {"question_titles": titles, "question_ids": [q.id for q in missing]},
            )
        return OK

    def check_answer_types(self, questions: Sequence[Question], answers: Sequence[AnswerInput]) -> ValidationOutcome:
        question_map: Dict[str, Question] = {q.id: q for q in questions}
        seen: Set[str] = set()

        for answer in answers:
            question = question_map.get(answer.question_id)
            if question is None:
                return Err(
                    ValidationErrorKind.UNKNOWN_QUESTION,
                    f"Question with ID {answer.question_id} not found",
                    {"question_id": answer.question_id},
                )

            if answer.question_id in seen:
                return Err(
                    ValidationErrorKind.DUPLICATE_ANSWER,
                    f"Question answered more than once: {question.title}",
                    _question_detail(question),
                )
            seen.add(answer.question_id)

            outcome = self.check_answer(question, answer)
            if not outcome.ok:
                return outcome

        return OK

    def check_answer(self, question: Question, answer: AnswerInput) -> ValidationOutcome:
        """Consistency of one answer with its question."""
        rules = self.config.answers
        detail = _question_detail(question)

        if answer.approval_status is None:
            return Err(
                ValidationErrorKind.APPROVAL_STATUS_REQUIRED,
                f"Approval status required for question: {question.title}",
                detail,
            )

        if answer.approval_value is None:
            return Err(
                ValidationErrorKind.APPROVAL_VALUE_REQUIRED,
                f"Approval value required for question: {question.title}",
                detail,
            )

        value = answer.approval_value
        if math.isnan(value) or value < rules.min_approval_value or value > rules.max_approval_value:
            return Err(
                ValidationErrorKind.OUT_OF_RANGE,
                f"Approval value must be between 0 and 1 for question: {question.title}",
                {**detail, "approval_value": value if math.isfinite(value) else str(value)},
            )

        status = answer.approval_status
        if status == ApprovalStatus.INTERMEDIATE:
            if not question.has_intermediate_approval:
                return Err(
                    ValidationErrorKind.INTERMEDIATE_NOT_ALLOWED,
                    f"Intermediate approval not allowed for question: {question.title}",
                    detail,
                )
            if abs(value - question.intermediate_value) > rules.intermediate_tolerance:
                return Err(
                    ValidationErrorKind.INTERMEDIATE_VALUE_MISMATCH,
                    f"Intermediate approval value must be {question.intermediate_value} "
                    f"for question: {question.title}",
                    {**detail, "approval_value": value, "expected": question.intermediate_value},
                )

        if status == ApprovalStatus.APPROVED and value != rules.approved_value:
            return Err(
                ValidationErrorKind.APPROVED_VALUE_MISMATCH,
                f"Approved status must have value 1.0 for question: {question.title}",
                {**detail, "approval_value": value},
            )

        if status == ApprovalStatus.NOT_APPROVED and value != rules.not_approved_value:
            return Err(
                ValidationErrorKind.NOT_APPROVED_VALUE_MISMATCH,
                f"Not approved status must have value 0.0 for question: {question.title}",
                {**detail, "approval_value": value},
            )

        return OK


def _question_detail(question: Question) -> Dict[str, str]:
    return {"question_id": question.id, "question_title": question.title}
