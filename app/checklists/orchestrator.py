"""
Execution Orchestrator - runs one checklist execution end to end.

Sequence for a request:
1. Resolve the target (template or group) and reject malformed requests
2. Create the execution and move it to IN_PROGRESS
3. Load active questions and validate the answers
4. Score the answers and persist answers and scores (COMPLETED)
5. Raise an incident when performance is below threshold (LOW_PERFORMANCE)
6. Return the stored execution with its relations
"""
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from app.checklists.answers import AnswerValidator
from app.checklists.errors import Err, ValidationErrorKind
from app.checklists.incidents import IncidentGenerator, IncidentPolicy
from app.checklists.lifecycle import ExecutionTarget, GroupTarget, TemplateTarget, advance, resolve_target
from app.checklists.models import (
    Answer,
    ChecklistType,
    Execution,
    ExecutionQuery,
    ExecutionRequest,
    ExecutionStatus,
    Group,
    Question,
    Template,
)
from app.checklists.scoring import ScoreCalculator, ScoreResult
from app.checklists.stores import CatalogStore, ExecutionStore
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("orchestrator")


class ExecutionOrchestrator:
    """
    Coordinates validation, scoring and incident generation for executions.

    All collaborators are passed in. The fallback threshold defaults to the
    configured DEFAULT_PERFORMANCE_THRESHOLD.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        store: ExecutionStore,
        answer_validator: Optional[AnswerValidator] = None,
        score_calculator: Optional[ScoreCalculator] = None,
        incident_generator: Optional[IncidentGenerator] = None,
        default_threshold: Optional[float] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.answer_validator = answer_validator or AnswerValidator()
        self.score_calculator = score_calculator or ScoreCalculator()
        self.incident_generator = incident_generator or IncidentGenerator()
        self.default_threshold = (
            settings.default_performance_threshold if default_threshold is None else default_threshold
        )

    # ===== PUBLIC API =====

    def execute(self, request: ExecutionRequest) -> Execution:
        """Execute a checklist (template or group) with answers."""
        target = resolve_target(request.template_id, request.group_id)
        if isinstance(target, Err):
            target.raise_error()

        if not request.answers:
            Err(
                ValidationErrorKind.ANSWERS_REQUIRED,
                "At least one answer must be provided",
            ).raise_error()

        definition = self._load_definition(target)

        execution = self._create_execution(request, target)
        logger.info(f"Execution {execution.id} started for {target.kind} {target.id}")

        questions = self.catalog.get_active_questions(target)
        outcome = self.answer_validator.validate(questions, request.answers)
        if isinstance(outcome, Err):
            logger.warning(f"Execution {execution.id} rejected: {outcome.kind.value} - {outcome.message}")
            outcome.raise_error()

        answers = self._build_answers(execution, request)
        scores = self._calculate_score(definition, questions, answers)
        self.store.save_answers(answers)

        self._complete(execution, scores)
        self._check_for_incident(execution, definition)

        return self.store.find_execution_by_id(execution.id, with_relations=True)

    def get_execution(self, execution_id: str) -> Execution:
        """Read a stored execution. Never re-scores."""
        return self.store.find_execution_by_id(execution_id, with_relations=True)

    def list_executions(self, query: ExecutionQuery) -> Tuple[List[Execution], int]:
        return self.store.list_executions(query)

    # ===== PIPELINE STEPS =====

    def _load_definition(self, target: ExecutionTarget):
        if isinstance(target, TemplateTarget):
            return self.catalog.get_template(target.id)
        return self.catalog.get_group(target.id)

    def _create_execution(self, request: ExecutionRequest, target: ExecutionTarget) -> Execution:
        execution = Execution(
            template_id=target.id if isinstance(target, TemplateTarget) else None,
            group_id=target.id if isinstance(target, GroupTarget) else None,
            executor_user_id=request.executor_user_id,
            target_type=request.target_type,
            target_id=request.target_id,
            execution_timestamp=request.execution_timestamp,
            status=ExecutionStatus.PENDING,
            notes=request.notes,
        )
        advance(execution, ExecutionStatus.IN_PROGRESS)
        return self.store.create_execution(execution)

    def _build_answers(self, execution: Execution, request: ExecutionRequest) -> List[Answer]:
        return [
            Answer(
                execution_id=execution.id,
                question_id=a.question_id,
                approval_status=a.approval_status,
                approval_value=a.approval_value,
                evidence_file=a.evidence_file,
                comment=a.comment,
                is_skipped=a.is_skipped,
            )
            for a in request.answers
        ]

    def _calculate_score(self, definition, questions: List[Question], answers: List[Answer]) -> ScoreResult:
        if isinstance(definition, Group):
            questions_by_template: Dict[str, List[Question]] = OrderedDict()
            for question in questions:
                questions_by_template.setdefault(question.template_id, []).append(question)
            answer_map = {a.question_id: a for a in answers}
            return self.score_calculator.compute_group_score(definition, questions_by_template, answer_map)
        return self.score_calculator.compute_template_score(questions, answers)

    def _complete(self, execution: Execution, scores: ScoreResult) -> None:
        execution.total_score = scores.total_score
        execution.max_possible_score = scores.max_possible_score
        execution.percentage_score = scores.percentage_score
        execution.category_scores = scores.category_scores
        execution.group_score = scores.group_score
        execution.template_scores = scores.template_scores
        advance(execution, ExecutionStatus.COMPLETED)

        self.store.update_execution(
            execution.id,
            status=execution.status,
            completed_at=execution.completed_at,
            **scores.to_dict(),
        )
        logger.info(
            f"Execution {execution.id} completed: {scores.percentage_score:.2f}%"
            + (f" (group score {scores.group_score:.2f}%)" if scores.group_score is not None else "")
        )

    def _check_for_incident(self, execution: Execution, definition) -> None:
        policy = self._incident_policy(definition)
        incident = self.incident_generator.maybe_create_incident(execution, policy)
        if incident is None:
            return

        self.store.save_incident(incident)
        advance(execution, ExecutionStatus.LOW_PERFORMANCE)
        self.store.update_execution(execution.id, status=execution.status)

    def _incident_policy(self, definition) -> IncidentPolicy:
        threshold = definition.performance_threshold
        if threshold is None:
            threshold = self.default_threshold

        if isinstance(definition, Template):
            return IncidentPolicy(threshold=threshold, checklist_type=definition.type)
        # Groups are always evaluated as compliance checklists
        return IncidentPolicy(
            threshold=threshold,
            checklist_type=ChecklistType.COMPLIANCE,
            is_group_execution=True,
        )
