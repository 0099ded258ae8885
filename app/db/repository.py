"""
SQL-backed stores for the checklist engine.

Repositories take a Session and only flush. The caller owns the transaction
(see ``get_db_session``), so a failed execution leaves nothing behind.
"""
from contextlib import contextmanager
from typing import Iterable, List, Set, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.checklists.errors import NotFoundError, PersistenceError
from app.checklists.lifecycle import ExecutionTarget, TemplateTarget
from app.checklists.models import (
    Answer,
    Execution,
    ExecutionQuery,
    Group,
    Incident,
    Question,
    Template,
)
from app.checklists.stores import CatalogStore, ExecutionStore
from app.db.models import (
    ChecklistAnswer,
    ChecklistCategory,
    ChecklistExecution,
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistTemplate,
    IncidentRecord,
    group_templates,
)
from app.core.logging import get_logger

logger = get_logger("db.repository")


@contextmanager
def _persistence(action: str):
    """Translate driver failures into PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"Failed to {action}") from e


# ============== CATALOG REPOSITORY ==============

class SqlCatalogStore(CatalogStore):
    """Catalog of templates and groups."""

    def __init__(self, db: Session):
        self.db = db

    def _template_row(self, template_id: str) -> ChecklistTemplate:
        with _persistence("load template"):
            row = self.db.get(ChecklistTemplate, template_id)
        if row is None:
            raise NotFoundError("Checklist template", template_id)
        return row

    def _group_row(self, group_id: str) -> ChecklistGroup:
        with _persistence("load group"):
            row = self.db.get(ChecklistGroup, group_id)
        if row is None:
            raise NotFoundError("Checklist group", group_id)
        return row

    def get_template(self, template_id: str) -> Template:
        return self._template_row(template_id).to_domain()

    def get_group(self, group_id: str) -> Group:
        return self._group_row(group_id).to_domain()

    def get_active_questions(self, target: ExecutionTarget) -> List[Question]:
        if isinstance(target, TemplateTarget):
            templates = [self._template_row(target.id)]
        else:
            templates = list(self._group_row(target.id).templates)

        questions: List[Question] = []
        for template in templates:
            questions.extend(template.to_domain().get_active_questions())
        return questions

    def find_template_ids(self, template_ids: Iterable[str]) -> Set[str]:
        ids = list(template_ids)
        if not ids:
            return set()
        with _persistence("look up templates"):
            rows = self.db.query(ChecklistTemplate.id).filter(ChecklistTemplate.id.in_(ids)).all()
        return {row.id for row in rows}

    def save_template(self, template: Template) -> Template:
        with _persistence(f"save template {template.id}"):
            row = self.db.get(ChecklistTemplate, template.id)
            if row is None:
                row = ChecklistTemplate(id=template.id)
                self.db.add(row)
            elif row.categories:
                # Drop the old tree first, the new one may reuse its ids
                row.categories = []
                self.db.flush()
            row.name = template.name
            row.description = template.description
            row.type = template.type
            row.performance_threshold = template.performance_threshold
            row.is_active = template.is_active
            row.categories = [_category_row(c) for c in template.categories]
            self.db.flush()
        logger.debug(f"Saved template {template.id} with {len(template.categories)} categories")
        return template

    def save_group(self, group: Group) -> Group:
        with _persistence(f"save group {group.id}"):
            row = self.db.get(ChecklistGroup, group.id)
            if row is None:
                row = ChecklistGroup(id=group.id)
                self.db.add(row)
            row.name = group.name
            row.description = group.description
            row.performance_threshold = group.performance_threshold
            row.is_active = group.is_active
            row.template_weights = dict(group.template_weights) if group.template_weights is not None else None
            self.db.flush()

            # Membership is written explicitly to keep the template order
            self.db.execute(group_templates.delete().where(group_templates.c.group_id == group.id))
            if group.template_ids:
                self.db.execute(
                    group_templates.insert(),
                    [
                        {"group_id": group.id, "template_id": tid, "position": position}
                        for position, tid in enumerate(group.template_ids)
                    ],
                )
            self.db.flush()
            self.db.expire(row, ["templates"])
        logger.debug(f"Saved group {group.id} with templates {group.template_ids}")
        return group


def _category_row(category) -> ChecklistCategory:
    return ChecklistCategory(
        id=category.id,
        title=category.title,
        description=category.description,
        sort_order=category.sort_order,
        group_id=category.group_id,
        questions=[
            ChecklistQuestion(
                id=q.id,
                title=q.title,
                description=q.description,
                weight=q.weight,
                required=q.required,
                has_intermediate_approval=q.has_intermediate_approval,
                intermediate_value=q.intermediate_value,
                sort_order=q.sort_order,
                is_active=q.is_active,
            )
            for q in category.questions
        ],
    )


# ============== EXECUTION REPOSITORY ==============

class SqlExecutionStore(ExecutionStore):
    """Executions, answers and incidents."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, execution_id: str) -> ChecklistExecution:
        with _persistence("load execution"):
            row = self.db.get(ChecklistExecution, execution_id)
        if row is None:
            raise NotFoundError("Checklist execution", execution_id)
        return row

    def create_execution(self, execution: Execution) -> Execution:
        with _persistence("create execution"):
            row = ChecklistExecution(
                id=execution.id,
                template_id=execution.template_id,
                group_id=execution.group_id,
                executor_user_id=execution.executor_user_id,
                target_type=execution.target_type,
                target_id=execution.target_id,
                execution_timestamp=execution.execution_timestamp,
                status=execution.status,
                notes=execution.notes,
                created_at=execution.created_at,
            )
            self.db.add(row)
            self.db.flush()
        logger.info(f"Created execution: {execution.id}")
        return execution

    def save_answers(self, answers: List[Answer]) -> List[Answer]:
        with _persistence("save answers"):
            self.db.add_all([
                ChecklistAnswer(
                    id=a.id,
                    execution_id=a.execution_id,
                    question_id=a.question_id,
                    approval_status=a.approval_status,
                    approval_value=a.approval_value,
                    evidence_file=a.evidence_file,
                    comment=a.comment,
                    answer_score=a.answer_score,
                    max_score=a.max_score,
                    is_skipped=a.is_skipped,
                    answered_at=a.answered_at,
                )
                for a in answers
            ])
            self.db.flush()
        return answers

    def update_execution(self, execution_id: str, **fields) -> Execution:
        row = self._row(execution_id)
        with _persistence(f"update execution {execution_id}"):
            for key, value in fields.items():
                if hasattr(row, key):
                    setattr(row, key, value)
            self.db.flush()
        return row.to_domain()

    def save_incident(self, incident: Incident) -> Incident:
        self._row(incident.execution_id)
        with _persistence(f"save incident for execution {incident.execution_id}"):
            self.db.add(IncidentRecord.from_domain(incident))
            self.db.flush()
        logger.info(f"Created incident {incident.id} ({incident.severity.value}) for execution {incident.execution_id}")
        return incident

    def find_execution_by_id(self, execution_id: str, with_relations: bool = True) -> Execution:
        row = self._row(execution_id)
        if with_relations:
            # Relationship collections may be stale after bulk flushes
            self.db.refresh(row)
        return row.to_domain(with_relations=with_relations)

    def list_executions(self, query: ExecutionQuery) -> Tuple[List[Execution], int]:
        q = self.db.query(ChecklistExecution)
        filters = [
            (ChecklistExecution.template_id, query.template_id),
            (ChecklistExecution.group_id, query.group_id),
            (ChecklistExecution.executor_user_id, query.executor_user_id),
            (ChecklistExecution.target_type, query.target_type),
            (ChecklistExecution.target_id, query.target_id),
            (ChecklistExecution.status, query.status),
        ]
        for column, value in filters:
            if value is not None:
                q = q.filter(column == value)
        if query.start_date and query.end_date:
            q = q.filter(ChecklistExecution.execution_timestamp.between(query.start_date, query.end_date))

        with _persistence("list executions"):
            total = q.count()
            rows = (
                q.order_by(desc(ChecklistExecution.execution_timestamp))
                .offset(query.offset)
                .limit(query.limit)
                .all()
            )
        return [row.to_domain() for row in rows], total
