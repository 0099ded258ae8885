"""
Store interfaces consumed by the checklist engine, plus in-memory
implementations.

The SQL implementations live in ``app.db.repository``. The in-memory stores
back the unit tests and callers that embed the engine without a database.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set, Tuple

from app.checklists.errors import NotFoundError
from app.checklists.lifecycle import ExecutionTarget, GroupTarget, TemplateTarget
from app.checklists.models import (
    Answer,
    Execution,
    ExecutionQuery,
    Group,
    Incident,
    Question,
    Template,
)


class CatalogStore(ABC):
    """Read access to template and group definitions, plus accepted saves."""

    @abstractmethod
    def get_template(self, template_id: str) -> Template:
        """Return the template or raise NotFoundError."""
        pass

    @abstractmethod
    def get_group(self, group_id: str) -> Group:
        """Return the group with its template ids and weights or raise NotFoundError."""
        pass

    @abstractmethod
    def get_active_questions(self, target: ExecutionTarget) -> List[Question]:
        """Active questions for a template, or for every template of a group."""
        pass

    @abstractmethod
    def find_template_ids(self, template_ids: Iterable[str]) -> Set[str]:
        """Subset of ``template_ids`` that exist."""
        pass

    @abstractmethod
    def save_template(self, template: Template) -> Template:
        pass

    @abstractmethod
    def save_group(self, group: Group) -> Group:
        pass


class ExecutionStore(ABC):
    """Durable storage for executions, answers and incidents."""

    @abstractmethod
    def create_execution(self, execution: Execution) -> Execution:
        pass

    @abstractmethod
    def save_answers(self, answers: List[Answer]) -> List[Answer]:
        pass

    @abstractmethod
    def update_execution(self, execution_id: str, **fields) -> Execution:
        pass

    @abstractmethod
    def save_incident(self, incident: Incident) -> Incident:
        pass

    @abstractmethod
    def find_execution_by_id(self, execution_id: str, with_relations: bool = True) -> Execution:
        """Return the execution or raise NotFoundError."""
        pass

    @abstractmethod
    def list_executions(self, query: ExecutionQuery) -> Tuple[List[Execution], int]:
        pass


# ===== IN-MEMORY IMPLEMENTATIONS =====

class InMemoryCatalogStore(CatalogStore):
    """Dict-backed catalog."""

    def __init__(self):
        self.templates: Dict[str, Template] = {}
        self.groups: Dict[str, Group] = {}

    def get_template(self, template_id: str) -> Template:
        template = self.templates.get(template_id)
        if template is None:
            raise NotFoundError("Checklist template", template_id)
        return template.model_copy(deep=True)

    def get_group(self, group_id: str) -> Group:
        group = self.groups.get(group_id)
        if group is None:
            raise NotFoundError("Checklist group", group_id)
        return group.model_copy(deep=True)

    def get_active_questions(self, target: ExecutionTarget) -> List[Question]:
        if isinstance(target, TemplateTarget):
            return self.get_template(target.id).get_active_questions()

        group = self.get_group(target.id)
        questions: List[Question] = []
        for template_id in group.template_ids:
            template = self.templates.get(template_id)
            if template is not None:
                questions.extend(template.model_copy(deep=True).get_active_questions())
        return questions

    def find_template_ids(self, template_ids: Iterable[str]) -> Set[str]:
        return {tid for tid in template_ids if tid in self.templates}

    def save_template(self, template: Template) -> Template:
        self.templates[template.id] = template.model_copy(deep=True)
        return template

    def save_group(self, group: Group) -> Group:
        self.groups[group.id] = group.model_copy(deep=True)
        return group


class InMemoryExecutionStore(ExecutionStore):
    """
    Dict-backed execution store.

    Relations (template/group names, answered questions) are resolved through
    the optional catalog when reading with ``with_relations``.
    """

    def __init__(self, catalog: Optional[CatalogStore] = None):
        self.catalog = catalog
        self.executions: Dict[str, Execution] = {}
        self.answers: Dict[str, Answer] = {}
        self.incidents: Dict[str, Incident] = {}

    def create_execution(self, execution: Execution) -> Execution:
        stored = execution.model_copy(deep=True)
        stored.answers = []
        stored.incident = None
        self.executions[stored.id] = stored
        return execution

    def save_answers(self, answers: List[Answer]) -> List[Answer]:
        for answer in answers:
            if answer.execution_id not in self.executions:
                raise NotFoundError("Checklist execution", answer.execution_id)
            self.answers[answer.id] = answer.model_copy(deep=True, update={"question": None})
        return answers

    def update_execution(self, execution_id: str, **fields) -> Execution:
        execution = self.executions.get(execution_id)
        if execution is None:
            raise NotFoundError("Checklist execution", execution_id)
        for key, value in fields.items():
            if hasattr(execution, key):
                setattr(execution, key, value)
        return execution.model_copy(deep=True)

    def save_incident(self, incident: Incident) -> Incident:
        if incident.execution_id not in self.executions:
            raise NotFoundError("Checklist execution", incident.execution_id)
        self.incidents[incident.execution_id] = incident.model_copy(deep=True)
        return incident

    def find_execution_by_id(self, execution_id: str, with_relations: bool = True) -> Execution:
        stored = self.executions.get(execution_id)
        if stored is None:
            raise NotFoundError("Checklist execution", execution_id)

        execution = stored.model_copy(deep=True)
        if not with_relations:
            return execution

        execution.answers = [
            a.model_copy(deep=True) for a in self.answers.values() if a.execution_id == execution_id
        ]
        incident = self.incidents.get(execution_id)
        execution.incident = incident.model_copy(deep=True) if incident else None

        if self.catalog is not None:
            self._attach_catalog_relations(execution)
        return execution

    def list_executions(self, query: ExecutionQuery) -> Tuple[List[Execution], int]:
        matches = [e for e in self.executions.values() if _matches(e, query)]
        matches.sort(key=lambda e: e.execution_timestamp, reverse=True)
        page = matches[query.offset:query.offset + query.limit]
        return [self.find_execution_by_id(e.id, with_relations=False) for e in page], len(matches)

    def _attach_catalog_relations(self, execution: Execution) -> None:
        try:
            if execution.template_id:
                execution.template_name = self.catalog.get_template(execution.template_id).name
                target: ExecutionTarget = TemplateTarget(execution.template_id)
            else:
                execution.group_name = self.catalog.get_group(execution.group_id).name
                target = GroupTarget(execution.group_id)
        except NotFoundError:
            return

        questions = {q.id: q for q in self.catalog.get_active_questions(target)}
        for answer in execution.answers:
            answer.question = questions.get(answer.question_id)


def _matches(execution: Execution, query: ExecutionQuery) -> bool:
    checks = [
        (query.template_id, execution.template_id),
        (query.group_id, execution.group_id),
        (query.executor_user_id, execution.executor_user_id),
        (query.target_type, execution.target_type),
        (query.target_id, execution.target_id),
        (query.status, execution.status),
    ]
    if any(wanted is not None and wanted != actual for wanted, actual in checks):
        return False
    if query.start_date and query.end_date:
        return query.start_date <= execution.execution_timestamp <= query.end_date
    return True
