"""
Execution targets and the execution state machine.

An execution evaluates exactly one template or exactly one group. The choice
is made once, when a request enters the orchestrator, and carried through the
pipeline as an ``ExecutionTarget``.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Union

from app.checklists.errors import Err, InvalidStateTransition, ValidationErrorKind
from app.checklists.models import Execution, ExecutionStatus


@dataclass(frozen=True)
class TemplateTarget:
    id: str

    kind = "template"


@dataclass(frozen=True)
class GroupTarget:
    id: str

    kind = "group"


ExecutionTarget = Union[TemplateTarget, GroupTarget]


def resolve_target(template_id: Optional[str], group_id: Optional[str]) -> Union[ExecutionTarget, Err]:
    """Decide whether a request runs a template or a group."""
    if template_id and group_id:
        return Err(
            ValidationErrorKind.CONFLICTING_TARGET,
            "Cannot provide both templateId and groupId",
            {"template_id": template_id, "group_id": group_id},
        )
    if template_id:
        return TemplateTarget(template_id)
    if group_id:
        return GroupTarget(group_id)
    return Err(
        ValidationErrorKind.MISSING_TARGET,
        "Either templateId or groupId must be provided",
    )


# ===== STATE MACHINE =====

_TRANSITIONS: Dict[ExecutionStatus, FrozenSet[ExecutionStatus]] = {
    ExecutionStatus.PENDING: frozenset({ExecutionStatus.IN_PROGRESS}),
    ExecutionStatus.IN_PROGRESS: frozenset({ExecutionStatus.COMPLETED}),
    # Only taken by the orchestrator in the same pass that completed the run
    ExecutionStatus.COMPLETED: frozenset({ExecutionStatus.LOW_PERFORMANCE}),
    ExecutionStatus.LOW_PERFORMANCE: frozenset(),
}


def can_transition(current: ExecutionStatus, requested: ExecutionStatus) -> bool:
    return requested in _TRANSITIONS.get(current, frozenset())


def advance(execution: Execution, requested: ExecutionStatus) -> Execution:
    """Move an execution to ``requested`` or raise ``InvalidStateTransition``."""
    if not can_transition(execution.status, requested):
        raise InvalidStateTransition(execution.status.value, requested.value)
    execution.status = requested
    if requested == ExecutionStatus.COMPLETED:
        execution.completed_at = datetime.utcnow()
    return execution
