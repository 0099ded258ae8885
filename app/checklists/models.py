"""
Checklist domain models.

Defines the catalog definitions (templates, groups, categories, questions),
execution requests and the records the engine produces (executions, answers,
incidents). These models are what the stores exchange with the engine; the
SQLAlchemy models in ``app.db.models`` map onto them.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid.uuid4())


# ===== ENUMS =====

class ChecklistType(str, Enum):
    """Kind of checklist a template represents."""
    INSPECTION = "INSPECTION"
    COMPLIANCE = "COMPLIANCE"


class TargetType(str, Enum):
    """What an execution evaluates."""
    VEHICLE = "VEHICLE"
    USER = "USER"
    WAREHOUSE = "WAREHOUSE"


class ExecutionStatus(str, Enum):
    """Execution lifecycle states."""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    LOW_PERFORMANCE = "LOW_PERFORMANCE"


class ApprovalStatus(str, Enum):
    """Answer outcome for a single question."""
    APPROVED = "APPROVED"
    NOT_APPROVED = "NOT_APPROVED"
    INTERMEDIATE = "INTERMEDIATE"


class IncidentSeverity(str, Enum):
    """Incident severity, ordered from least to most severe."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IncidentStatus(str, Enum):
    """Incident follow-up status."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


# ===== CATALOG DEFINITIONS =====

class Question(BaseModel):
    """
    A scored question.

    ``weight`` is a free multiplier: weights inside a category need not sum to
    anything, only the 0.1 floor is enforced when the template is accepted.
    """
    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    weight: float = Field(default=1.0)
    required: bool = False
    has_intermediate_approval: bool = False
    intermediate_value: float = Field(default=0.5, ge=0.0, le=1.0)
    sort_order: int = 0
    is_active: bool = True
    category_id: Optional[str] = None
    template_id: Optional[str] = None


class Category(BaseModel):
    """Groups questions. Owned by a template or by a group, never both."""
    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    sort_order: int = 0
    template_id: Optional[str] = None
    group_id: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_owner(self):
        if self.template_id and self.group_id:
            raise ValueError("Category cannot belong to both a template and a group")
        return self


class Template(BaseModel):
    """A reusable checklist definition."""
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: ChecklistType = ChecklistType.INSPECTION
    performance_threshold: Optional[float] = Field(default=70.0, ge=0.0, le=100.0)
    is_active: bool = True
    categories: List[Category] = Field(default_factory=list)

    @model_validator(mode='after')
    def link_children(self):
        """Propagate ownership ids down to categories and questions."""
        for category in self.categories:
            if category.group_id is None:
                category.template_id = self.id
            for question in category.questions:
                question.category_id = category.id
                question.template_id = self.id
        return self

    def iter_questions(self) -> List[Question]:
        return [q for c in self.categories for q in c.questions]

    def get_active_questions(self) -> List[Question]:
        return [q for q in self.iter_questions() if q.is_active]


class Group(BaseModel):
    """A weighted bundle of templates evaluated as one compliance unit."""
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    performance_threshold: Optional[float] = Field(default=70.0, ge=0.0, le=100.0)
    is_active: bool = True
    template_ids: List[str] = Field(default_factory=list)
    template_weights: Optional[Dict[str, float]] = None


# ===== EXECUTION INPUT =====

class AnswerInput(BaseModel):
    """
    One submitted answer.

    Status and value are optional here so the answer validator can report
    their absence with a named error instead of a schema failure.
    """
    question_id: str
    approval_status: Optional[ApprovalStatus] = None
    approval_value: Optional[float] = None
    evidence_file: Optional[str] = None
    comment: Optional[str] = None
    is_skipped: bool = False


class ExecutionRequest(BaseModel):
    """Request to execute a template or a group against a target."""
    template_id: Optional[str] = Field(None, max_length=255)
    group_id: Optional[str] = Field(None, max_length=255)
    executor_user_id: str = Field(..., max_length=255)
    target_type: TargetType
    target_id: str = Field(..., max_length=255)
    execution_timestamp: datetime = Field(default_factory=datetime.utcnow)
    answers: List[AnswerInput] = Field(default_factory=list)
    notes: Optional[str] = None


class ExecutionQuery(BaseModel):
    """Filters and pagination for listing executions."""
    template_id: Optional[str] = None
    group_id: Optional[str] = None
    executor_user_id: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_id: Optional[str] = None
    status: Optional[ExecutionStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ===== EXECUTION RECORDS =====

class Answer(BaseModel):
    """A stored answer. Scores are written by the score calculator only."""
    id: str = Field(default_factory=new_id)
    execution_id: str
    question_id: str
    approval_status: ApprovalStatus
    approval_value: float
    evidence_file: Optional[str] = None
    comment: Optional[str] = None
    answer_score: Optional[float] = None
    max_score: Optional[float] = None
    is_skipped: bool = False
    answered_at: datetime = Field(default_factory=datetime.utcnow)
    question: Optional[Question] = None


class Incident(BaseModel):
    """An automatically raised low-performance incident."""
    id: str = Field(default_factory=new_id)
    execution_id: str
    title: str
    description: str
    severity: IncidentSeverity
    status: IncidentStatus = IncidentStatus.OPEN
    performance_score: float
    threshold_score: float
    failed_categories: List[str] = Field(default_factory=list)
    auto_generated: bool = True
    vehicle_id: Optional[str] = None
    reported_by_user_id: Optional[str] = None
    reported_at: datetime = Field(default_factory=datetime.utcnow)


class Execution(BaseModel):
    """One run of a template or group against a target."""
    id: str = Field(default_factory=new_id)
    template_id: Optional[str] = None
    group_id: Optional[str] = None
    template_name: Optional[str] = None
    group_name: Optional[str] = None
    executor_user_id: str
    target_type: TargetType
    target_id: str
    execution_timestamp: datetime = Field(default_factory=datetime.utcnow)
    status: ExecutionStatus = ExecutionStatus.PENDING
    total_score: Optional[float] = None
    max_possible_score: Optional[float] = None
    percentage_score: Optional[float] = None
    category_scores: Dict[str, float] = Field(default_factory=dict)
    group_score: Optional[float] = None
    template_scores: Optional[Dict[str, float]] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    answers: List[Answer] = Field(default_factory=list)
    incident: Optional[Incident] = None

    @property
    def is_group_execution(self) -> bool:
        return self.group_id is not None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ExecutionStatus.COMPLETED, ExecutionStatus.LOW_PERFORMANCE)
