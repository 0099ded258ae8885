"""
SQLAlchemy database models for the checklist scoring service.

Catalog:
- ChecklistTemplate: checklist definition (categories -> questions)
- ChecklistCategory: question grouping, owned by a template or a group
- ChecklistQuestion: weighted question
- ChecklistGroup: weighted bundle of templates (ordered association)

Executions:
- ChecklistExecution: one run of a template or group against a target
- ChecklistAnswer: answer to one question within an execution
- IncidentRecord: low-performance incident raised for an execution
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, JSON, Enum, Index, Table, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
import uuid

from app.checklists.models import (
    Answer,
    ApprovalStatus,
    Category,
    ChecklistType,
    Execution,
    ExecutionStatus,
    Group,
    Incident,
    IncidentSeverity,
    IncidentStatus,
    Question,
    TargetType,
    Template,
)

Base = declarative_base()


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


# =============================================================================
# CATALOG MODELS
# =============================================================================

group_templates = Table(
    "checklist_group_templates",
    Base.metadata,
    Column("group_id", String(255), ForeignKey("checklist_groups.id", ondelete="CASCADE"), primary_key=True),
    Column("template_id", String(255), ForeignKey("checklist_templates.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False, default=0),
)


class ChecklistTemplate(Base):
    """A reusable checklist definition."""
    __tablename__ = "checklist_templates"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(ChecklistType), nullable=False, default=ChecklistType.INSPECTION, index=True)
    performance_threshold = Column(Float, nullable=True, default=70.0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    categories = relationship(
        "ChecklistCategory",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ChecklistCategory.sort_order",
    )

    def to_domain(self, include_categories: bool = True) -> Template:
        return Template(
            id=self.id,
            name=self.name,
            description=self.description,
            type=self.type,
            performance_threshold=self.performance_threshold,
            is_active=self.is_active,
            categories=[c.to_domain() for c in self.categories] if include_categories else [],
        )


class ChecklistCategory(Base):
    """Question grouping. Owned by exactly one template or group."""
    __tablename__ = "checklist_categories"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0)
    template_id = Column(String(255), ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=True, index=True)
    group_id = Column(String(255), ForeignKey("checklist_groups.id", ondelete="CASCADE"), nullable=True, index=True)

    template = relationship("ChecklistTemplate", back_populates="categories")
    questions = relationship(
        "ChecklistQuestion",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="ChecklistQuestion.sort_order",
    )

    def to_domain(self) -> Category:
        return Category(
            id=self.id,
            title=self.title,
            description=self.description,
            sort_order=self.sort_order or 0,
            template_id=self.template_id,
            group_id=self.group_id,
            questions=[q.to_domain() for q in self.questions],
        )


class ChecklistQuestion(Base):
    """A weighted question."""
    __tablename__ = "checklist_questions"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    category_id = Column(String(255), ForeignKey("checklist_categories.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    weight = Column(Float, nullable=False, default=1.0)
    required = Column(Boolean, default=False)
    has_intermediate_approval = Column(Boolean, default=False)
    intermediate_value = Column(Float, default=0.5)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, index=True)

    category = relationship("ChecklistCategory", back_populates="questions")

    def to_domain(self) -> Question:
        return Question(
            id=self.id,
            title=self.title,
            description=self.description,
            weight=self.weight,
            required=bool(self.required),
            has_intermediate_approval=bool(self.has_intermediate_approval),
            intermediate_value=self.intermediate_value if self.intermediate_value is not None else 0.5,
            sort_order=self.sort_order or 0,
            is_active=bool(self.is_active),
            category_id=self.category_id,
            template_id=self.category.template_id if self.category else None,
        )


class ChecklistGroup(Base):
    """A weighted bundle of templates."""
    __tablename__ = "checklist_groups"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    performance_threshold = Column(Float, nullable=True, default=70.0)
    is_active = Column(Boolean, default=True)
    template_weights = Column(JSON, nullable=True)  # template_id -> weight, sums to 1.0
    created_at = Column(DateTime, default=datetime.utcnow)

    templates = relationship(
        "ChecklistTemplate",
        secondary=group_templates,
        order_by=group_templates.c.position,
    )

    def to_domain(self) -> Group:
        return Group(
            id=self.id,
            name=self.name,
            description=self.description,
            performance_threshold=self.performance_threshold,
            is_active=self.is_active,
            template_ids=[t.id for t in self.templates],
            template_weights=dict(self.template_weights) if self.template_weights is not None else None,
        )


# =============================================================================
# EXECUTION MODELS
# =============================================================================

class ChecklistExecution(Base):
    """One run of a template or group against a target."""
    __tablename__ = "checklist_executions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    template_id = Column(String(255), ForeignKey("checklist_templates.id", ondelete="SET NULL"), nullable=True, index=True)
    group_id = Column(String(255), ForeignKey("checklist_groups.id", ondelete="SET NULL"), nullable=True, index=True)
    executor_user_id = Column(String(255), nullable=False, index=True)
    target_type = Column(Enum(TargetType), nullable=False)
    target_id = Column(String(255), nullable=False, index=True)
    execution_timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    status = Column(Enum(ExecutionStatus), default=ExecutionStatus.PENDING, index=True)

    # Scores
    total_score = Column(Float, nullable=True)
    max_possible_score = Column(Float, nullable=True)
    percentage_score = Column(Float, nullable=True)
    category_scores = Column(JSON, default=dict)
    group_score = Column(Float, nullable=True)
    template_scores = Column(JSON, nullable=True)

    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    template = relationship("ChecklistTemplate")
    group = relationship("ChecklistGroup")
    answers = relationship("ChecklistAnswer", back_populates="execution", cascade="all, delete-orphan")
    incident = relationship("IncidentRecord", back_populates="execution", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_checklist_executions_target', 'target_type', 'target_id'),
    )

    def to_domain(self, with_relations: bool = False) -> Execution:
        execution = Execution(
            id=self.id,
            template_id=self.template_id,
            group_id=self.group_id,
            executor_user_id=self.executor_user_id,
            target_type=self.target_type,
            target_id=self.target_id,
            execution_timestamp=self.execution_timestamp,
            status=self.status,
            total_score=self.total_score,
            max_possible_score=self.max_possible_score,
            percentage_score=self.percentage_score,
            category_scores=dict(self.category_scores or {}),
            group_score=self.group_score,
            template_scores=dict(self.template_scores) if self.template_scores is not None else None,
            notes=self.notes,
            completed_at=self.completed_at,
            created_at=self.created_at,
        )
        if with_relations:
            execution.template_name = self.template.name if self.template else None
            execution.group_name = self.group.name if self.group else None
            execution.answers = [a.to_domain(include_question=True) for a in self.answers]
            execution.incident = self.incident.to_domain() if self.incident else None
        return execution


class ChecklistAnswer(Base):
    """Answer to one question within an execution."""
    __tablename__ = "checklist_answers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    execution_id = Column(String(36), ForeignKey("checklist_executions.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(String(255), ForeignKey("checklist_questions.id"), nullable=False)
    approval_status = Column(Enum(ApprovalStatus), nullable=False)
    approval_value = Column(Float, nullable=False)
    evidence_file = Column(Text, nullable=True)
    comment = Column(Text, nullable=True)
    answer_score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=True)
    is_skipped = Column(Boolean, default=False)
    answered_at = Column(DateTime, default=datetime.utcnow)

    execution = relationship("ChecklistExecution", back_populates="answers")
    question = relationship("ChecklistQuestion")

    __table_args__ = (
        UniqueConstraint('execution_id', 'question_id', name='uq_checklist_answers_execution_question'),
    )

    def to_domain(self, include_question: bool = False) -> Answer:
        return Answer(
            id=self.id,
            execution_id=self.execution_id,
            question_id=self.question_id,
            approval_status=self.approval_status,
            approval_value=self.approval_value,
            evidence_file=self.evidence_file,
            comment=self.comment,
            answer_score=self.answer_score,
            max_score=self.max_score,
            is_skipped=bool(self.is_skipped),
            answered_at=self.answered_at,
            question=self.question.to_domain() if include_question and self.question else None,
        )


class IncidentRecord(Base):
    """Low-performance incident raised for an execution."""
    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    execution_id = Column(String(36), ForeignKey("checklist_executions.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    severity = Column(Enum(IncidentSeverity), nullable=False, index=True)
    status = Column(Enum(IncidentStatus), default=IncidentStatus.OPEN, index=True)
    performance_score = Column(Float, nullable=False)
    threshold_score = Column(Float, nullable=False)
    failed_categories = Column(JSON, default=list)
    auto_generated = Column(Boolean, default=True)
    vehicle_id = Column(String(255), nullable=True, index=True)
    reported_by_user_id = Column(String(255), nullable=True)
    reported_at = Column(DateTime, default=datetime.utcnow)

    execution = relationship("ChecklistExecution", back_populates="incident")

    def to_domain(self) -> Incident:
        return Incident(
            id=self.id,
            execution_id=self.execution_id,
            title=self.title,
            description=self.description or "",
            severity=self.severity,
            status=self.status,
            performance_score=self.performance_score,
            threshold_score=self.threshold_score,
            failed_categories=list(self.failed_categories or []),
            auto_generated=bool(self.auto_generated),
            vehicle_id=self.vehicle_id,
            reported_by_user_id=self.reported_by_user_id,
            reported_at=self.reported_at,
        )

    @classmethod
    def from_domain(cls, incident: Incident) -> "IncidentRecord":
        return cls(
            id=incident.id,
            execution_id=incident.execution_id,
            title=incident.title,
            description=incident.description,
            severity=incident.severity,
            status=incident.status,
            performance_score=incident.performance_score,
            threshold_score=incident.threshold_score,
            failed_categories=list(incident.failed_categories),
            auto_generated=incident.auto_generated,
            vehicle_id=incident.vehicle_id,
            reported_by_user_id=incident.reported_by_user_id,
            reported_at=incident.reported_at,
        )
