"""
Checklist execution and scoring engine.

This package provides:
- Definition-time weight validation for templates and groups
- Answer validation against question definitions
- Weighted scoring across categories, templates and groups
- Automatic low-performance incidents with severity classification
- The orchestrator that runs an execution end to end
"""
from app.checklists.answers import AnswerValidator
from app.checklists.definitions import DefinitionService
from app.checklists.errors import (
    ChecklistError,
    ChecklistValidationError,
    NotFoundError,
    PersistenceError,
    ValidationErrorKind,
)
from app.checklists.incidents import IncidentGenerator, IncidentPolicy
from app.checklists.orchestrator import ExecutionOrchestrator
from app.checklists.scoring import ScoreCalculator, ScoreResult
from app.checklists.weights import GroupWeightValidator, TemplateWeightValidator

__all__ = [
    "AnswerValidator",
    "DefinitionService",
    "ChecklistError",
    "ChecklistValidationError",
    "NotFoundError",
    "PersistenceError",
    "ValidationErrorKind",
    "IncidentGenerator",
    "IncidentPolicy",
    "ExecutionOrchestrator",
    "ScoreCalculator",
    "ScoreResult",
    "GroupWeightValidator",
    "TemplateWeightValidator",
]
