"""
Error taxonomy and validation outcomes for the checklist engine.

Validators never raise: they return a tagged outcome (``Ok`` or ``Err``).
Callers that need to abort turn an ``Err`` into a ``ChecklistValidationError``
with ``raise_error()``.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Union


class ValidationErrorKind(str, Enum):
    """Kinds of validation failure surfaced to callers."""
    # Template definitions
    MIN_WEIGHT_VIOLATION = "MIN_WEIGHT_VIOLATION"

    # Group definitions
    TEMPLATES_NOT_FOUND = "TEMPLATES_NOT_FOUND"
    WEIGHTS_REQUIRED = "WEIGHTS_REQUIRED"
    MISSING_WEIGHTS = "MISSING_WEIGHTS"
    EXTRA_WEIGHTS = "EXTRA_WEIGHTS"
    WEIGHTS_NOT_NORMALIZED = "WEIGHTS_NOT_NORMALIZED"

    # Answers
    MISSING_REQUIRED_ANSWERS = "MISSING_REQUIRED_ANSWERS"
    UNKNOWN_QUESTION = "UNKNOWN_QUESTION"
    DUPLICATE_ANSWER = "DUPLICATE_ANSWER"
    APPROVAL_STATUS_REQUIRED = "APPROVAL_STATUS_REQUIRED"
    APPROVAL_VALUE_REQUIRED = "APPROVAL_VALUE_REQUIRED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INTERMEDIATE_NOT_ALLOWED = "INTERMEDIATE_NOT_ALLOWED"
    INTERMEDIATE_VALUE_MISMATCH = "INTERMEDIATE_VALUE_MISMATCH"
    APPROVED_VALUE_MISMATCH = "APPROVED_VALUE_MISMATCH"
    NOT_APPROVED_VALUE_MISMATCH = "NOT_APPROVED_VALUE_MISMATCH"

    # Execution requests
    MISSING_TARGET = "MISSING_TARGET"
    CONFLICTING_TARGET = "CONFLICTING_TARGET"
    ANSWERS_REQUIRED = "ANSWERS_REQUIRED"
    GROUP_NOT_CONFIGURED = "GROUP_NOT_CONFIGURED"


# ===== EXCEPTIONS =====

class ChecklistError(Exception):
    """Base class for checklist engine errors."""


class ChecklistValidationError(ChecklistError):
    """Malformed or inconsistent input. Never retried, never corrected."""

    def __init__(self, kind: ValidationErrorKind, message: str, detail: Dict[str, Any] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind.value,
            "message": self.message,
            "detail": self.detail,
        }


class NotFoundError(ChecklistError):
    """A referenced template, group or execution does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "NOT_FOUND",
            "message": str(self),
            "detail": {"entity": self.entity, "id": self.entity_id},
        }


class PersistenceError(ChecklistError):
    """The backing store failed. Propagated as-is, retry belongs to the store."""


class InvalidStateTransition(ChecklistError):
    """An execution was asked to move between states the lifecycle forbids."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move execution from {current} to {requested}")
        self.current = current
        self.requested = requested


# ===== OUTCOMES =====

@dataclass(frozen=True)
class Ok:
    """Successful validation."""
    ok = True

    def raise_error(self) -> None:
        return None


@dataclass(frozen=True)
class Err:
    """Failed validation with the first violation found."""
    kind: ValidationErrorKind
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)
    ok = False

    def raise_error(self) -> None:
        raise ChecklistValidationError(self.kind, self.message, dict(self.detail))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": dict(self.detail),
        }


ValidationOutcome = Union[Ok, Err]

OK = Ok()
