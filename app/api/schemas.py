"""
API Schemas (DTOs) for the checklist scoring service.

Execution requests and execution records are the engine's own models
(``app.checklists.models``); this module only adds the envelopes the HTTP
layer wraps around them.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.checklists.errors import ValidationOutcome
from app.checklists.models import Execution


# ============================================================================
# Executions
# ============================================================================

class ExecutionListResponse(BaseModel):
    total: int
    items: List[Execution]


# ============================================================================
# Definition checks
# ============================================================================

class DefinitionCheckResult(BaseModel):
    """Result of checking a template or group without saving it."""
    valid: bool
    kind: Optional[str] = None
    message: Optional[str] = None
    detail: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_outcome(cls, outcome: ValidationOutcome) -> "DefinitionCheckResult":
        if outcome.ok:
            return cls(valid=True)
        return cls(
            valid=False,
            kind=outcome.kind.value,
            message=outcome.message,
            detail=dict(outcome.detail),
        )


# ============================================================================
# Errors / utility
# ============================================================================

class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
