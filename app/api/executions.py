"""
Executions API.

- POST /v1/executions - Run a template or group with answers
- GET /v1/executions - List executions with filters and pagination
- GET /v1/executions/{id} - Get one execution with answers and incident
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.schemas import ErrorResponse, ExecutionListResponse
from app.checklists.models import (
    Execution,
    ExecutionQuery,
    ExecutionRequest,
    ExecutionStatus,
    TargetType,
)
from app.checklists.orchestrator import ExecutionOrchestrator
from app.core.logging import get_logger
from app.db.connection import get_db
from app.db.repository import SqlCatalogStore, SqlExecutionStore

logger = get_logger("api.executions")
router = APIRouter(prefix="/v1/executions", tags=["executions"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_orchestrator(db: Session = Depends(get_db)) -> ExecutionOrchestrator:
    """Orchestrator bound to the request's session."""
    return ExecutionOrchestrator(
        catalog=SqlCatalogStore(db),
        store=SqlExecutionStore(db),
    )


@router.post("", response_model=Execution, status_code=201, responses=_ERRORS)
def create_execution(
    request: ExecutionRequest,
    orchestrator: ExecutionOrchestrator = Depends(get_orchestrator),
):
    """Execute a checklist template or group and return the scored execution."""
    return orchestrator.execute(request)


@router.get("", response_model=ExecutionListResponse)
def list_executions(
    template_id: Optional[str] = None,
    group_id: Optional[str] = None,
    executor_user_id: Optional[str] = None,
    target_type: Optional[TargetType] = None,
    target_id: Optional[str] = None,
    status: Optional[ExecutionStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    orchestrator: ExecutionOrchestrator = Depends(get_orchestrator),
):
    query = ExecutionQuery(
        template_id=template_id,
        group_id=group_id,
        executor_user_id=executor_user_id,
        target_type=target_type,
        target_id=target_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    items, total = orchestrator.list_executions(query)
    return ExecutionListResponse(total=total, items=items)


@router.get("/{execution_id}", response_model=Execution, responses=_ERRORS)
def get_execution(
    execution_id: str,
    orchestrator: ExecutionOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.get_execution(execution_id)
