"""
Definition checks - run the acceptance rules on a template or group without
saving it.

- POST /v1/templates/validate
- POST /v1/groups/validate
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.schemas import DefinitionCheckResult
from app.checklists.definitions import DefinitionService
from app.checklists.models import Group, Template
from app.core.logging import get_logger
from app.db.connection import get_db
from app.db.repository import SqlCatalogStore

logger = get_logger("api.definitions")
router = APIRouter(prefix="/v1", tags=["definitions"])


def get_definition_service(db: Session = Depends(get_db)) -> DefinitionService:
    return DefinitionService(SqlCatalogStore(db))


@router.post("/templates/validate", response_model=DefinitionCheckResult)
def validate_template(
    template: Template,
    service: DefinitionService = Depends(get_definition_service),
):
    """Check question weights of a template definition."""
    result = DefinitionCheckResult.from_outcome(service.check_template(template))
    logger.info(f"Template '{template.name}' check: {'valid' if result.valid else result.kind}")
    return result


@router.post("/groups/validate", response_model=DefinitionCheckResult)
def validate_group(
    group: Group,
    service: DefinitionService = Depends(get_definition_service),
):
    """Check template membership and weight normalization of a group."""
    result = DefinitionCheckResult.from_outcome(service.check_group(group))
    logger.info(f"Group '{group.name}' check: {'valid' if result.valid else result.kind}")
    return result
