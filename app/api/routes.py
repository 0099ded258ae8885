"""
Utility routes for the checklist scoring service.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.schemas import HealthResponse
from app.core.config import settings
from app.core.logging import get_logger
from app.db.connection import get_db

logger = get_logger("api.routes")
router = APIRouter(tags=["utility"])


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Health check could not reach the database: {e}")
        database = "unavailable"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=settings.version,
        database=database,
    )
