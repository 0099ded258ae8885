"""
Checklist Scoring Service - FastAPI application.

API Structure (v1):
- /v1/executions - Execute checklists, read and list executions
- /v1/templates/validate, /v1/groups/validate - Definition checks
- /v1/health - Health check
"""
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import router as utility_router
from app.api.executions import router as executions_router
from app.api.definitions import router as definitions_router
from app.checklists.errors import (
    ChecklistValidationError,
    InvalidStateTransition,
    NotFoundError,
    PersistenceError,
)
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("main")


def init_database():
    """Initialize database tables and seed the catalog.

    Non-blocking: logs error and continues if database unavailable.
    Set SKIP_DB_INIT=true to skip entirely.
    """
    if os.getenv("SKIP_DB_INIT", "false").lower() == "true":
        logger.info("SKIP_DB_INIT=true - skipping database initialization")
        return

    try:
        from app.db.connection import init_db, get_db_session
        from app.db.seeds import run_all_seeds

        logger.info("Initializing database...")
        init_db()
        logger.info("✓ Database tables created")

        if settings.catalog_seed_path:
            logger.info(f"Seeding catalog from {settings.catalog_seed_path}...")
            with get_db_session() as session:
                run_all_seeds(session, settings.catalog_seed_path)
            logger.info("✓ Catalog seeded")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        logger.warning("Database features may not work correctly")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info("Starting checklist scoring service")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")

    init_database()

    yield

    logger.info("Shutting down checklist scoring service")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Checklist execution, weighted scoring and low-performance incidents",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== Error handlers =====

@app.exception_handler(ChecklistValidationError)
async def validation_error_handler(request: Request, exc: ChecklistValidationError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(
        status_code=503,
        content={"error": "PERSISTENCE_ERROR", "message": str(exc), "detail": {}},
    )


@app.exception_handler(InvalidStateTransition)
async def invalid_transition_handler(request: Request, exc: InvalidStateTransition):
    logger.error(f"Invalid execution state transition: {exc}")
    return JSONResponse(
        status_code=409,
        content={
            "error": "INVALID_STATE_TRANSITION",
            "message": str(exc),
            "detail": {"current": exc.current, "requested": exc.requested},
        },
    )


# ===== Routes =====
app.include_router(executions_router)   # /v1/executions/*
app.include_router(definitions_router)  # /v1/templates/validate, /v1/groups/validate
app.include_router(utility_router, prefix=settings.api_prefix)  # /v1/health


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
