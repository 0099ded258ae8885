"""
Database module for the checklist scoring service.
"""
from app.db.connection import get_db, get_db_session, init_db
from app.db.models import (
    Base,
    ChecklistTemplate,
    ChecklistCategory,
    ChecklistQuestion,
    ChecklistGroup,
    ChecklistExecution,
    ChecklistAnswer,
    IncidentRecord,
)
from app.db.repository import SqlCatalogStore, SqlExecutionStore

__all__ = [
    "get_db",
    "get_db_session",
    "init_db",
    "Base",
    "ChecklistTemplate",
    "ChecklistCategory",
    "ChecklistQuestion",
    "ChecklistGroup",
    "ChecklistExecution",
    "ChecklistAnswer",
    "IncidentRecord",
    "SqlCatalogStore",
    "SqlExecutionStore",
]
