from .database import get_db_context, get_session, init_db, engine, SessionLocal, Base
from .errors import (
    AgendaError,
    ValidationError,
    EmptyDocumentError,
    TrashDisabledError,
    InvalidTransitionError,
    StorageError,
    RenderError,
    BackupImportError,
)
from .logger import get_logger

# session_manager and helpers import streamlit; import them directly where needed.

__all__ = [
    "get_db_context",
    "get_session",
    "init_db",
    "engine",
    "SessionLocal",
    "Base",
    "AgendaError",
    "ValidationError",
    "EmptyDocumentError",
    "TrashDisabledError",
    "InvalidTransitionError",
    "StorageError",
    "RenderError",
    "BackupImportError",
    "get_logger",
]
