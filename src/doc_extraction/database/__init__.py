"""Database module for the document extraction application.

This module contains database management classes including connection
management, session creation, and repository patterns for projects,
documents, extraction fields and extraction results.
"""

from .database_manager import DatabaseManager
from .project_repository import ProjectRepository
from .document_repository import DocumentRepository
from .field_repository import ExtractionFieldRepository, load_scoped_fields
from .result_store import ExtractionResultStore, SQLAlchemyResultStore

__all__ = [
    "DatabaseManager",
    "ProjectRepository",
    "DocumentRepository",
    "ExtractionFieldRepository",
    "ExtractionResultStore",
    "SQLAlchemyResultStore",
    "load_scoped_fields"
]
