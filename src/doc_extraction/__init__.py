"""Document Extraction - field-scoped structured data extraction.

This package extracts user-defined fields from uploaded documents, where
each field may be limited to specific folders of a project.

The package is organized into the following modules:
- config: Application configuration and settings
- exceptions: Custom exception classes
- models: Database models and record types
- scoping: Folder scopes of extraction fields
- storage: Local storage of uploaded content
- database: Database management, repositories and the result store
- validators: Field and upload validation utilities
- providers: Text extraction and extraction providers
- processors: Extraction runs and the service facade
- aggregation: Display formatting of stored results
"""

__version__ = "1.0.0"
__author__ = "Document Extraction Team"
__description__ = "Folder-scoped document field extraction with AI capabilities"

from .config import Config
from .exceptions import (
    ExtractionError,
    InvalidRequestError,
    NotFoundError,
    ProviderError,
    PersistenceError,
    StorageError,
    ValidationError
)
from .models import (
    Base,
    DataType,
    DocumentRecord,
    ExtractionResultRecord,
    FieldDefinition,
    FolderRecord,
    ProjectRecord
)
from .scoping import ROOT, FieldScope, FieldScopeResolver, ScopedField
from .storage import LocalFileStorage
from .database import (
    DatabaseManager,
    DocumentRepository,
    ExtractionFieldRepository,
    ExtractionResultStore,
    ProjectRepository,
    SQLAlchemyResultStore
)
from .validators import DocumentValidator, FieldValidator
from .providers import ExtractionProvider, FieldExtraction, OpenAIProvider, SimulatedProvider, TextExtractor
from .processors import (
    ExtractionOrchestrator,
    ExtractionRunResult,
    ExtractionService,
    ProgressEvent,
    ProgressEventType
)
from .aggregation import ResultAggregator, ResultRow, ResultSummary

__all__ = [
    # Configuration
    "Config",
    # Exceptions
    "ExtractionError",
    "InvalidRequestError",
    "NotFoundError",
    "ProviderError",
    "PersistenceError",
    "StorageError",
    "ValidationError",
    # Models
    "Base",
    "DataType",
    "DocumentRecord",
    "ExtractionResultRecord",
    "FieldDefinition",
    "FolderRecord",
    "ProjectRecord",
    # Scoping
    "ROOT",
    "FieldScope",
    "FieldScopeResolver",
    "ScopedField",
    # Storage
    "LocalFileStorage",
    # Database
    "DatabaseManager",
    "DocumentRepository",
    "ExtractionFieldRepository",
    "ExtractionResultStore",
    "ProjectRepository",
    "SQLAlchemyResultStore",
    # Validators
    "DocumentValidator",
    "FieldValidator",
    # Providers
    "ExtractionProvider",
    "FieldExtraction",
    "OpenAIProvider",
    "SimulatedProvider",
    "TextExtractor",
    # Processors
    "ExtractionOrchestrator",
    "ExtractionRunResult",
    "ExtractionService",
    "ProgressEvent",
    "ProgressEventType",
    # Aggregation
    "ResultAggregator",
    "ResultRow",
    "ResultSummary"
]
