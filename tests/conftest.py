"""Pytest configuration and fixtures for the document extraction test suite.

This module provides shared fixtures and test configuration for all test modules.
"""

import os
from pathlib import Path
from typing import Callable, Optional

import pytest

from doc_extraction import (
    DatabaseManager,
    DocumentRecord,
    DocumentRepository,
    ExtractionFieldRepository,
    LocalFileStorage,
    ProjectRecord,
    ProjectRepository,
    SQLAlchemyResultStore,
)
from doc_extraction.scoping import ROOT


@pytest.fixture
def temp_db_url(tmp_path: Path) -> str:
    """Create a temporary database file for testing."""
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def test_db_manager(temp_db_url: str) -> DatabaseManager:
    """Create a DatabaseManager instance with a temporary database."""
    return DatabaseManager(database_url=temp_db_url)


@pytest.fixture
def storage(tmp_path: Path) -> LocalFileStorage:
    """Create a LocalFileStorage rooted in a temporary directory."""
    return LocalFileStorage(str(tmp_path / "storage"))


@pytest.fixture
def project_repository(test_db_manager: DatabaseManager) -> ProjectRepository:
    return ProjectRepository(test_db_manager)


@pytest.fixture
def document_repository(test_db_manager: DatabaseManager,
                        storage: LocalFileStorage) -> DocumentRepository:
    return DocumentRepository(test_db_manager, storage)


@pytest.fixture
def field_repository(test_db_manager: DatabaseManager) -> ExtractionFieldRepository:
    return ExtractionFieldRepository(test_db_manager)


@pytest.fixture
def result_store(test_db_manager: DatabaseManager) -> SQLAlchemyResultStore:
    return SQLAlchemyResultStore(test_db_manager)


@pytest.fixture
def project(project_repository: ProjectRepository) -> ProjectRecord:
    """Create a project to hold folders, documents and fields."""
    return project_repository.create_project("Claims", "Insurance claims")


@pytest.fixture
def make_document(document_repository: DocumentRepository,
                  project: ProjectRecord) -> Callable[..., DocumentRecord]:
    """Return a factory uploading a small text document into the test project."""
    def _make(name: str, folder_id: Optional[str] = ROOT,
              content: bytes = b"Customer Name: John Smith\nClaim Amount: 1500\n") -> DocumentRecord:
        return document_repository.upload_document(
            project.id, name, content, f"{name}.txt", "text/plain", folder_id
        )
    return _make


@pytest.fixture
def sample_text_content() -> str:
    """Sample text content of an uploaded document."""
    return """
Customer Name: John Smith
Policy Number: POL-123456
Claim Amount: $1,500.00
Date: 2024-01-01
"""


@pytest.fixture
def progress_events():
    """Create a list to collect progress events."""
    events = []

    def progress_callback(event):
        events.append(event)

    return events, progress_callback


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    # Store original values
    original_openai_key = os.environ.get("OPENAI_API_KEY")
    original_tracing = os.environ.get("LANGFUSE_TRACING_ENABLED")

    # Set test values
    os.environ["OPENAI_API_KEY"] = "test-key-123"
    os.environ["LANGFUSE_TRACING_ENABLED"] = "false"

    yield

    # Restore original values
    if original_openai_key is not None:
        os.environ["OPENAI_API_KEY"] = original_openai_key
    elif "OPENAI_API_KEY" in os.environ:
        del os.environ["OPENAI_API_KEY"]

    if original_tracing is not None:
        os.environ["LANGFUSE_TRACING_ENABLED"] = original_tracing
    elif "LANGFUSE_TRACING_ENABLED" in os.environ:
        del os.environ["LANGFUSE_TRACING_ENABLED"]
