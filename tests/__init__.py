"""Test package for the document extraction application.

This package contains unit tests for all components of the document
extraction system including field scoping, persistence, providers,
extraction runs and result aggregation.

Test Structure:
- conftest.py: Shared fixtures and test configuration
- test_field_scope.py: Tests for folder scoping of fields
- test_validators.py: Tests for field and upload validation
- test_database.py: Tests for repositories and the result store
- test_providers.py: Tests for text extraction and providers
- test_orchestrator.py: Tests for extraction runs
- test_aggregation.py: Tests for formatting and aggregation
- test_service.py: Tests for the extraction service workflow

Usage:
    Run all tests: pytest
    Run specific module: pytest tests/test_orchestrator.py
    Run with coverage: pytest --cov=src/doc_extraction
"""

__version__ = "1.0.0"
