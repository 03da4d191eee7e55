"""Custom exceptions for the document extraction application.

This module contains all custom exception classes used throughout
field scoping, extraction runs and persistence.
"""

__all__ = [
    "ExtractionError",
    "InvalidRequestError",
    "NotFoundError",
    "ProviderError",
    "PersistenceError",
    "StorageError",
    "ValidationError"
]


class ExtractionError(Exception):
    """Base class for all errors raised by this package."""
    pass


class InvalidRequestError(ExtractionError):
    """Exception raised when a request cannot be attempted at all.

    Raised for empty field selections, empty document lists and fields
    that are not applicable to the requested folder context.
    """
    pass


class NotFoundError(InvalidRequestError):
    """Exception raised when a referenced project, folder, document
    or field does not exist."""
    pass


class ProviderError(ExtractionError):
    """Exception raised when the extraction provider fails for a document.

    The orchestrator records this per document and never lets it
    abort a run.
    """
    pass


class PersistenceError(ExtractionError):
    """Exception raised during database operations.

    This exception is raised when there are issues with database
    connectivity, queries, or data persistence.
    """
    pass


class StorageError(ExtractionError):
    """Exception raised when stored document content cannot be
    written, read or removed."""
    pass


class ValidationError(ExtractionError):
    """Exception raised during data validation.

    This exception is raised when input data such as a field
    definition or an uploaded document fails validation checks.
    """
    pass
