"""Custom exceptions for the document extraction application.

This module contains all custom exception classes used throughout
field scoping, extraction runs and persistence.
"""

from .exceptions import (
    ExtractionError,
    InvalidRequestError,
    NotFoundError,
    ProviderError,
    PersistenceError,
    StorageError,
    ValidationError
)

__all__ = [
    "ExtractionError",
    "InvalidRequestError",
    "NotFoundError",
    "ProviderError",
    "PersistenceError",
    "StorageError",
    "ValidationError"
]
