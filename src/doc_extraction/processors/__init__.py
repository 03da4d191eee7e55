"""Processors module for the document extraction application.

This module contains the classes that run extraction over documents:
the orchestrator handling one run and the service that validates
requests and assembles results for display.
"""

from .extraction_orchestrator import (
    DocumentOutcome,
    ExtractionOrchestrator,
    ExtractionRunResult,
    ProgressCallback,
    ProgressEvent,
    ProgressEventType,
)
from .extraction_service import ExtractionService

__all__ = [
    "ExtractionOrchestrator",
    "ExtractionRunResult",
    "DocumentOutcome",
    "ProgressEvent",
    "ProgressEventType",
    "ProgressCallback",
    "ExtractionService"
]
