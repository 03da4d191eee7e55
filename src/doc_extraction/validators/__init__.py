"""Validators module for the document extraction application.

This module contains validation classes for extraction field
definitions and uploaded documents.
"""

from .validators import FieldValidator, DocumentValidator

__all__ = ["FieldValidator", "DocumentValidator"]
