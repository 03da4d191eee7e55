"""Validators module for the document extraction application.

This module contains validation classes for extraction field
definitions and uploaded documents.
"""

from typing import Optional

from ..config import Config
from ..exceptions import ValidationError
from ..models import DataType

__all__ = ["FieldValidator", "DocumentValidator"]


class FieldValidator:
    """Validates extraction field definitions before they are stored."""

    @staticmethod
    def validate_field(name: Optional[str], data_type: Optional[str]) -> None:
        """Perform all field definition checks.

        Args:
            name: Display name of the field
            data_type: One of the :class:`DataType` values

        Raises:
            ValidationError: If any validation check fails
        """
        FieldValidator._validate_name(name)
        FieldValidator._validate_data_type(data_type)

    @staticmethod
    def _validate_name(name: Optional[str]) -> None:
        if not name or not name.strip():
            raise ValidationError("Field name is required")

    @staticmethod
    def _validate_data_type(data_type: Optional[str]) -> None:
        allowed = [t.value for t in DataType]
        if data_type not in allowed:
            raise ValidationError(
                f"Invalid data type: {data_type!r}. Expected one of: {', '.join(allowed)}"
            )


class DocumentValidator:
    """Validates uploaded documents.

    Checks the display name and keeps file sizes within the configured
    limits to reject empty or excessively large uploads.
    """

    @staticmethod
    def validate_upload(name: Optional[str], content: bytes, filename: str) -> None:
        """Perform all upload checks.

        Args:
            name: Display name of the document
            content: Raw file content
            filename: Original filename for error reporting

        Raises:
            ValidationError: If any validation check fails
        """
        if not name or not name.strip():
            raise ValidationError("Document name is required")
        DocumentValidator._validate_file_size(content, filename)

    @staticmethod
    def _validate_file_size(content: bytes, filename: str) -> None:
        """Validate file size within acceptable limits.

        Args:
            content: Raw file content
            filename: Original filename for error reporting

        Raises:
            ValidationError: If file size is outside acceptable range
        """
        if len(content) > Config.MAX_FILE_SIZE:
            raise ValidationError(
                f"File {filename} is too large. Maximum size: {Config.MAX_FILE_SIZE // (1024*1024)}MB"
            )

        if len(content) < Config.MIN_FILE_SIZE:
            raise ValidationError(f"File {filename} is empty")
