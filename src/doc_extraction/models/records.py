"""Plain record types returned by the repositories.

Records are detached copies of table rows so they can outlive the
session that loaded them and cross thread boundaries safely.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

__all__ = [
    "ProjectRecord",
    "FolderRecord",
    "DocumentRecord",
    "FieldDefinition",
    "ExtractionResultRecord",
]


@dataclass(frozen=True)
class ProjectRecord:
    id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "ProjectRecord":
        return cls(id=row.id, name=row.name, description=row.description)


@dataclass(frozen=True)
class FolderRecord:
    id: str
    name: str
    project_id: str
    parent_folder_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "FolderRecord":
        return cls(
            id=row.id,
            name=row.name,
            project_id=row.project_id,
            parent_folder_id=row.parent_folder_id,
        )


@dataclass(frozen=True)
class DocumentRecord:
    """An uploaded document; ``folder_id`` is None for the project root."""
    id: str
    name: str
    file_path: str
    file_type: str
    file_size: int
    project_id: str
    folder_id: Optional[str] = None
    last_analyzed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "DocumentRecord":
        return cls(
            id=row.id,
            name=row.name,
            file_path=row.file_path,
            file_type=row.file_type,
            file_size=row.file_size,
            project_id=row.project_id,
            folder_id=row.folder_id,
            last_analyzed_at=row.last_analyzed_at,
        )


@dataclass(frozen=True)
class FieldDefinition:
    """An extraction field without its folder scope.

    ``data_type`` is kept as the stored string so rows written with a
    type outside :class:`DataType` still format (as plain text).
    """
    id: str
    name: str
    data_type: str
    project_id: str
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "FieldDefinition":
        return cls(
            id=row.id,
            name=row.name,
            data_type=row.data_type,
            project_id=row.project_id,
            description=row.description,
        )


@dataclass(frozen=True)
class ExtractionResultRecord:
    """One extracted value.

    ``id`` is None when the value was computed but could not be saved.
    """
    id: Optional[str]
    document_id: str
    extraction_field_id: str
    extracted_value: Optional[str]
    confidence_score: Optional[float]
    extracted_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "ExtractionResultRecord":
        return cls(
            id=row.id,
            document_id=row.document_id,
            extraction_field_id=row.extraction_field_id,
            extracted_value=row.extracted_value,
            confidence_score=row.confidence_score,
            extracted_at=row.extracted_at,
        )
