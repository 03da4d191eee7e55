"""Database models for the document extraction application.

This module contains SQLAlchemy model definitions for projects, folders,
documents, extraction fields with their folder scopes, and extraction
results, plus the plain record types repositories hand back to callers.
"""

import uuid
from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base

from .records import (
    DocumentRecord,
    ExtractionResultRecord,
    FieldDefinition,
    FolderRecord,
    ProjectRecord,
)

__all__ = [
    "Base",
    "DataType",
    "Project",
    "Folder",
    "Document",
    "ExtractionField",
    "ExtractionFieldFolder",
    "ExtractionResult",
    "ProjectRecord",
    "FolderRecord",
    "DocumentRecord",
    "FieldDefinition",
    "ExtractionResultRecord",
]

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class DataType(str, Enum):
    """Value types an extraction field can declare."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class Project(Base):
    """SQLAlchemy model for a project owning folders, documents and fields."""
    __tablename__ = "projects"

    id: str = Column(String(36), primary_key=True, default=_new_id)
    name: str = Column(String(255), nullable=False)
    description: str = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Folder(Base):
    """SQLAlchemy model for a folder.

    Folders nest through ``parent_folder_id``; a null parent places the
    folder at the project root.
    """
    __tablename__ = "folders"

    id: str = Column(String(36), primary_key=True, default=_new_id)
    name: str = Column(String(255), nullable=False)
    project_id: str = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    parent_folder_id: str = Column(String(36), ForeignKey("folders.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Document(Base):
    """SQLAlchemy model for an uploaded document.

    Attributes:
        id: Primary key for the document
        name: Display name
        file_path: Opaque storage key of the uploaded content
        file_type: MIME type reported at upload
        file_size: Size of the content in bytes
        project_id: Owning project
        folder_id: Containing folder, null for the project root
        last_analyzed_at: Completion time of the latest successful extraction
    """
    __tablename__ = "documents"

    id: str = Column(String(36), primary_key=True, default=_new_id)
    name: str = Column(String(255), nullable=False)
    file_path: str = Column(String(1024), nullable=False)
    file_type: str = Column(String(255), nullable=False)
    file_size: int = Column(Integer, nullable=False)
    project_id: str = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    folder_id: str = Column(String(36), ForeignKey("folders.id"), nullable=True, index=True)
    last_analyzed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ExtractionField(Base):
    """SQLAlchemy model for a named, typed datum to pull out of documents."""
    __tablename__ = "extraction_fields"

    id: str = Column(String(36), primary_key=True, default=_new_id)
    name: str = Column(String(255), nullable=False)
    data_type: str = Column(String(20), nullable=False)
    description: str = Column(Text, nullable=True)
    project_id: str = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ExtractionFieldFolder(Base):
    """Join row restricting an extraction field to one folder.

    A field without any of these rows applies to the whole project.
    """
    __tablename__ = "extraction_field_folders"
    __table_args__ = (
        UniqueConstraint("extraction_field_id", "folder_id", name="uq_field_folder"),
    )

    id: int = Column(Integer, primary_key=True)
    extraction_field_id: str = Column(
        String(36), ForeignKey("extraction_fields.id"), nullable=False, index=True
    )
    folder_id: str = Column(String(36), ForeignKey("folders.id"), nullable=False)


class ExtractionResult(Base):
    """SQLAlchemy model for the current extracted value of one field in one document."""
    __tablename__ = "extraction_results"
    __table_args__ = (
        UniqueConstraint("document_id", "extraction_field_id", name="uq_document_field"),
    )

    id: str = Column(String(36), primary_key=True, default=_new_id)
    document_id: str = Column(String(36), ForeignKey("documents.id"), nullable=False, index=True)
    extraction_field_id: str = Column(
        String(36), ForeignKey("extraction_fields.id"), nullable=False, index=True
    )
    extracted_value: str = Column(Text, nullable=True)
    confidence_score: float = Column(Float, nullable=True)
    extracted_at = Column(DateTime(timezone=True), nullable=False)
