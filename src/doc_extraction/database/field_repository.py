"""Extraction field repository for the document extraction application.

This module contains the ExtractionFieldRepository class for persisting
extraction fields together with their folder scopes.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..models import (
    ExtractionField,
    ExtractionFieldFolder,
    ExtractionResult,
    FieldDefinition,
    Folder,
    Project,
)
from ..exceptions import NotFoundError, PersistenceError, ValidationError
from ..scoping import FieldScope, ScopedField
from ..validators import FieldValidator
from .database_manager import DatabaseManager

__all__ = ["ExtractionFieldRepository", "load_scoped_fields"]

logger = logging.getLogger(__name__)


def load_scoped_fields(session: Session, project_id: str) -> List[ScopedField]:
    """Load a project's fields sorted by name, each with its folder scope.

    Args:
        session: Open database session
        project_id: Owning project

    Returns:
        Fields in name-ascending order
    """
    fields = (
        session.query(ExtractionField)
        .filter_by(project_id=project_id)
        .order_by(ExtractionField.name, ExtractionField.id)
        .all()
    )
    if not fields:
        return []

    folders_by_field: Dict[str, Set[str]] = defaultdict(set)
    links = (
        session.query(ExtractionFieldFolder)
        .filter(ExtractionFieldFolder.extraction_field_id.in_([f.id for f in fields]))
        .all()
    )
    for link in links:
        folders_by_field[link.extraction_field_id].add(link.folder_id)

    return [
        ScopedField(
            field=FieldDefinition.from_row(f),
            scope=FieldScope.from_folder_ids(folders_by_field.get(f.id, ())),
        )
        for f in fields
    ]


class ExtractionFieldRepository:
    """Repository for extraction fields and their folder scopes.

    Scope edits replace the whole association set inside the same
    transaction as the field update, and deletes remove scope rows and
    results before the field itself.

    Attributes:
        db_manager: DatabaseManager instance for database operations
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager: DatabaseManager = db_manager

    def create_field(self, project_id: str, name: str, data_type: str,
                     description: Optional[str] = None,
                     folder_ids: Iterable[str] = ()) -> ScopedField:
        """Create an extraction field.

        Args:
            project_id: Owning project
            name: Display name
            data_type: One of the DataType values
            description: Optional hint for the extraction provider
            folder_ids: Folders to restrict the field to; empty for a
                project-wide field

        Returns:
            The stored field with its scope

        Raises:
            ValidationError: If the definition is invalid or a folder
                belongs to another project
            NotFoundError: If the project or a folder does not exist
            PersistenceError: If database operation fails
        """
        FieldValidator.validate_field(name, data_type)
        scope_ids = set(folder_ids)

        session: Session = self.db_manager.create_session()
        try:
            if session.get(Project, project_id) is None:
                raise NotFoundError(f"Project not found: {project_id}")
            self._check_folders(session, project_id, scope_ids)

            field = ExtractionField(
                name=name.strip(),
                data_type=data_type,
                description=description,
                project_id=project_id,
            )
            session.add(field)
            session.flush()
            self._insert_scope(session, field.id, scope_ids)
            session.commit()

            logger.info("Created extraction field %s (%d folder scopes)", field.id, len(scope_ids))
            return ScopedField(FieldDefinition.from_row(field), FieldScope.from_folder_ids(scope_ids))
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database save error: {str(e)}")
        finally:
            session.close()

    def update_field(self, field_id: str, name: str, data_type: str,
                     description: Optional[str] = None,
                     folder_ids: Iterable[str] = ()) -> ScopedField:
        """Update a field and replace its folder scope.

        Raises:
            ValidationError: If the definition is invalid
            NotFoundError: If the field or a folder does not exist
            PersistenceError: If database operation fails
        """
        FieldValidator.validate_field(name, data_type)
        scope_ids = set(folder_ids)

        session: Session = self.db_manager.create_session()
        try:
            field = self._require_field(session, field_id)
            self._check_folders(session, field.project_id, scope_ids)

            field.name = name.strip()
            field.data_type = data_type
            field.description = description

            session.query(ExtractionFieldFolder).filter_by(
                extraction_field_id=field_id
            ).delete(synchronize_session=False)
            self._insert_scope(session, field_id, scope_ids)
            session.commit()

            return ScopedField(FieldDefinition.from_row(field), FieldScope.from_folder_ids(scope_ids))
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database update error: {str(e)}")
        finally:
            session.close()

    def delete_field(self, field_id: str) -> None:
        """Delete a field with its scope rows and extraction results.

        Raises:
            NotFoundError: If the field does not exist
            PersistenceError: If database operation fails; nothing is deleted
        """
        session: Session = self.db_manager.create_session()
        try:
            field = self._require_field(session, field_id)
            session.query(ExtractionFieldFolder).filter_by(
                extraction_field_id=field_id
            ).delete(synchronize_session=False)
            removed = session.query(ExtractionResult).filter_by(
                extraction_field_id=field_id
            ).delete(synchronize_session=False)
            session.delete(field)
            session.commit()
            logger.info("Deleted extraction field %s and %d results", field_id, removed)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database delete error: {str(e)}")
        finally:
            session.close()

    def get_field(self, field_id: str) -> ScopedField:
        session: Session = self.db_manager.create_session()
        try:
            field = self._require_field(session, field_id)
            folder_ids = [
                link.folder_id for link in
                session.query(ExtractionFieldFolder).filter_by(extraction_field_id=field_id)
            ]
            return ScopedField(FieldDefinition.from_row(field), FieldScope.from_folder_ids(folder_ids))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def get_fields(self, field_ids: Iterable[str]) -> List[FieldDefinition]:
        """Return the definitions of the given fields sorted by name.

        Unknown ids are skipped.
        """
        ids = list(set(field_ids))
        if not ids:
            return []

        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(ExtractionField)
                .filter(ExtractionField.id.in_(ids))
                .order_by(ExtractionField.name, ExtractionField.id)
                .all()
            )
            return [FieldDefinition.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_fields(self, project_id: str) -> List[ScopedField]:
        """Return every field of a project with its scope, sorted by name."""
        session: Session = self.db_manager.create_session()
        try:
            return load_scoped_fields(session, project_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    @staticmethod
    def _insert_scope(session: Session, field_id: str, folder_ids: Set[str]) -> None:
        for folder_id in sorted(folder_ids):
            session.add(ExtractionFieldFolder(extraction_field_id=field_id, folder_id=folder_id))

    @staticmethod
    def _check_folders(session: Session, project_id: str, folder_ids: Set[str]) -> None:
        if not folder_ids:
            return
        rows = session.query(Folder).filter(Folder.id.in_(list(folder_ids))).all()
        found = {row.id: row for row in rows}
        missing = folder_ids - set(found)
        if missing:
            raise NotFoundError(f"Folder not found: {', '.join(sorted(missing))}")
        foreign = [fid for fid, row in found.items() if row.project_id != project_id]
        if foreign:
            raise ValidationError(
                f"Folders belong to another project: {', '.join(sorted(foreign))}"
            )

    @staticmethod
    def _require_field(session: Session, field_id: str) -> ExtractionField:
        field = session.get(ExtractionField, field_id)
        if field is None:
            raise NotFoundError(f"Extraction field not found: {field_id}")
        return field
