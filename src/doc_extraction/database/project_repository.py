"""Project and folder repository for the document extraction application.

This module contains the ProjectRepository class for persisting projects
and their folder hierarchy.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..models import (
    Document,
    ExtractionField,
    ExtractionFieldFolder,
    Folder,
    FolderRecord,
    Project,
    ProjectRecord,
)
from ..exceptions import InvalidRequestError, NotFoundError, PersistenceError, ValidationError
from .database_manager import DatabaseManager

__all__ = ["ProjectRepository"]

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Repository for projects and folders.

    Attributes:
        db_manager: DatabaseManager instance for database operations
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager: DatabaseManager = db_manager

    def create_project(self, name: str, description: Optional[str] = None) -> ProjectRecord:
        """Create a project.

        Raises:
            ValidationError: If the name is empty
            PersistenceError: If database operation fails
        """
        if not name or not name.strip():
            raise ValidationError("Project name is required")

        session: Session = self.db_manager.create_session()
        try:
            project = Project(name=name.strip(), description=description)
            session.add(project)
            session.commit()
            return ProjectRecord.from_row(project)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database save error: {str(e)}")
        finally:
            session.close()

    def get_project(self, project_id: str) -> ProjectRecord:
        """Load a project by id.

        Args:
            project_id: Project to load

        Returns:
            The project

        Raises:
            NotFoundError: If the project does not exist
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            return ProjectRecord.from_row(self._require_project(session, project_id))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_projects(self) -> List[ProjectRecord]:
        """Return every project, sorted by name.

        Raises:
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            rows = session.query(Project).order_by(Project.name).all()
            return [ProjectRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def update_project(self, project_id: str, name: str,
                       description: Optional[str] = None) -> ProjectRecord:
        """Rename a project and replace its description.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the project does not exist
            PersistenceError: If database operation fails
        """
        if not name or not name.strip():
            raise ValidationError("Project name is required")

        session: Session = self.db_manager.create_session()
        try:
            project = self._require_project(session, project_id)
            project.name = name.strip()
            project.description = description
            session.commit()
            return ProjectRecord.from_row(project)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database update error: {str(e)}")
        finally:
            session.close()

    def delete_project(self, project_id: str) -> None:
        """Delete an empty project together with its extraction fields.

        Raises:
            NotFoundError: If the project does not exist
            InvalidRequestError: If the project still has folders or documents
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            project = self._require_project(session, project_id)
            if session.query(Folder).filter_by(project_id=project_id).count():
                raise InvalidRequestError(
                    "Cannot delete project with existing folders. Please delete all folders first."
                )
            if session.query(Document).filter_by(project_id=project_id).count():
                raise InvalidRequestError(
                    "Cannot delete project with existing documents. Please delete all documents first."
                )
            session.query(ExtractionField).filter_by(project_id=project_id).delete(
                synchronize_session=False
            )
            session.delete(project)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database delete error: {str(e)}")
        finally:
            session.close()

    def create_folder(self, project_id: str, name: str,
                      parent_folder_id: Optional[str] = None) -> FolderRecord:
        """Create a folder at the project root or under ``parent_folder_id``.

        Raises:
            ValidationError: If the name is empty or the parent belongs
                to another project
            NotFoundError: If the project or parent folder does not exist
            PersistenceError: If database operation fails
        """
        if not name or not name.strip():
            raise ValidationError("Folder name is required")

        session: Session = self.db_manager.create_session()
        try:
            self._require_project(session, project_id)
            if parent_folder_id is not None:
                parent = self._require_folder(session, parent_folder_id)
                if parent.project_id != project_id:
                    raise ValidationError("Parent folder belongs to another project")

            folder = Folder(name=name.strip(), project_id=project_id,
                            parent_folder_id=parent_folder_id)
            session.add(folder)
            session.commit()
            return FolderRecord.from_row(folder)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database save error: {str(e)}")
        finally:
            session.close()

    def get_folder(self, folder_id: str) -> FolderRecord:
        """Load a folder by id.

        Args:
            folder_id: Folder to load

        Returns:
            The folder

        Raises:
            NotFoundError: If the folder does not exist
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            return FolderRecord.from_row(self._require_folder(session, folder_id))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_folders(self, project_id: str) -> List[FolderRecord]:
        """Return every folder of a project, sorted by name."""
        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(Folder)
                .filter_by(project_id=project_id)
                .order_by(Folder.name)
                .all()
            )
            return [FolderRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_child_folders(self, project_id: str,
                           parent_folder_id: Optional[str] = None) -> List[FolderRecord]:
        """Return the direct subfolders of a folder, or of the project root."""
        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(Folder)
                .filter(Folder.project_id == project_id,
                        Folder.parent_folder_id.is_(None) if parent_folder_id is None
                        else Folder.parent_folder_id == parent_folder_id)
                .order_by(Folder.name)
                .all()
            )
            return [FolderRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def get_folder_path(self, folder_id: str) -> List[FolderRecord]:
        """Return the folders from the top level down to ``folder_id``."""
        session: Session = self.db_manager.create_session()
        try:
            path: List[FolderRecord] = []
            seen = set()
            current: Optional[str] = folder_id
            while current is not None and current not in seen:
                seen.add(current)
                folder = self._require_folder(session, current)
                path.append(FolderRecord.from_row(folder))
                current = folder.parent_folder_id
            path.reverse()
            return path
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def rename_folder(self, folder_id: str, name: str) -> FolderRecord:
        """Rename a folder.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the folder does not exist
            PersistenceError: If database operation fails
        """
        if not name or not name.strip():
            raise ValidationError("Folder name is required")

        session: Session = self.db_manager.create_session()
        try:
            folder = self._require_folder(session, folder_id)
            folder.name = name.strip()
            session.commit()
            return FolderRecord.from_row(folder)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database update error: {str(e)}")
        finally:
            session.close()

    def delete_folder(self, folder_id: str) -> None:
        """Delete an empty folder.

        A folder that still scopes an extraction field is kept: removing
        the last scope row would turn that field global.

        Raises:
            NotFoundError: If the folder does not exist
            InvalidRequestError: If the folder has subfolders, documents or
                scoped fields
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            folder = self._require_folder(session, folder_id)
            if session.query(Folder).filter_by(parent_folder_id=folder_id).count():
                raise InvalidRequestError("Cannot delete folder with subfolders")
            if session.query(Document).filter_by(folder_id=folder_id).count():
                raise InvalidRequestError("Cannot delete folder with documents")
            if session.query(ExtractionFieldFolder).filter_by(folder_id=folder_id).count():
                raise InvalidRequestError(
                    "Cannot delete folder while extraction fields are scoped to it"
                )
            session.delete(folder)
            session.commit()
            logger.info("Deleted folder %s", folder_id)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database delete error: {str(e)}")
        finally:
            session.close()

    @staticmethod
    def _require_project(session: Session, project_id: str) -> Project:
        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError(f"Project not found: {project_id}")
        return project

    @staticmethod
    def _require_folder(session: Session, folder_id: str) -> Folder:
        folder = session.get(Folder, folder_id)
        if folder is None:
            raise NotFoundError(f"Folder not found: {folder_id}")
        return folder
