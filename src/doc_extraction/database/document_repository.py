"""Document repository for the document extraction application.

This module contains the DocumentRepository class for uploading, listing,
moving and deleting documents.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..models import Document, DocumentRecord, ExtractionResult, Folder, Project
from ..exceptions import NotFoundError, PersistenceError, StorageError, ValidationError
from ..scoping import ROOT, FolderContext
from ..storage import LocalFileStorage
from ..validators import DocumentValidator
from .database_manager import DatabaseManager

__all__ = ["DocumentRepository"]

logger = logging.getLogger(__name__)

_UNCHANGED = object()


class DocumentRepository:
    """Repository for documents and their stored content.

    Attributes:
        db_manager: DatabaseManager instance for database operations
        storage: Storage holding the uploaded bytes
    """

    def __init__(self, db_manager: DatabaseManager,
                 storage: Optional[LocalFileStorage] = None) -> None:
        self.db_manager: DatabaseManager = db_manager
        self.storage: LocalFileStorage = storage or LocalFileStorage()

    def upload_document(self, project_id: str, name: str, content: bytes,
                        filename: str, file_type: str,
                        folder_id: FolderContext = ROOT) -> DocumentRecord:
        """Store uploaded content and create its document row.

        The stored file is removed again when the row cannot be written.

        Args:
            project_id: Owning project
            name: Display name
            content: Raw file content
            filename: Original filename, used for the storage key extension
            file_type: MIME type
            folder_id: Target folder, or ``ROOT``

        Returns:
            The created document

        Raises:
            ValidationError: If the upload is invalid or the folder belongs
                to another project
            NotFoundError: If the project or folder does not exist
            StorageError: If the content cannot be stored
            PersistenceError: If database operation fails
        """
        DocumentValidator.validate_upload(name, content, filename)

        session: Session = self.db_manager.create_session()
        key: Optional[str] = None
        try:
            if session.get(Project, project_id) is None:
                raise NotFoundError(f"Project not found: {project_id}")
            if folder_id is not ROOT:
                self._check_folder(session, project_id, folder_id)

            key = self.storage.build_key(project_id, filename)
            self.storage.save(key, content)

            document = Document(
                name=name.strip(),
                file_path=key,
                file_type=file_type,
                file_size=len(content),
                project_id=project_id,
                folder_id=folder_id,
            )
            session.add(document)
            session.commit()
            logger.info("Uploaded document %s (%d bytes)", document.id, len(content))
            return DocumentRecord.from_row(document)
        except SQLAlchemyError as e:
            session.rollback()
            self._discard_upload(key)
            raise PersistenceError(f"Database save error: {str(e)}")
        finally:
            session.close()

    def get_document(self, document_id: str) -> DocumentRecord:
        """Load a document by id.

        Args:
            document_id: Document to load

        Returns:
            The document

        Raises:
            NotFoundError: If the document does not exist
            PersistenceError: If database operation fails
        """
        session: Session = self.db_manager.create_session()
        try:
            return DocumentRecord.from_row(self._require_document(session, document_id))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def get_documents(self, document_ids: Iterable[str]) -> List[DocumentRecord]:
        """Load several documents, sorted by name.

        Unknown ids are skipped.

        Args:
            document_ids: Documents to load

        Returns:
            The documents found

        Raises:
            PersistenceError: If database operation fails
        """
        ids = list(set(document_ids))
        if not ids:
            return []

        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(Document)
                .filter(Document.id.in_(ids))
                .order_by(Document.name, Document.id)
                .all()
            )
            return [DocumentRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_documents(self, project_id: str) -> List[DocumentRecord]:
        """Return every document of a project, sorted by name."""
        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(Document)
                .filter_by(project_id=project_id)
                .order_by(Document.name, Document.id)
                .all()
            )
            return [DocumentRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def list_folder_documents(self, project_id: str,
                              folder_id: FolderContext = ROOT) -> List[DocumentRecord]:
        """Return the documents placed directly in a folder, or at the root."""
        session: Session = self.db_manager.create_session()
        try:
            query = session.query(Document).filter(Document.project_id == project_id)
            if folder_id is ROOT:
                query = query.filter(Document.folder_id.is_(None))
            else:
                query = query.filter(Document.folder_id == folder_id)
            rows = query.order_by(Document.name, Document.id).all()
            return [DocumentRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def update_document(self, document_id: str, name: Optional[str] = None,
                        folder_id=_UNCHANGED) -> DocumentRecord:
        """Rename a document and/or move it to another folder.

        Pass ``folder_id=ROOT`` to move the document to the project root.
        """
        if name is not None and not name.strip():
            raise ValidationError("Document name is required")

        session: Session = self.db_manager.create_session()
        try:
            document = self._require_document(session, document_id)
            if name is not None:
                document.name = name.strip()
            if folder_id is not _UNCHANGED:
                if folder_id is not ROOT:
                    self._check_folder(session, document.project_id, folder_id)
                document.folder_id = folder_id
            session.commit()
            return DocumentRecord.from_row(document)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database update error: {str(e)}")
        finally:
            session.close()

    def delete_document(self, document_id: str) -> DocumentRecord:
        """Delete a document with its extraction results, then its stored file.

        Results and the row go in one transaction. Removing the stored
        file afterwards is best effort: a failure is logged, not raised.

        Returns:
            The deleted document

        Raises:
            NotFoundError: If the document does not exist
            PersistenceError: If database operation fails; nothing is deleted
        """
        session: Session = self.db_manager.create_session()
        try:
            document = self._require_document(session, document_id)
            record = DocumentRecord.from_row(document)
            session.query(ExtractionResult).filter_by(
                document_id=document_id
            ).delete(synchronize_session=False)
            session.delete(document)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database delete error: {str(e)}")
        finally:
            session.close()

        try:
            self.storage.delete(record.file_path)
        except StorageError as e:
            logger.warning("Could not remove stored file for document %s: %s", document_id, e)
        return record

    def read_content(self, document_id: str) -> bytes:
        """Return the stored bytes of a document."""
        return self.storage.read(self.get_document(document_id).file_path)

    def _discard_upload(self, key: Optional[str]) -> None:
        if key is None:
            return
        try:
            self.storage.delete(key)
        except StorageError as e:
            logger.warning("Could not remove orphaned upload %s: %s", key, e)

    @staticmethod
    def _check_folder(session: Session, project_id: str, folder_id: str) -> None:
        folder = session.get(Folder, folder_id)
        if folder is None:
            raise NotFoundError(f"Folder not found: {folder_id}")
        if folder.project_id != project_id:
            raise ValidationError("Folder belongs to another project")

    @staticmethod
    def _require_document(session: Session, document_id: str) -> Document:
        document = session.get(Document, document_id)
        if document is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return document
