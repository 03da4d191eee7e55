"""Extraction result store for the document extraction application.

This module defines the persistence boundary extraction runs write
through, and its SQLAlchemy implementation.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models import Document, ExtractionField, ExtractionResult, ExtractionResultRecord
from ..exceptions import NotFoundError, PersistenceError
from ..scoping import ScopedField
from .database_manager import DatabaseManager
from .field_repository import load_scoped_fields

__all__ = ["ExtractionResultStore", "SQLAlchemyResultStore"]

logger = logging.getLogger(__name__)


class ExtractionResultStore(ABC):
    """Persistence boundary for extraction runs.

    Implementations must tolerate many ``save_result`` calls in quick
    succession within one run and may be called from worker threads.
    """

    @abstractmethod
    def save_result(self, document_id: str, extraction_field_id: str,
                    value: Optional[str], confidence: Optional[float]) -> ExtractionResultRecord:
        """Durably record one extraction outcome.

        Raises:
            PersistenceError: If the result cannot be stored
        """

    @abstractmethod
    def mark_analyzed(self, document_id: str, timestamp: datetime) -> None:
        """Set a document's last-analyzed marker, overwriting any earlier value.

        Raises:
            PersistenceError: If the marker cannot be stored
        """

    @abstractmethod
    def load_results_for(self, document_ids: Iterable[str]) -> List[ExtractionResultRecord]:
        """Return the stored results of the given documents."""

    @abstractmethod
    def load_applicable_fields(self, project_id: str) -> List[ScopedField]:
        """Return a project's fields with their scopes, sorted by name."""


class SQLAlchemyResultStore(ExtractionResultStore):
    """Result store backed by the relational database.

    A result is kept per ``(document_id, extraction_field_id)`` pair: a
    later extraction updates the existing row in place.

    Attributes:
        db_manager: DatabaseManager instance for database operations
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager: DatabaseManager = db_manager

    def save_result(self, document_id: str, extraction_field_id: str,
                    value: Optional[str], confidence: Optional[float]) -> ExtractionResultRecord:
        """Insert or update the result for a document and field.

        Args:
            document_id: Analyzed document
            extraction_field_id: Extracted field
            value: Raw extracted value, None when nothing was found
            confidence: Provider confidence in [0, 1], or None

        Returns:
            The stored result

        Raises:
            NotFoundError: If the document or field no longer exists
            PersistenceError: If database operation fails
        """
        extracted_at = datetime.now(timezone.utc)
        try:
            return self._upsert(document_id, extraction_field_id, value, confidence, extracted_at)
        except IntegrityError:
            # A concurrent run inserted the pair first; update its row instead.
            logger.debug("Retrying result save for %s/%s as update", document_id, extraction_field_id)
            try:
                return self._upsert(document_id, extraction_field_id, value, confidence, extracted_at)
            except IntegrityError as e:
                raise PersistenceError(f"Database save error: {str(e)}")

    def _upsert(self, document_id: str, extraction_field_id: str, value: Optional[str],
                confidence: Optional[float], extracted_at: datetime) -> ExtractionResultRecord:
        session: Session = self.db_manager.create_session()
        try:
            row = (
                session.query(ExtractionResult)
                .filter_by(document_id=document_id, extraction_field_id=extraction_field_id)
                .one_or_none()
            )
            if row is None:
                if session.get(Document, document_id) is None:
                    raise NotFoundError(f"Document not found: {document_id}")
                if session.get(ExtractionField, extraction_field_id) is None:
                    raise NotFoundError(f"Extraction field not found: {extraction_field_id}")
                row = ExtractionResult(
                    document_id=document_id,
                    extraction_field_id=extraction_field_id,
                )
                session.add(row)
            row.extracted_value = value
            row.confidence_score = confidence
            row.extracted_at = extracted_at
            session.commit()
            return ExtractionResultRecord.from_row(row)
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database save error: {str(e)}")
        finally:
            session.close()

    def mark_analyzed(self, document_id: str, timestamp: datetime) -> None:
        session: Session = self.db_manager.create_session()
        try:
            document = session.get(Document, document_id)
            if document is None:
                raise NotFoundError(f"Document not found: {document_id}")
            document.last_analyzed_at = timestamp
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Database update error: {str(e)}")
        finally:
            session.close()

    def load_results_for(self, document_ids: Iterable[str]) -> List[ExtractionResultRecord]:
        ids = list(set(document_ids))
        if not ids:
            return []

        session: Session = self.db_manager.create_session()
        try:
            rows = (
                session.query(ExtractionResult)
                .filter(ExtractionResult.document_id.in_(ids))
                .order_by(ExtractionResult.extracted_at, ExtractionResult.id)
                .all()
            )
            return [ExtractionResultRecord.from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()

    def load_applicable_fields(self, project_id: str) -> List[ScopedField]:
        session: Session = self.db_manager.create_session()
        try:
            return load_scoped_fields(session, project_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database read error: {str(e)}")
        finally:
            session.close()
