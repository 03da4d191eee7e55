"""Tests for the database module.

This module contains tests for database management, the project,
document and field repositories, and the SQLAlchemy result store.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from doc_extraction.config import Config
from doc_extraction.database import DatabaseManager
from doc_extraction.exceptions import (
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from doc_extraction.models import ExtractionResult
from doc_extraction.scoping import ROOT


class TestDatabaseManager:
    """Test cases for DatabaseManager class."""

    def test_init_default_url(self):
        """Test initialization with default database URL."""
        db_manager = DatabaseManager()
        assert db_manager.database_url == Config.DATABASE_URL
        assert db_manager._engine is None
        assert db_manager._session_factory is None

    def test_engine_property_lazy_initialization(self, test_db_manager):
        """Test that engine is created lazily and cached."""
        assert test_db_manager._engine is None
        engine = test_db_manager.engine
        assert engine is not None
        assert test_db_manager.engine is engine

    def test_engine_property_creation_error(self):
        """Test handling of engine creation errors."""
        with patch('doc_extraction.database.database_manager.create_engine') as mock_create_engine:
            mock_create_engine.side_effect = Exception("Database connection failed")
            db_manager = DatabaseManager("sqlite:///unused.db")

            with pytest.raises(PersistenceError, match="Database initialization error"):
                _ = db_manager.engine

    def test_in_memory_database_shares_connection(self):
        db_manager = DatabaseManager("sqlite://")
        assert "poolclass" in db_manager._engine_options()
        assert "poolclass" not in DatabaseManager("sqlite:///file.db")._engine_options()


class TestProjectRepository:
    """Test cases for projects and folders."""

    def test_create_and_list_projects(self, project_repository, project):
        assert project_repository.get_project(project.id) == project
        assert [p.id for p in project_repository.list_projects()] == [project.id]

    def test_create_project_requires_name(self, project_repository):
        with pytest.raises(ValidationError, match="Project name is required"):
            project_repository.create_project("  ")

    def test_get_missing_project(self, project_repository):
        with pytest.raises(NotFoundError):
            project_repository.get_project("missing")

    def test_folder_tree(self, project_repository, project):
        parent = project_repository.create_folder(project.id, "2024")
        child = project_repository.create_folder(project.id, "Q1", parent.id)

        assert [f.id for f in project_repository.list_child_folders(project.id)] == [parent.id]
        assert [f.id for f in project_repository.list_child_folders(project.id, parent.id)] == [child.id]
        assert [f.name for f in project_repository.get_folder_path(child.id)] == ["2024", "Q1"]

    def test_delete_project_with_folders(self, project_repository, project):
        project_repository.create_folder(project.id, "Invoices")
        with pytest.raises(InvalidRequestError, match="existing folders"):
            project_repository.delete_project(project.id)

    def test_delete_project_removes_fields(self, project_repository, field_repository, project):
        field_repository.create_field(project.id, "Total", "number")
        project_repository.delete_project(project.id)

        assert field_repository.list_fields(project.id) == []
        with pytest.raises(NotFoundError):
            project_repository.get_project(project.id)

    def test_delete_folder_guards(self, project_repository, field_repository, make_document, project):
        folder = project_repository.create_folder(project.id, "Invoices")
        field = field_repository.create_field(project.id, "Total", "number", folder_ids=[folder.id])

        with pytest.raises(InvalidRequestError, match="scoped"):
            project_repository.delete_folder(folder.id)

        field_repository.update_field(field.id, "Total", "number")
        make_document("Invoice 1", folder.id)
        with pytest.raises(InvalidRequestError, match="documents"):
            project_repository.delete_folder(folder.id)

    def test_delete_empty_folder(self, project_repository, project):
        folder = project_repository.create_folder(project.id, "Invoices")
        project_repository.delete_folder(folder.id)
        with pytest.raises(NotFoundError):
            project_repository.get_folder(folder.id)


class TestExtractionFieldRepository:
    """Test cases for extraction fields and their scopes."""

    def test_create_global_field(self, field_repository, project):
        field = field_repository.create_field(project.id, "Customer Name", "text")
        assert field.scope.is_global
        assert field_repository.get_field(field.id) == field

    def test_create_scoped_field(self, field_repository, project_repository, project):
        folder = project_repository.create_folder(project.id, "Invoices")
        field = field_repository.create_field(project.id, "Total", "number", folder_ids=[folder.id])
        assert field.scope.folder_ids == frozenset({folder.id})

    def test_create_field_unknown_folder(self, field_repository, project):
        with pytest.raises(NotFoundError, match="Folder not found"):
            field_repository.create_field(project.id, "Total", "number", folder_ids=["missing"])

    def test_create_field_foreign_folder(self, field_repository, project_repository, project):
        other = project_repository.create_project("Other")
        folder = project_repository.create_folder(other.id, "Invoices")
        with pytest.raises(ValidationError, match="another project"):
            field_repository.create_field(project.id, "Total", "number", folder_ids=[folder.id])

    def test_update_field_replaces_scope(self, field_repository, project_repository, project):
        a = project_repository.create_folder(project.id, "A")
        b = project_repository.create_folder(project.id, "B")
        field = field_repository.create_field(project.id, "Total", "number", folder_ids=[a.id])

        updated = field_repository.update_field(field.id, "Grand Total", "number", folder_ids=[b.id])

        assert updated.name == "Grand Total"
        assert field_repository.get_field(field.id).scope.folder_ids == frozenset({b.id})

    def test_update_field_to_global(self, field_repository, project_repository, project):
        folder = project_repository.create_folder(project.id, "A")
        field = field_repository.create_field(project.id, "Total", "number", folder_ids=[folder.id])
        field_repository.update_field(field.id, "Total", "number")
        assert field_repository.get_field(field.id).scope.is_global

    def test_list_fields_sorted_by_name(self, field_repository, project):
        field_repository.create_field(project.id, "Policy Number", "text")
        field_repository.create_field(project.id, "Amount", "number")
        assert [f.name for f in field_repository.list_fields(project.id)] == ["Amount", "Policy Number"]

    def test_delete_field_removes_results(self, field_repository, result_store, make_document, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")
        result_store.save_result(document.id, field.id, "42", 0.9)

        field_repository.delete_field(field.id)

        assert result_store.load_results_for([document.id]) == []
        with pytest.raises(NotFoundError):
            field_repository.get_field(field.id)


class TestDocumentRepository:
    """Test cases for documents and stored content."""

    def test_upload_and_read(self, document_repository, make_document, project):
        document = make_document("Invoice 1", content=b"hello")
        assert document.folder_id is ROOT
        assert document.file_size == 5
        assert document_repository.read_content(document.id) == b"hello"

    def test_upload_into_folder(self, document_repository, project_repository, make_document, project):
        folder = project_repository.create_folder(project.id, "Invoices")
        inside = make_document("Inside", folder.id)
        make_document("Outside")

        listed = document_repository.list_folder_documents(project.id, folder.id)
        assert [d.id for d in listed] == [inside.id]
        assert [d.name for d in document_repository.list_folder_documents(project.id)] == ["Outside"]

    def test_upload_discards_file_on_database_error(self, document_repository, storage, project):
        with patch.object(document_repository.db_manager, "create_session") as mock_session:
            mock_session.return_value.get.return_value = object()
            mock_session.return_value.commit.side_effect = SQLAlchemyError("disk full")
            with patch.object(storage, "delete") as mock_delete:
                with pytest.raises(PersistenceError):
                    document_repository.upload_document(
                        project.id, "Invoice", b"data", "invoice.txt", "text/plain"
                    )
                mock_delete.assert_called_once()

    def test_move_document_to_root(self, document_repository, project_repository, make_document, project):
        folder = project_repository.create_folder(project.id, "Invoices")
        document = make_document("Invoice 1", folder.id)
        moved = document_repository.update_document(document.id, folder_id=ROOT)
        assert moved.folder_id is None

    def test_delete_document_cascades(self, document_repository, field_repository,
                                      result_store, make_document, storage, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")
        result_store.save_result(document.id, field.id, "42", 0.9)

        document_repository.delete_document(document.id)

        assert result_store.load_results_for([document.id]) == []
        assert not (storage.base_dir / document.file_path).exists()


class TestSQLAlchemyResultStore:
    """Test cases for the result store."""

    def test_save_result_inserts(self, result_store, field_repository, make_document, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")

        record = result_store.save_result(document.id, field.id, "42", 0.9)

        assert record.id is not None
        assert record.extracted_value == "42"
        assert record.confidence_score == 0.9

    def test_save_result_upserts_per_document_and_field(self, result_store, field_repository,
                                                        test_db_manager, make_document, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")

        first = result_store.save_result(document.id, field.id, "42", 0.9)
        second = result_store.save_result(document.id, field.id, None, None)

        assert second.id == first.id
        session = test_db_manager.create_session()
        try:
            assert session.query(ExtractionResult).count() == 1
        finally:
            session.close()
        stored = result_store.load_results_for([document.id])
        assert stored[0].extracted_value is None

    def test_mark_analyzed(self, result_store, document_repository, make_document):
        document = make_document("Invoice 1")
        timestamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

        result_store.mark_analyzed(document.id, timestamp)

        stored = document_repository.get_document(document.id).last_analyzed_at
        assert stored.replace(tzinfo=None) == timestamp.replace(tzinfo=None)

    def test_mark_analyzed_missing_document(self, result_store):
        with pytest.raises(NotFoundError):
            result_store.mark_analyzed("missing", datetime.now(timezone.utc))

    def test_load_applicable_fields(self, result_store, field_repository, project):
        field_repository.create_field(project.id, "Total", "number")
        assert [f.name for f in result_store.load_applicable_fields(project.id)] == ["Total"]

    def test_load_results_for_no_documents(self, result_store):
        assert result_store.load_results_for([]) == []

    def test_save_result_after_document_deleted(self, result_store, field_repository,
                                                document_repository, make_document, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")
        document_repository.delete_document(document.id)

        with pytest.raises(NotFoundError, match="Document not found"):
            result_store.save_result(document.id, field.id, "42", 0.9)
        assert result_store.load_results_for([document.id]) == []

    def test_save_result_after_field_deleted(self, result_store, field_repository,
                                             make_document, project):
        field = field_repository.create_field(project.id, "Total", "number")
        document = make_document("Invoice 1")
        field_repository.delete_field(field.id)

        with pytest.raises(NotFoundError, match="Extraction field not found"):
            result_store.save_result(document.id, field.id, "42", 0.9)
        assert result_store.load_results_for([document.id]) == []

    def test_sqlite_enforces_foreign_keys(self, test_db_manager):
        session = test_db_manager.create_session()
        try:
            assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1
            session.add(ExtractionResult(
                document_id="missing-document",
                extraction_field_id="missing-field",
                extracted_value="x",
                extracted_at=datetime.now(timezone.utc),
            ))
            with pytest.raises(IntegrityError):
                session.commit()
        finally:
            session.rollback()
            session.close()
