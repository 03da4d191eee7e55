"""Tests for the extraction service.

This module contains workflow tests running extraction through the
service against a temporary database: scope checks, folder runs,
persisted results and their display rows.
"""

from typing import List

import pytest

from doc_extraction.exceptions import InvalidRequestError, NotFoundError, ProviderError
from doc_extraction.processors import ExtractionService, ProgressEventType
from doc_extraction.providers import ExtractionProvider, FieldExtraction, SimulatedProvider
from doc_extraction.scoping import ROOT


class FailingForProvider(ExtractionProvider):
    """Provider returning fixed values and failing for chosen documents."""

    def __init__(self, failing=()):
        self.failing = set(failing)

    def extract(self, document_id: str, field_ids: List[str]) -> List[FieldExtraction]:
        if document_id in self.failing:
            raise ProviderError("Extraction service unavailable")
        return [FieldExtraction(fid, "2024-01-15", 0.85) for fid in field_ids]


@pytest.fixture
def setup(project, project_repository, field_repository, make_document):
    """Project with a global field, two scoped fields and two documents in folder A."""
    folder_a = project_repository.create_folder(project.id, "Folder A")
    folder_b = project_repository.create_folder(project.id, "Folder B")
    f1 = field_repository.create_field(project.id, "F1 Customer", "text")
    f2 = field_repository.create_field(project.id, "F2 Amount", "number", folder_ids=[folder_a.id])
    f3 = field_repository.create_field(project.id, "F3 Date", "date", folder_ids=[folder_b.id])
    d1 = make_document("D1", folder_a.id)
    d2 = make_document("D2", folder_a.id)
    return {
        "folder_a": folder_a, "folder_b": folder_b,
        "f1": f1, "f2": f2, "f3": f3,
        "d1": d1, "d2": d2,
    }


def make_service(project_repository, document_repository, field_repository,
                 result_store, provider) -> ExtractionService:
    return ExtractionService(
        projects=project_repository,
        documents=document_repository,
        fields=field_repository,
        store=result_store,
        provider=provider,
    )


@pytest.fixture
def service_factory(project_repository, document_repository, field_repository, result_store):
    def _factory(provider):
        return make_service(project_repository, document_repository, field_repository,
                            result_store, provider)
    return _factory


class TestExtractionService:
    """Test cases for ExtractionService class."""

    def test_applicable_fields(self, service_factory, setup, project):
        service = service_factory(FailingForProvider())

        in_a = service.applicable_fields(project.id, setup["folder_a"].id)
        at_root = service.applicable_fields(project.id, ROOT)

        assert [f.id for f in in_a] == [setup["f1"].id, setup["f2"].id]
        assert [f.id for f in at_root] == [setup["f1"].id]

    def test_applicable_fields_foreign_folder(self, service_factory, project_repository, project):
        other = project_repository.create_project("Other")
        folder = project_repository.create_folder(other.id, "Elsewhere")
        service = service_factory(FailingForProvider())
        with pytest.raises(InvalidRequestError, match="does not belong"):
            service.applicable_fields(project.id, folder.id)

    @pytest.mark.asyncio
    async def test_folder_run_with_failing_document(self, service_factory, setup, project,
                                                    document_repository, progress_events):
        events, callback = progress_events
        service = service_factory(FailingForProvider(failing={setup["d2"].id}))
        f1, f2 = setup["f1"], setup["f2"]

        result = await service.extract_folder(
            project.id, setup["folder_a"].id, [f1.id, f2.id], progress_callback=callback
        )

        assert result.attempted == 2
        assert result.succeeded == 1
        assert {(r.document_id, r.extraction_field_id) for r in result.results} == {
            (setup["d1"].id, f1.id), (setup["d1"].id, f2.id)
        }
        assert events[-1].event_type == ProgressEventType.RUN_COMPLETED
        assert events[-1].progress == 100.0
        assert document_repository.get_document(setup["d1"].id).last_analyzed_at is not None
        assert document_repository.get_document(setup["d2"].id).last_analyzed_at is None

    @pytest.mark.asyncio
    async def test_rejects_field_outside_scope(self, service_factory, setup):
        service = service_factory(FailingForProvider())
        with pytest.raises(InvalidRequestError, match="not applicable"):
            await service.extract_document(setup["d1"].id, [setup["f3"].id])

    @pytest.mark.asyncio
    async def test_rejects_empty_selection(self, service_factory, setup):
        service = service_factory(FailingForProvider())
        with pytest.raises(InvalidRequestError, match="Select at least one field"):
            await service.extract_document(setup["d1"].id, [])

    @pytest.mark.asyncio
    async def test_rejects_empty_folder(self, service_factory, setup, project):
        service = service_factory(FailingForProvider())
        with pytest.raises(InvalidRequestError, match="Nothing to analyze"):
            await service.extract_folder(project.id, setup["folder_b"].id, [setup["f1"].id])

    @pytest.mark.asyncio
    async def test_missing_document(self, service_factory, setup):
        service = service_factory(FailingForProvider())
        with pytest.raises(NotFoundError):
            await service.extract_document("missing", [setup["f1"].id])

    @pytest.mark.asyncio
    async def test_document_results(self, service_factory, setup):
        service = service_factory(FailingForProvider())
        f1, f2 = setup["f1"], setup["f2"]

        await service.extract_document(setup["d1"].id, [f2.id, f1.id])
        rows = service.document_results(setup["d1"].id)

        assert [r.field_name for r in rows] == ["F1 Customer", "F2 Amount"]
        assert all(r.formatted_value == "2024-01-15" for r in rows)
        assert all(r.confidence_display == "85%" for r in rows)
        assert all(r.document_name is None for r in rows)

    @pytest.mark.asyncio
    async def test_reextraction_replaces_results(self, service_factory, setup, field_repository):
        f1 = setup["f1"]
        await service_factory(FailingForProvider()).extract_document(setup["d1"].id, [f1.id])
        service = service_factory(SimulatedProvider(field_repository, seed=3))

        await service.extract_document(setup["d1"].id, [f1.id])
        rows = service.document_results(setup["d1"].id)

        assert len(rows) == 1
        assert rows[0].raw_value == "Sample extracted text for F1 Customer"

    @pytest.mark.asyncio
    async def test_folder_results_and_summary(self, service_factory, setup, project):
        service = service_factory(FailingForProvider())
        f1 = setup["f1"]

        await service.extract_folder(project.id, setup["folder_a"].id, [f1.id])
        rows = service.folder_results(project.id, setup["folder_a"].id)
        summary = service.summarize(rows)

        assert [r.document_name for r in rows] == ["D1", "D2"]
        assert summary.total_results == 2
        assert summary.documents == 2
        assert summary.bucket_counts["high"] == 2

    @pytest.mark.asyncio
    async def test_root_documents(self, service_factory, setup, project, make_document):
        root_document = make_document("Loose")
        service = service_factory(FailingForProvider())

        result = await service.extract_folder(project.id, ROOT, [setup["f1"].id])

        assert [o.document_id for o in result.outcomes] == [root_document.id]
        with pytest.raises(InvalidRequestError):
            await service.extract_document(root_document.id, [setup["f2"].id])
