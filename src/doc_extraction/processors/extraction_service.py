"""Extraction service for the document extraction application.

This module contains the ExtractionService class that ties field
scoping, the extraction orchestrator and result aggregation together
into the operations a user interface calls.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ..aggregation import ResultAggregator, ResultRow, ResultSummary
from ..config import Config
from ..database import (
    DocumentRepository,
    ExtractionFieldRepository,
    ExtractionResultStore,
    ProjectRepository,
)
from ..exceptions import InvalidRequestError
from ..models import DocumentRecord
from ..providers import ExtractionProvider
from ..scoping import ROOT, FieldScopeResolver, FolderContext, ScopedField
from .extraction_orchestrator import ExtractionOrchestrator, ExtractionRunResult, ProgressCallback

__all__ = ["ExtractionService"]

logger = logging.getLogger(__name__)


class ExtractionService:
    """Main service class for extraction operations.

    Every extraction request is checked against the folder context of the
    documents it targets before the provider is called.

    Attributes:
        projects: Repository for projects and folders
        documents: Repository for documents
        fields: Repository for extraction fields
        store: Result store extraction runs write through
        provider: Extraction provider
        aggregator: Aggregator building display rows
        max_concurrent: Maximum number of documents processed at once
        timeout: Seconds allowed per provider call, None for no limit
    """

    def __init__(
        self,
        projects: ProjectRepository,
        documents: DocumentRepository,
        fields: ExtractionFieldRepository,
        store: ExtractionResultStore,
        provider: ExtractionProvider,
        aggregator: Optional[ResultAggregator] = None,
        max_concurrent: int = Config.MAX_CONCURRENT_DOCUMENTS,
        timeout: Optional[float] = Config.EXTRACTION_TIMEOUT_SECONDS
    ) -> None:
        self.projects: ProjectRepository = projects
        self.documents: DocumentRepository = documents
        self.fields: ExtractionFieldRepository = fields
        self.store: ExtractionResultStore = store
        self.provider: ExtractionProvider = provider
        self.aggregator: ResultAggregator = aggregator or ResultAggregator()
        self.max_concurrent: int = max_concurrent
        self.timeout: Optional[float] = timeout

    def applicable_fields(self, project_id: str,
                          folder_id: FolderContext = ROOT) -> List[ScopedField]:
        """Return the project's fields that apply to a folder, sorted by name.

        Raises:
            NotFoundError: If the project or folder does not exist
            InvalidRequestError: If the folder belongs to another project
        """
        self.projects.get_project(project_id)
        self._check_context(project_id, folder_id)
        return FieldScopeResolver.resolve_applicable(
            self.store.load_applicable_fields(project_id), folder_id
        )

    async def extract_document(self, document_id: str, field_ids: Iterable[str],
                               progress_callback: Optional[ProgressCallback] = None
                               ) -> ExtractionRunResult:
        """Extract the selected fields from one document.

        Args:
            document_id: Document to analyze
            field_ids: Fields to extract; each must apply to the
                document's folder
            progress_callback: Optional callback for progress updates

        Raises:
            NotFoundError: If the document does not exist
            InvalidRequestError: If the field selection is empty or not
                applicable
        """
        document = self.documents.get_document(document_id)
        return await self._run(document.project_id, document.folder_id, [document],
                               field_ids, progress_callback)

    async def extract_folder(self, project_id: str, folder_id: FolderContext,
                             field_ids: Iterable[str],
                             progress_callback: Optional[ProgressCallback] = None
                             ) -> ExtractionRunResult:
        """Extract the selected fields from every document of a folder.

        Only documents placed directly in the folder are analyzed, in name
        order. Pass ``ROOT`` for the documents outside any folder.

        Raises:
            NotFoundError: If the project or folder does not exist
            InvalidRequestError: If the folder belongs to another project,
                holds no documents, or the field selection is invalid
        """
        self.projects.get_project(project_id)
        self._check_context(project_id, folder_id)
        documents = self.documents.list_folder_documents(project_id, folder_id)
        if not documents:
            raise InvalidRequestError("Nothing to analyze: the folder has no documents")
        return await self._run(project_id, folder_id, documents, field_ids, progress_callback)

    def document_results(self, document_id: str) -> List[ResultRow]:
        """Return display rows for one document's stored results."""
        document = self.documents.get_document(document_id)
        return self._rows(document.project_id, [document], with_names=False)

    def folder_results(self, project_id: str,
                       folder_id: FolderContext = ROOT) -> List[ResultRow]:
        """Return display rows for the documents of a folder, with their names."""
        self._check_context(project_id, folder_id)
        documents = self.documents.list_folder_documents(project_id, folder_id)
        return self._rows(project_id, documents, with_names=True)

    def summarize(self, rows: Iterable[ResultRow]) -> ResultSummary:
        return self.aggregator.summarize(rows)

    async def _run(self, project_id: str, context: FolderContext,
                   documents: Sequence[DocumentRecord], field_ids: Iterable[str],
                   progress_callback: Optional[ProgressCallback]) -> ExtractionRunResult:
        selection = FieldScopeResolver.validate_selection(
            self.store.load_applicable_fields(project_id), context, field_ids
        )
        logger.info("Extracting %d field(s) from %d document(s) in project %s",
                    len(selection), len(documents), project_id)

        orchestrator = ExtractionOrchestrator(
            provider=self.provider,
            store=self.store,
            max_concurrent=self.max_concurrent,
            timeout=self.timeout,
            progress_callback=progress_callback
        )
        return await orchestrator.run(documents, [f.id for f in selection])

    def _rows(self, project_id: str, documents: Sequence[DocumentRecord],
              with_names: bool) -> List[ResultRow]:
        if not documents:
            return []
        results = self.store.load_results_for(d.id for d in documents)
        fields_by_id = {f.id: f.field for f in self.store.load_applicable_fields(project_id)}
        documents_by_id = {d.id: d for d in documents} if with_names else None

        # Rows follow document order, then field name order.
        order = {d.id: i for i, d in enumerate(documents)}
        field_order = {fid: i for i, fid in enumerate(fields_by_id)}
        latest = sorted(
            self.aggregator.latest_results(results),
            key=lambda r: (order.get(r.document_id, len(order)),
                           field_order.get(r.extraction_field_id, len(field_order)))
        )
        return self.aggregator.aggregate(latest, fields_by_id, documents_by_id)

    def _check_context(self, project_id: str, folder_id: FolderContext) -> None:
        if folder_id is ROOT:
            return
        folder = self.projects.get_folder(folder_id)
        if folder.project_id != project_id:
            raise InvalidRequestError(f"Folder {folder_id} does not belong to project {project_id}")
