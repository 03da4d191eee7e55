"""Extraction orchestrator for the document extraction application.

This module contains the ExtractionOrchestrator class that runs the
extraction provider over a list of documents, isolates per-document
failures, persists every computed value through the result store and
reports progress as documents complete.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from langfuse import observe

from ..config import Config
from ..database import ExtractionResultStore
from ..exceptions import InvalidRequestError, NotFoundError, PersistenceError
from ..models import DocumentRecord, ExtractionResultRecord
from ..providers import ExtractionProvider, FieldExtraction

__all__ = [
    "ExtractionOrchestrator",
    "ExtractionRunResult",
    "DocumentOutcome",
    "ProgressEvent",
    "ProgressEventType",
    "ProgressCallback"
]

logger = logging.getLogger(__name__)


class ProgressEventType(Enum):
    """Types of progress events."""
    RUN_STARTED = "run_started"
    DOCUMENT_STARTED = "document_started"
    DOCUMENT_COMPLETED = "document_completed"
    DOCUMENT_FAILED = "document_failed"
    RUN_COMPLETED = "run_completed"


@dataclass
class ProgressEvent:
    """Progress event data structure.

    ``progress`` is the share of finished documents in [0, 100]; it is
    not rounded.
    """
    event_type: ProgressEventType
    document_id: Optional[str] = None
    document_name: Optional[str] = None
    completed_documents: int = 0
    total_documents: int = 0
    progress: float = 0.0
    message: str = ""
    error: Optional[str] = None


@dataclass
class DocumentOutcome:
    """Result of extraction for one document.

    ``success`` reports whether the provider call succeeded. Values that
    could not be saved still appear in ``results`` (with ``id=None``) and
    are described in ``warnings``.
    """
    document_id: str
    document_name: str
    success: bool
    results: List[ExtractionResultRecord] = field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def produced_results(self) -> bool:
        return bool(self.results)


@dataclass
class ExtractionRunResult:
    """Combined result of one extraction run."""
    outcomes: List[DocumentOutcome]

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        """Documents that produced at least one result."""
        return sum(1 for o in self.outcomes if o.produced_results)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def results(self) -> List[ExtractionResultRecord]:
        """Results of all documents, in document order."""
        return [r for o in self.outcomes for r in o.results]

    @property
    def warnings(self) -> List[str]:
        return [w for o in self.outcomes for w in o.warnings]

    def summary_message(self) -> str:
        return (
            f"Extracted {len(self.results)} field(s); "
            f"{self.succeeded} of {self.attempted} document(s) succeeded"
        )


class ProgressCallback(Protocol):
    """Protocol for progress callback functions."""
    def __call__(self, event: ProgressEvent) -> None:
        """Handle progress event."""
        ...


@dataclass
class _RunState:
    total: int
    completed: int = 0

    @property
    def progress(self) -> float:
        return self.completed / self.total * 100


class ExtractionOrchestrator:
    """Runs extraction over documents with per-document failure isolation.

    Documents are processed with at most ``max_concurrent`` provider calls
    in flight; the default of one processes them sequentially. A failing
    or timed-out document is reported and the run continues. Each run gets
    its own concurrency limit, so one orchestrator may serve overlapping
    runs and runs in different event loops.

    Attributes:
        provider: Extraction provider called once per document
        store: Result store receiving every computed value
        max_concurrent: Maximum number of documents processed at once
        timeout: Seconds allowed per provider call, None for no limit
        progress_callback: Optional callback function for progress updates
    """

    def __init__(
        self,
        provider: ExtractionProvider,
        store: ExtractionResultStore,
        max_concurrent: int = Config.MAX_CONCURRENT_DOCUMENTS,
        timeout: Optional[float] = Config.EXTRACTION_TIMEOUT_SECONDS,
        progress_callback: Optional[ProgressCallback] = None
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.provider: ExtractionProvider = provider
        self.store: ExtractionResultStore = store
        self.max_concurrent: int = max_concurrent
        self.timeout: Optional[float] = timeout
        self.progress_callback: Optional[ProgressCallback] = progress_callback

    def _emit_progress(self, event: ProgressEvent) -> None:
        """Emit progress event to callback if available."""
        if self.progress_callback:
            self.progress_callback(event)

    @observe(name="extraction_run")
    async def run(self, documents: Sequence[DocumentRecord],
                  field_ids: Sequence[str]) -> ExtractionRunResult:
        """Extract the selected fields from every document.

        Field applicability is the caller's responsibility; see
        ``FieldScopeResolver.validate_selection``.

        Args:
            documents: Documents to analyze, in processing order
            field_ids: Fields to extract from each document

        Returns:
            Outcomes per document in input order

        Raises:
            InvalidRequestError: If no fields or no documents are given
        """
        selected = list(dict.fromkeys(field_ids))
        if not selected:
            raise InvalidRequestError("Select at least one field to extract")
        if not documents:
            raise InvalidRequestError("Nothing to analyze: no documents given")

        state = _RunState(total=len(documents))
        semaphore = asyncio.Semaphore(self.max_concurrent)
        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.RUN_STARTED,
            total_documents=state.total,
            message=f"Starting extraction of {len(selected)} field(s) from {state.total} document(s)"
        ))

        tasks = [self._process_document(document, selected, state, semaphore)
                 for document in documents]
        gathered = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: List[DocumentOutcome] = []
        for document, outcome in zip(documents, gathered):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error("Unexpected failure for document %s: %s", document.id, outcome)
                outcome = self._fail(document, state, str(outcome) or type(outcome).__name__)
            outcomes.append(outcome)

        run_result = ExtractionRunResult(outcomes=outcomes)
        logger.info("Extraction run finished: %s", run_result.summary_message())

        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.RUN_COMPLETED,
            completed_documents=state.total,
            total_documents=state.total,
            progress=100.0,
            message=run_result.summary_message()
        ))
        return run_result

    async def _process_document(self, document: DocumentRecord, field_ids: List[str],
                                state: _RunState, semaphore: asyncio.Semaphore) -> DocumentOutcome:
        async with semaphore:
            self._emit_progress(ProgressEvent(
                event_type=ProgressEventType.DOCUMENT_STARTED,
                document_id=document.id,
                document_name=document.name,
                completed_documents=state.completed,
                total_documents=state.total,
                progress=state.progress,
                message=f"Analyzing {document.name}"
            ))

            try:
                extractions = await self._invoke_provider(document.id, field_ids)
            except asyncio.TimeoutError:
                return self._fail(document, state, f"Extraction timed out after {self.timeout}s")
            except Exception as e:
                return self._fail(document, state, str(e) or type(e).__name__)

            results, warnings = await self._persist(document, extractions, field_ids)

            state.completed += 1
            self._emit_progress(ProgressEvent(
                event_type=ProgressEventType.DOCUMENT_COMPLETED,
                document_id=document.id,
                document_name=document.name,
                completed_documents=state.completed,
                total_documents=state.total,
                progress=state.progress,
                message=f"Extracted {len(results)} field(s) from {document.name}"
            ))
            return DocumentOutcome(
                document_id=document.id,
                document_name=document.name,
                success=True,
                results=results,
                warnings=warnings
            )

    async def _invoke_provider(self, document_id: str,
                               field_ids: List[str]) -> List[FieldExtraction]:
        """Call the provider, in a worker thread when it is synchronous."""
        call = self.provider.extract
        if inspect.iscoroutinefunction(call):
            pending = call(document_id, list(field_ids))
        else:
            pending = asyncio.to_thread(call, document_id, list(field_ids))
        return await asyncio.wait_for(pending, timeout=self.timeout)

    async def _persist(self, document: DocumentRecord, extractions: List[FieldExtraction],
                       field_ids: List[str]) -> Tuple[List[ExtractionResultRecord], List[str]]:
        """Save each requested value, then mark the document analyzed.

        Returns:
            Tuple of result records and warning messages
        """
        requested = set(field_ids)
        latest: Dict[str, FieldExtraction] = {}
        for extraction in extractions:
            if extraction.extraction_field_id not in requested:
                logger.warning("Provider returned unrequested field %s for document %s",
                               extraction.extraction_field_id, document.id)
                continue
            latest[extraction.extraction_field_id] = extraction

        results: List[ExtractionResultRecord] = []
        warnings: List[str] = []
        for extraction in latest.values():
            try:
                record = await asyncio.to_thread(
                    self.store.save_result,
                    document.id,
                    extraction.extraction_field_id,
                    extraction.extracted_value,
                    extraction.confidence_score
                )
            except (PersistenceError, NotFoundError) as e:
                message = (f"Could not save field {extraction.extraction_field_id} "
                           f"for {document.name}: {e}")
                logger.warning(message)
                warnings.append(message)
                record = ExtractionResultRecord(
                    id=None,
                    document_id=document.id,
                    extraction_field_id=extraction.extraction_field_id,
                    extracted_value=extraction.extracted_value,
                    confidence_score=extraction.confidence_score,
                    extracted_at=datetime.now(timezone.utc)
                )
            results.append(record)

        try:
            await asyncio.to_thread(self.store.mark_analyzed, document.id, datetime.now(timezone.utc))
        except (PersistenceError, NotFoundError) as e:
            message = f"Could not update analysis time of {document.name}: {e}"
            logger.warning(message)
            warnings.append(message)

        return results, warnings

    def _fail(self, document: DocumentRecord, state: _RunState, error: str) -> DocumentOutcome:
        logger.warning("Extraction failed for document %s: %s", document.id, error)
        state.completed += 1
        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.DOCUMENT_FAILED,
            document_id=document.id,
            document_name=document.name,
            completed_documents=state.completed,
            total_documents=state.total,
            progress=state.progress,
            message=f"Failed to analyze {document.name}",
            error=error
        ))
        return DocumentOutcome(
            document_id=document.id,
            document_name=document.name,
            success=False,
            error=error
        )
